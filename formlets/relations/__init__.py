from .binding import QueryCustomizer, Relation, RelationBinding, RelationKind
from .memory import BelongsToMany, HasMany, HasOne, RecordQuery
from .materializer import RelationMaterializer
