from .traversal import traverse
from .stores import DictSession, PriorSubmissionStore, SessionStore
from .policy import ProvenanceRecord, ValueResolutionPolicy
