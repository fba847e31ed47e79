"""formlets Utilities Package

type_utils: Boolean parsing, sequence/record detection and loose comparison
logging_utils: Logging configuration and summary formatting
"""

from .type_utils import (
    MISSING,
    get_segment,
    str_to_bool,
    is_sequence,
    is_record,
    loose_equals,
)

from .logging_utils import (
    configure_logging,
    format_value,
    log_section,
)
