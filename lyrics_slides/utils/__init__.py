"""
Utilities package
Common helpers and logging functions
"""

from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    OperationLogger,
    create_operation_logger,
    current_log_file
)
from .helpers import (
    host_of,
    host_matches,
    is_blank,
    same_text,
    truncate_string,
    parse_title_line
)

__all__ = [
    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'OperationLogger',
    'create_operation_logger',
    'current_log_file',

    # Helper exports
    'host_of',
    'host_matches',
    'is_blank',
    'same_text',
    'truncate_string',
    'parse_title_line',
]
