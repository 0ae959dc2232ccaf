from .error_log import IssueLogBuffer, IssueRecord
from .init import get_logger, log_summary, reset_logging, set_debug, setup_logging

__all__ = [
    "IssueLogBuffer",
    "IssueRecord",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
]
