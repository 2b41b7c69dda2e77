from .error_handler import handle_exceptions, log_exceptions, convert_exceptions
from .execution_timer import ExecutionTimer
from .logging_config import log_manager

__all__ = ["handle_exceptions", "log_exceptions", "convert_exceptions", "ExecutionTimer", "log_manager"]
