# koppla/services/logger.py
import logging
from typing import Optional, Any

LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LoggerService:
    """Centralized logging service for the assessment stages"""

    def __init__(self, name: str = "koppla", level: int = logging.INFO):
        self.name = name
        self.level = level
        self._logger = None

    def get_logger(self) -> logging.Logger:
        """Get or create a configured logger instance"""
        if self._logger is None:
            self._logger = logging.getLogger(self.name)
            if not self._logger.handlers:
                handler = logging.StreamHandler()
                handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
                self._logger.addHandler(handler)
            self._logger.setLevel(self.level)
        return self._logger

    def _log(self, level: int, message: str, stage_name: Optional[str] = None):
        if stage_name:
            message = f"[{stage_name}] {message}"
        self.get_logger().log(level, message)

    def log_debug(self, message: str, stage_name: Optional[str] = None):
        self._log(logging.DEBUG, message, stage_name)

    def log_info(self, message: str, stage_name: Optional[str] = None):
        self._log(logging.INFO, message, stage_name)

    def log_warning(self, message: str, stage_name: Optional[str] = None):
        self._log(logging.WARNING, message, stage_name)

    def log_error(self, message: str, stage_name: Optional[str] = None):
        self._log(logging.ERROR, message, stage_name)

    def log_critical(self, message: str, stage_name: Optional[str] = None):
        self._log(logging.CRITICAL, message, stage_name)

    def log_event(self, state: Any, stage_name: str, message: str):
        """Log event to state (for state-based logging)"""
        if hasattr(state, 'add_log'):
            state.add_log(stage_name, message)
        else:
            self.log_info(f"Event: {message}", stage_name)


def get_logger_service(name: str = "koppla", level: int = logging.INFO) -> LoggerService:
    """Get a configured LoggerService instance"""
    return LoggerService(name, level)
