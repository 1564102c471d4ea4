"""
Logging service for EdConnect
"""

import os
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional
import structlog

from .settings_config_service import get_settings_service


class LoggingService:
    """Structured logging service"""

    def __init__(self, log_dir: Optional[str] = None):
        settings = get_settings_service()
        self.log_dir = Path(
            log_dir
            or os.getenv("EDCONNECT_LOG_DIR")
            or settings.get("logging", "dir", "logs")
        )
        self.default_level = settings.get("logging", "default_level", "INFO").upper()
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer(),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        self._setup_handlers()

    def _setup_handlers(self):
        """Set up logging handlers"""
        main_handler = logging.FileHandler(self.log_dir / "edconnect.log")
        main_handler.setLevel(logging.DEBUG)
        main_handler.setFormatter(logging.Formatter("%(message)s"))

        error_handler = logging.FileHandler(self.log_dir / "errors.log")
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(logging.Formatter("%(message)s"))

        console_handler = logging.StreamHandler()
        console_level = (
            logging.DEBUG
            if os.getenv("EDCONNECT_DEV_MODE")
            else getattr(logging, self.default_level, logging.INFO)
        )
        console_handler.setLevel(console_level)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        root_logger.addHandler(main_handler)
        root_logger.addHandler(error_handler)
        root_logger.addHandler(console_handler)
        self._handlers = [main_handler, error_handler, console_handler]

    def close(self):
        """Detach and close this service's handlers"""
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []

    def get_logger(self, name: str) -> structlog.stdlib.BoundLogger:
        """Get a structured logger"""
        return structlog.get_logger(name)

    def log_event(
        self,
        logger_name: str,
        level: str,
        event_type: str,
        user_id: Optional[int] = None,
        **kwargs,
    ):
        """Log a structured event"""
        logger = self.get_logger(logger_name)

        log_data = {
            "user_id": user_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **kwargs,
        }

        level_method = getattr(logger, level.lower(), logger.info)
        level_method(event_type, **log_data)

    def log_crud_operation(
        self,
        operation: str,
        entity: str,
        entity_id: Any,
        user_id: Optional[int] = None,
        **kwargs,
    ):
        """Log CRUD operation"""
        self.log_event(
            "crud",
            "INFO",
            f"crud.{operation}",
            user_id=user_id,
            entity=entity,
            entity_id=entity_id,
            **kwargs,
        )

    def log_auth_event(
        self,
        event: str,
        user_id: Optional[int] = None,
        username: Optional[str] = None,
        success: bool = True,
        **kwargs,
    ):
        """Log authentication event"""
        self.log_event(
            "auth",
            "INFO" if success else "WARNING",
            f"auth.{event}",
            user_id=user_id,
            username=username,
            success=success,
            **kwargs,
        )

    def log_ai_operation(
        self,
        operation: str,
        provider: str,
        model: str,
        user_id: Optional[int] = None,
        success: bool = True,
        duration_ms: Optional[int] = None,
        **kwargs,
    ):
        """Log AI operation"""
        level = "INFO" if success else "ERROR"
        self.log_event(
            "ai",
            level,
            f"ai.{operation}",
            user_id=user_id,
            provider=provider,
            model=model,
            success=success,
            duration_ms=duration_ms,
            **kwargs,
        )

    def log_privacy_event(self, event: str, categories: List[str], **kwargs):
        """Log a FERPA audit line. Never pass the redacted text itself."""
        self.log_event(
            "privacy",
            "INFO",
            f"privacy.{event}",
            categories=sorted(categories),
            **kwargs,
        )

    def log_error(
        self,
        error_type: str,
        error_message: str,
        user_id: Optional[int] = None,
        **kwargs,
    ):
        """Log error event"""
        self.log_event(
            "error",
            "ERROR",
            f"error.{error_type}",
            user_id=user_id,
            error_message=error_message,
            **kwargs,
        )


# Global logging service instance
_logging_service: Optional[LoggingService] = None


def get_logging_service() -> LoggingService:
    """Get the global logging service instance"""
    global _logging_service
    if _logging_service is None:
        _logging_service = LoggingService()
    return _logging_service


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance"""
    return get_logging_service().get_logger(name)
