"""
Labor Hours - Logging
=====================
Plain text in development, one JSON object per line in production.

Every record carries the request id and the acting user id from context
variables, so the lines written for one bulk request can be correlated.
"""

import logging
import sys
import json
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from laborhours.core.config import settings


request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024


def get_request_id() -> str:
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    return user_id_var.get() or ''


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    """Short id for X-Request-ID"""
    return uuid.uuid4().hex[:8]


# LogRecord attributes that are not user-supplied extras
_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    'message', 'asctime', 'request_id', 'user_id',
}


class JSONFormatter(logging.Formatter):
    """Structured output for log aggregation"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if get_request_id():
            entry["request_id"] = get_request_id()
        if get_user_id():
            entry["user_id"] = get_user_id()

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _STANDARD_ATTRS and not key.startswith('_')
        )
        return json.dumps(entry, default=str)


class ContextualFormatter(logging.Formatter):
    """Text formatter that can reference %(request_id)s and %(user_id)s"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.user_id = get_user_id() or '-'
        return super().format(record)


class LaborHoursLogger(logging.Logger):
    """Logger with helpers for the events operators search for"""

    def log_request(self, method: str, path: str, status_code: int, duration_ms: float) -> None:
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.log(
            level,
            f"{method} {path} - {status_code} ({duration_ms:.2f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: str = None,
                       reason: str = None, **kwargs) -> None:
        message = f"[Auth] {event} {'succeeded' if success else 'failed'}"
        if user_email:
            message += f" for {user_email}"
        if reason:
            message += f": {reason}"
        self.log(
            logging.INFO if success else logging.WARNING,
            message,
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_admin_action(self, action: str, admin_id: str,
                         summary: Optional[Dict[str, Any]] = None, **kwargs) -> None:
        """One line per administrative operation, with its outcome counts"""
        self.info(
            f"[Admin] {action} by {admin_id}" + (f": {summary}" if summary else ""),
            extra={
                "event_type": "admin_action",
                "admin_action": action,
                "admin_id": admin_id,
                "summary": summary or {},
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: str = None, **kwargs) -> None:
        self.error(
            f"[Error] {context}: {type(error).__name__}: {error}",
            exc_info=error,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_context": context,
                **kwargs
            }
        )


def _file_handler(formatter: logging.Formatter, backup_count: int) -> RotatingFileHandler:
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=backup_count)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def setup_logging() -> LaborHoursLogger:
    """Configure the "laborhours" logger for the current environment"""
    logging.setLoggerClass(LaborHoursLogger)

    logger = logging.getLogger("laborhours")
    logger.__class__ = LaborHoursLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()

    json_logging = settings.ENVIRONMENT == "production"
    if json_logging:
        console_formatter = file_formatter = JSONFormatter()
        backup_count = 10
    else:
        console_formatter = ContextualFormatter("%(levelname)-8s | %(message)s")
        file_formatter = ContextualFormatter(
            "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] | "
            "%(funcName)s:%(lineno)d | %(message)s"
        )
        backup_count = 5

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        logger.addHandler(_file_handler(file_formatter, backup_count))

    for noisy in ("aiosmtplib", "uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.debug(f"Logging initialized (environment={settings.ENVIRONMENT}, json={json_logging})")
    return logger


logger: LaborHoursLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_user_id',
    'set_user_id',
    'generate_request_id',
    'LaborHoursLogger',
]
