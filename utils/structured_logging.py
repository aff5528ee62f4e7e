"""
Structured Logging with Correlation IDs

Every log line is one JSON object built from ``StructuredLogEntry``.
Request handling sets a correlation id in a ContextVar so storage and
route logs emitted while serving a request carry the same id.
"""

import logging
import sys
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Request, Response
from pydantic import BaseModel, Field

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# ============================================================================
# LEVELS AND CATEGORIES
# ============================================================================


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SECURITY = "SECURITY"  # emitted at WARNING, tagged for filtering


class LogCategory(str, Enum):
    """Log categories for filtering and analysis"""

    REQUEST = "request"
    RESPONSE = "response"
    DATABASE = "database"
    SECURITY = "security"
    AUTHENTICATION = "authentication"
    ERROR = "error"
    PROGRESS = "progress"
    ACHIEVEMENT = "achievement"
    UPLOAD = "upload"
    BUSINESS = "business"
    SYSTEM = "system"


# ============================================================================
# LOG ENTRY MODEL
# ============================================================================


class StructuredLogEntry(BaseModel):
    """One JSON log line; unset fields are dropped on output"""

    timestamp: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    level: str
    category: str
    logger: Optional[str] = None
    message: str
    correlation_id: Optional[str] = None

    # Who and what
    user_id: Optional[int] = None
    course_id: Optional[int] = None
    lesson_id: Optional[int] = None

    # HTTP exchange
    request_id: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None
    request_ip: Optional[str] = None
    response_status: Optional[int] = None
    response_time_ms: Optional[float] = None

    # Failures
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_stack: Optional[str] = None

    security_event: Optional[str] = None
    security_severity: Optional[str] = None

    extra: Optional[Dict[str, Any]] = None


# ============================================================================
# LOGGER
# ============================================================================


class StructuredLogger:
    """Thin wrapper over a stdlib logger that writes ``StructuredLogEntry`` JSON"""

    def __init__(self, name: str, level: str = "INFO"):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level))
        self.logger.propagate = False

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)

    def _emit(self, log_level: int, level: LogLevel, category, message: str, **fields):
        if not self.logger.isEnabledFor(log_level):
            return
        fields.setdefault("correlation_id", correlation_id_var.get())
        if isinstance(category, Enum):
            category = category.value
        entry = StructuredLogEntry(
            level=level.value, category=category, logger=self.name, message=message, **fields
        )
        self.logger.log(log_level, entry.model_dump_json(exclude_none=True))

    def debug(self, message: str, category=LogCategory.SYSTEM, **fields):
        self._emit(logging.DEBUG, LogLevel.DEBUG, category, message, **fields)

    def info(self, message: str, category=LogCategory.SYSTEM, **fields):
        self._emit(logging.INFO, LogLevel.INFO, category, message, **fields)

    def warning(self, message: str, category=LogCategory.SYSTEM, **fields):
        self._emit(logging.WARNING, LogLevel.WARNING, category, message, **fields)

    def error(self, message: str, category=LogCategory.ERROR, exception: Optional[Exception] = None, **fields):
        """Log an error; pass ``exception`` from inside an ``except`` block to attach its stack"""
        if exception is not None:
            fields["error_type"] = type(exception).__name__
            fields["error_message"] = str(exception)
            fields["error_stack"] = "".join(
                traceback.format_exception(type(exception), exception, exception.__traceback__)
            )
        self._emit(logging.ERROR, LogLevel.ERROR, category, message, **fields)

    def security(self, message: str, event_type: str, severity: str = "medium", **fields):
        fields["security_event"] = event_type
        fields["security_severity"] = severity
        self._emit(logging.WARNING, LogLevel.SECURITY, LogCategory.SECURITY, message, **fields)


class StructuredFormatter(logging.Formatter):
    """Pass structured lines through; wrap third-party records in the same shape"""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if message.startswith("{"):
            return message

        entry = StructuredLogEntry(
            level=record.levelname,
            category=LogCategory.SYSTEM.value,
            logger=record.name,
            message=message,
            correlation_id=correlation_id_var.get(),
            error_stack=self.formatException(record.exc_info) if record.exc_info else None,
        )
        return entry.model_dump_json(exclude_none=True)


# ============================================================================
# CORRELATION IDS
# ============================================================================

_correlation_header = "X-Correlation-ID"


def generate_correlation_id() -> str:
    return f"corr_{uuid.uuid4().hex[:16]}"


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Bind a correlation id (generated when missing) to the current context"""
    correlation_id = correlation_id or generate_correlation_id()
    correlation_id_var.set(correlation_id)
    return correlation_id


# ============================================================================
# REQUEST LOGGING MIDDLEWARE
# ============================================================================


async def log_request_middleware(request: Request, call_next) -> Response:
    """Log each request and response with timing, tagging both with a correlation id"""
    correlation_id = set_correlation_id(request.headers.get(_correlation_header))
    request_id = f"req_{uuid.uuid4().hex[:8]}"
    request.state.correlation_id = correlation_id
    request.state.request_id = request_id

    logger = get_logger("api.request")
    http_fields = {
        "request_id": request_id,
        "request_method": request.method,
        "request_path": request.url.path,
    }
    logger.info(
        f"{request.method} {request.url.path}",
        category=LogCategory.REQUEST,
        request_ip=request.client.host if request.client else None,
        **http_fields,
    )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            "Request failed",
            exception=e,
            response_time_ms=round((time.perf_counter() - started) * 1000, 2),
            **http_fields,
        )
        raise

    auth = getattr(request.state, "auth", None)
    logger.info(
        f"{response.status_code} {request.method} {request.url.path}",
        category=LogCategory.RESPONSE,
        response_status=response.status_code,
        response_time_ms=round((time.perf_counter() - started) * 1000, 2),
        user_id=getattr(auth, "user_id", None),
        **http_fields,
    )

    response.headers[_correlation_header] = correlation_id
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# FACTORY AND CONFIGURATION
# ============================================================================

_loggers: Dict[str, StructuredLogger] = {}
_default_level = "INFO"


def get_logger(name: str, level: Optional[str] = None) -> StructuredLogger:
    """Get or create a structured logger"""
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, level or _default_level)
    return _loggers[name]


def log_authentication_event(
    event_type: str,
    user_id: Optional[int] = None,
    success: bool = True,
    method: str = "password",
    details: Optional[Dict] = None,
):
    """Record a login, logout or registration outcome"""
    logger = get_logger("auth")
    extra = {"method": method, "success": success, **(details or {})}

    if success:
        logger.info(f"{event_type} succeeded", category=LogCategory.AUTHENTICATION, user_id=user_id, extra=extra)
    else:
        logger.security(f"{event_type} failed", event_type=f"{event_type}_failed", user_id=user_id, extra=extra)


def configure_logging(level: str = "INFO", json_output: bool = True, correlation_id_header: str = "X-Correlation-ID"):
    """Set the level of every structured logger and the correlation header name"""
    global _default_level, _correlation_header

    _default_level = level.upper()
    _correlation_header = correlation_id_header

    numeric_level = getattr(logging, _default_level)
    logging.getLogger().setLevel(numeric_level)
    for structured in _loggers.values():
        structured.logger.setLevel(numeric_level)

    if json_output:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(StructuredFormatter())

    get_logger("system").info(
        "Logging configured",
        extra={"level": _default_level, "json_output": json_output, "correlation_id_header": correlation_id_header},
    )
