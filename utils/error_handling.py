"""
Centralized error handling utilities for consistent error responses

Storage and route code raise the typed ``AppException`` subclasses below;
``register_exception_handlers`` translates them into the shared JSON
envelope ``{success, error, detail, statusCode}``.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.structured_logging import get_logger, LogCategory

logger = get_logger("errors")


class AppException(Exception):
    """Base application error carrying an HTTP status code"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.error
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Malformed or missing request fields"""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Validation error"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None, details=None):
        if field and details is None:
            details = [{"field": field, "message": message or self.error, "code": "invalid"}]
        super().__init__(message, details)


class AuthenticationError(AppException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Authentication required"


class ForbiddenError(AppException):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"


class NotFoundError(AppException):
    """Referenced entity does not exist"""

    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"

    def __init__(self, resource_name: str = "Resource", resource_id: Any = None):
        self.resource_name = resource_name
        self.resource_id = resource_id
        super().__init__(f"{resource_name} not found")


class ConflictError(AppException):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


def error_body(status_code: int, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    body = {"success": False, "error": message, "statusCode": status_code}
    if details is not None:
        body["detail"] = details
    return body


def validate_resource_exists(resource: Any, resource_name: str, resource_id: Any) -> Any:
    """
    Validate that a resource exists, raise NotFoundError if not

    Args:
        resource: The resource object (None if not found)
        resource_name: Name of the resource for error message
        resource_id: ID of the resource that was searched for
    """
    if resource is None:
        logger.warning(f"{resource_name} not found: {resource_id}", category=LogCategory.BUSINESS)
        raise NotFoundError(resource_name, resource_id)
    return resource


def format_validation_errors(errors: list) -> List[Dict[str, str]]:
    """Flatten pydantic/FastAPI validation errors into field-level messages"""
    formatted = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        formatted.append(
            {
                "field": ".".join(loc) or "request",
                "message": error.get("msg", "Validation error"),
                "code": error.get("type", "validation_error"),
            }
        )
    return formatted


def log_operation_success(operation: str, details: Optional[str] = None, **kwargs) -> None:
    """Log successful operations for audit purposes"""
    message = f"Operation successful: {operation}"
    if details:
        message = f"{message} - {details}"
    logger.info(message, category=LogCategory.BUSINESS, **kwargs)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the global handlers mapping errors to JSON responses"""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error(f"Application error on {request.url.path}", exception=exc)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = format_validation_errors(exc.errors())
        logger.warning(
            f"Validation error on {request.method} {request.url.path}",
            category=LogCategory.REQUEST,
            extra={"errors": details},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(status.HTTP_400_BAD_REQUEST, "Validation error", details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}",
            exception=exc,
            request_method=request.method,
            request_path=request.url.path,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
        )
