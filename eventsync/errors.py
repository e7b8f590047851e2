# errors.py
import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventSyncError(Exception):
    """Base class for every failure the booking core reports to its callers."""

    status_code = 500
    code = "internal_error"
    retryable = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.context:
            body["details"] = self.context
        if self.retryable:
            body["retryable"] = True
        return body


class ValidationError(EventSyncError):
    status_code = 422
    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None, **context: Any):
        if field is not None:
            context["field"] = field
        super().__init__(message, **context)
        self.field = field


class ConflictError(EventSyncError):
    status_code = 409
    code = "conflict"


class NotFoundError(EventSyncError):
    status_code = 404
    code = "not_found"


class ForbiddenError(EventSyncError):
    status_code = 403
    code = "forbidden"


class InternalError(EventSyncError):
    status_code = 500
    code = "internal_error"
    retryable = True


class ServiceUnavailableError(InternalError):
    status_code = 503
    code = "service_unavailable"


async def bounded(operation: Awaitable[T], seconds: float, name: str) -> T:
    """Await a storage or AI call with a deadline.

    Typed errors pass through. A timeout or any other failure is logged and
    surfaced as a retryable InternalError naming the operation.
    """
    try:
        return await asyncio.wait_for(operation, timeout=seconds)
    except EventSyncError:
        raise
    except asyncio.TimeoutError as exc:
        logger.error(f"[Timeout] {name} exceeded {seconds}s")
        raise InternalError(f"{name} timed out, please retry", operation=name) from exc
    except Exception as exc:
        logger.exception(f"[StorageError] {name} failed")
        raise InternalError(f"{name} failed, please retry", operation=name) from exc
