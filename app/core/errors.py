"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``app.main`` turns them into the
``{"Status", "Message", "Error"}`` envelope. Anything else escaping a service
is logged and re-raised as :class:`InternalError` by :func:`service_boundary`.
"""
import functools
import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    kind = "internal"

    def __init__(self, message: str, *, field: str = "general"):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_error(self) -> dict:
        return {"field": self.field, "body": self.message}


class NotFoundError(AppError):
    status_code = 404
    kind = "not_found"


class ValidationError(AppError):
    status_code = 400
    kind = "validation"


class InvalidDateError(ValidationError):
    kind = "invalid_date"


class DateOrderingError(ValidationError):
    kind = "date_ordering"


class DuplicateInBatchError(ValidationError):
    kind = "duplicate_in_batch"


class UnsupportedMethodError(ValidationError):
    kind = "unsupported_method"


class ConflictError(AppError):
    status_code = 409
    kind = "conflict"


class PassportAlreadyRegisteredError(ConflictError):
    kind = "passport_already_registered"

    def __init__(self, passports: list[str]):
        super().__init__(f"Passport numbers already registered: {', '.join(passports)}", field="passport_number")
        self.passports = passports


class PassportConflictError(ConflictError):
    kind = "passport_conflict"


class AlreadyPaidError(ConflictError):
    kind = "already_paid"


class NoTouristsError(ConflictError):
    kind = "no_tourists"


class InvalidTransitionError(ConflictError):
    kind = "invalid_transition"


class PaymentAttemptsExceededError(ConflictError):
    kind = "payment_attempts_exceeded"


class UnauthorizedError(AppError):
    status_code = 401
    kind = "unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    kind = "forbidden"


class ExternalServiceError(AppError):
    status_code = 502
    kind = "external_service"


class InternalError(AppError):
    status_code = 500
    kind = "internal"


STATUS_MESSAGES = {
    400: "Validation error",
    401: "Unauthorized",
    403: "Access denied",
    404: "Resource not found",
    409: "Conflict",
    422: "Validation error",
    500: "Internal server error",
    502: "Upstream service error",
}


def message_for_status(status: int) -> str:
    return STATUS_MESSAGES.get(status, "Request failed")


def envelope(status: int, error) -> dict:
    return {"Status": status, "Message": message_for_status(status), "Error": error}


def service_boundary(action: str):
    """Let taxonomy errors through; log anything else and hide it behind InternalError."""

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except AppError:
                raise
            except Exception as e:
                logger.exception("%s failed", action)
                raise InternalError(f"Error during {action}") from e

        return wrapper

    return decorator
