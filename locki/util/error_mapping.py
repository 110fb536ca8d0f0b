"""Map project exceptions onto callable function errors."""

from firebase_functions import https_fn

from locki.exceptions import (
    DuplicateError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    ProjectError,
    UnauthenticatedError,
    ValidationError,
)
from locki.util.logger import get_logger

logger = get_logger(__name__)

_ERROR_CODES = [
    (UnauthenticatedError, https_fn.FunctionsErrorCode.UNAUTHENTICATED),
    (NotFoundError, https_fn.FunctionsErrorCode.NOT_FOUND),
    (DuplicateError, https_fn.FunctionsErrorCode.ALREADY_EXISTS),
    (ValidationError, https_fn.FunctionsErrorCode.INVALID_ARGUMENT),
    (PermissionDeniedError, https_fn.FunctionsErrorCode.PERMISSION_DENIED),
    (NetworkError, https_fn.FunctionsErrorCode.UNAVAILABLE),
]


def to_https_error(error: Exception, fallback_message: str = "Internal error. Please try again later.") -> https_fn.HttpsError:
    """Convert an exception raised by a service into an HttpsError.

    Args:
        error: Exception raised while handling the request
        fallback_message: Message used for unexpected errors

    Returns:
        HttpsError to raise from the callable
    """
    if isinstance(error, https_fn.HttpsError):
        return error

    if isinstance(error, ProjectError):
        for error_type, code in _ERROR_CODES:
            if isinstance(error, error_type):
                return https_fn.HttpsError(code, error.message, {"code": error.code, **error.details})
        logger.error(f"Unhandled project error {error.code}: {error.message}")
        return https_fn.HttpsError(https_fn.FunctionsErrorCode.INTERNAL, error.message, {"code": error.code})

    logger.error(f"Unexpected error: {error}")
    return https_fn.HttpsError(https_fn.FunctionsErrorCode.INTERNAL, fallback_message)
