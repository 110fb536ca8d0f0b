"""Database authentication wrapper utility."""

from firebase_functions import https_fn

from locki.config import Settings
from locki.exceptions import UnauthenticatedError
from locki.util.logger import get_logger

logger = get_logger(__name__)


def db_auth_wrapper(req: https_fn.CallableRequest, settings: Settings) -> str:
    """Wrapper for authenticating Firebase callable requests.

    Args:
        req: Firebase callable request object
        settings: Runtime settings of the current function instance

    Returns:
        Authenticated user ID

    Raises:
        UnauthenticatedError: If no principal can be resolved
    """
    # In development/emulator a User-Id header identifies the caller in tests
    if settings.is_development():
        raw_request = getattr(req, "raw_request", None)
        if raw_request is not None and raw_request.headers:
            user_id = raw_request.headers.get("User-Id")
            if user_id:
                return user_id

    if not req.auth or not req.auth.uid:
        logger.warning("Unauthenticated request")
        raise UnauthenticatedError("The function must be called while authenticated.")

    return req.auth.uid
