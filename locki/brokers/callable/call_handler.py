"""Shared plumbing for the callable functions.

Every callable parses its payload in a small handler taking
(ctx, uid, data) and returning a JSON-safe dict. handle_call takes care of
CORS preflight, authentication, the success envelope and mapping project
errors to HttpsError.
"""

import base64
import binascii
from typing import Any, Callable, Dict, Iterable, Optional

from firebase_functions import https_fn, options
from pydantic import BaseModel

from locki.exceptions import ValidationError
from locki.models.util_types import SuccessResponse
from locki.services.context import ServiceContext, get_default_context
from locki.util.cors_response import cors_response_on_call
from locki.util.db_auth_wrapper import db_auth_wrapper
from locki.util.error_mapping import to_https_error
from locki.util.logger import get_logger

logger = get_logger(__name__)

CORS = options.CorsOptions(cors_origins=["*"])
INGRESS = options.IngressSetting.ALLOW_ALL

Handler = Callable[[ServiceContext, Optional[str], Dict[str, Any]], Optional[Dict[str, Any]]]


def handle_call(
    req: https_fn.CallableRequest,
    action: str,
    handler: Handler,
    require_auth: bool = True,
    ctx: Optional[ServiceContext] = None,
):
    """Run a callable handler and wrap its result.

    Args:
        req: Firebase callable request
        action: Short description used in logs and error messages
        handler: Function doing the work
        require_auth: Reject requests without an authenticated principal
        ctx: Service context, the deployed default when omitted

    Returns:
        SuccessResponse as a dict

    Raises:
        https_fn.HttpsError: For every failure
    """
    # Handle CORS preflight
    options_response = cors_response_on_call(getattr(req, "raw_request", None))
    if options_response:
        return options_response

    try:
        ctx = ctx or get_default_context()
        uid = db_auth_wrapper(req, ctx.settings) if require_auth else None
        data = req.data if isinstance(req.data, dict) else {}

        result = handler(ctx, uid, data)

        logger.info(f"{action} succeeded for user {uid}")
        return SuccessResponse(data=result or {}).model_dump()

    except https_fn.HttpsError:
        raise
    except Exception as e:
        logger.error(f"Failed to {action}: {e}")
        raise to_https_error(e, f"Failed to {action}. Please try again later.")


def require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{key} is required", field=key)
    return value.strip()


def optional_str(data: Dict[str, Any], key: str, default: Optional[str] = None) -> Optional[str]:
    value = data.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{key} must be a string", field=key)
    return value


def optional_int(data: Dict[str, Any], key: str, default: int, maximum: Optional[int] = None) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{key} must be a positive integer", field=key)
    return min(value, maximum) if maximum else value


def optional_bool(data: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean", field=key)
    return value


def decode_image(data: Dict[str, Any], key: str = "imageBase64") -> Optional[bytes]:
    """Decode an optional base64 encoded image."""
    encoded = data.get(key)
    if not encoded:
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise ValidationError(f"{key} is not valid base64", field=key) from e


def dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(mode="json")


def dump_all(models: Iterable[BaseModel]):
    return [dump(model) for model in models]
