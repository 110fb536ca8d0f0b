"""Health check HTTP endpoint."""

from firebase_functions import https_fn, options

from locki.services.context import ServiceContext, get_default_context
from locki.util.cors_response import cors_preflight_response, create_cors_response
from locki.util.logger import get_logger

logger = get_logger(__name__)


def check_health(ctx: ServiceContext):
    """Check the document store.

    Returns:
        (response body, HTTP status)
    """
    db_status = "healthy"
    try:
        # Perform a simple query to verify database connectivity
        ctx.db.query("_health_check", limit=1)
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "unhealthy"

    response_data = {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "timestamp": ctx.db.timestamp_now().isoformat(),
        "environment": ctx.settings.env,
        "services": {
            "database": db_status,
            "functions": "healthy",
        },
    }
    return response_data, 200 if db_status == "healthy" else 503


@https_fn.on_request(
    ingress=options.IngressSetting.ALLOW_ALL,
    timeout_sec=30,
)
def health_check(req: https_fn.Request):
    """Health check endpoint for monitoring.

    Args:
        req: Firebase HTTP request

    Returns:
        Health status response
    """
    preflight = cors_preflight_response(req, ["GET", "OPTIONS"])
    if preflight is not None:
        return preflight

    try:
        response_data, status_code = check_health(get_default_context())
        logger.info(f"Health check: {response_data['status']}")
        return create_cors_response(response_data, status_code)

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return create_cors_response(
            {
                "status": "unhealthy",
                "error": str(e)
            },
            status=503
        )
