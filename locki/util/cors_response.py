"""CORS response utility for HTTP functions."""

from typing import Optional, Dict, Any, List
from flask import Response, jsonify
from firebase_functions import https_fn

ALLOWED_HEADERS = "Content-Type, Authorization, User-Id"


def cors_response_on_call(raw_request) -> Optional[tuple]:
    """Handle CORS for callable functions.

    Args:
        raw_request: Raw HTTP request object

    Returns:
        CORS response for OPTIONS request, None otherwise
    """
    if raw_request is not None and raw_request.method == "OPTIONS":
        headers = {
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": "POST, OPTIONS",
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            "Access-Control-Max-Age": "3600",
        }
        return ("", 204, headers)
    return None


def cors_preflight_response(req: https_fn.Request, allowed_methods: Optional[List[str]] = None) -> Optional[Response]:
    """Build the preflight response for OPTIONS requests to HTTP functions.

    Args:
        req: Firebase HTTP request object
        allowed_methods: List of allowed HTTP methods

    Returns:
        204 response for OPTIONS requests, None otherwise
    """
    if req.method != "OPTIONS":
        return None
    methods = allowed_methods or ["GET", "POST", "OPTIONS"]
    response = Response("", status=204)
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = ", ".join(methods)
    response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    response.headers["Access-Control-Max-Age"] = "3600"
    return response


def create_cors_response(data: Dict[str, Any], status: int = 200) -> Response:
    """Create a JSON response with CORS headers.

    Args:
        data: Response data dictionary
        status: HTTP status code

    Returns:
        Flask response with CORS headers
    """
    response = jsonify(data)
    response.status_code = status
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
    return response
