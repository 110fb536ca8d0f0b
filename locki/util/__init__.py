"""Utility functions package."""

from .logger import get_logger
from .db_auth_wrapper import db_auth_wrapper
from .error_mapping import to_https_error
from .cors_response import (
    cors_response_on_call,
    cors_preflight_response,
    create_cors_response,
)

__all__ = [
    "get_logger",
    "db_auth_wrapper",
    "to_https_error",
    "cors_response_on_call",
    "cors_preflight_response",
    "create_cors_response",
]
