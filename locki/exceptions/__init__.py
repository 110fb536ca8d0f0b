"""Exceptions package initialization."""

from .CustomError import (
    ProjectError,
    UnauthenticatedError,
    ValidationError,
    PermissionDeniedError,
    NotFoundError,
    DuplicateError,
    AlreadyLikedError,
    DuplicateRelationshipError,
    NetworkError,
    UnknownError,
)

__all__ = [
    "ProjectError",
    "UnauthenticatedError",
    "ValidationError",
    "PermissionDeniedError",
    "NotFoundError",
    "DuplicateError",
    "AlreadyLikedError",
    "DuplicateRelationshipError",
    "NetworkError",
    "UnknownError",
]
