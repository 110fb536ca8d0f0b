"""Custom exception classes for the project."""

from typing import Optional, Dict, Any


class ProjectError(Exception):
    """Base exception class for project-specific errors."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize ProjectError.

        Args:
            message: Error message
            code: Optional error code
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.code = code or "PROJECT_ERROR"
        self.details = details or {}


class UnauthenticatedError(ProjectError):
    """Raised when no actor can be resolved for a request."""

    def __init__(self, message: str = "User is not authenticated"):
        super().__init__(message, code="UNAUTHENTICATED")


class ValidationError(ProjectError):
    """Raised when validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        """Initialize ValidationError.

        Args:
            message: Error message
            field: Optional field that failed validation
            details: Optional additional error details
        """
        if field:
            details = details or {}
            details["field"] = field

        super().__init__(message, code="VALIDATION_ERROR", details=details)


class PermissionDeniedError(ProjectError):
    """Raised when permission check fails."""

    def __init__(self, message: str = "Permission denied", resource: Optional[str] = None):
        """Initialize PermissionDeniedError.

        Args:
            message: Error message
            resource: Optional resource that was denied
        """
        details = {"resource": resource} if resource else {}
        super().__init__(message, code="PERMISSION_DENIED", details=details)


class NotFoundError(ProjectError):
    """Raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        """Initialize NotFoundError.

        Args:
            resource_type: Type of resource not found
            resource_id: ID of resource not found
            message: Optional message overriding the default one
        """
        message = message or f"{resource_type} with ID '{resource_id}' not found"
        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, code="NOT_FOUND", details=details)


class DuplicateError(ProjectError):
    """Raised when attempting to create a duplicate resource."""

    def __init__(
        self,
        resource_type: str,
        identifier: str,
        code: str = "DUPLICATE",
        message: Optional[str] = None,
    ):
        """Initialize DuplicateError.

        Args:
            resource_type: Type of resource
            identifier: Identifier that already exists
            code: Error code, narrowed by subclasses
            message: Optional message overriding the default one
        """
        message = message or f"{resource_type} with identifier '{identifier}' already exists"
        details = {
            "resource_type": resource_type,
            "identifier": identifier
        }
        super().__init__(message, code=code, details=details)


class AlreadyLikedError(DuplicateError):
    """Raised when a user likes a post they already like."""

    def __init__(self, post_id: str, user_id: str):
        super().__init__(
            "PostLike",
            f"{post_id}_{user_id}",
            code="ALREADY_LIKED",
            message=f"Post '{post_id}' is already liked by '{user_id}'",
        )


class DuplicateRelationshipError(DuplicateError):
    """Raised when an active buddy edge already exists."""

    def __init__(self, follower_id: str, following_id: str):
        super().__init__(
            "BuddyRelationship",
            f"{follower_id}_{following_id}",
            code="DUPLICATE_RELATIONSHIP",
            message="Buddy relationship already exists",
        )


class NetworkError(ProjectError):
    """Raised when the backend is unreachable or a write keeps aborting."""

    def __init__(self, message: str = "Network error occurred", service: Optional[str] = None):
        """Initialize NetworkError.

        Args:
            message: Error message
            service: Optional name of the failing backend service
        """
        details = {"service": service} if service else {}
        super().__init__(message, code="NETWORK_ERROR", details=details)


class UnknownError(ProjectError):
    """Catch-all carrying the underlying message."""

    def __init__(self, message: str):
        super().__init__(message, code="UNKNOWN")
