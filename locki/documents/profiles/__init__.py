"""Profile documents."""

from .Profile import Profile
from .ProfileFactory import ProfileFactory, validate_username
from .UserStats import UserStats, METRIC_FIELDS

__all__ = ["Profile", "ProfileFactory", "validate_username", "UserStats", "METRIC_FIELDS"]
