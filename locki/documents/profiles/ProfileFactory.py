"""Factory creating the documents that make up a new account."""

from typing import Optional

from locki.apis.Db import Db, Transaction
from locki.exceptions import DuplicateError, ValidationError
from locki.models.firestore_types import ProfileDoc, UserSettingsDoc, UserStatsDoc, UsernameDoc
from locki.util.logger import get_logger

logger = get_logger(__name__)

USERNAME_MAX_LENGTH = 30


def validate_username(username: str) -> str:
    """Return the trimmed username or raise ValidationError."""
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required", field="username")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(f"Username must be at most {USERNAME_MAX_LENGTH} characters", field="username")
    if "/" in username or username.startswith("__"):
        raise ValidationError("Username contains invalid characters", field="username")
    return username


class ProfileFactory:
    """Creates profile, username claim, stats and settings in one transaction."""

    def __init__(self, db: Db):
        """Initialize ProfileFactory.

        Args:
            db: Document store to write to
        """
        self.db = db

    def create(
        self,
        user_id: str,
        username: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        profession: str = "",
    ) -> ProfileDoc:
        """Create every document of a new account.

        Args:
            user_id: Auth principal uid, used as the profile id
            username: Requested username, must be unclaimed
            email: Optional email address
            display_name: Optional display name, defaults to the username
            profession: Optional profession

        Returns:
            The created ProfileDoc

        Raises:
            ValidationError: If the username is malformed
            DuplicateError: If the username or the profile already exists
        """
        username = validate_username(username)
        now = self.db.timestamp_now()
        profile = ProfileDoc(
            id=user_id,
            username=username,
            displayName=display_name or username,
            profession=profession,
            email=email,
            lastActiveDate=now,
            createdAt=now,
            lastUpdatedAt=now,
        )
        claim = UsernameDoc(id=username, userId=user_id, createdAt=now, lastUpdatedAt=now)
        stats = UserStatsDoc(id=user_id, userId=user_id, createdAt=now, lastUpdatedAt=now)
        settings = UserSettingsDoc(id=user_id, userId=user_id, createdAt=now, lastUpdatedAt=now)

        def _create(txn: Transaction):
            if txn.get("usernames", username) is not None:
                raise DuplicateError("Username", username, code="USERNAME_TAKEN", message=f"Username '{username}' is already taken")
            if txn.get("users", user_id) is not None:
                raise DuplicateError("Profile", user_id)
            txn.create("usernames", username, claim.model_dump())
            txn.create("users", user_id, profile.model_dump())
            txn.create("userStats", user_id, stats.model_dump())
            txn.set("userSettings", user_id, settings.model_dump())

        self.db.run_transaction(_create)
        logger.info(f"Created profile {user_id} with username {username}")
        return profile
