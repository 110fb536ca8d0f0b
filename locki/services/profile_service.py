"""Profile reads and edits, username changes and settings."""

from typing import Any, Dict

from locki.apis.Db import Transaction, WriteOp
from locki.documents.profiles import Profile, UserStats, validate_username
from locki.exceptions import DuplicateError, NotFoundError, PermissionDeniedError, ValidationError
from locki.models.firestore_types import ProfileDoc, UserSettingsDoc, UserStatsDoc, UsernameDoc
from locki.util.logger import get_logger

logger = get_logger(__name__)

EDITABLE_PROFILE_FIELDS = {
    "displayName": str,
    "profession": str,
    "bio": str,
    "isProfilePublic": bool,
    "allowsMessages": bool,
    "notificationsEnabled": bool,
}
SETTINGS_READONLY_FIELDS = {"id", "userId", "createdAt", "lastUpdatedAt"}

# Collections carrying a username snapshot, as (collection, id field, username field)
USERNAME_SNAPSHOTS = (
    ("posts", "userId", "username"),
    ("postComments", "userId", "username"),
    ("postLikes", "userId", "username"),
    ("buddyRelationships", "followerId", "followerUsername"),
    ("buddyRelationships", "followingId", "followingUsername"),
)


class ProfileService:
    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def get_profile(self, user_id: str) -> ProfileDoc:
        return Profile(self.db, user_id).doc

    def get_stats(self, user_id: str) -> UserStatsDoc:
        return UserStats(self.db, user_id).doc

    def update_profile(self, user_id: str, actor_id: str, changes: Dict[str, Any]) -> ProfileDoc:
        """Apply owner edits to the editable profile fields.

        Raises:
            PermissionDeniedError: If the actor does not own the profile
            ValidationError: For unknown fields or wrongly typed values
        """
        profile = Profile(self.db, user_id)
        if not profile.validate_permissions(actor_id):
            raise PermissionDeniedError("Cannot edit another user's profile", resource=profile.get_doc_path())

        update = {}
        for name, value in (changes or {}).items():
            expected = EDITABLE_PROFILE_FIELDS.get(name)
            if expected is None:
                raise ValidationError(f"Field '{name}' cannot be edited", field=name)
            if not isinstance(value, expected):
                raise ValidationError(f"Field '{name}' must be a {expected.__name__}", field=name)
            update[name] = value.strip() if isinstance(value, str) else value

        if update:
            profile.update_doc(update)
            logger.info(f"Updated profile {user_id}: {sorted(update)}")
        return profile.doc

    def change_username(self, user_id: str, new_username: str) -> ProfileDoc:
        """Move the username claim and refresh the denormalized snapshots.

        The claim swap and the profile update commit in one transaction.
        Propagating the new name to posts, comments, likes and buddy edges
        happens afterwards and is best effort; a failure there is logged.

        Raises:
            ValidationError: If the username is malformed
            DuplicateError: If another user holds the username
        """
        new_username = validate_username(new_username)
        now = self.db.timestamp_now()

        def _swap(txn: Transaction) -> str:
            profile = txn.get("users", user_id)
            if profile is None:
                raise NotFoundError("Profile", user_id)
            old_username = profile["username"]
            if old_username == new_username:
                return old_username
            claim = txn.get("usernames", new_username)
            if claim is not None and claim.get("userId") != user_id:
                raise DuplicateError("Username", new_username, code="USERNAME_TAKEN", message=f"Username '{new_username}' is already taken")
            txn.set("usernames", new_username, UsernameDoc(id=new_username, userId=user_id, createdAt=now, lastUpdatedAt=now).model_dump())
            txn.delete("usernames", old_username)
            txn.update("users", user_id, {"username": new_username, "lastUpdatedAt": now})
            return old_username

        old_username = self.db.run_transaction(_swap)
        if old_username != new_username:
            logger.info(f"User {user_id} renamed {old_username} -> {new_username}")
            self._propagate_username(user_id, new_username)
        return Profile(self.db, user_id).doc

    def _propagate_username(self, user_id: str, username: str):
        try:
            ops = []
            for collection, id_field, username_field in USERNAME_SNAPSHOTS:
                rows = self.db.query(collection, [(id_field, "==", user_id)])
                ops.extend(WriteOp.update(collection, row["id"], {username_field: username}) for row in rows)
            for batch_ops in self.db.chunked(ops, self.db.BATCH_LIMIT):
                self.db.commit(batch_ops)
            logger.info(f"Propagated username {username} to {len(ops)} documents")
        except Exception as e:
            logger.warning(f"Failed to propagate username {username} for {user_id}: {e}")

    def upload_profile_image(self, user_id: str, image: bytes) -> str:
        """Store the image and point the profile at it.

        Returns:
            Download URL of the uploaded image
        """
        if not image:
            raise ValidationError("Image data is required", field="image")
        profile = Profile(self.db, user_id)
        url = self.db.upload_blob(f"profile_images/{user_id}.jpg", image)
        profile.update_doc({"profileImageUrl": url})
        logger.info(f"Updated profile image of {user_id}")
        return url

    def get_settings(self, user_id: str) -> UserSettingsDoc:
        """Stored settings, or the defaults when none were saved."""
        data = self.db.get("userSettings", user_id)
        if data is None:
            now = self.db.timestamp_now()
            return UserSettingsDoc(id=user_id, userId=user_id, createdAt=now, lastUpdatedAt=now)
        return UserSettingsDoc(**data)

    def update_settings(self, user_id: str, changes: Dict[str, Any]) -> UserSettingsDoc:
        """Validate and merge settings changes.

        Raises:
            ValidationError: For unknown fields or invalid values
        """
        current = self.get_settings(user_id)
        for name in changes or {}:
            if name in SETTINGS_READONLY_FIELDS or name not in UserSettingsDoc.model_fields:
                raise ValidationError(f"Unknown setting '{name}'", field=name)
        try:
            updated = UserSettingsDoc(**{**current.model_dump(), **(changes or {}), "lastUpdatedAt": self.db.timestamp_now()})
        except ValueError as e:
            raise ValidationError(str(e), field="settings") from e

        self.db.commit([WriteOp.set("userSettings", user_id, updated.model_dump(), merge=True)])
        logger.info(f"Updated settings of {user_id}")
        return updated
