"""Identity resolution and account bookkeeping."""

from typing import Optional

from firebase_admin import auth as firebase_auth
from firebase_admin.exceptions import FirebaseError

from locki.documents.profiles import Profile, ProfileFactory, validate_username
from locki.exceptions import (
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    UnauthenticatedError,
    UnknownError,
    ValidationError,
)
from locki.models.firestore_types import ProfileDoc
from locki.util.logger import get_logger

logger = get_logger(__name__)

PASSWORD_MIN_LENGTH = 6


class IdentityResolver:
    """Maps an authenticated principal to its profile record."""

    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    def resolve(self, principal_id: Optional[str]) -> ProfileDoc:
        """Resolve the current actor.

        Args:
            principal_id: uid of the authenticated principal

        Returns:
            The actor's ProfileDoc

        Raises:
            UnauthenticatedError: If there is no principal
            NotFoundError: If the principal has no profile yet
            PermissionDeniedError: If the profile was deactivated
        """
        if not principal_id:
            raise UnauthenticatedError()
        profile = Profile.find(self.db, principal_id)
        if profile is None:
            raise NotFoundError("Profile", principal_id)
        if not profile.doc.isActive:
            raise PermissionDeniedError("Account is deactivated", resource=profile.get_doc_path())
        return profile.doc

    def resolve_after_sign_in(self, principal_id: Optional[str]) -> ProfileDoc:
        """Resolve a principal whose profile may not be readable yet.

        Right after account creation the profile document can lag behind the
        auth state, so the read is retried a bounded number of times.
        """
        attempts = self.ctx.settings.auth_settle_attempts
        interval = self.ctx.settings.auth_settle_interval_sec
        for attempt in range(1, attempts + 1):
            try:
                return self.resolve(principal_id)
            except NotFoundError:
                if attempt == attempts:
                    raise
                logger.info(f"Profile {principal_id} not readable yet, retrying ({attempt}/{attempts})")
                self.ctx.sleep(interval)
        raise NotFoundError("Profile", principal_id or "")

    def username_of(self, user_id: str) -> str:
        """Username snapshot for a user, empty when the profile is missing."""
        profile = Profile.find(self.db, user_id)
        return profile.username if profile else ""


class AccountService:
    """Sign-up, password reset and deactivation on top of firebase_admin.auth."""

    def __init__(self, ctx):
        self.ctx = ctx
        self.db = ctx.db

    @property
    def auth(self):
        return self.ctx.auth or firebase_auth

    def is_username_available(self, username: str) -> bool:
        username = validate_username(username)
        return self.db.get("usernames", username) is None

    def create_profile(
        self,
        user_id: str,
        username: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        profession: str = "",
    ) -> ProfileDoc:
        """Create the profile of an already authenticated principal."""
        if not user_id:
            raise UnauthenticatedError()
        return ProfileFactory(self.db).create(user_id, username, email, display_name, profession)

    def sign_up(
        self,
        email: str,
        password: str,
        username: str,
        display_name: Optional[str] = None,
        profession: str = "",
    ) -> ProfileDoc:
        """Create the auth account and its profile.

        The auth account is deleted again when the profile cannot be created,
        so a failed sign-up never leaves an account without a profile.

        Raises:
            ValidationError: For malformed email, password or username
            DuplicateError: If the email or username is taken
        """
        email = (email or "").strip()
        if "@" not in email:
            raise ValidationError("A valid email is required", field="email")
        if not password or len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters", field="password")
        if not self.is_username_available(username):
            raise DuplicateError("Username", username.strip(), code="USERNAME_TAKEN", message=f"Username '{username.strip()}' is already taken")

        try:
            user = self.auth.create_user(email=email, password=password, display_name=display_name or username)
        except firebase_auth.EmailAlreadyExistsError as e:
            raise DuplicateError("Account", email, message="An account with this email already exists") from e
        except FirebaseError as e:
            logger.error(f"Failed to create auth user for {email}: {e}")
            raise UnknownError(str(e)) from e

        try:
            profile = self.create_profile(user.uid, username, email, display_name, profession)
        except Exception:
            logger.error(f"Profile creation failed for {user.uid}, removing auth user")
            self.auth.delete_user(user.uid)
            raise

        logger.info(f"Signed up user {user.uid}")
        return profile

    def reset_password(self, email: str) -> str:
        """Generate a password reset link for the email."""
        email = (email or "").strip()
        if "@" not in email:
            raise ValidationError("A valid email is required", field="email")
        try:
            link = self.auth.generate_password_reset_link(email)
        except firebase_auth.UserNotFoundError as e:
            raise NotFoundError("Account", email) from e
        except FirebaseError as e:
            raise UnknownError(str(e)) from e
        logger.info(f"Generated password reset link for {email}")
        return link

    def record_sign_in(self, user_id: str) -> ProfileDoc:
        """Stamp lastActiveDate on sign-in, waiting for the profile to settle."""
        self.ctx.identity.resolve_after_sign_in(user_id)
        profile = Profile(self.db, user_id)
        profile.touch_last_active()
        return profile.doc

    def deactivate(self, user_id: str):
        """Soft-deactivate the profile and disable the auth account."""
        profile = Profile(self.db, user_id)
        profile.deactivate()
        try:
            self.auth.update_user(user_id, disabled=True)
        except FirebaseError as e:
            raise UnknownError(str(e)) from e
        logger.info(f"Deactivated account {user_id}")
