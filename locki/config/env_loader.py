"""
Environment variable loader for the Locki backend.
Loads the optional .env file and builds the typed Settings used by services.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class EnvironmentError(Exception):
    """Raised when required environment variables are missing or invalid."""
    pass


class Settings(BaseModel):
    """Runtime settings shared by every service through the ServiceContext."""

    env: str = "production"
    project_id: Optional[str] = None
    storage_bucket: Optional[str] = None
    auth_settle_attempts: int = Field(3, ge=1)
    auth_settle_interval_sec: float = Field(1.0, ge=0)
    notification_preview_length: int = Field(50, ge=1)
    feed_default_limit: int = Field(20, ge=1)
    transaction_max_attempts: int = Field(5, ge=1)

    def is_production(self) -> bool:
        return self.env == "production"

    def is_development(self) -> bool:
        return self.env == "development"


def load_environment(env_file: Optional[str] = None) -> None:
    """
    Load environment variables from .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env in the project root.
    """
    if env_file is None:
        env_path = Path(__file__).parent.parent.parent / ".env"
    else:
        env_path = Path(env_file)

    # In production the variables are set by the Functions runtime
    if env_path.exists():
        load_dotenv(env_path)


def get_required_env_var(name: str, description: str = "") -> str:
    """
    Get a required environment variable.

    Args:
        name: Environment variable name
        description: Optional description for error messages

    Returns:
        Environment variable value

    Raises:
        EnvironmentError: If the environment variable is not set or empty
    """
    value = os.getenv(name)
    if not value:
        desc_part = f" ({description})" if description else ""

        guidance = ""
        if "PROJECT" in name:
            guidance = "\n  Hint: Set this to your Firebase project ID (e.g., locki-prod)"
        elif "BUCKET" in name:
            guidance = "\n  Hint: Set this to the Cloud Storage bucket name (e.g., locki-prod.appspot.com)"

        raise EnvironmentError(f"Required environment variable {name}{desc_part} is not set{guidance}")
    return value


def get_optional_env_var(name: str, default: str = "", description: str = "") -> str:
    """
    Get an optional environment variable with a default value.

    Args:
        name: Environment variable name
        default: Default value if not set
        description: Optional description for logging

    Returns:
        Environment variable value or default
    """
    return os.getenv(name, default)


def _int_env(name: str, default: int) -> int:
    raw = get_optional_env_var(name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise EnvironmentError(f"Environment variable {name} must be an integer, got '{raw}'")


def _float_env(name: str, default: float) -> float:
    raw = get_optional_env_var(name, str(default))
    try:
        return float(raw)
    except ValueError:
        raise EnvironmentError(f"Environment variable {name} must be a number, got '{raw}'")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional .env file to load first

    Returns:
        Validated Settings instance
    """
    load_environment(env_file)

    return Settings(
        env=get_optional_env_var("ENV", "production"),
        project_id=get_optional_env_var("GCLOUD_PROJECT") or None,
        storage_bucket=get_optional_env_var("STORAGE_BUCKET") or None,
        auth_settle_attempts=_int_env("AUTH_SETTLE_ATTEMPTS", 3),
        auth_settle_interval_sec=_float_env("AUTH_SETTLE_INTERVAL_SEC", 1.0),
        notification_preview_length=_int_env("NOTIFICATION_PREVIEW_LENGTH", 50),
        feed_default_limit=_int_env("FEED_DEFAULT_LIMIT", 20),
        transaction_max_attempts=_int_env("TRANSACTION_MAX_ATTEMPTS", 5),
    )
