"""
User registration, login and profile updates.
"""

from typing import Any, Optional

from loguru import logger
from werkzeug.security import check_password_hash, generate_password_hash

from tunestream.core.exceptions import AuthenticationError, ConflictError, ValidationError

from ..models import User
from ..store import CatalogStore

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
SELF_SERVICE_ROLES = ("user", "artist")
PROFILE_FIELDS = (
    "display_name",
    "email",
    "profile_image",
    "city",
    "favorite_artists",
    "social_media",
)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def register_user(
    store: CatalogStore,
    username: str,
    email: str,
    password: str,
    confirm_password: str,
    display_name: Optional[str] = None,
    role: str = "user",
) -> User:
    """
    Create a new account.

    Artist accounts get an artist profile named after the display name.

    Raises:
        ValidationError: If a field breaks the account rules
        ConflictError: If the username or email is already taken
    """
    username = (username or "").strip()
    email = (email or "").strip()

    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters"
        )
    if "@" not in email:
        raise ValidationError("Invalid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError(f"Invalid role: {role}")

    if store.get_user_by_username(username):
        raise ConflictError("Username already exists")
    if store.get_user_by_email(email):
        raise ConflictError("Email already exists")

    display_name = (display_name or "").strip() or username

    artist_id = None
    if role == "artist":
        artist = store.create_artist(name=display_name)
        artist_id = artist.id

    user = store.create_user(
        email=email,
        username=username,
        display_name=display_name,
        password_hash=hash_password(password),
        role=role,
        artist_id=artist_id,
    )
    logger.info(f"Registered {role} account '{username}' (id={user.id})")
    return user


def authenticate(store: CatalogStore, username: str, password: str) -> User:
    """
    Check credentials.

    Raises:
        AuthenticationError: If the user does not exist or the password is wrong
    """
    user = store.get_user_by_username((username or "").strip())
    if user is None or not verify_password(user.password_hash, password or ""):
        logger.debug(f"Failed login attempt for '{username}'")
        raise AuthenticationError("Invalid username or password")
    return user


def update_profile(store: CatalogStore, user: User, **changes: Any) -> User:
    """Apply profile edits. Only display/contact fields may change here."""
    unknown = set(changes) - set(PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}")

    if "display_name" in changes and not (changes["display_name"] or "").strip():
        raise ValidationError("Display name cannot be empty")
    if "email" in changes:
        email = (changes["email"] or "").strip()
        if "@" not in email:
            raise ValidationError("Invalid email address")
        existing = store.get_user_by_email(email)
        if existing and existing.id != user.id:
            raise ConflictError("Email already exists")
        changes["email"] = email

    return store.update_user(user.id, **changes)
