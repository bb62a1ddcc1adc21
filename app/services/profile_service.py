"""Public profiles mirrored from the auth account"""
import logging
import re
from typing import Optional

from constants import USERNAME_MIN_LENGTH, USERNAME_PATTERN
from exceptions import DuplicateEntryException, ValidationException
from repositories.profile_repository import ProfileRepository

logger = logging.getLogger("main")

_USERNAME_RE = re.compile(USERNAME_PATTERN)


def validate_username(value, required: bool = False) -> Optional[str]:
    """Lowercased username, or None when blank and not required"""
    username = (value or "").strip().lower()
    if not username:
        if required:
            raise ValidationException("Username is required", field="username")
        return None
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationException(
            f"Username must be at least {USERNAME_MIN_LENGTH} characters", field="username"
        )
    if not _USERNAME_RE.match(username):
        raise ValidationException(
            "Username can only contain lowercase letters, numbers and underscores", field="username"
        )
    return username


def ensure_username_available(username: Optional[str], user_id=None):
    if not username:
        return
    existing = ProfileRepository.get_by_username(username)
    if existing is not None and existing.id != user_id:
        raise ValidationException("Username is already taken", field="username")


def sync_profile(user):
    """Upsert the profiles row from the account's metadata.

    An empty username is stored as NULL so the unique index only applies to
    users who picked one.
    """
    try:
        profile = ProfileRepository.upsert(
            user.id,
            username=(user.username or "").strip().lower() or None,
            full_name=user.full_name or None,
            avatar_url=user.avatar_url or None,
            profile_color=user.profile_color or None,
        )
    except DuplicateEntryException:
        raise ValidationException("Username is already taken", field="username")
    logger.info(f"Profile synced for user {user.id}")
    return profile
