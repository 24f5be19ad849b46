"""FastAPI dependency implementations for collaborators built from settings."""

from app.core.config import settings
from app.services.avatars import AvatarStorage
from app.services.notifications import LogNotifier, Notifier


def get_avatar_storage() -> AvatarStorage:
    """Avatar storage rooted at AVATAR_STORAGE_DIR."""
    return AvatarStorage(settings.AVATAR_STORAGE_DIR, settings.AVATAR_THUMBNAIL_SIZE)


def get_notifier() -> Notifier:
    return LogNotifier()


def get_base_url() -> str:
    """Public base URL used to compose avatar URLs."""
    return settings.APP_URL
