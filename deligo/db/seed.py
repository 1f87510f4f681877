"""Database seeding helpers."""

import logging

from sqlalchemy.orm import Session

from deligo.core.config import settings
from deligo.core.security import get_password_hash
from deligo.services.user_service import create_user, get_user_by_username

logger = logging.getLogger(__name__)


def ensure_admin_user(session: Session) -> bool:
    """Ensure the configured admin account exists in development; return whether one is present."""
    if settings.app_env != "dev" or not settings.admin_user or not settings.admin_pass:
        return False

    existing_user = get_user_by_username(db=session, username=settings.admin_user)
    if existing_user is not None:
        return existing_user.role == "ADMIN"

    create_user(
        db=session,
        username=settings.admin_user,
        hashed_password=get_password_hash(settings.admin_pass),
        role="ADMIN",
    )
    logger.info("[BOOTSTRAP] Created admin user %s", settings.admin_user)
    return True
