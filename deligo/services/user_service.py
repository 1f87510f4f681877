"""User service operations."""

import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from deligo.models.driver import DriverProfile
from deligo.models.restaurant import Restaurant
from deligo.models.user import User, normalize_user_role
from deligo.services.audit_service import log_action
from deligo.services.errors import NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email).limit(1))


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalar(select(User).where(User.username == username).limit(1))


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_user(
    db: Session,
    username: str,
    hashed_password: str,
    role: str,
    email: str | None = None,
    display_name: str | None = None,
    restaurant_id: int | None = None,
    phone: str | None = None,
) -> User:
    canonical_role = normalize_user_role(role)
    user = User(
        username=username,
        password_hash=hashed_password,
        role=canonical_role,
        email=email,
        display_name=display_name,
        restaurant_id=restaurant_id if canonical_role == "RESTAURANT" else None,
        is_active=True,
    )
    db.add(user)
    db.flush()

    if canonical_role == "DRIVER":
        db.add(DriverProfile(user_id=user.id, name=display_name or username, phone=phone, is_available=True))

    db.commit()
    db.refresh(user)
    return user


def count_admin_users(db: Session) -> int:
    return len(db.scalars(select(User.id).where(User.role == "ADMIN")).all())


def set_user_active(db: Session, *, user_id: int, is_active: bool, actor: User) -> User:
    """Block or unblock an account.

    A restaurant account takes its restaurant with it, and a blocked driver
    stops receiving pool orders.
    """
    user = get_user_by_id(db=db, user_id=user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    if user.id == actor.id and not is_active:
        raise UnauthorizedError("Admins cannot block their own account")

    before = {"is_active": user.is_active}
    user.is_active = is_active
    if user.role == "RESTAURANT":
        restaurants = db.scalars(
            select(Restaurant).where(or_(Restaurant.id == user.restaurant_id, Restaurant.owner_user_id == user.id))
        ).all()
        for restaurant in restaurants:
            restaurant.is_active = is_active
    elif user.role == "DRIVER" and not is_active and user.driver_profile is not None:
        user.driver_profile.is_available = False

    log_action(
        db,
        actor=actor,
        action_type="user.unblocked" if is_active else "user.blocked",
        before_snapshot=before,
        after_snapshot={"user_id": user.id, "is_active": is_active},
    )
    db.commit()
    db.refresh(user)
    logger.info("[ADMIN] user_id=%s is_active=%s by admin user_id=%s", user.id, is_active, actor.id)
    return user
