"""User ORM model and role helpers."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deligo.db.base import Base
from deligo.utils.time import utcnow

USER_ROLES = ("ADMIN", "RESTAURANT", "DRIVER", "CUSTOMER")


def normalize_user_role(role: str | None) -> str:
    """Return the canonical upper-case role or raise ``ValueError``."""
    normalized = str(role or "").strip().upper()
    if normalized not in USER_ROLES:
        raise ValueError(f"Invalid role: {role!r}")
    return normalized


class User(Base):
    """System account for every client role."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(Enum(*USER_ROLES, name="user_role"), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    restaurant_id: Mapped[int | None] = mapped_column(ForeignKey("restaurants.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    legacy_uid: Mapped[str | None] = mapped_column(String(128), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    driver_profile: Mapped["DriverProfile | None"] = relationship(back_populates="user", uselist=False)

    @property
    def name(self) -> str:
        return self.display_name or self.username
