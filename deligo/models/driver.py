"""Driver profile ORM model."""

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from deligo.db.base import Base


class DriverProfile(Base):
    """Operational driver state: availability, active order and counters."""

    __tablename__ = "drivers"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    current_order_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    rejected_orders_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_deliveries: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    user: Mapped["User"] = relationship(back_populates="driver_profile")
