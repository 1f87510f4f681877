"""Shared SQLAlchemy base declarative class and model imports."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


# Import model modules so metadata is populated before create_all.
from deligo.models import audit_log as _audit_log  # noqa: E402,F401
from deligo.models import chat as _chat  # noqa: E402,F401
from deligo.models import driver as _driver  # noqa: E402,F401
from deligo.models import order as _order  # noqa: E402,F401
from deligo.models import rating as _rating  # noqa: E402,F401
from deligo.models import restaurant as _restaurant  # noqa: E402,F401
from deligo.models import user as _user  # noqa: E402,F401
