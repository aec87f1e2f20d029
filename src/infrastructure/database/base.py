"""SQLAlchemy declarative base and common model fields.

Every table gets a BigInteger primary key and timezone-aware ``created_at`` /
``updated_at`` columns from ``BaseModel``. Constraint names follow
``NAMING_CONVENTION`` so migrations and IntegrityError handling can refer to
them by a stable name.
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, MetaData, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.core.constants import MONEY_PRECISION, MONEY_SCALE
from src.infrastructure.constants import NAMING_CONVENTION

# Column type for monetary amounts; values come back as Decimal
Money = Numeric(MONEY_PRECISION, MONEY_SCALE, asdecimal=True)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base with naming conventions."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class BaseModel(Base):
    """Abstract base model with an id and audit timestamps."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=True,
        doc="Primary key with auto-incrementing BigInteger ID",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the record was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        doc="Timestamp when the record was last updated (UTC)",
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
