"""Member and contribution tables read by the claim service.

Only the columns the benefit engine needs are mapped. Member registration
and contribution capture belong to other services that share these tables.
"""

from datetime import date
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import BigInteger, Date, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.base import BaseModel, Money


class MemberStatus(StrEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    RETIRED = "RETIRED"
    TERMINATED = "TERMINATED"


class ContributionType(StrEnum):
    MONTHLY = "MONTHLY"
    VOLUNTARY = "VOLUNTARY"
    EMPLOYER = "EMPLOYER"
    ARREARS = "ARREARS"


class ContributionStatus(StrEnum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REVERSED = "REVERSED"


class Member(BaseModel):
    __tablename__ = "members"

    member_number: Mapped[str] = mapped_column(String(50), unique=True)
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    date_of_birth: Mapped[date] = mapped_column(Date)
    enrollment_date: Mapped[date] = mapped_column(Date)
    status: Mapped[MemberStatus] = mapped_column(
        Enum(MemberStatus, native_enum=False, length=20),
        default=MemberStatus.ACTIVE,
    )


class Contribution(BaseModel):
    __tablename__ = "contributions"

    member_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("members.id"), index=True
    )
    contribution_type: Mapped[ContributionType] = mapped_column(
        Enum(ContributionType, native_enum=False, length=20)
    )
    amount: Mapped[Decimal] = mapped_column(Money)
    status: Mapped[ContributionStatus] = mapped_column(
        Enum(ContributionStatus, native_enum=False, length=20),
        default=ContributionStatus.PENDING,
    )
    contribution_date: Mapped[date] = mapped_column(Date)
