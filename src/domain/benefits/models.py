"""Benefit claim table.

Two storage constraints back the claim invariants:

- ``uq_benefit_claims_active_member``: a partial unique index on
  ``member_id`` over the active statuses, so a second active claim for the
  same member fails at insert time even when two requests race.
- ``ck_benefit_claims_net_payable_non_negative``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Final

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.domain.benefits.state_machine import ACTIVE_STATUSES
from src.domain.benefits.types import BenefitType, ClaimStatus
from src.infrastructure.database.base import BaseModel, Money

ACTIVE_MEMBER_CLAIM_INDEX: Final[str] = "uq_benefit_claims_active_member"
REFERENCE_NUMBER_CONSTRAINT: Final[str] = "uq_benefit_claims_reference_number"

_active_status_list = ", ".join(
    f"'{status.value}'" for status in sorted(ACTIVE_STATUSES)
)


class BenefitClaim(BaseModel):
    __tablename__ = "benefit_claims"
    __table_args__ = (
        Index(
            ACTIVE_MEMBER_CLAIM_INDEX,
            "member_id",
            unique=True,
            postgresql_where=text(f"status IN ({_active_status_list})"),
        ),
        CheckConstraint("net_payable >= 0", name="net_payable_non_negative"),
    )

    reference_number: Mapped[str] = mapped_column(String(50), unique=True)
    member_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("members.id"), index=True
    )
    benefit_type: Mapped[BenefitType] = mapped_column(
        Enum(BenefitType, native_enum=False, length=30)
    )
    status: Mapped[ClaimStatus] = mapped_column(
        Enum(ClaimStatus, native_enum=False, length=20),
        default=ClaimStatus.PENDING,
        index=True,
    )

    total_contributions: Mapped[Decimal] = mapped_column(Money)
    employer_contributions: Mapped[Decimal] = mapped_column(Money)
    investment_returns: Mapped[Decimal] = mapped_column(Money)
    gross_benefit: Mapped[Decimal] = mapped_column(Money)
    tax_amount: Mapped[Decimal] = mapped_column(Money)
    admin_fee_amount: Mapped[Decimal] = mapped_column(Money)
    net_payable: Mapped[Decimal] = mapped_column(Money)
    approved_amount: Mapped[Decimal | None] = mapped_column(Money)

    application_date: Mapped[date] = mapped_column(Date)
    review_started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approval_date: Mapped[date | None] = mapped_column(Date)
    approved_by: Mapped[str | None] = mapped_column(String(100))
    rejected_by: Mapped[str | None] = mapped_column(String(100))
    rejection_reason: Mapped[str | None] = mapped_column(String(500))
    disbursement_date: Mapped[date | None] = mapped_column(Date)
    disbursed_by: Mapped[str | None] = mapped_column(String(100))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    payment_method: Mapped[str | None] = mapped_column(String(100))
    account_number: Mapped[str | None] = mapped_column(String(100))
    bank_name: Mapped[str | None] = mapped_column(String(100))
    remarks: Mapped[str | None] = mapped_column(String(500))

    def __repr__(self) -> str:
        return (
            f"<BenefitClaim(id={self.id}, reference={self.reference_number}, "
            f"status={self.status})>"
        )
