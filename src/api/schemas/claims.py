"""Request and response models for benefit claims.

Amounts are ``Decimal`` and serialize as strings, so clients never see
binary floating point rounding of cents.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from src.domain.benefits.calculation import CalculationResult, EligibilityStatus
from src.domain.benefits.types import BenefitType, ClaimStatus


class ClaimApplication(BaseModel):
    """Body of ``POST /api/v1/benefits``."""

    member_id: int = Field(..., gt=0, examples=[42])
    benefit_type: BenefitType = Field(..., examples=["RETIREMENT"])
    payment_method: str | None = Field(default=None, max_length=100)
    account_number: str | None = Field(default=None, max_length=100)
    bank_name: str | None = Field(default=None, max_length=100)
    remarks: str | None = Field(default=None, max_length=500)


class ApproveRequest(BaseModel):
    approved_by: str = Field(..., min_length=1, max_length=100)
    approved_amount: Decimal | None = Field(
        default=None,
        description="Overrides the calculated net payable; 0 to gross benefit",
        decimal_places=2,
    )


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)
    rejected_by: str = Field(..., min_length=1, max_length=100)


class DisburseRequest(BaseModel):
    disbursed_by: str = Field(..., min_length=1, max_length=100)


class ClaimResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference_number: str
    member_id: int
    benefit_type: BenefitType
    status: ClaimStatus
    total_contributions: Decimal
    employer_contributions: Decimal
    investment_returns: Decimal
    gross_benefit: Decimal
    tax_amount: Decimal
    admin_fee_amount: Decimal
    net_payable: Decimal
    approved_amount: Decimal | None = None
    application_date: date
    review_started_at: datetime | None = None
    approval_date: date | None = None
    approved_by: str | None = None
    rejected_by: str | None = None
    rejection_reason: str | None = None
    disbursement_date: date | None = None
    disbursed_by: str | None = None
    cancelled_at: datetime | None = None
    payment_method: str | None = None
    bank_name: str | None = None
    remarks: str | None = None
    created_at: datetime
    updated_at: datetime


class ClaimListResponse(BaseModel):
    items: list[ClaimResponse]
    skip: int
    limit: int


class PendingCountResponse(BaseModel):
    pending: int


class CalculationResponse(BaseModel):
    """Eligibility outcome and payout breakdown for a preview."""

    member_id: int
    benefit_type: BenefitType
    eligibility_status: EligibilityStatus
    eligibility_message: str
    member_age_years: int
    years_of_service: Decimal
    total_monthly_contributions: Decimal
    total_voluntary_contributions: Decimal
    total_contributions: Decimal
    employer_contributions: Decimal
    investment_returns: Decimal
    gross_benefit: Decimal
    tax_amount: Decimal
    admin_fee_amount: Decimal
    net_payable: Decimal

    @classmethod
    def from_result(
        cls, member_id: int, result: CalculationResult
    ) -> "CalculationResponse":
        return cls(
            member_id=member_id,
            benefit_type=result.benefit_type,
            eligibility_status=result.eligibility.status,
            eligibility_message=result.eligibility.message,
            member_age_years=result.member_age_years,
            years_of_service=result.years_of_service,
            total_monthly_contributions=result.total_monthly_contributions,
            total_voluntary_contributions=result.total_voluntary_contributions,
            total_contributions=result.total_contributions,
            employer_contributions=result.employer_contributions,
            investment_returns=result.investment_returns,
            gross_benefit=result.gross_benefit,
            tax_amount=result.tax_amount,
            admin_fee_amount=result.admin_fee_amount,
            net_payable=result.net_payable,
        )
