"""Benefit claim lifecycle.

``ClaimService`` runs inside one database transaction per call (the request
session). Transitions lock the claim row, consult the transition table and
emit a domain event that is published once the transaction commits.

Applying for a benefit is serialized per member twice over: the member row
is locked before the active-claim check, and the partial unique index on
active claims rejects any insert that slips past the check.
"""

import secrets
import string
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Final

from loguru import logger

from src.core.exceptions import (
    BusinessRuleError,
    DuplicateClaimError,
    InvalidClaimError,
    NotFoundError,
    ValidationError,
)
from src.core.observability import trace_operation
from src.core.types import EventPayload
from src.domain.benefits.calculation import (
    BenefitPolicy,
    CalculationResult,
    EligibilityRules,
    age_in_years,
    calculate,
    to_money,
    years_of_service,
)
from src.domain.benefits.collaborators import (
    ContributionTotalsProvider,
    MemberDirectory,
    MemberProfile,
)
from src.domain.benefits.models import BenefitClaim
from src.domain.benefits.repository import ClaimRepository, ReferenceCollisionError
from src.domain.benefits.state_machine import ensure_transition
from src.domain.benefits.types import BenefitType, ClaimStatus
from src.domain.events import EventSink, EventType
from src.domain.members.models import ContributionType, MemberStatus
from src.infrastructure.database.repository import DEFAULT_PAGINATION_LIMIT

type Clock = Callable[[], datetime]
type ReferenceFactory = Callable[[datetime], str]

REFERENCE_PREFIX: Final[str] = "BEN"
REFERENCE_SUFFIX_LENGTH: Final[int] = 4
REFERENCE_ALPHABET: Final[str] = string.ascii_uppercase + string.digits
MAX_REFERENCE_ATTEMPTS: Final[int] = 5


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_reference_number(now: datetime) -> str:
    """``BEN<epoch millis><4 random uppercase alphanumerics>``."""
    suffix = "".join(
        secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_SUFFIX_LENGTH)
    )
    return f"{REFERENCE_PREFIX}{int(now.timestamp() * 1000)}{suffix}"


@dataclass(frozen=True, slots=True)
class PaymentDetails:
    payment_method: str | None = None
    account_number: str | None = None
    bank_name: str | None = None
    remarks: str | None = None


def _required_text(value: str | None, field_name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(
            f"{field_name} is required", context={"field": field_name}
        )
    return value.strip()


def claim_event_payload(claim: BenefitClaim, occurred_at: datetime) -> EventPayload:
    """Webhook body describing the claim after a transition."""
    return {
        "claim_id": claim.id,
        "reference_number": claim.reference_number,
        "member_id": claim.member_id,
        "benefit_type": claim.benefit_type.value,
        "status": claim.status.value,
        "gross_benefit": claim.gross_benefit,
        "net_payable": claim.net_payable,
        "approved_amount": claim.approved_amount,
        "occurred_at": occurred_at.isoformat(),
    }


class ClaimService:
    """Apply for benefits and move claims through their lifecycle.

    Args:
        claims: Claim repository bound to the transaction's session.
        members: Member lookup and status updates.
        contributions: Contribution totals per member and type.
        events: Sink for domain events, published after commit.
        policy: Calculation rates and thresholds.
        rules: Eligibility predicates per benefit type.
        clock: Source of the current time.
        reference_factory: Reference number generator.
    """

    def __init__(
        self,
        claims: ClaimRepository,
        members: MemberDirectory,
        contributions: ContributionTotalsProvider,
        events: EventSink,
        *,
        policy: BenefitPolicy,
        rules: EligibilityRules,
        clock: Clock = utc_now,
        reference_factory: ReferenceFactory = generate_reference_number,
    ) -> None:
        self.claims = claims
        self.members = members
        self.contributions = contributions
        self.events = events
        self.policy = policy
        self.rules = rules
        self.clock = clock
        self.reference_factory = reference_factory

    async def _require_member(
        self, member_id: int, *, for_update: bool = False
    ) -> MemberProfile:
        profile = await self.members.get_profile(member_id, for_update=for_update)
        if profile is None:
            raise NotFoundError(
                f"Member {member_id} not found", context={"member_id": member_id}
            )
        return profile

    async def _calculate_for(
        self, profile: MemberProfile, benefit_type: BenefitType
    ) -> CalculationResult:
        today = self.clock().date()
        monthly = await self.contributions.total_by_member_and_type(
            profile.member_id, ContributionType.MONTHLY
        )
        voluntary = await self.contributions.total_by_member_and_type(
            profile.member_id, ContributionType.VOLUNTARY
        )
        return calculate(
            age_in_years(profile.date_of_birth, today),
            years_of_service(profile.enrollment_date, today),
            monthly,
            voluntary,
            benefit_type,
            policy=self.policy,
            rules=self.rules,
        )

    async def calculate(
        self, member_id: int, benefit_type: BenefitType
    ) -> CalculationResult:
        """Preview eligibility and amounts without creating a claim."""
        profile = await self._require_member(member_id)
        return await self._calculate_for(profile, benefit_type)

    async def apply(
        self,
        member_id: int,
        benefit_type: BenefitType,
        payment: PaymentDetails | None = None,
    ) -> BenefitClaim:
        """Create a PENDING claim for an eligible member.

        Raises:
            NotFoundError: The member does not exist.
            DuplicateClaimError: The member already has an active claim.
            InvalidClaimError: The member is not eligible.
        """
        payment = payment or PaymentDetails()
        with trace_operation(
            "claims.apply", member_id=member_id, benefit_type=benefit_type.value
        ):
            profile = await self._require_member(member_id, for_update=True)

            if await self.claims.has_active_claim(member_id):
                raise DuplicateClaimError(
                    f"Member {member_id} already has an active benefit claim",
                    context={"member_id": member_id},
                )

            result = await self._calculate_for(profile, benefit_type)
            if not result.is_eligible:
                raise InvalidClaimError(
                    result.eligibility.message,
                    context={
                        "member_id": member_id,
                        "benefit_type": benefit_type.value,
                    },
                )

            claim = await self._insert_with_unique_reference(
                member_id, result, payment
            )

        logger.info(
            "Benefit claim {} created for member {}",
            claim.reference_number,
            member_id,
            claim_id=claim.id,
            reference_number=claim.reference_number,
            benefit_type=benefit_type.value,
        )
        self._emit(EventType.BENEFIT_CREATED, claim)
        return claim

    async def _insert_with_unique_reference(
        self, member_id: int, result: CalculationResult, payment: PaymentDetails
    ) -> BenefitClaim:
        for attempt in range(1, MAX_REFERENCE_ATTEMPTS + 1):
            now = self.clock()
            claim = BenefitClaim(
                reference_number=self.reference_factory(now),
                member_id=member_id,
                benefit_type=result.benefit_type,
                status=ClaimStatus.PENDING,
                total_contributions=result.total_contributions,
                employer_contributions=result.employer_contributions,
                investment_returns=result.investment_returns,
                gross_benefit=result.gross_benefit,
                tax_amount=result.tax_amount,
                admin_fee_amount=result.admin_fee_amount,
                net_payable=result.net_payable,
                application_date=now.date(),
                payment_method=payment.payment_method,
                account_number=payment.account_number,
                bank_name=payment.bank_name,
                remarks=payment.remarks,
            )
            try:
                return await self.claims.insert(claim)
            except ReferenceCollisionError:
                logger.warning(
                    "Reference number collision on attempt {}",
                    attempt,
                    reference_number=claim.reference_number,
                )

        raise BusinessRuleError(
            "Could not generate a unique claim reference number",
            context={"member_id": member_id, "attempts": MAX_REFERENCE_ATTEMPTS},
        )

    async def _load_for_update(self, claim_id: int) -> BenefitClaim:
        claim = await self.claims.get_by_id(claim_id, for_update=True)
        if claim is None:
            raise NotFoundError(
                f"Benefit claim {claim_id} not found", context={"claim_id": claim_id}
            )
        return claim

    def _emit(self, event_type: EventType, claim: BenefitClaim) -> None:
        self.events.emit(event_type, claim_event_payload(claim, self.clock()))

    async def _commit_transition(
        self, claim: BenefitClaim, event_type: EventType
    ) -> BenefitClaim:
        claim = await self.claims.save(claim)
        logger.info(
            "Benefit claim {} is now {}",
            claim.reference_number,
            claim.status,
            claim_id=claim.id,
            reference_number=claim.reference_number,
        )
        self._emit(event_type, claim)
        return claim

    async def start_review(self, claim_id: int) -> BenefitClaim:
        with trace_operation("claims.start_review", claim_id=claim_id):
            claim = await self._load_for_update(claim_id)
            ensure_transition(claim.status, ClaimStatus.UNDER_REVIEW)
            claim.status = ClaimStatus.UNDER_REVIEW
            claim.review_started_at = self.clock()
            return await self._commit_transition(claim, EventType.BENEFIT_UNDER_REVIEW)

    async def approve(
        self,
        claim_id: int,
        approved_by: str,
        approved_amount: Decimal | None = None,
    ) -> BenefitClaim:
        """Approve a PENDING or UNDER_REVIEW claim.

        ``approved_amount`` overrides the calculated net payable; it must lie
        between 0 and the gross benefit. Without it the net payable is used.
        """
        approver = _required_text(approved_by, "approved_by")
        with trace_operation("claims.approve", claim_id=claim_id):
            claim = await self._load_for_update(claim_id)
            ensure_transition(claim.status, ClaimStatus.APPROVED)

            if approved_amount is None:
                amount = claim.net_payable
            elif not approved_amount.is_finite():
                raise ValidationError(
                    "Approved amount must be a finite number",
                    context={
                        "claim_id": claim_id,
                        "approved_amount": str(approved_amount),
                    },
                )
            else:
                amount = to_money(approved_amount)
                if amount < 0 or amount > claim.gross_benefit:
                    raise ValidationError(
                        "Approved amount must be between 0 and the gross benefit",
                        context={
                            "claim_id": claim_id,
                            "approved_amount": str(amount),
                            "gross_benefit": str(claim.gross_benefit),
                        },
                    )

            claim.status = ClaimStatus.APPROVED
            claim.approved_amount = amount
            claim.approved_by = approver
            claim.approval_date = self.clock().date()
            return await self._commit_transition(claim, EventType.BENEFIT_APPROVED)

    async def reject(
        self, claim_id: int, reason: str, rejected_by: str
    ) -> BenefitClaim:
        """Reject a PENDING or UNDER_REVIEW claim; a reason is mandatory."""
        rejection_reason = _required_text(reason, "reason")
        rejecter = _required_text(rejected_by, "rejected_by")
        with trace_operation("claims.reject", claim_id=claim_id):
            claim = await self._load_for_update(claim_id)
            ensure_transition(claim.status, ClaimStatus.REJECTED)
            claim.status = ClaimStatus.REJECTED
            claim.rejection_reason = rejection_reason
            claim.rejected_by = rejecter
            claim.remarks = f"Rejected by: {rejecter}"
            return await self._commit_transition(claim, EventType.BENEFIT_REJECTED)

    async def disburse(self, claim_id: int, disbursed_by: str) -> BenefitClaim:
        """Mark an APPROVED claim as paid.

        Disbursing a RETIREMENT benefit also sets the member's status to
        RETIRED.
        """
        disburser = _required_text(disbursed_by, "disbursed_by")
        with trace_operation("claims.disburse", claim_id=claim_id):
            claim = await self._load_for_update(claim_id)
            ensure_transition(claim.status, ClaimStatus.DISBURSED)
            claim.status = ClaimStatus.DISBURSED
            claim.disbursed_by = disburser
            claim.disbursement_date = self.clock().date()

            if claim.benefit_type is BenefitType.RETIREMENT:
                await self.members.set_status(claim.member_id, MemberStatus.RETIRED)

            return await self._commit_transition(claim, EventType.BENEFIT_PAID)

    async def cancel(self, claim_id: int) -> BenefitClaim:
        """Cancel a non-terminal claim. Cancelling a cancelled claim is a no-op."""
        with trace_operation("claims.cancel", claim_id=claim_id):
            claim = await self._load_for_update(claim_id)
            if claim.status is ClaimStatus.CANCELLED:
                logger.debug("Claim {} already cancelled", claim_id, claim_id=claim_id)
                return claim

            ensure_transition(claim.status, ClaimStatus.CANCELLED)
            claim.status = ClaimStatus.CANCELLED
            claim.cancelled_at = self.clock()
            return await self._commit_transition(claim, EventType.BENEFIT_CANCELLED)

    async def get_claim(self, claim_id: int) -> BenefitClaim:
        claim = await self.claims.get_by_id(claim_id)
        if claim is None:
            raise NotFoundError(
                f"Benefit claim {claim_id} not found", context={"claim_id": claim_id}
            )
        return claim

    async def get_by_reference(self, reference_number: str) -> BenefitClaim:
        claim = await self.claims.find_by_reference(reference_number)
        if claim is None:
            raise NotFoundError(
                f"Benefit claim {reference_number} not found",
                context={"reference_number": reference_number},
            )
        return claim

    async def list_claims(
        self,
        *,
        status: ClaimStatus | None = None,
        member_id: int | None = None,
        skip: int = 0,
        limit: int = DEFAULT_PAGINATION_LIMIT,
    ) -> Sequence[BenefitClaim]:
        return await self.claims.list_claims(
            status=status, member_id=member_id, skip=skip, limit=limit
        )

    async def count_pending(self) -> int:
        return await self.claims.count_by_status(ClaimStatus.PENDING)
