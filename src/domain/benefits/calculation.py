"""Benefit eligibility and payout calculation.

Everything in this module is pure: no I/O, no clock, no configuration
lookups. The claim service assembles the inputs (age, service, contribution
totals) and passes a ``BenefitPolicy`` built from settings.

Amounts are ``Decimal`` and every monetary figure is rounded half-up to
cents. Investment returns use the scheme's flat linear rate::

    returns = (contributions + employer) * investment_return_rate * years

which is deliberately not compound interest.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from src.core.config import BenefitPolicyConfig
from src.core.constants import CENT, MONTHS_PER_YEAR
from src.domain.benefits.types import BenefitType

ZERO = Decimal(0)


class EligibilityStatus(StrEnum):
    """Outcome of an eligibility check."""

    ELIGIBLE = "ELIGIBLE"
    INELIGIBLE = "INELIGIBLE"


@dataclass(frozen=True, slots=True)
class BenefitPolicy:
    """Rates and thresholds the engine applies."""

    employer_contribution_rate: Decimal = Decimal("0.10")
    investment_return_rate: Decimal = Decimal("0.08")
    tax_rate: Decimal = ZERO
    admin_fee_rate: Decimal = ZERO
    min_retirement_age: int = 60
    min_withdrawal_service_years: int = 5

    @classmethod
    def from_config(cls, config: BenefitPolicyConfig) -> "BenefitPolicy":
        return cls(
            employer_contribution_rate=config.employer_contribution_rate,
            investment_return_rate=config.investment_return_rate,
            tax_rate=config.tax_rate,
            admin_fee_rate=config.admin_fee_rate,
            min_retirement_age=config.min_retirement_age,
            min_withdrawal_service_years=config.min_withdrawal_service_years,
        )


@dataclass(frozen=True, slots=True)
class EligibilityContext:
    """Member facts an eligibility rule may look at."""

    benefit_type: BenefitType
    member_age_years: int
    years_of_service: Decimal
    total_contributions: Decimal


@dataclass(frozen=True, slots=True)
class EligibilityDecision:
    status: EligibilityStatus
    message: str

    @property
    def is_eligible(self) -> bool:
        return self.status is EligibilityStatus.ELIGIBLE

    @classmethod
    def eligible(cls, message: str = "Member is eligible") -> "EligibilityDecision":
        return cls(EligibilityStatus.ELIGIBLE, message)

    @classmethod
    def ineligible(cls, message: str) -> "EligibilityDecision":
        return cls(EligibilityStatus.INELIGIBLE, message)


type EligibilityRule = Callable[
    [EligibilityContext, BenefitPolicy], EligibilityDecision
]


def retirement_rule(
    context: EligibilityContext, policy: BenefitPolicy
) -> EligibilityDecision:
    """Age at or above the retirement threshold and some contributions."""
    if context.member_age_years < policy.min_retirement_age:
        return EligibilityDecision.ineligible(
            f"Member must be at least {policy.min_retirement_age} years old "
            f"for retirement benefit (current age: {context.member_age_years})"
        )
    if context.total_contributions <= ZERO:
        return EligibilityDecision.ineligible(
            "Member has no contributions on record"
        )
    return EligibilityDecision.eligible("Member is eligible for retirement benefit")


def withdrawal_rule(
    context: EligibilityContext, policy: BenefitPolicy
) -> EligibilityDecision:
    if context.years_of_service < policy.min_withdrawal_service_years:
        return EligibilityDecision.ineligible(
            f"Member must have at least {policy.min_withdrawal_service_years} years "
            f"of service for withdrawal (current: {context.years_of_service})"
        )
    return EligibilityDecision.eligible("Member is eligible for withdrawal")


def documented_claim_rule(
    context: EligibilityContext, _policy: BenefitPolicy
) -> EligibilityDecision:
    """Death and disability claims are accepted pending documentation."""
    return EligibilityDecision.eligible(
        f"{context.benefit_type.value.title()} benefit - "
        "supporting documentation required"
    )


@dataclass(frozen=True)
class EligibilityRules:
    """Eligibility predicates keyed by benefit type.

    A benefit type without a registered rule is never eligible.
    """

    rules: Mapping[BenefitType, EligibilityRule] = field(default_factory=dict)

    def evaluate(
        self, context: EligibilityContext, policy: BenefitPolicy
    ) -> EligibilityDecision:
        rule = self.rules.get(context.benefit_type)
        if rule is None:
            return EligibilityDecision.ineligible(
                f"No eligibility rule configured for {context.benefit_type.value}"
            )
        return rule(context, policy)


def standard_eligibility_rules() -> EligibilityRules:
    """Rule set used by the application."""
    return EligibilityRules(
        {
            BenefitType.RETIREMENT: retirement_rule,
            BenefitType.WITHDRAWAL: withdrawal_rule,
            BenefitType.DEATH: documented_claim_rule,
            BenefitType.DISABILITY: documented_claim_rule,
        }
    )


@dataclass(frozen=True, slots=True)
class CalculationResult:
    """Eligibility outcome with the full payout breakdown."""

    benefit_type: BenefitType
    eligibility: EligibilityDecision
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

    @property
    def is_eligible(self) -> bool:
        return self.eligibility.is_eligible


def to_money(value: Decimal) -> Decimal:
    """Round half-up to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def age_in_years(date_of_birth: date, on: date) -> int:
    """Completed years of age on a given day."""
    had_birthday = (on.month, on.day) >= (date_of_birth.month, date_of_birth.day)
    return on.year - date_of_birth.year - (0 if had_birthday else 1)


def years_of_service(enrollment_date: date, on: date) -> Decimal:
    """Completed months of service divided by twelve, to two decimals."""
    months = (on.year - enrollment_date.year) * MONTHS_PER_YEAR + (
        on.month - enrollment_date.month
    )
    if on.day < enrollment_date.day:
        months -= 1
    return (Decimal(max(months, 0)) / MONTHS_PER_YEAR).quantize(
        CENT, rounding=ROUND_HALF_UP
    )


def calculate(
    member_age_years: int,
    years_of_service: Decimal,
    total_monthly_contributions: Decimal,
    total_voluntary_contributions: Decimal,
    benefit_type: BenefitType,
    *,
    policy: BenefitPolicy,
    rules: EligibilityRules,
) -> CalculationResult:
    """Compute eligibility and the payout breakdown for one benefit type.

    Args:
        member_age_years: Completed years of age.
        years_of_service: Service in years, fractional (months / 12).
        total_monthly_contributions: Sum of completed monthly contributions.
        total_voluntary_contributions: Sum of completed voluntary contributions.
        benefit_type: Benefit being claimed.
        policy: Rates and thresholds.
        rules: Eligibility predicates per benefit type.

    Returns:
        CalculationResult: Amounts are computed even when the member is
            ineligible, so previews can show them.
    """
    contributions = to_money(
        total_monthly_contributions + total_voluntary_contributions
    )
    employer = to_money(contributions * policy.employer_contribution_rate)
    returns = to_money(
        (contributions + employer) * policy.investment_return_rate * years_of_service
    )
    gross = to_money(contributions + employer + returns)
    tax = to_money(gross * policy.tax_rate)
    fees = to_money(gross * policy.admin_fee_rate)
    net = max(ZERO, gross - tax - fees)

    eligibility = rules.evaluate(
        EligibilityContext(
            benefit_type=benefit_type,
            member_age_years=member_age_years,
            years_of_service=years_of_service,
            total_contributions=contributions,
        ),
        policy,
    )

    return CalculationResult(
        benefit_type=benefit_type,
        eligibility=eligibility,
        member_age_years=member_age_years,
        years_of_service=years_of_service,
        total_monthly_contributions=to_money(total_monthly_contributions),
        total_voluntary_contributions=to_money(total_voluntary_contributions),
        total_contributions=contributions,
        employer_contributions=employer,
        investment_returns=returns,
        gross_benefit=gross,
        tax_amount=tax,
        admin_fee_amount=fees,
        net_payable=to_money(net),
    )
