"""Fixtures wiring ClaimService to in-memory collaborators."""

from decimal import Decimal

import pytest

from src.domain.benefits.calculation import BenefitPolicy, standard_eligibility_rules
from src.domain.benefits.service import ClaimService
from src.domain.members.models import ContributionType
from tests.fakes import (
    FIXED_NOW,
    FakeClaimRepository,
    FakeContributionTotals,
    FakeMemberDirectory,
    RecordingEventSink,
    member_profile,
)


@pytest.fixture
def claims() -> FakeClaimRepository:
    return FakeClaimRepository()


@pytest.fixture
def members() -> FakeMemberDirectory:
    return FakeMemberDirectory(
        {
            1: member_profile(1),
            2: member_profile(2),
            3: member_profile(3, date_of_birth=FIXED_NOW.date().replace(year=1980)),
        }
    )


@pytest.fixture
def contributions() -> FakeContributionTotals:
    return FakeContributionTotals(
        {
            (1, ContributionType.MONTHLY): Decimal("400000.00"),
            (1, ContributionType.VOLUNTARY): Decimal("100000.00"),
            (2, ContributionType.MONTHLY): Decimal("12000.00"),
            (3, ContributionType.MONTHLY): Decimal("5000.00"),
        }
    )


@pytest.fixture
def events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def service(
    claims: FakeClaimRepository,
    members: FakeMemberDirectory,
    contributions: FakeContributionTotals,
    events: RecordingEventSink,
) -> ClaimService:
    references = iter(f"BEN{n:04d}" for n in range(1, 1000))
    return ClaimService(
        claims,
        members,
        contributions,
        events,
        policy=BenefitPolicy(),
        rules=standard_eligibility_rules(),
        clock=lambda: FIXED_NOW,
        reference_factory=lambda _now: next(references),
    )
