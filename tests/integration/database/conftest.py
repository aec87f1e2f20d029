"""Fixtures for tests that run against a real PostgreSQL database."""

from collections.abc import Awaitable, Callable
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.benefits.calculation import BenefitPolicy, standard_eligibility_rules
from src.domain.benefits.repository import ClaimRepository
from src.domain.benefits.service import (
    ClaimService,
    ReferenceFactory,
    generate_reference_number,
)
from src.domain.events import EventSink
from src.domain.members.models import (
    Contribution,
    ContributionStatus,
    ContributionType,
    Member,
)
from src.domain.members.repository import SqlContributionTotals, SqlMemberDirectory
from tests.fakes import FIXED_NOW, RecordingEventSink
from tests.integration.fixtures.database_fixtures import (
    admin_database_url,
    database_url,
    db_engine,
    db_session,
    session_factory,
    setup_worker_database,
    worker_database_name,
)
from tests.integration.fixtures.docker_fixtures import postgres_container

# Re-export fixtures for pytest discovery
__all__ = [
    "add_member",
    "admin_database_url",
    "build_service",
    "database_url",
    "db_engine",
    "db_session",
    "postgres_container",
    "session_factory",
    "setup_worker_database",
    "worker_database_name",
]

type ServiceBuilder = Callable[..., ClaimService]
type MemberInserter = Callable[..., Awaitable[Member]]


async def insert_member(
    session: AsyncSession,
    member_number: str,
    *,
    date_of_birth: date = date(1958, 4, 2),
    contributions: dict[ContributionType, Decimal] | None = None,
) -> Member:
    """Insert a member with COMPLETED contributions and flush it."""
    member = Member(
        member_number=member_number,
        first_name="Ada",
        last_name="Mensah",
        date_of_birth=date_of_birth,
        enrollment_date=date(2001, 1, 1),
    )
    session.add(member)
    await session.flush()

    for contribution_type, amount in (contributions or {}).items():
        session.add(
            Contribution(
                member_id=member.id,
                contribution_type=contribution_type,
                amount=amount,
                status=ContributionStatus.COMPLETED,
                contribution_date=date(2020, 1, 31),
            )
        )
    await session.flush()
    return member


@pytest.fixture
def add_member() -> MemberInserter:
    return insert_member


@pytest.fixture
def build_service() -> ServiceBuilder:
    """Build a ClaimService wired to SQL collaborators on one session."""

    def build(
        session: AsyncSession,
        *,
        events: EventSink | None = None,
        reference_factory: ReferenceFactory = generate_reference_number,
    ) -> ClaimService:
        return ClaimService(
            ClaimRepository(session),
            SqlMemberDirectory(session),
            SqlContributionTotals(session),
            events or RecordingEventSink(),
            policy=BenefitPolicy(),
            rules=standard_eligibility_rules(),
            clock=lambda: FIXED_NOW,
            reference_factory=reference_factory,
        )

    return build
