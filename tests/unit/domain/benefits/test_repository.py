"""Unit tests for claim insertion and constraint mapping."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DuplicateClaimError
from src.domain.benefits.models import (
    ACTIVE_MEMBER_CLAIM_INDEX,
    REFERENCE_NUMBER_CONSTRAINT,
    BenefitClaim,
)
from src.domain.benefits.repository import (
    ClaimRepository,
    ReferenceCollisionError,
    violated_constraint,
)
from src.domain.benefits.types import BenefitType, ClaimStatus


class DriverError(Exception):
    def __init__(self, constraint_name: str | None) -> None:
        super().__init__("unique violation")
        self.constraint_name = constraint_name


def integrity_error(message: str, constraint_name: str | None = None) -> IntegrityError:
    orig = Exception(message)
    if constraint_name is not None:
        orig.__cause__ = DriverError(constraint_name)
    return IntegrityError("INSERT INTO benefit_claims ...", {}, orig)


def new_claim() -> BenefitClaim:
    return BenefitClaim(
        reference_number="BEN17000000000001ABCD",
        member_id=1,
        benefit_type=BenefitType.RETIREMENT,
        status=ClaimStatus.PENDING,
        total_contributions=Decimal("100.00"),
        employer_contributions=Decimal("10.00"),
        investment_returns=Decimal("0.00"),
        gross_benefit=Decimal("110.00"),
        tax_amount=Decimal("0.00"),
        admin_fee_amount=Decimal("0.00"),
        net_payable=Decimal("110.00"),
        application_date=date(2026, 3, 15),
    )


@pytest.fixture
def session(mocker):
    session = mocker.MagicMock(spec=AsyncSession)
    session.begin_nested.return_value = mocker.MagicMock()
    session.flush = mocker.AsyncMock()
    session.refresh = mocker.AsyncMock()
    return session


@pytest.mark.unit
class TestViolatedConstraint:
    def test_name_from_driver_exception(self) -> None:
        exc = integrity_error("duplicate key", ACTIVE_MEMBER_CLAIM_INDEX)

        assert violated_constraint(exc) == ACTIVE_MEMBER_CLAIM_INDEX

    @pytest.mark.parametrize(
        "constraint", [ACTIVE_MEMBER_CLAIM_INDEX, REFERENCE_NUMBER_CONSTRAINT]
    )
    def test_name_from_message(self, constraint: str) -> None:
        exc = integrity_error(
            f'duplicate key value violates unique constraint "{constraint}"'
        )

        assert violated_constraint(exc) == constraint

    def test_unrelated_violation(self) -> None:
        exc = integrity_error('violates foreign key constraint "fk_member"')

        assert violated_constraint(exc) is None


@pytest.mark.unit
class TestInsert:
    async def test_insert_flushes_in_savepoint(self, session) -> None:
        claim = new_claim()

        result = await ClaimRepository(session).insert(claim)

        assert result is claim
        session.begin_nested.assert_called_once()
        session.add.assert_called_once_with(claim)
        session.refresh.assert_awaited_once_with(claim)

    async def test_active_claim_index_maps_to_duplicate(self, session) -> None:
        session.flush.side_effect = integrity_error("dup", ACTIVE_MEMBER_CLAIM_INDEX)

        with pytest.raises(DuplicateClaimError) as exc_info:
            await ClaimRepository(session).insert(new_claim())

        assert exc_info.value.context == {"member_id": 1}
        assert isinstance(exc_info.value.cause, IntegrityError)

    async def test_reference_constraint_maps_to_collision(self, session) -> None:
        session.flush.side_effect = integrity_error("dup", REFERENCE_NUMBER_CONSTRAINT)

        with pytest.raises(ReferenceCollisionError):
            await ClaimRepository(session).insert(new_claim())

    async def test_other_integrity_errors_propagate(self, session) -> None:
        session.flush.side_effect = integrity_error("check constraint failed")

        with pytest.raises(IntegrityError):
            await ClaimRepository(session).insert(new_claim())
