"""Persistence for benefit claims."""

from collections.abc import Sequence

from loguru import logger
from sqlalchemy import ColumnElement, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import DuplicateClaimError, ErrorCode, PensionError
from src.domain.benefits.models import (
    ACTIVE_MEMBER_CLAIM_INDEX,
    REFERENCE_NUMBER_CONSTRAINT,
    BenefitClaim,
)
from src.domain.benefits.state_machine import ACTIVE_STATUSES
from src.domain.benefits.types import ClaimStatus
from src.infrastructure.database.repository import (
    DEFAULT_PAGINATION_LIMIT,
    BaseRepository,
)


class ReferenceCollisionError(PensionError):
    """A generated reference number is already taken."""

    def __init__(self, reference_number: str) -> None:
        super().__init__(
            ErrorCode.INTERNAL_ERROR,
            f"Reference number {reference_number} already exists",
            context={"reference_number": reference_number},
        )


def violated_constraint(exc: IntegrityError) -> str | None:
    """Name of the constraint behind an IntegrityError, if it can be told."""
    # asyncpg exposes the name on the driver exception chained to the DBAPI error
    driver_error = getattr(exc.orig, "__cause__", None)
    if name := getattr(driver_error, "constraint_name", None):
        return str(name)

    message = str(exc.orig)
    for candidate in (ACTIVE_MEMBER_CLAIM_INDEX, REFERENCE_NUMBER_CONSTRAINT):
        if candidate in message:
            return candidate
    return None


class ClaimRepository(BaseRepository[BenefitClaim]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, BenefitClaim)

    async def find_by_reference(self, reference_number: str) -> BenefitClaim | None:
        stmt = select(BenefitClaim).where(
            BenefitClaim.reference_number == reference_number
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def has_active_claim(self, member_id: int) -> bool:
        stmt = select(
            exists().where(
                BenefitClaim.member_id == member_id,
                BenefitClaim.status.in_(ACTIVE_STATUSES),
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def list_claims(
        self,
        *,
        status: ClaimStatus | None = None,
        member_id: int | None = None,
        skip: int = 0,
        limit: int = DEFAULT_PAGINATION_LIMIT,
    ) -> Sequence[BenefitClaim]:
        conditions: list[ColumnElement[bool]] = []
        if status is not None:
            conditions.append(BenefitClaim.status == status)
        if member_id is not None:
            conditions.append(BenefitClaim.member_id == member_id)
        return await self.find_all(*conditions, skip=skip, limit=limit)

    async def count_by_status(self, status: ClaimStatus) -> int:
        return await self.count(BenefitClaim.status == status)

    async def insert(self, claim: BenefitClaim) -> BenefitClaim:
        """Insert a claim inside a savepoint.

        Raises:
            DuplicateClaimError: The member already has an active claim.
            ReferenceCollisionError: The reference number is taken.
        """
        try:
            async with self.session.begin_nested():
                self.session.add(claim)
                await self.session.flush()
        except IntegrityError as exc:
            constraint = violated_constraint(exc)
            if constraint == ACTIVE_MEMBER_CLAIM_INDEX:
                raise DuplicateClaimError(
                    f"Member {claim.member_id} already has an active benefit claim",
                    context={"member_id": claim.member_id},
                    cause=exc,
                ) from exc
            if constraint == REFERENCE_NUMBER_CONSTRAINT:
                raise ReferenceCollisionError(claim.reference_number) from exc
            raise

        await self.session.refresh(claim)
        logger.info(
            "Inserted benefit claim {}",
            claim.reference_number,
            claim_id=claim.id,
            reference_number=claim.reference_number,
        )
        return claim
