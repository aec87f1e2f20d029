"""SQL implementations of the member collaborators."""

from decimal import Decimal

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.benefits.collaborators import MemberProfile
from src.domain.members.models import (
    Contribution,
    ContributionStatus,
    ContributionType,
    Member,
    MemberStatus,
)
from src.infrastructure.database.repository import BaseRepository


class SqlMemberDirectory(BaseRepository[Member]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Member)

    async def get_profile(
        self, member_id: int, *, for_update: bool = False
    ) -> MemberProfile | None:
        member = await self.get_by_id(member_id, for_update=for_update)
        if member is None:
            return None
        return MemberProfile(
            member_id=member.id,
            member_number=member.member_number,
            date_of_birth=member.date_of_birth,
            enrollment_date=member.enrollment_date,
            status=member.status,
        )

    async def set_status(self, member_id: int, status: MemberStatus) -> None:
        await self.session.execute(
            update(Member).where(Member.id == member_id).values(status=status)
        )
        logger.info(
            "Member {} status set to {}", member_id, status, member_id=member_id
        )


class SqlContributionTotals:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def total_by_member_and_type(
        self, member_id: int, contribution_type: ContributionType
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(Contribution.amount), 0)).where(
            Contribution.member_id == member_id,
            Contribution.contribution_type == contribution_type,
            Contribution.status == ContributionStatus.COMPLETED,
        )
        result = await self.session.execute(stmt)
        return Decimal(result.scalar_one())
