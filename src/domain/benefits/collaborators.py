"""Interfaces the claim service needs from the member registry.

The SQL implementations live in ``src.domain.members.repository``; unit
tests substitute in-memory fakes.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from src.domain.members.models import ContributionType, MemberStatus


@dataclass(frozen=True, slots=True)
class MemberProfile:
    member_id: int
    member_number: str
    date_of_birth: date
    enrollment_date: date
    status: MemberStatus


class ContributionTotalsProvider(Protocol):
    async def total_by_member_and_type(
        self, member_id: int, contribution_type: ContributionType
    ) -> Decimal:
        """Sum of completed contributions of one type, 0 when there are none."""
        ...


class MemberDirectory(Protocol):
    async def get_profile(
        self, member_id: int, *, for_update: bool = False
    ) -> MemberProfile | None:
        """Load a member; ``for_update`` locks the row for the transaction."""
        ...

    async def set_status(self, member_id: int, status: MemberStatus) -> None: ...
