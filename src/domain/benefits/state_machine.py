"""Claim lifecycle transitions.

The table below is the only place that decides whether a claim may move from
one status to another; service operations call ``ensure_transition`` before
mutating a claim.
"""

from collections.abc import Mapping
from typing import Final

from src.core.exceptions import InvalidStateError
from src.domain.benefits.types import ClaimStatus

TRANSITIONS: Final[Mapping[ClaimStatus, frozenset[ClaimStatus]]] = {
    ClaimStatus.PENDING: frozenset(
        {
            ClaimStatus.UNDER_REVIEW,
            ClaimStatus.APPROVED,
            ClaimStatus.REJECTED,
            ClaimStatus.CANCELLED,
        }
    ),
    ClaimStatus.UNDER_REVIEW: frozenset(
        {ClaimStatus.APPROVED, ClaimStatus.REJECTED, ClaimStatus.CANCELLED}
    ),
    ClaimStatus.APPROVED: frozenset({ClaimStatus.DISBURSED, ClaimStatus.CANCELLED}),
    ClaimStatus.REJECTED: frozenset(),
    ClaimStatus.DISBURSED: frozenset(),
    ClaimStatus.CANCELLED: frozenset(),
}

# Statuses covered by the one-active-claim-per-member index
ACTIVE_STATUSES: Final[frozenset[ClaimStatus]] = frozenset(
    {ClaimStatus.PENDING, ClaimStatus.UNDER_REVIEW, ClaimStatus.APPROVED}
)


def is_terminal(status: ClaimStatus) -> bool:
    return not TRANSITIONS[status]


def can_transition(current: ClaimStatus, target: ClaimStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: ClaimStatus, target: ClaimStatus) -> None:
    """Raise InvalidStateError unless ``current -> target`` is allowed."""
    if not can_transition(current, target):
        raise InvalidStateError(current.value, target.value)
