"""Enumerations shared by the benefit engine, claims and API schemas."""

from enum import StrEnum


class BenefitType(StrEnum):
    RETIREMENT = "RETIREMENT"
    DEATH = "DEATH"
    DISABILITY = "DISABILITY"
    WITHDRAWAL = "WITHDRAWAL"
    TEMPORARY_WITHDRAWAL = "TEMPORARY_WITHDRAWAL"


class ClaimStatus(StrEnum):
    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    DISBURSED = "DISBURSED"
    CANCELLED = "CANCELLED"
