"""Benefit claim endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from src.api.constants import DEFAULT_PAGINATION_LIMIT, MAX_PAGINATION_LIMIT
from src.api.dependencies import ClaimServiceDep
from src.api.schemas.claims import (
    ApproveRequest,
    CalculationResponse,
    ClaimApplication,
    ClaimListResponse,
    ClaimResponse,
    DisburseRequest,
    PendingCountResponse,
    RejectRequest,
)
from src.domain.benefits.service import PaymentDetails
from src.domain.benefits.types import BenefitType, ClaimStatus

router = APIRouter(prefix="/benefits", tags=["benefits"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def apply_for_benefit(
    application: ClaimApplication, service: ClaimServiceDep
) -> ClaimResponse:
    claim = await service.apply(
        application.member_id,
        application.benefit_type,
        PaymentDetails(
            payment_method=application.payment_method,
            account_number=application.account_number,
            bank_name=application.bank_name,
            remarks=application.remarks,
        ),
    )
    return ClaimResponse.model_validate(claim)


@router.get("")
async def list_claims(
    service: ClaimServiceDep,
    claim_status: Annotated[ClaimStatus | None, Query(alias="status")] = None,
    member_id: Annotated[int | None, Query(gt=0)] = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGINATION_LIMIT)
    ] = DEFAULT_PAGINATION_LIMIT,
) -> ClaimListResponse:
    claims = await service.list_claims(
        status=claim_status, member_id=member_id, skip=skip, limit=limit
    )
    return ClaimListResponse(
        items=[ClaimResponse.model_validate(c) for c in claims],
        skip=skip,
        limit=limit,
    )


@router.get("/calculation")
async def preview_calculation(
    service: ClaimServiceDep,
    member_id: Annotated[int, Query(gt=0)],
    benefit_type: BenefitType,
) -> CalculationResponse:
    """Eligibility and payout breakdown without creating a claim."""
    result = await service.calculate(member_id, benefit_type)
    return CalculationResponse.from_result(member_id, result)


@router.get("/pending/count")
async def count_pending_claims(service: ClaimServiceDep) -> PendingCountResponse:
    return PendingCountResponse(pending=await service.count_pending())


@router.get("/reference/{reference_number}")
async def get_claim_by_reference(
    reference_number: str, service: ClaimServiceDep
) -> ClaimResponse:
    return ClaimResponse.model_validate(
        await service.get_by_reference(reference_number)
    )


@router.get("/{claim_id}")
async def get_claim(claim_id: int, service: ClaimServiceDep) -> ClaimResponse:
    return ClaimResponse.model_validate(await service.get_claim(claim_id))


@router.post("/{claim_id}/review")
async def start_review(claim_id: int, service: ClaimServiceDep) -> ClaimResponse:
    return ClaimResponse.model_validate(await service.start_review(claim_id))


@router.post("/{claim_id}/approve")
async def approve_claim(
    claim_id: int, body: ApproveRequest, service: ClaimServiceDep
) -> ClaimResponse:
    claim = await service.approve(claim_id, body.approved_by, body.approved_amount)
    return ClaimResponse.model_validate(claim)


@router.post("/{claim_id}/reject")
async def reject_claim(
    claim_id: int, body: RejectRequest, service: ClaimServiceDep
) -> ClaimResponse:
    claim = await service.reject(claim_id, body.reason, body.rejected_by)
    return ClaimResponse.model_validate(claim)


@router.post("/{claim_id}/disburse")
async def disburse_claim(
    claim_id: int, body: DisburseRequest, service: ClaimServiceDep
) -> ClaimResponse:
    claim = await service.disburse(claim_id, body.disbursed_by)
    return ClaimResponse.model_validate(claim)


@router.post("/{claim_id}/cancel")
async def cancel_claim(claim_id: int, service: ClaimServiceDep) -> ClaimResponse:
    return ClaimResponse.model_validate(await service.cancel(claim_id))
