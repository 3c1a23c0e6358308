"""
Royalty calculation API endpoints.
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query

from royalty_engine import config
from royalty_engine.errors import InputValidationError
from royalty_engine.models.royalty import (
    AdvancePaymentRequest,
    AdvancePaymentResponse,
    CalculationMode,
    CalculationOutcome,
    CalculationRequest,
    EqualSplitResponse,
    OwnershipSumRequest,
    OwnershipSumResponse,
)
from royalty_engine.models.statement import CalculationResponse, LiabilitySummary
from royalty_engine.services.advance import (
    apply_additional_payment,
    max_additional_payment,
)
from royalty_engine.services.ownership import equal_split, validate_ownership_sum
from royalty_engine.services.royalty_calc import calculate_batch, calculate_request
from royalty_engine.services.statements import plan_commit, summarize_liability

logger = logging.getLogger(__name__)

router = APIRouter()

# Failed outcome error_type -> HTTP status
_ERROR_STATUS = {
    "input_validation": 400,
    "contract_configuration": 422,
    "inactive_contract": 409,
}


def _with_default_mode(request: CalculationRequest) -> CalculationRequest:
    """Fill in DEFAULT_CALCULATION_MODE when the caller did not send a mode."""
    if "mode" in request.model_fields_set:
        return request
    return request.model_copy(
        update={"mode": CalculationMode(config.DEFAULT_CALCULATION_MODE)}
    )


def _enforce_record_limit(requests: List[CalculationRequest]) -> None:
    """Reject requests carrying more sale/return records than we accept per call."""
    total = sum(r.record_count for r in requests)
    if total > config.MAX_RECORDS_PER_CALCULATION:
        logger.warning(
            f"Rejected calculation with {total} records "
            f"(limit {config.MAX_RECORDS_PER_CALCULATION})"
        )
        raise HTTPException(
            status_code=413,
            detail=(
                f"Too many records: {total}. "
                f"Maximum per request is {config.MAX_RECORDS_PER_CALCULATION}"
            ),
        )


@router.post(
    "/calculate",
    response_model=CalculationResponse,
    responses={
        200: {
            "description": "Itemized royalty calculation",
            "content": {
                "application/json": {
                    "example": {
                        "calculation": {
                            "contract_id": "c-1001",
                            "title_id": "t-42",
                            "author_id": "a-7",
                            "mode": "dry_run",
                            "tier_calculation_mode": "lifetime",
                            "as_of_date": "2026-03-31",
                            "period_start": "2026-01-01",
                            "period_end": "2026-03-31",
                            "format_calculations": [],
                            "returns_deduction": "120.00",
                            "gross_royalty": "6000.00",
                            "advance": {
                                "original_advance": "10000.00",
                                "previously_recouped": "5000.00",
                                "this_period_recoupment": "5000.00",
                                "remaining_advance": "0.00",
                                "net_payable": "1000.00",
                            },
                            "net_payable": "1000.00",
                            "split": None,
                            "is_split_calculation": False,
                        },
                        "commit": None,
                    }
                }
            },
        },
        400: {"description": "Invalid input (bad decimal, author without a share)"},
        409: {"description": "Contract is suspended or terminated"},
        413: {"description": "Too many sale/return records in one request"},
        422: {"description": "Contract configuration is invalid (tier gaps, ownership sum)"},
    },
)
async def calculate_royalty(request: CalculationRequest):
    """
    Calculate one contract's royalty for a period.

    Nothing is stored. In commit mode the response also carries the ledger
    update (new advance-recouped total) the caller should persist alongside
    the statement.
    """
    _enforce_record_limit([request])

    outcome = calculate_request(_with_default_mode(request))
    if not outcome.success:
        raise HTTPException(
            status_code=_ERROR_STATUS.get(outcome.error_type, 400),
            detail=outcome.error,
        )

    return CalculationResponse(
        calculation=outcome.calculation,
        commit=plan_commit(outcome),
    )


@router.post("/calculate/batch", response_model=List[CalculationOutcome])
async def calculate_royalty_batch(requests: List[CalculationRequest]):
    """
    Calculate several contracts in one call.

    Always returns one outcome per request, in order. A contract that fails
    is reported in its outcome and does not stop the others.
    """
    _enforce_record_limit(requests)
    return calculate_batch([_with_default_mode(r) for r in requests])


@router.post("/liability-summary", response_model=LiabilitySummary)
async def liability_summary(requests: List[CalculationRequest]):
    """
    Total gross royalty, recoupment and net payable across many contracts.

    Failed calculations are listed under `failures` and left out of the totals.
    """
    _enforce_record_limit(requests)
    return summarize_liability(calculate_batch([_with_default_mode(r) for r in requests]))


@router.get("/ownership/equal-split", response_model=EqualSplitResponse)
async def ownership_equal_split(
    author_count: int = Query(..., ge=1, le=100, description="Number of co-authors"),
):
    """Default ownership percentages for a title with `author_count` authors."""
    return EqualSplitResponse(
        author_count=author_count,
        percentages=equal_split(author_count),
    )


@router.post("/ownership/validate", response_model=OwnershipSumResponse)
async def ownership_validate(body: OwnershipSumRequest):
    """Check that a set of ownership percentages adds up to exactly 100."""
    try:
        check = validate_ownership_sum(body.percentages)
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return OwnershipSumResponse(valid=check.valid, total=check.total)


@router.post("/advance/payment", response_model=AdvancePaymentResponse)
async def advance_payment(body: AdvancePaymentRequest):
    """
    Work out the largest extra advance payment allowed, and optionally
    apply one.

    Without `payment` only the maximum is returned. With it, the new paid
    total is returned, or 400 if the payment would overshoot the advance.
    """
    maximum = max_additional_payment(body.advance_amount, body.current_paid)
    if body.payment is None:
        return AdvancePaymentResponse(max_additional_payment=maximum)

    try:
        new_paid = apply_additional_payment(
            body.advance_amount, body.current_paid, body.payment
        )
    except InputValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AdvancePaymentResponse(
        max_additional_payment=maximum,
        new_advance_paid=new_paid,
    )
