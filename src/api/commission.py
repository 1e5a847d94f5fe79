"""
Commission preview endpoint.

Lets the deal form show the payout breakdown before anything is saved.
"""

from fastapi import APIRouter, Depends

from src.auth.dependencies import get_current_user
from src.models import User
from src.schemas.commission import CommissionBreakdownResponse, CommissionRequest
from src.services.commission import CommissionInput, calculate_commission_breakdown

router = APIRouter(prefix="/commission", tags=["Commission"])


@router.post("/breakdown", response_model=CommissionBreakdownResponse)
async def commission_breakdown(
    body: CommissionRequest,
    current_user: User = Depends(get_current_user),
):
    """Breakdown for an ad-hoc input. Nothing is persisted."""
    data = CommissionInput.from_record(
        body.model_dump(exclude={"prefer_actual", "include_referral_in"})
    )
    breakdown = calculate_commission_breakdown(
        data,
        prefer_actual=body.prefer_actual,
        include_referral_in=body.include_referral_in,
    )
    return CommissionBreakdownResponse.from_breakdown(breakdown)
