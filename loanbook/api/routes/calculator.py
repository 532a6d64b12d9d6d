"""Standalone EMI calculator, no stored loan involved."""

from datetime import date

from fastapi import APIRouter, HTTPException

from loanbook.api.routes.loans import rows_to_response
from loanbook.api.schemas import EmiCalculationRequest, EmiCalculationResponse
from loanbook.engine.amortization import build_schedule, effective_annual_rate
from loanbook.exceptions import LoanEngineError

router = APIRouter(prefix="/api/v1/loans", tags=["calculator"])


@router.post("/calculate-emi", response_model=EmiCalculationResponse)
async def calculate_emi(req: EmiCalculationRequest):
    """EMI, totals and the full schedule for a hypothetical loan."""
    try:
        schedule = build_schedule(
            req.principal, req.rate, req.tenure, req.start_date or date.today()
        )
    except LoanEngineError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Nominal totals, as quoted by lenders: EMI x tenure
    total_payable = schedule.installment * req.tenure
    return EmiCalculationResponse(
        emi=schedule.installment,
        total_payable=total_payable,
        total_interest=total_payable - req.principal,
        effective_annual_rate=effective_annual_rate(req.principal, schedule),
        schedule=rows_to_response(schedule.rows),
    )
