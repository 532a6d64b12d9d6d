"""Payment routes: every insert or delete replays the loan's full payment log."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from loanbook.api.deps import get_settings, get_store
from loanbook.api.routes.loans import loan_to_response, mutate_or_404
from loanbook.api.schemas import LoanResponse, PaymentCreate
from loanbook.config import Settings
from loanbook.data.store import LoanStore, apply_replay
from loanbook.engine.replay import append_payment, remove_payment
from loanbook.exceptions import LoanEngineError
from loanbook.models.loan import LoanStatus, PaymentEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/loans", tags=["payments"])


@router.post("/{loan_id}/payments", response_model=LoanResponse)
async def add_payment(
    loan_id: str,
    req: PaymentCreate,
    store: LoanStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Record an EMI, prepayment or part-payment and recompute the loan."""
    async with mutate_or_404(store, loan_id) as loan:
        if loan.status is LoanStatus.CLOSED:
            raise HTTPException(status_code=400, detail="Loan is already closed")

        try:
            event = PaymentEvent(
                type=req.type,
                amount=req.amount,
                date=req.date,
                prepayment_action=req.prepayment_action,
                notes=req.notes,
                receipt_number=req.receipt_number,
            )
            result = append_payment(
                loan.terms,
                loan.payments,
                event,
                allow_negative_amortization=settings.allow_negative_amortization,
            )
        except LoanEngineError as e:
            logger.warning("Rejected payment on loan %s: %s", loan_id, e)
            raise HTTPException(status_code=400, detail=str(e))

        apply_replay(loan, result)

    return loan_to_response(loan)


@router.delete("/{loan_id}/payments/{payment_id}", response_model=LoanResponse)
async def delete_payment(
    loan_id: str,
    payment_id: str,
    store: LoanStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Remove a payment and recompute the loan from the remaining log."""
    async with mutate_or_404(store, loan_id) as loan:
        try:
            result = remove_payment(
                loan.terms,
                loan.payments,
                payment_id,
                allow_negative_amortization=settings.allow_negative_amortization,
            )
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Payment {payment_id} not found")
        except LoanEngineError as e:
            logger.warning("Cannot remove payment %s from loan %s: %s", payment_id, loan_id, e)
            raise HTTPException(status_code=400, detail=str(e))

        apply_replay(loan, result)

    return loan_to_response(loan)
