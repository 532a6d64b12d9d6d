"""Loan routes: CRUD, portfolio summary and amortization view."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from loanbook.api.deps import get_settings, get_store
from loanbook.api.schemas import (
    AmortizationResponse,
    AmortizationRowResponse,
    LoanCreate,
    LoanResponse,
    LoanTypeBreakdownResponse,
    LoanUpdate,
    MessageResponse,
    PaymentResponse,
    PortfolioSummaryResponse,
)
from loanbook.config import Settings
from loanbook.data.store import LoanStore, apply_terms
from loanbook.engine.amortization import project
from loanbook.engine.emi import compute_emi, total_interest_payable
from loanbook.engine.portfolio import summarize_portfolio
from loanbook.engine.replay import opening_state
from loanbook.exceptions import LoanEngineError, LoanNotFound
from loanbook.models.loan import AmortizationRow, Loan, LoanStatus, LoanTerms, LoanType

router = APIRouter(prefix="/api/v1/loans", tags=["loans"])

TERM_FIELDS = {"principal_amount", "interest_rate", "tenure_months", "disbursal_date", "first_emi_date"}


def rows_to_response(rows: list[AmortizationRow]) -> list[AmortizationRowResponse]:
    return [
        AmortizationRowResponse(
            installment_number=row.installment_number,
            due_date=row.due_date,
            installment_amount=row.installment_amount,
            principal_component=row.principal_component,
            interest_component=row.interest_component,
            opening_balance=row.opening_balance,
            closing_balance=row.closing_balance,
        )
        for row in rows
    ]


def loan_to_response(loan: Loan) -> LoanResponse:
    """Flatten a Loan aggregate (terms + derived state) into the API shape."""
    terms = loan.terms
    state = loan.state
    payments = [
        PaymentResponse(
            id=p.id,
            type=p.type,
            amount=p.amount,
            date=p.date,
            prepayment_action=p.prepayment_action,
            notes=p.notes,
            receipt_number=p.receipt_number,
            principal_component=p.principal_component,
            interest_component=p.interest_component,
            emi_number=p.emi_number,
            outstanding_after=p.outstanding_after,
            new_emi=p.new_emi,
            tenure_saved_months=p.tenure_saved_months,
        )
        for p in loan.payments
    ]
    return LoanResponse(
        id=loan.id,
        name=loan.name,
        loan_type=loan.loan_type,
        lender=loan.lender,
        loan_account_number=loan.loan_account_number,
        principal_amount=terms.principal_amount,
        interest_rate=terms.interest_rate,
        tenure_months=terms.tenure_months,
        disbursal_date=terms.disbursal_date,
        first_emi_date=terms.effective_first_emi_date,
        emi_amount=loan.emi_amount,
        total_interest_payable=loan.total_interest_payable,
        outstanding_principal=state.outstanding_principal,
        current_emi=state.current_emi,
        current_tenure_months=state.current_tenure_months,
        paid_emis=state.paid_emis,
        total_paid_amount=state.total_paid_amount,
        total_principal_paid=state.total_principal_paid,
        total_interest_paid=state.total_interest_paid,
        total_prepaid=state.total_prepaid,
        last_payment_date=state.last_payment_date,
        next_emi_date=loan.next_emi_date,
        completion_pct=loan.completion_pct,
        age_months=loan.age_months(),
        status=loan.status,
        closed_date=loan.closed_date,
        payments=payments,
        notes=loan.notes,
        tags=loan.tags,
        created_at=loan.created_at,
        updated_at=loan.updated_at,
    )


def get_loan_or_404(store: LoanStore, loan_id: str) -> Loan:
    try:
        return store.get(loan_id)
    except LoanNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@asynccontextmanager
async def mutate_or_404(store: LoanStore, loan_id: str) -> AsyncIterator[Loan]:
    """`store.mutate`, answering 404 for a missing or just-deleted loan."""
    try:
        async with store.mutate(loan_id) as loan:
            yield loan
    except LoanNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/summary", response_model=PortfolioSummaryResponse)
async def loan_summary(store: LoanStore = Depends(get_store)):
    summary = summarize_portfolio(store.list_loans())
    return PortfolioSummaryResponse(
        active_count=summary.active_count,
        closed_count=summary.closed_count,
        total_outstanding=summary.total_outstanding,
        total_monthly_emi=summary.total_monthly_emi,
        total_borrowed=summary.total_borrowed,
        total_interest_paid=summary.total_interest_paid,
        total_prepaid=summary.total_prepaid,
        by_type={
            loan_type.value: LoanTypeBreakdownResponse(
                outstanding=b.outstanding, emi=b.emi, count=b.count
            )
            for loan_type, b in summary.by_type.items()
        },
    )


@router.get("", response_model=list[LoanResponse])
async def list_loans(
    status: LoanStatus | None = None,
    loan_type: LoanType | None = None,
    store: LoanStore = Depends(get_store),
):
    return [loan_to_response(loan) for loan in store.list_loans(status, loan_type)]


@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(loan_id: str, store: LoanStore = Depends(get_store)):
    return loan_to_response(get_loan_or_404(store, loan_id))


@router.post("", response_model=LoanResponse, status_code=201)
async def create_loan(req: LoanCreate, store: LoanStore = Depends(get_store)):
    """Create a loan; EMI, total interest and opening state are computed here."""
    try:
        terms = LoanTerms(
            principal_amount=req.principal_amount,
            interest_rate=req.interest_rate,
            tenure_months=req.tenure_months,
            disbursal_date=req.disbursal_date,
            first_emi_date=req.first_emi_date,
        )
        emi = compute_emi(terms.principal_amount, terms.interest_rate, terms.tenure_months)
        loan = Loan(
            name=req.name,
            loan_type=req.loan_type,
            lender=req.lender,
            terms=terms,
            state=opening_state(terms),
            emi_amount=emi,
            total_interest_payable=total_interest_payable(
                terms.principal_amount, terms.interest_rate, terms.tenure_months
            ),
            loan_account_number=req.loan_account_number,
            notes=req.notes,
            tags=list(req.tags),
        )
    except LoanEngineError as e:
        raise HTTPException(status_code=400, detail=str(e))

    store.add(loan)
    return loan_to_response(loan)


@router.put("/{loan_id}", response_model=LoanResponse)
async def update_loan(
    loan_id: str,
    req: LoanUpdate,
    store: LoanStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Edit a loan. Changing any term replays the whole payment log."""
    changes = req.model_dump(exclude_unset=True)
    term_changes = {k: v for k, v in changes.items() if k in TERM_FIELDS and v is not None}

    async with mutate_or_404(store, loan_id) as loan:
        if term_changes:
            try:
                apply_terms(
                    loan,
                    replace(loan.terms, **term_changes),
                    allow_negative_amortization=settings.allow_negative_amortization,
                )
            except LoanEngineError as e:
                raise HTTPException(status_code=400, detail=str(e))

        for key, value in changes.items():
            if key in TERM_FIELDS or value is None:
                continue
            setattr(loan, key, value)
        loan.updated_at = datetime.now(timezone.utc)

    return loan_to_response(loan)


@router.delete("/{loan_id}", response_model=MessageResponse)
async def delete_loan(loan_id: str, store: LoanStore = Depends(get_store)):
    get_loan_or_404(store, loan_id)
    store.deactivate(loan_id)
    return MessageResponse(message="Loan removed")


@router.get("/{loan_id}/amortization", response_model=AmortizationResponse)
async def get_amortization(loan_id: str, store: LoanStore = Depends(get_store)):
    """Projection of the remainder of the loan from its current state."""
    loan = get_loan_or_404(store, loan_id)
    state = loan.state
    try:
        rows = project(
            state.outstanding_principal,
            loan.terms.interest_rate,
            state.current_tenure_months,
            loan.next_emi_date or loan.terms.effective_first_emi_date,
            state.current_emi,
        )
    except LoanEngineError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AmortizationResponse(schedule=rows_to_response(rows), loan=loan_to_response(loan))
