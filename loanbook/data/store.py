"""In-memory loan storage.

Holds `Loan` aggregates and serializes mutations per loan: read, replay
and write-back of a loan's payment log happen under that loan's lock, so
two concurrent appends can never each replay a stale log.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone

from loanbook.engine.emi import compute_emi, total_interest_payable
from loanbook.engine.replay import replay
from loanbook.exceptions import LoanNotFound
from loanbook.models.loan import Loan, LoanStatus, LoanTerms, LoanType
from loanbook.models.results import ReplayResult

logger = logging.getLogger(__name__)


class LoanStore:
    def __init__(self):
        self._loans: dict[str, Loan] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def add(self, loan: Loan) -> Loan:
        self._loans[loan.id] = loan
        logger.info("Stored loan %s (%s, principal=%s)", loan.id, loan.name, loan.terms.principal_amount)
        return loan

    def get(self, loan_id: str) -> Loan:
        loan = self._loans.get(loan_id)
        if loan is None or not loan.is_active:
            raise LoanNotFound(loan_id)
        return loan

    def list_loans(self, status: LoanStatus | None = None, loan_type: LoanType | None = None) -> list[Loan]:
        """Non-deleted loans, most recently disbursed first."""
        loans = [
            loan for loan in self._loans.values()
            if loan.is_active
            and (status is None or loan.status is status)
            and (loan_type is None or loan.loan_type is loan_type)
        ]
        return sorted(loans, key=lambda l: l.terms.disbursal_date, reverse=True)

    def deactivate(self, loan_id: str) -> None:
        """Soft delete: the loan stays stored but is no longer visible."""
        loan = self.get(loan_id)
        loan.is_active = False
        self._locks.pop(loan_id, None)
        loan.updated_at = datetime.now(timezone.utc)
        logger.info("Deactivated loan %s", loan_id)

    @asynccontextmanager
    async def mutate(self, loan_id: str) -> AsyncIterator[Loan]:
        """Hold the loan's write lock for a read-replay-write cycle."""
        self.get(loan_id)
        lock = self._locks.setdefault(loan_id, asyncio.Lock())
        async with lock:
            # Re-read under the lock: the loan may have been deactivated meanwhile
            yield self.get(loan_id)


def apply_replay(loan: Loan, result: ReplayResult, today: date | None = None) -> Loan:
    """Overwrite the loan's payment log and derived state with a replay result."""
    loan.payments = list(result.payments)
    loan.state = result.state

    if result.state.is_closed and loan.status is not LoanStatus.CLOSED:
        loan.status = LoanStatus.CLOSED
        loan.closed_date = today or date.today()
        logger.info("Loan %s closed", loan.id)
    elif not result.state.is_closed and loan.status is LoanStatus.CLOSED:
        loan.status = LoanStatus.ACTIVE
        loan.closed_date = None
        logger.info("Loan %s reopened", loan.id)

    loan.updated_at = datetime.now(timezone.utc)
    return loan


def apply_terms(loan: Loan, terms: LoanTerms, *, allow_negative_amortization: bool = False) -> Loan:
    """Replace a loan's terms and recompute everything derived from them."""
    result = replay(terms, loan.payments, allow_negative_amortization=allow_negative_amortization)
    loan.terms = terms
    loan.emi_amount = compute_emi(terms.principal_amount, terms.interest_rate, terms.tenure_months)
    loan.total_interest_payable = total_interest_payable(
        terms.principal_amount, terms.interest_rate, terms.tenure_months
    )
    logger.info("Loan %s terms changed, EMI now %s", loan.id, loan.emi_amount)
    return apply_replay(loan, result)
