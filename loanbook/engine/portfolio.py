"""Portfolio-level aggregation over stored loans."""

from collections.abc import Iterable

from loanbook.models.loan import Loan, LoanStatus
from loanbook.models.results import LoanTypeBreakdown, PortfolioSummary


def summarize_portfolio(loans: Iterable[Loan]) -> PortfolioSummary:
    """Totals across non-deleted loans.

    Outstanding, monthly EMI and the per-type breakdown count only loans in
    `active` status; borrowed, interest paid and prepaid count every loan.
    """
    summary = PortfolioSummary()

    for loan in loans:
        if not loan.is_active:
            continue

        summary.total_borrowed += loan.terms.principal_amount
        summary.total_interest_paid += loan.state.total_interest_paid
        summary.total_prepaid += loan.state.total_prepaid

        if loan.status is LoanStatus.CLOSED:
            summary.closed_count += 1
        if loan.status is not LoanStatus.ACTIVE:
            continue

        summary.active_count += 1
        summary.total_outstanding += loan.state.outstanding_principal
        summary.total_monthly_emi += loan.state.current_emi

        bucket = summary.by_type.setdefault(loan.loan_type, LoanTypeBreakdown())
        bucket.outstanding += loan.state.outstanding_principal
        bucket.emi += loan.state.current_emi
        bucket.count += 1

    return summary
