from dataclasses import dataclass, field
from decimal import Decimal

from loanbook.models.loan import DerivedLoanState, LoanType, PaymentEvent


@dataclass(frozen=True)
class ReplayResult:
    payments: list[PaymentEvent]  # Annotated, in replay (date) order
    state: DerivedLoanState


@dataclass
class LoanTypeBreakdown:
    outstanding: Decimal = Decimal("0")
    emi: Decimal = Decimal("0")
    count: int = 0


@dataclass
class PortfolioSummary:
    active_count: int = 0
    closed_count: int = 0
    total_outstanding: Decimal = Decimal("0")
    total_monthly_emi: Decimal = Decimal("0")
    total_borrowed: Decimal = Decimal("0")
    total_interest_paid: Decimal = Decimal("0")
    total_prepaid: Decimal = Decimal("0")
    by_type: dict[LoanType, LoanTypeBreakdown] = field(default_factory=dict)
