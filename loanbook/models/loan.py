from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from uuid import uuid4

from dateutil.relativedelta import relativedelta

from loanbook.exceptions import InvalidInput

ZERO = Decimal("0")


class PaymentType(Enum):
    EMI = "emi"
    PREPAYMENT = "prepayment"
    PART_PAYMENT = "part_payment"


class PrepaymentAction(Enum):
    REDUCE_TENURE = "reduce_tenure"
    REDUCE_EMI = "reduce_emi"


class LoanStatus(Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    NPA = "npa"  # Non-performing asset, set by hand


class LoanType(Enum):
    HOME = "home"
    CAR = "car"
    PERSONAL = "personal"
    EDUCATION = "education"
    GOLD = "gold"
    BUSINESS = "business"
    LAP = "lap"  # Loan against property
    OTHER = "other"


def _new_id() -> str:
    return uuid4().hex


@dataclass(frozen=True)
class LoanTerms:
    principal_amount: Decimal
    interest_rate: Decimal  # Annual %, reducing balance, e.g. Decimal("9.0")
    tenure_months: int
    disbursal_date: date
    first_emi_date: date | None = None

    def __post_init__(self):
        if self.principal_amount <= 0:
            raise InvalidInput("Principal amount must be positive")
        if self.interest_rate < 0:
            raise InvalidInput("Interest rate cannot be negative")
        if self.tenure_months <= 0:
            raise InvalidInput("Tenure must be at least 1 month")

    @property
    def effective_first_emi_date(self) -> date:
        """First EMI due date, one month after disbursal unless given."""
        if self.first_emi_date is not None:
            return self.first_emi_date
        return self.disbursal_date + relativedelta(months=1)


@dataclass(frozen=True)
class PaymentEvent:
    type: PaymentType
    amount: Decimal
    date: date
    prepayment_action: PrepaymentAction | None = None  # Only for non-emi payments
    id: str = field(default_factory=_new_id)
    notes: str | None = None
    receipt_number: str | None = None

    # Derived, written only by replay
    principal_component: Decimal = ZERO
    interest_component: Decimal = ZERO
    emi_number: int | None = None
    outstanding_after: Decimal | None = None
    new_emi: Decimal | None = None  # reduce_emi prepayments
    tenure_saved_months: int | None = None  # reduce_tenure prepayments

    def __post_init__(self):
        if self.amount <= 0:
            raise InvalidInput("Payment amount must be positive")


@dataclass(frozen=True)
class DerivedLoanState:
    outstanding_principal: Decimal
    current_emi: Decimal
    current_tenure_months: int  # Remaining
    paid_emis: int = 0
    total_paid_amount: Decimal = ZERO
    total_principal_paid: Decimal = ZERO
    total_interest_paid: Decimal = ZERO
    total_prepaid: Decimal = ZERO
    last_payment_date: date | None = None
    is_closed: bool = False


@dataclass(frozen=True)
class AmortizationRow:
    installment_number: int
    due_date: date
    installment_amount: Decimal
    principal_component: Decimal
    interest_component: Decimal
    opening_balance: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class AmortizationSchedule:
    rows: list[AmortizationRow]
    installment: Decimal  # Nominal EMI the schedule was projected with
    total_interest: Decimal
    total_principal: Decimal

    @property
    def total_payable(self) -> Decimal:
        return self.total_principal + self.total_interest


@dataclass
class Loan:
    """Loan aggregate as held by storage: terms, payment log, derived state."""

    name: str
    loan_type: LoanType
    lender: str
    terms: LoanTerms
    state: DerivedLoanState
    emi_amount: Decimal  # EMI at origination
    total_interest_payable: Decimal  # emi_amount * tenure - principal
    id: str = field(default_factory=_new_id)
    payments: list[PaymentEvent] = field(default_factory=list)
    status: LoanStatus = LoanStatus.ACTIVE
    closed_date: date | None = None
    is_active: bool = True
    loan_account_number: str | None = None
    notes: str | None = None
    tags: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def completion_pct(self) -> Decimal:
        """Share of the original principal already repaid, 0-100."""
        principal = self.terms.principal_amount
        repaid = principal - self.state.outstanding_principal
        pct = min(Decimal("100"), repaid / principal * 100)
        return pct.quantize(Decimal("0.01"), ROUND_HALF_UP)

    @property
    def next_emi_date(self) -> date | None:
        if self.state.is_closed:
            return None
        return self.terms.effective_first_emi_date + relativedelta(months=self.state.paid_emis)

    def age_months(self, as_of: date | None = None) -> int:
        # 30-day months
        as_of = as_of or date.today()
        return max(0, (as_of - self.terms.disbursal_date).days // 30)
