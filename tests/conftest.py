"""Canonical test fixtures used across engine, storage and API tests.

Fixture: 500,000 loan at 9% p.a. for 60 months, disbursed 1 Jan 2025.
Formula EMI is 10,379 (exact value 10,379.18, rounded to a whole unit).
"""

from datetime import date
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from loanbook.models.loan import LoanTerms, PaymentEvent, PaymentType, PrepaymentAction

CANONICAL_EMI = Decimal("10379")


def emi_payments(count: int, amount: Decimal = CANONICAL_EMI, start: date = date(2025, 2, 1)) -> list[PaymentEvent]:
    """`count` monthly EMI payments starting at `start`."""
    return [
        PaymentEvent(type=PaymentType.EMI, amount=amount, date=start + relativedelta(months=i))
        for i in range(count)
    ]


def prepayment(amount: str, on: date, action: PrepaymentAction | None = PrepaymentAction.REDUCE_TENURE) -> PaymentEvent:
    return PaymentEvent(
        type=PaymentType.PREPAYMENT,
        amount=Decimal(amount),
        date=on,
        prepayment_action=action,
    )


@pytest.fixture
def canonical_terms() -> LoanTerms:
    return LoanTerms(
        principal_amount=Decimal("500000"),
        interest_rate=Decimal("9.0"),
        tenure_months=60,
        disbursal_date=date(2025, 1, 1),
    )


@pytest.fixture
def zero_rate_terms() -> LoanTerms:
    """120,000 interest-free over 12 months: EMI 10,000.00."""
    return LoanTerms(
        principal_amount=Decimal("120000"),
        interest_rate=Decimal("0"),
        tenure_months=12,
        disbursal_date=date(2025, 1, 1),
    )


@pytest.fixture
def year_of_emis() -> list[PaymentEvent]:
    return emi_payments(12)
