from datetime import date
from decimal import Decimal, ROUND_HALF_UP

import pytest

from loanbook.engine.replay import opening_state, replay
from loanbook.exceptions import InvalidInput
from loanbook.models.loan import Loan, LoanTerms, LoanType, PaymentEvent, PaymentType

from tests.conftest import emi_payments


def _loan(terms: LoanTerms, state) -> Loan:
    return Loan(
        name="Home",
        loan_type=LoanType.HOME,
        lender="Test Bank",
        terms=terms,
        state=state,
        emi_amount=state.current_emi,
        total_interest_payable=Decimal("0"),
    )


class TestLoanTerms:
    def test_first_emi_defaults_to_month_after_disbursal(self, canonical_terms):
        assert canonical_terms.effective_first_emi_date == date(2025, 2, 1)

    def test_explicit_first_emi(self):
        terms = LoanTerms(
            principal_amount=Decimal("100000"),
            interest_rate=Decimal("10"),
            tenure_months=12,
            disbursal_date=date(2025, 1, 20),
            first_emi_date=date(2025, 3, 5),
        )
        assert terms.effective_first_emi_date == date(2025, 3, 5)

    def test_month_end_disbursal(self):
        terms = LoanTerms(
            principal_amount=Decimal("100000"),
            interest_rate=Decimal("10"),
            tenure_months=12,
            disbursal_date=date(2025, 1, 31),
        )
        assert terms.effective_first_emi_date == date(2025, 2, 28)

    @pytest.mark.parametrize("principal,rate,tenure", [
        (Decimal("0"), Decimal("9"), 12),
        (Decimal("100000"), Decimal("-1"), 12),
        (Decimal("100000"), Decimal("9"), 0),
    ])
    def test_invalid_terms(self, principal, rate, tenure):
        with pytest.raises(InvalidInput):
            LoanTerms(principal, rate, tenure, date(2025, 1, 1))


class TestPaymentEvent:
    def test_non_positive_amount(self):
        with pytest.raises(InvalidInput):
            PaymentEvent(type=PaymentType.EMI, amount=Decimal("0"), date=date(2025, 2, 1))

    def test_ids_unique(self):
        a, b = emi_payments(2)
        assert a.id != b.id


class TestLoan:
    def test_completion_fresh(self, canonical_terms):
        loan = _loan(canonical_terms, opening_state(canonical_terms))
        assert loan.completion_pct == Decimal("0.00")

    def test_completion_after_payments(self, canonical_terms, year_of_emis):
        state = replay(canonical_terms, year_of_emis).state
        loan = _loan(canonical_terms, state)
        repaid = Decimal("500000") - state.outstanding_principal
        assert loan.completion_pct == (repaid / 5000).quantize(Decimal("0.01"), ROUND_HALF_UP)

    def test_next_emi_date(self, canonical_terms, year_of_emis):
        loan = _loan(canonical_terms, replay(canonical_terms, year_of_emis).state)
        assert loan.next_emi_date == date(2026, 2, 1)

    def test_age_months(self, canonical_terms):
        loan = _loan(canonical_terms, opening_state(canonical_terms))
        assert loan.age_months(date(2025, 1, 1)) == 0
        assert loan.age_months(date(2025, 4, 1)) == 3  # 90 days
        assert loan.age_months(date(2024, 12, 1)) == 0
