from decimal import Decimal

import pytest

from loanbook.engine.emi import (
    compute_emi,
    monthly_rate,
    remaining_tenure,
    round_unit,
    total_interest_payable,
)
from loanbook.exceptions import InvalidInput


class TestComputeEmi:
    def test_standard_loan(self):
        """500K at 9% for 5 years: 10,379.18 rounds to 10,379."""
        assert compute_emi(Decimal("500000"), Decimal("9"), 60) == Decimal("10379")

    def test_one_year_loan(self):
        # 100K at 12% for 12 months: 8,884.88 -> 8,885
        assert compute_emi(Decimal("100000"), Decimal("12"), 12) == Decimal("8885")

    def test_rounded_to_whole_unit(self):
        emi = compute_emi(Decimal("250000"), Decimal("10.5"), 36)
        assert emi == emi.to_integral_value()

    def test_zero_rate_is_simple_division(self):
        assert compute_emi(Decimal("120000"), Decimal("0"), 12) == Decimal("120000") / 12

    def test_zero_rate_keeps_cents(self):
        assert compute_emi(Decimal("100000"), Decimal("0"), 7) == Decimal("14285.71")

    def test_zero_principal(self):
        assert compute_emi(Decimal("0"), Decimal("9"), 60) == Decimal("0")

    def test_single_month(self):
        # One installment: principal plus one month of interest
        assert compute_emi(Decimal("100000"), Decimal("12"), 1) == Decimal("101000")

    def test_non_decreasing_in_rate(self):
        emis = [compute_emi(Decimal("500000"), Decimal(rate), 60) for rate in range(0, 25)]
        assert emis == sorted(emis)

    def test_non_increasing_in_tenure(self):
        emis = [compute_emi(Decimal("500000"), Decimal("9"), n) for n in range(1, 361, 7)]
        assert emis == sorted(emis, reverse=True)

    @pytest.mark.parametrize("principal,rate,tenure", [
        (Decimal("100000"), Decimal("9"), 0),
        (Decimal("100000"), Decimal("9"), -12),
        (Decimal("-1"), Decimal("9"), 12),
        (Decimal("100000"), Decimal("-0.5"), 12),
    ])
    def test_invalid_input(self, principal, rate, tenure):
        with pytest.raises(InvalidInput):
            compute_emi(principal, rate, tenure)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            compute_emi(Decimal("100000"), Decimal("9"), 0)


class TestHelpers:
    def test_monthly_rate(self):
        assert monthly_rate(Decimal("9")) == Decimal("0.0075")

    def test_round_unit_half_up(self):
        assert round_unit(Decimal("3700.5")) == Decimal("3701")
        assert round_unit(Decimal("3700.4999")) == Decimal("3700")

    def test_total_interest_payable(self):
        # 8,885 x 12 - 100,000
        assert total_interest_payable(Decimal("100000"), Decimal("12"), 12) == Decimal("6620")


class TestRemainingTenure:
    def test_rounded_up_emi_fits_original_term(self):
        # 8,885 slightly exceeds the exact EMI, so 12 months still suffice
        assert remaining_tenure(Decimal("100000"), Decimal("12"), Decimal("8885")) == 12

    def test_larger_emi_shortens_term(self):
        assert remaining_tenure(Decimal("100000"), Decimal("12"), Decimal("20000")) < 12

    def test_zero_rate_linear(self):
        assert remaining_tenure(Decimal("80000"), Decimal("0"), Decimal("10000")) == 8
        assert remaining_tenure(Decimal("80001"), Decimal("0"), Decimal("10000")) == 9

    def test_nothing_outstanding(self):
        assert remaining_tenure(Decimal("0"), Decimal("9"), Decimal("10379")) == 0

    def test_emi_not_covering_interest(self):
        # Interest on 500K at 9% is 3,750 a month
        with pytest.raises(InvalidInput):
            remaining_tenure(Decimal("500000"), Decimal("9"), Decimal("3750"))
