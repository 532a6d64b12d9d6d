"""EMI computation for reducing-balance loans.

Pure functions: Decimal in, Decimal out. No I/O.
Rates are annual percentages (9.0 means 9% p.a.).
"""

from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP

from loanbook.exceptions import InvalidInput

ONE_UNIT = Decimal("1")
TWO_PLACES = Decimal("0.01")


def round_unit(amount: Decimal) -> Decimal:
    """Round to a whole currency unit, half up."""
    return amount.quantize(ONE_UNIT, ROUND_HALF_UP)


def monthly_rate(annual_rate_pct: Decimal) -> Decimal:
    return Decimal(annual_rate_pct) / 12 / 100


def compute_emi(principal: Decimal, annual_rate_pct: Decimal, tenure_months: int) -> Decimal:
    """Fixed monthly installment that amortizes `principal` over `tenure_months`.

    Zero-rate loans divide evenly (to the cent). Otherwise the standard
    formula is rounded once, at the end, to a whole currency unit.
    """
    if tenure_months <= 0:
        raise InvalidInput("Tenure must be at least 1 month")
    if principal < 0:
        raise InvalidInput("Principal cannot be negative")
    if annual_rate_pct < 0:
        raise InvalidInput("Interest rate cannot be negative")

    if annual_rate_pct == 0:
        return (principal / tenure_months).quantize(TWO_PLACES, ROUND_HALF_UP)

    r = monthly_rate(annual_rate_pct)
    # EMI = P * r * (1+r)^n / ((1+r)^n - 1)
    factor = (1 + r) ** tenure_months
    return round_unit(principal * r * factor / (factor - 1))


def remaining_tenure(balance: Decimal, annual_rate_pct: Decimal, emi: Decimal) -> int:
    """Months needed to clear `balance` paying `emi` each month.

    n = ceil(log(emi / (emi - B*r)) / log(1 + r)), or ceil(B / emi) at zero rate.
    """
    if balance <= 0 or emi <= 0:
        return 0

    r = monthly_rate(annual_rate_pct)
    if r == 0:
        return int((balance / emi).to_integral_value(ROUND_CEILING))

    monthly_interest = balance * r
    if emi <= monthly_interest:
        raise InvalidInput(
            f"Installment {emi} does not cover monthly interest {monthly_interest:.2f}"
        )
    months = (emi / (emi - monthly_interest)).ln() / (1 + r).ln()
    return int(months.to_integral_value(ROUND_CEILING))


def total_interest_payable(principal: Decimal, annual_rate_pct: Decimal, tenure_months: int) -> Decimal:
    """Interest over the full term at the origination EMI."""
    emi = compute_emi(principal, annual_rate_pct, tenure_months)
    return emi * tenure_months - principal
