"""Forward amortization projection.

Pure functions: Decimal in, dataclass out. No I/O. A projection is a
what-if simulation at a fixed EMI; it never looks at payment history.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from dateutil.relativedelta import relativedelta
from scipy.optimize import brentq

from loanbook.engine.emi import compute_emi, monthly_rate, round_unit
from loanbook.exceptions import InvalidInput
from loanbook.models.loan import AmortizationRow, AmortizationSchedule

ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")


def project(
    opening_balance: Decimal,
    annual_rate_pct: Decimal,
    remaining_months: int,
    start_date: date,
    fixed_emi: Decimal,
) -> list[AmortizationRow]:
    """Project month-by-month rows from `opening_balance` at `fixed_emi`.

    Interest is rounded to a whole unit every month. The schedule ends as
    soon as the balance reaches zero (never padded). The last scheduled
    installment also pays off any rounding residue smaller than one EMI;
    a horizon too short to repay the loan ends with a positive balance.
    """
    if remaining_months < 0:
        raise InvalidInput("Remaining months cannot be negative")
    if opening_balance < 0:
        raise InvalidInput("Opening balance cannot be negative")
    if opening_balance > 0 and remaining_months > 0 and fixed_emi <= 0:
        raise InvalidInput("Installment must be positive")

    r = monthly_rate(annual_rate_pct)
    balance = opening_balance
    rows: list[AmortizationRow] = []

    for i in range(1, remaining_months + 1):
        if balance <= 0:
            break

        interest = round_unit(balance * r)
        if fixed_emi < interest:
            raise InvalidInput(
                f"Installment {fixed_emi} does not cover interest {interest} in month {i}"
            )

        principal_comp = min(fixed_emi - interest, balance)
        if i == remaining_months and balance - principal_comp < fixed_emi:
            # Final installment clears rounding residue, never a balloon
            principal_comp = balance

        opening = balance
        balance = max(ZERO, balance - principal_comp)
        last = balance == 0

        rows.append(AmortizationRow(
            installment_number=i,
            due_date=start_date + relativedelta(months=i - 1),
            installment_amount=principal_comp + interest if last else fixed_emi,
            principal_component=principal_comp,
            interest_component=interest,
            opening_balance=opening,
            closing_balance=balance,
        ))

    return rows


def build_schedule(
    principal: Decimal,
    annual_rate_pct: Decimal,
    tenure_months: int,
    start_date: date,
    emi: Decimal | None = None,
) -> AmortizationSchedule:
    """Full schedule with totals; the EMI defaults to the formula EMI."""
    if emi is None:
        emi = compute_emi(principal, annual_rate_pct, tenure_months)
    rows = project(principal, annual_rate_pct, tenure_months, start_date, emi)
    return AmortizationSchedule(
        rows=rows,
        installment=emi,
        total_interest=sum((row.interest_component for row in rows), ZERO),
        total_principal=sum((row.principal_component for row in rows), ZERO),
    )


def yearly_summary(schedule: AmortizationSchedule) -> list[dict]:
    """Aggregate a schedule into 12-installment years.

    Returns list of dicts with keys: year, principal, interest, installments, closing_balance
    """
    yearly: list[dict] = []
    year_principal = ZERO
    year_interest = ZERO
    year_installments = ZERO

    for row in schedule.rows:
        year_principal += row.principal_component
        year_interest += row.interest_component
        year_installments += row.installment_amount

        if row.installment_number % 12 == 0 or row is schedule.rows[-1]:
            yearly.append({
                "year": (row.installment_number - 1) // 12 + 1,
                "principal": year_principal,
                "interest": year_interest,
                "installments": year_installments,
                "closing_balance": row.closing_balance,
            })
            year_principal = ZERO
            year_interest = ZERO
            year_installments = ZERO

    return yearly


def effective_annual_rate(principal: Decimal, schedule: AmortizationSchedule) -> Decimal:
    """Annual % rate implied by the schedule's actual (rounded) installments.

    Solves for the monthly rate m where the installments discounted at m
    equal the principal, then annualizes as (1+m)^12 - 1.
    """
    if principal <= 0 or not schedule.rows:
        return ZERO

    installments = [float(row.installment_amount) for row in schedule.rows]
    target = float(principal)

    def pv_gap(m: float) -> float:
        return sum(p / (1 + m) ** k for k, p in enumerate(installments, start=1)) - target

    try:
        m = brentq(pv_gap, -0.5, 1.0, xtol=1e-12, maxiter=1000)
    except ValueError:
        # No sign change in range (installments never repay the principal)
        return ZERO

    annual = ((1 + m) ** 12 - 1) * 100
    return Decimal(str(annual)).quantize(TWO_PLACES, ROUND_HALF_UP)
