"""CLI for the EMI calculator and amortization schedule.

Usage:
    python -m loanbook.cli 500000 9 60
    python -m loanbook.cli 500000 9 60 --start 2026-01-05 --yearly
"""

import argparse
import sys
from datetime import date
from decimal import Decimal, InvalidOperation

from loanbook.engine.amortization import build_schedule, effective_annual_rate, yearly_summary
from loanbook.exceptions import LoanEngineError
from loanbook.models.loan import AmortizationSchedule


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")


def print_summary(principal: Decimal, schedule: AmortizationSchedule) -> None:
    print(f"\n{'=' * 60}")
    print(f"  EMI:               {schedule.installment:,}")
    print(f"  Installments:      {len(schedule.rows)}")
    print(f"  Total interest:    {schedule.total_interest:,}")
    print(f"  Total payable:     {schedule.total_payable:,}")
    print(f"  Effective rate:    {effective_annual_rate(principal, schedule)}% p.a.")
    print(f"{'=' * 60}")


def print_schedule(schedule: AmortizationSchedule) -> None:
    print(f"  {'#':>4}  {'Due':<10}  {'EMI':>10}  {'Principal':>10}  {'Interest':>10}  {'Balance':>12}")
    for row in schedule.rows:
        print(
            f"  {row.installment_number:>4}  {row.due_date.isoformat():<10}  "
            f"{row.installment_amount:>10,}  {row.principal_component:>10,}  "
            f"{row.interest_component:>10,}  {row.closing_balance:>12,}"
        )
    print()


def print_yearly(schedule: AmortizationSchedule) -> None:
    print(f"  {'Year':>4}  {'Principal':>12}  {'Interest':>12}  {'Paid':>12}  {'Balance':>12}")
    for y in yearly_summary(schedule):
        print(
            f"  {y['year']:>4}  {y['principal']:>12,}  {y['interest']:>12,}  "
            f"{y['installments']:>12,}  {y['closing_balance']:>12,}"
        )
    print()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="EMI calculator and amortization schedule")
    parser.add_argument("principal", type=_decimal, help="Loan amount")
    parser.add_argument("rate", type=_decimal, help="Annual interest rate in percent (e.g. 9 for 9%%)")
    parser.add_argument("tenure", type=int, help="Tenure in months")
    parser.add_argument("--start", type=date.fromisoformat, default=None,
                        help="First installment date, YYYY-MM-DD (default: today)")
    parser.add_argument("--yearly", action="store_true", help="Show yearly totals instead of every installment")

    args = parser.parse_args(argv)

    try:
        schedule = build_schedule(args.principal, args.rate, args.tenure, args.start or date.today())
    except LoanEngineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print_summary(args.principal, schedule)
    if args.yearly:
        print_yearly(schedule)
    else:
        print_schedule(schedule)
    return 0


if __name__ == "__main__":
    sys.exit(main())
