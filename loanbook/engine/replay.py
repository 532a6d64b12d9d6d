"""Payment-history replay: recompute a loan's state from its payment log.

Pure functions. No I/O. The previous derived state is never patched;
every call replays the full, date-sorted log from the original terms, so
inserting or deleting a payment is just a replay of the edited list.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from loanbook.engine.emi import compute_emi, monthly_rate, remaining_tenure, round_unit
from loanbook.exceptions import InvalidInput, InvalidPayment
from loanbook.models.loan import (
    DerivedLoanState,
    LoanTerms,
    PaymentEvent,
    PaymentType,
    PrepaymentAction,
)
from loanbook.models.results import ReplayResult

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def opening_state(terms: LoanTerms) -> DerivedLoanState:
    """State of a freshly disbursed loan: the replay of an empty log."""
    return replay(terms, []).state


def _clear_derived(event: PaymentEvent) -> PaymentEvent:
    return replace(
        event,
        principal_component=ZERO,
        interest_component=ZERO,
        emi_number=None,
        outstanding_after=None,
        new_emi=None,
        tenure_saved_months=None,
    )


def _tenure_left(balance: Decimal, annual_rate_pct: Decimal, emi: Decimal, payment_id: str | None = None) -> int:
    try:
        return remaining_tenure(balance, annual_rate_pct, emi)
    except InvalidInput as e:
        # Only reachable when negative amortization let the balance outgrow the EMI
        raise InvalidPayment(f"Loan no longer amortizes: {e}", payment_id) from e


def replay(
    terms: LoanTerms,
    payments: Iterable[PaymentEvent],
    *,
    allow_negative_amortization: bool = False,
) -> ReplayResult:
    """Replay `payments` in date order against `terms`.

    Ties on date keep their original order (stable sort). Returns annotated
    copies of the events and the derived state; the inputs are untouched.

    Raises:
        InvalidPayment: an event contradicts itself or the loan (see below).
            Nothing is returned in that case.

    Policy:
        - EMI amounts below the month's interest are rejected unless
          `allow_negative_amortization`, in which case the balance grows.
        - An EMI above the payoff (interest + balance) retires the balance;
          the excess is kept in total paid only.
        - No event may follow the payment that closed the loan.
        - A prepayment without an action reduces tenure.
    """
    r = monthly_rate(terms.interest_rate)
    tenure = terms.tenure_months
    ordered = sorted(payments, key=lambda p: p.date)

    balance = terms.principal_amount
    current_emi = compute_emi(balance, terms.interest_rate, tenure)
    total_paid = ZERO
    total_principal = ZERO
    total_interest = ZERO
    total_prepaid = ZERO
    emi_count = 0
    closed_on = None

    annotated: list[PaymentEvent] = []
    for pmt in ordered:
        if closed_on is not None:
            raise InvalidPayment(
                f"Payment on {pmt.date} follows loan closure on {closed_on}", pmt.id
            )

        if pmt.type is PaymentType.EMI:
            if pmt.prepayment_action is not None:
                raise InvalidPayment("EMI payments cannot carry a prepayment action", pmt.id)

            interest = round_unit(balance * r)
            if pmt.amount < interest and not allow_negative_amortization:
                raise InvalidPayment(
                    f"EMI of {pmt.amount} on {pmt.date} is less than interest due ({interest})",
                    pmt.id,
                )
            # A final EMI above the payoff only retires what is left; the
            # excess counts toward total paid, not principal or interest.
            principal_comp = min(pmt.amount - interest, balance)

            balance = max(ZERO, balance - principal_comp)
            total_principal += principal_comp
            total_interest += interest
            total_paid += pmt.amount
            emi_count += 1
            annotated.append(replace(
                _clear_derived(pmt),
                principal_component=principal_comp,
                interest_component=interest,
                emi_number=emi_count,
                outstanding_after=balance,
            ))
        else:
            balance = max(ZERO, balance - pmt.amount)
            total_prepaid += pmt.amount
            total_paid += pmt.amount
            event = replace(_clear_derived(pmt), outstanding_after=balance)

            if balance > 0:
                months_left = tenure - emi_count
                action = pmt.prepayment_action or PrepaymentAction.REDUCE_TENURE
                if action is PrepaymentAction.REDUCE_EMI:
                    if months_left <= 0:
                        raise InvalidPayment(
                            "Cannot reduce EMI: original tenure already elapsed", pmt.id
                        )
                    current_emi = compute_emi(balance, terms.interest_rate, months_left)
                    event = replace(event, new_emi=current_emi)
                elif r > 0:
                    # Zero-rate loans skip tenure recomputation here
                    new_tenure = _tenure_left(balance, terms.interest_rate, current_emi, pmt.id)
                    event = replace(event, tenure_saved_months=max(0, months_left - new_tenure))

            annotated.append(event)

        if balance <= 0:
            closed_on = pmt.date

    months_remaining = _tenure_left(balance, terms.interest_rate, current_emi)

    state = DerivedLoanState(
        outstanding_principal=balance,
        current_emi=current_emi,
        current_tenure_months=months_remaining,
        paid_emis=emi_count,
        total_paid_amount=total_paid,
        total_principal_paid=total_principal,
        total_interest_paid=total_interest,
        total_prepaid=total_prepaid,
        last_payment_date=ordered[-1].date if ordered else None,
        is_closed=balance <= 0,
    )
    logger.debug(
        "Replayed %d payments: outstanding=%s emi=%s remaining=%s",
        len(annotated), balance, current_emi, months_remaining,
    )
    return ReplayResult(payments=annotated, state=state)


def append_payment(
    terms: LoanTerms,
    payments: Iterable[PaymentEvent],
    event: PaymentEvent,
    **kwargs,
) -> ReplayResult:
    """Insert `event` into the log and replay from scratch."""
    return replay(terms, [*payments, event], **kwargs)


def remove_payment(
    terms: LoanTerms,
    payments: Iterable[PaymentEvent],
    payment_id: str,
    **kwargs,
) -> ReplayResult:
    """Delete the event with `payment_id` and replay the remainder.

    Raises KeyError if no such payment exists.
    """
    payments = list(payments)
    remaining = [p for p in payments if p.id != payment_id]
    if len(remaining) == len(payments):
        raise KeyError(payment_id)
    return replay(terms, remaining, **kwargs)
