"""
Prepayment Analysis

Re-simulates a schedule under a one-time lump sum or a permanently increased
payment and compares the result with the baseline. The regular payment is
kept, so prepayments shorten the loan rather than lowering the payment.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Union

from mortgage_planner.calculations.amortization import (
    BALANCE_TOLERANCE,
    Schedule,
    generate_schedule,
    run_amortization,
)
from mortgage_planner.calculations.errors import (
    InvalidAmount,
    InvalidIntervention,
    InvalidPaymentNumber,
    OverpaymentExceedsBalance,
)
from mortgage_planner.calculations.terms import LoanTerms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LumpSum:
    """One-time extra principal paid together with a regular payment."""

    amount: float
    applied_at_payment_number: int

    @property
    def kind(self) -> str:
        return "lump_sum"


@dataclass(frozen=True)
class PermanentIncrease:
    """Extra principal added to every payment from a given payment on."""

    extra_per_payment: float
    effective_from_payment_number: int = 1

    @property
    def kind(self) -> str:
        return "increased_payment"


Intervention = Union[LumpSum, PermanentIncrease]


@dataclass(frozen=True)
class PrepaymentScenario:
    """Baseline and modified schedules for a single intervention."""

    baseline: Schedule
    intervention: Intervention
    modified: Schedule

    @property
    def interest_saved(self) -> float:
        return self.baseline.total_interest - self.modified.total_interest

    @property
    def term_shortened_by_periods(self) -> int:
        return self.baseline.total_payments - self.modified.total_payments

    @property
    def payoff_date_before(self) -> date:
        return self.baseline.final_payment_date

    @property
    def payoff_date_after(self) -> date:
        return self.modified.final_payment_date

    @property
    def years_saved(self) -> float:
        return self.term_shortened_by_periods / self.baseline.periods_per_year

    def to_dict(self, include_lines: bool = False) -> Dict:
        return {
            "type": self.intervention.kind,
            "baseline": self.baseline.to_dict(include_lines=include_lines),
            "modified": self.modified.to_dict(include_lines=include_lines),
            "interest_saved": round(self.interest_saved, 2),
            "term_shortened_by_periods": self.term_shortened_by_periods,
            "years_saved": round(self.years_saved, 2),
            "payoff_date_before": self.payoff_date_before.isoformat(),
            "payoff_date_after": self.payoff_date_after.isoformat(),
        }


def _check_amount(amount: float, label: str) -> None:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise InvalidAmount(f"{label} must be greater than 0")


def _check_payment_number(baseline: Schedule, payment_number: int) -> None:
    if payment_number is None or not 1 <= payment_number <= baseline.total_payments:
        raise InvalidPaymentNumber(
            f"Payment number must be between 1 and {baseline.total_payments} "
            f"(got {payment_number})"
        )


def _rebuild(baseline: Schedule, lines) -> Schedule:
    return Schedule(
        terms=baseline.terms,
        periods_per_year=baseline.periods_per_year,
        scheduled_periods=baseline.scheduled_periods,
        segments=baseline.segments,
        lines=tuple(lines),
    )


def apply_lump_sum(baseline: Schedule, lump_sum: LumpSum) -> Schedule:
    """
    Apply a lump sum with the referenced payment and regenerate the tail.

    Args:
        baseline: Schedule without the prepayment
        lump_sum: Amount and payment number it is paid with

    Returns:
        Modified Schedule

    Raises:
        InvalidAmount: Amount is not positive
        InvalidPaymentNumber: Payment number is outside the baseline
        OverpaymentExceedsBalance: Amount exceeds the balance after that payment
    """
    _check_amount(lump_sum.amount, "Lump sum amount")
    number = lump_sum.applied_at_payment_number
    _check_payment_number(baseline, number)

    line = baseline.line(number)
    if lump_sum.amount > line.remaining_balance:
        raise OverpaymentExceedsBalance(
            f"Lump sum {lump_sum.amount:.2f} exceeds the remaining balance "
            f"{line.remaining_balance:.2f} after payment {number}"
        )

    amount = lump_sum.amount
    remaining = line.remaining_balance - amount
    if remaining <= BALANCE_TOLERANCE:
        amount += remaining
        remaining = 0.0

    applied = replace(
        line,
        payment_amount=line.payment_amount + amount,
        principal_portion=line.principal_portion + amount,
        remaining_balance=remaining,
        extra_principal=line.extra_principal + amount,
    )
    tail = run_amortization(
        baseline.terms, baseline.segments, remaining, number + 1, baseline.scheduled_periods
    )
    return _rebuild(baseline, baseline.lines[: number - 1] + (applied,) + tuple(tail))


def apply_permanent_increase(baseline: Schedule, increase: PermanentIncrease) -> Schedule:
    """
    Add extra principal to every payment from the referenced payment on.

    Args:
        baseline: Schedule without the prepayment
        increase: Extra amount per payment and the first payment carrying it

    Returns:
        Modified Schedule
    """
    _check_amount(increase.extra_per_payment, "Extra payment amount")
    number = increase.effective_from_payment_number
    _check_payment_number(baseline, number)

    tail = run_amortization(
        baseline.terms,
        baseline.segments,
        baseline.balance_after(number - 1),
        number,
        baseline.scheduled_periods,
        extra_from=number,
        extra_amount=increase.extra_per_payment,
    )
    return _rebuild(baseline, baseline.lines[: number - 1] + tuple(tail))


def apply_intervention(baseline: Schedule, intervention: Intervention) -> Schedule:
    if isinstance(intervention, LumpSum):
        return apply_lump_sum(baseline, intervention)
    if isinstance(intervention, PermanentIncrease):
        return apply_permanent_increase(baseline, intervention)
    raise InvalidIntervention(
        f"Unsupported prepayment type: {type(intervention).__name__}"
    )


def analyze_prepayment(baseline: Schedule, intervention: Intervention) -> PrepaymentScenario:
    """
    Compare a baseline schedule with the same loan under a prepayment.

    Args:
        baseline: Schedule without the prepayment
        intervention: LumpSum or PermanentIncrease

    Returns:
        PrepaymentScenario with interest saved and periods removed
    """
    modified = apply_intervention(baseline, intervention)
    scenario = PrepaymentScenario(baseline=baseline, intervention=intervention, modified=modified)
    logger.debug(
        "Prepayment %s saves %.2f interest, %d periods",
        intervention.kind,
        scenario.interest_saved,
        scenario.term_shortened_by_periods,
    )
    return scenario


def analyze_lump_sum(terms: LoanTerms, amount: float, at_payment_number: int) -> PrepaymentScenario:
    """Shortcut: generate the baseline for terms and apply a lump sum."""
    return analyze_prepayment(generate_schedule(terms), LumpSum(amount, at_payment_number))


def analyze_increased_payment(
    terms: LoanTerms, extra_per_payment: float, from_payment_number: int = 1
) -> PrepaymentScenario:
    """Shortcut: generate the baseline for terms and increase every payment."""
    return analyze_prepayment(
        generate_schedule(terms), PermanentIncrease(extra_per_payment, from_payment_number)
    )
