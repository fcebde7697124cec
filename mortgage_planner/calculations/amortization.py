"""
Loan Amortization Calculations

Implements the periodic payment calculation and payment-by-payment
amortization schedules for Canadian mortgages (semi-annual compounding),
including accelerated frequencies and renewal at a new rate.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Dict, Optional, Tuple

from dateutil.relativedelta import relativedelta

from mortgage_planner.calculations.errors import (
    InternalComputationError,
    InvalidPaymentNumber,
    InvalidPrincipal,
    InvalidRate,
    InvalidTerm,
)
from mortgage_planner.calculations.rates import (
    accelerated_divisor,
    convert_rate,
    effective_annual_rate,
    is_accelerated,
    periodic_rate,
    periods_per_year,
)
from mortgage_planner.calculations.terms import LoanTerms, PaymentFrequency, check_rate

logger = logging.getLogger(__name__)

# Balances closer than half a cent to zero are treated as paid off
BALANCE_TOLERANCE = 0.005

DAY_STEPS = {
    PaymentFrequency.BI_WEEKLY: 14,
    PaymentFrequency.ACCELERATED_BI_WEEKLY: 14,
    PaymentFrequency.WEEKLY: 7,
    PaymentFrequency.ACCELERATED_WEEKLY: 7,
}


@dataclass(frozen=True)
class PaymentLine:
    """One row of an amortization schedule."""

    payment_number: int
    payment_date: date
    payment_amount: float
    principal_portion: float
    interest_portion: float
    remaining_balance: float
    extra_principal: float = 0.0  # Prepayment included in principal_portion

    def to_dict(self) -> Dict:
        return {
            "payment_number": self.payment_number,
            "date": self.payment_date.isoformat(),
            "payment": round(self.payment_amount, 2),
            "principal": round(self.principal_portion, 2),
            "interest": round(self.interest_portion, 2),
            "extra_principal": round(self.extra_principal, 2),
            "balance": round(self.remaining_balance, 2),
        }


@dataclass(frozen=True)
class RateSegment:
    """Rate and regular payment in force from a given payment number on."""

    first_payment_number: int
    nominal_annual_rate: float
    periodic_rate: float
    payment: float


@dataclass(frozen=True)
class Schedule:
    """
    Complete amortization schedule for a loan.

    Regenerable from its terms and never modified after creation; what-if
    analyses build a new Schedule.
    """

    terms: LoanTerms
    periods_per_year: int
    scheduled_periods: int
    segments: Tuple[RateSegment, ...]
    lines: Tuple[PaymentLine, ...]

    @property
    def payment(self) -> float:
        """Regular payment of the first rate segment."""
        return self.segments[0].payment

    @property
    def periodic_rate(self) -> float:
        return self.segments[0].periodic_rate

    @property
    def monthly_equivalent_payment(self) -> float:
        return monthly_equivalent(self.payment, self.periods_per_year)

    @property
    def total_payments(self) -> int:
        return len(self.lines)

    @property
    def total_interest(self) -> float:
        return sum(line.interest_portion for line in self.lines)

    @property
    def total_principal(self) -> float:
        return sum(line.principal_portion for line in self.lines)

    @property
    def total_paid(self) -> float:
        return sum(line.payment_amount for line in self.lines)

    @property
    def final_payment_date(self) -> date:
        return self.lines[-1].payment_date

    def segment_for(self, payment_number: int) -> RateSegment:
        return _segment_for(self.segments, payment_number)

    def line(self, payment_number: int) -> PaymentLine:
        if not 1 <= payment_number <= len(self.lines):
            raise InvalidPaymentNumber(
                f"Payment number must be between 1 and {len(self.lines)} (got {payment_number})"
            )
        return self.lines[payment_number - 1]

    def balance_after(self, payment_number: int) -> float:
        """Remaining balance once the given payment has been made (0 = none yet)."""
        if payment_number <= 0:
            return self.terms.principal
        if payment_number >= len(self.lines):
            return 0.0
        return self.lines[payment_number - 1].remaining_balance

    def balance_before(self, on_date: date) -> float:
        """Remaining balance after every payment dated strictly before on_date."""
        balance = self.terms.principal
        for line in self.lines:
            if line.payment_date >= on_date:
                break
            balance = line.remaining_balance
        return balance

    def lines_between(self, start: date, end: date) -> List[PaymentLine]:
        """Payments dated in [start, end)."""
        return [line for line in self.lines if start <= line.payment_date < end]

    def to_dict(self, include_lines: bool = True) -> Dict:
        result = schedule_summary(self)
        if include_lines:
            result["payments"] = [line.to_dict() for line in self.lines]
        return result


def total_periods(amortization_months: int, periods: int) -> int:
    """
    Convert an amortization period in months to a count of payment periods.

    Rounds half up to the nearest whole period.
    """
    if amortization_months is None or amortization_months <= 0:
        raise InvalidTerm("Amortization period must be at least 1 month")
    return max(1, int(math.floor(amortization_months * periods / 12 + 0.5)))


def calculate_payment(principal: float, periodic_rate: float, total_periods: int) -> float:
    """
    Calculate the fixed periodic payment that retires a loan.

    Matches Excel's PMT() function with the rate already per period.

    Args:
        principal: Loan principal amount
        periodic_rate: Interest rate per payment period as decimal
        total_periods: Number of payments

    Returns:
        Periodic payment amount (positive number)
    """
    if principal is None or principal <= 0:
        raise InvalidPrincipal("Principal must be a positive number")
    if total_periods is None or total_periods <= 0:
        raise InvalidTerm("Number of payment periods must be positive")
    if periodic_rate is None or periodic_rate < 0:
        raise InvalidRate("Periodic rate must be 0 or greater")

    if periodic_rate == 0:
        payment = principal / total_periods
    else:
        growth = (1 + periodic_rate) ** total_periods
        payment = principal * periodic_rate * growth / (growth - 1)

    if not math.isfinite(payment) or payment <= 0:
        raise InternalComputationError(
            f"Payment calculation produced {payment!r} for principal={principal}, "
            f"rate={periodic_rate}, periods={total_periods}"
        )
    return payment


def solve_payment(
    balance: float, nominal_annual_rate: float, amortization_months: float, frequency
) -> float:
    """
    Payment per period that retires balance over the amortization period.

    Straight frequencies are solved at their own periodic rate. Accelerated
    frequencies take the monthly payment and split it (half for bi-weekly,
    a quarter for weekly), which is what makes them pay off faster.
    """
    if is_accelerated(frequency):
        monthly = calculate_payment(
            balance,
            periodic_rate(nominal_annual_rate, 12),
            total_periods(amortization_months, 12),
        )
        return monthly / accelerated_divisor(frequency)

    periods = periods_per_year(frequency)
    return calculate_payment(
        balance,
        periodic_rate(nominal_annual_rate, periods),
        total_periods(amortization_months, periods),
    )


def calculate_periodic_payment(terms: LoanTerms) -> float:
    """Regular payment for a loan at its own frequency."""
    return solve_payment(
        terms.principal,
        terms.nominal_annual_rate,
        terms.amortization_months,
        terms.payment_frequency,
    )


def monthly_equivalent(payment: float, periods: int) -> float:
    """Express a periodic payment as its monthly equivalent."""
    return payment * periods / 12


def payment_date(start_date: date, frequency, offset: int) -> date:
    """
    Date of the payment `offset` periods after the first one.

    Monthly payments follow calendar months from the start date, so a loan
    starting on the 31st pays on the last day of shorter months without
    drifting. Semi-monthly payments alternate 15 and 16 day steps.
    """
    if frequency == PaymentFrequency.MONTHLY:
        return start_date + relativedelta(months=offset)
    if frequency == PaymentFrequency.SEMI_MONTHLY:
        days = 15 * ((offset + 1) // 2) + 16 * (offset // 2)
        return start_date + timedelta(days=days)
    return start_date + timedelta(days=DAY_STEPS[frequency] * offset)


def _segment_for(segments: Tuple[RateSegment, ...], payment_number: int) -> RateSegment:
    current = segments[0]
    for segment in segments[1:]:
        if segment.first_payment_number > payment_number:
            break
        current = segment
    return current


def run_amortization(
    terms: LoanTerms,
    segments: Tuple[RateSegment, ...],
    opening_balance: float,
    first_number: int,
    last_number: int,
    extra_from: Optional[int] = None,
    extra_amount: float = 0.0,
) -> List[PaymentLine]:
    """
    Amortize a balance payment by payment until it reaches zero.

    Each period charges balance * periodic rate of the segment in force; the
    rest of the payment (plus extra_amount from payment extra_from onward)
    reduces the balance. The last scheduled period, or the first one whose
    principal covers the balance, is clamped to the exact remaining balance.

    Args:
        terms: Loan terms (start date and frequency drive payment dates)
        segments: Rate segments, ordered by first payment number
        opening_balance: Balance before payment first_number
        first_number: Number of the first payment to generate
        last_number: Last scheduled payment number
        extra_from: First payment number carrying extra_amount
        extra_amount: Extra principal added to each payment from extra_from

    Returns:
        Generated payment lines (empty when the balance is already zero)
    """
    lines = []
    balance = opening_balance
    number = first_number

    while balance > 0 and number <= last_number:
        segment = _segment_for(segments, number)
        interest = balance * segment.periodic_rate
        extra = extra_amount if extra_from is not None and number >= extra_from else 0.0
        payment = segment.payment + extra
        principal = payment - interest

        if not (math.isfinite(interest) and math.isfinite(principal)):
            raise InternalComputationError(
                f"Non-finite amortization values at payment {number}"
            )

        if number == last_number or principal >= balance - BALANCE_TOLERANCE:
            principal = balance
            payment = principal + interest
            extra = min(extra, principal)
            balance = 0.0
        elif principal <= 0:
            raise InternalComputationError(
                f"Payment {payment:.2f} does not cover interest {interest:.2f} "
                f"at payment {number}"
            )
        else:
            balance -= principal

        lines.append(
            PaymentLine(
                payment_number=number,
                payment_date=payment_date(terms.start_date, terms.payment_frequency, number - 1),
                payment_amount=payment,
                principal_portion=principal,
                interest_portion=interest,
                remaining_balance=balance,
                extra_principal=extra,
            )
        )
        number += 1

    return lines


def generate_schedule(terms: LoanTerms) -> Schedule:
    """
    Generate the full amortization schedule for a loan.

    Args:
        terms: Validated loan terms

    Returns:
        Schedule with one line per payment, ending at a zero balance
    """
    conversion = convert_rate(terms.nominal_annual_rate, terms.payment_frequency)
    payment = calculate_periodic_payment(terms)
    scheduled = total_periods(terms.amortization_months, conversion.periods_per_year)

    segments = (
        RateSegment(
            first_payment_number=1,
            nominal_annual_rate=terms.nominal_annual_rate,
            periodic_rate=conversion.periodic_rate,
            payment=payment,
        ),
    )
    lines = run_amortization(terms, segments, terms.principal, 1, scheduled)

    logger.debug(
        "Generated %d-payment schedule (%s, payment %.2f, rate %.4f)",
        len(lines),
        terms.payment_frequency.value,
        payment,
        terms.nominal_annual_rate,
    )
    return Schedule(
        terms=terms,
        periods_per_year=conversion.periods_per_year,
        scheduled_periods=scheduled,
        segments=segments,
        lines=tuple(lines),
    )


def term_maturity_date(terms: LoanTerms) -> date:
    """Date the current term ends and the loan comes up for renewal."""
    return terms.start_date + relativedelta(months=terms.term_months)


def renewal_payment_number(schedule: Schedule) -> Optional[int]:
    """
    Last payment made under the current term.

    Returns None when the loan has no renewal or is paid off before the
    term matures.
    """
    if not schedule.terms.has_renewal:
        return None
    maturity = term_maturity_date(schedule.terms)
    made = sum(1 for line in schedule.lines if line.payment_date < maturity)
    if made == 0 or made >= schedule.total_payments:
        return None
    return made


def renew_schedule(
    schedule: Schedule, new_rate: float, at_payment_number: Optional[int] = None
) -> Schedule:
    """
    Re-amortize the balance at a new rate from a renewal point.

    Payments up to at_payment_number are kept; the remaining balance is
    amortized over what is left of the original amortization period at
    new_rate, on the same frequency and payment-date grid.

    Args:
        schedule: Schedule to renew
        new_rate: Nominal annual rate for the renewed term
        at_payment_number: Last payment at the old rate, defaults to the
            last payment before the term matures

    Returns:
        New Schedule (the original schedule when nothing is left to renew)
    """
    check_rate(new_rate, "renewalRate")
    if at_payment_number is None:
        at_payment_number = renewal_payment_number(schedule)
        if at_payment_number is None:
            return schedule
    elif not 1 <= at_payment_number <= schedule.total_payments:
        raise InvalidPaymentNumber(
            f"Renewal payment number must be between 1 and {schedule.total_payments}"
        )

    balance = schedule.balance_after(at_payment_number)
    remaining_periods = schedule.scheduled_periods - at_payment_number
    if balance <= 0 or remaining_periods <= 0:
        return schedule

    terms = schedule.terms
    periods = schedule.periods_per_year
    remaining_months = remaining_periods * 12 / periods
    new_segment = RateSegment(
        first_payment_number=at_payment_number + 1,
        nominal_annual_rate=new_rate,
        periodic_rate=periodic_rate(new_rate, periods),
        payment=solve_payment(balance, new_rate, remaining_months, terms.payment_frequency),
    )
    segments = tuple(
        s for s in schedule.segments if s.first_payment_number <= at_payment_number
    ) + (new_segment,)

    tail = run_amortization(
        terms, segments, balance, at_payment_number + 1, schedule.scheduled_periods
    )
    logger.debug(
        "Renewed schedule at payment %d: balance %.2f, rate %.4f, payment %.2f",
        at_payment_number,
        balance,
        new_rate,
        new_segment.payment,
    )
    return Schedule(
        terms=terms,
        periods_per_year=periods,
        scheduled_periods=schedule.scheduled_periods,
        segments=segments,
        lines=schedule.lines[:at_payment_number] + tuple(tail),
    )


def schedule_summary(schedule: Schedule) -> Dict:
    """Headline figures of a schedule, rounded for display."""
    terms = schedule.terms
    return {
        "principal": round(terms.principal, 2),
        "nominal_annual_rate": terms.nominal_annual_rate,
        "effective_annual_rate": effective_annual_rate(terms.nominal_annual_rate),
        "payment_frequency": terms.payment_frequency.value,
        "periods_per_year": schedule.periods_per_year,
        "periodic_rate": schedule.periodic_rate,
        "payment": round(schedule.payment, 2),
        "monthly_equivalent_payment": round(schedule.monthly_equivalent_payment, 2),
        "total_payments": schedule.total_payments,
        "total_interest": round(schedule.total_interest, 2),
        "total_paid": round(schedule.total_paid, 2),
        "final_payment_date": schedule.final_payment_date.isoformat(),
        "term_maturity_date": term_maturity_date(terms).isoformat(),
    }


def summarize_by_year(schedule: Schedule) -> List[Dict]:
    """
    Roll a schedule up into calendar-year totals.
    """
    annual_data = []
    year_totals = None

    for line in schedule.lines:
        if year_totals is None or line.payment_date.year != year_totals["year"]:
            if year_totals is not None:
                annual_data.append(year_totals)
            year_totals = {
                "year": line.payment_date.year,
                "payments": 0,
                "total_paid": 0.0,
                "interest": 0.0,
                "principal": 0.0,
                "ending_balance": 0.0,
            }
        year_totals["payments"] += 1
        year_totals["total_paid"] += line.payment_amount
        year_totals["interest"] += line.interest_portion
        year_totals["principal"] += line.principal_portion
        year_totals["ending_balance"] = line.remaining_balance

    if year_totals is not None:
        annual_data.append(year_totals)

    for year in annual_data:
        for key in ("total_paid", "interest", "principal", "ending_balance"):
            year[key] = round(year[key], 2)

    return annual_data
