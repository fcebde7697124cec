"""
Interest Rate Conversion

Converts a nominal annual mortgage rate into the exact rate charged per
payment period. Canadian mortgages compound semi-annually whatever the
payment frequency, so the periodic rate is (1 + r/2) ** (2/N) - 1.
"""

from typing import NamedTuple

from mortgage_planner.calculations.errors import InvalidFrequency
from mortgage_planner.calculations.terms import PaymentFrequency, check_rate, parse_frequency

COMPOUNDING_PERIODS_PER_YEAR = 2

PERIODS_PER_YEAR = {
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.SEMI_MONTHLY: 24,
    PaymentFrequency.BI_WEEKLY: 26,
    PaymentFrequency.ACCELERATED_BI_WEEKLY: 26,
    PaymentFrequency.WEEKLY: 52,
    PaymentFrequency.ACCELERATED_WEEKLY: 52,
}

# Accelerated payments are the monthly payment split, not solved at frequency
ACCELERATED_DIVISORS = {
    PaymentFrequency.ACCELERATED_BI_WEEKLY: 2,
    PaymentFrequency.ACCELERATED_WEEKLY: 4,
}


class RateConversion(NamedTuple):
    """Periods per year and the rate charged each period."""

    periods_per_year: int
    periodic_rate: float


def periods_per_year(frequency) -> int:
    """Number of payments per year for a frequency."""
    frequency = parse_frequency(frequency)
    try:
        return PERIODS_PER_YEAR[frequency]
    except KeyError:
        raise InvalidFrequency(f"Unsupported payment frequency: {frequency}") from None


def is_accelerated(frequency) -> bool:
    """True for frequencies whose payment derives from the monthly payment."""
    return parse_frequency(frequency) in ACCELERATED_DIVISORS


def accelerated_divisor(frequency) -> int:
    """Divisor applied to the monthly payment for accelerated frequencies."""
    frequency = parse_frequency(frequency)
    if frequency not in ACCELERATED_DIVISORS:
        raise InvalidFrequency(f"{frequency.value} is not an accelerated frequency")
    return ACCELERATED_DIVISORS[frequency]


def periodic_rate(nominal_annual_rate: float, periods: int) -> float:
    """
    Effective rate per payment period under semi-annual compounding.

    Args:
        nominal_annual_rate: Annual rate as decimal (e.g., 0.05 for 5%)
        periods: Payment periods per year

    Returns:
        Periodic rate as decimal
    """
    check_rate(nominal_annual_rate)
    if nominal_annual_rate == 0:
        return 0.0
    semi_annual_rate = nominal_annual_rate / COMPOUNDING_PERIODS_PER_YEAR
    return (1 + semi_annual_rate) ** (COMPOUNDING_PERIODS_PER_YEAR / periods) - 1


def convert_rate(nominal_annual_rate: float, frequency) -> RateConversion:
    """
    Normalise a nominal annual rate and frequency into a per-period rate.

    Args:
        nominal_annual_rate: Annual rate as decimal
        frequency: PaymentFrequency member or its name

    Returns:
        RateConversion(periods_per_year, periodic_rate)

    Raises:
        InvalidRate: Rate is negative or above 50%
        InvalidFrequency: Frequency is not recognised
    """
    periods = periods_per_year(frequency)
    return RateConversion(periods, periodic_rate(nominal_annual_rate, periods))


def effective_annual_rate(nominal_annual_rate: float) -> float:
    """Effective annual rate of a semi-annually compounded nominal rate."""
    check_rate(nominal_annual_rate)
    return (1 + nominal_annual_rate / COMPOUNDING_PERIODS_PER_YEAR) ** COMPOUNDING_PERIODS_PER_YEAR - 1


def simple_monthly_rate(annual_rate: float) -> float:
    """Naive annual_rate / 12, used only by the quick estimators."""
    return annual_rate / 12
