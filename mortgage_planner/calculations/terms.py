"""
Loan Terms

Immutable description of a mortgage as entered by the owner. Validation runs
on construction, so every LoanTerms instance handed to the engine is in range.
"""

import enum
import math
from dataclasses import dataclass
from datetime import date
from typing import Optional

from mortgage_planner.calculations.errors import (
    InvalidFrequency,
    InvalidPrincipal,
    InvalidRate,
    InvalidRateKind,
    InvalidTerm,
)

MAX_NOMINAL_RATE = 0.5
MAX_AMORTIZATION_MONTHS = 600
MAX_VARIABLE_SPREAD = 0.10


class RateKind(str, enum.Enum):
    """Interest rate type."""
    FIXED = "FIXED"
    VARIABLE = "VARIABLE"


class PaymentFrequency(str, enum.Enum):
    """How often the borrower pays."""
    MONTHLY = "MONTHLY"
    SEMI_MONTHLY = "SEMI_MONTHLY"
    BI_WEEKLY = "BI_WEEKLY"
    ACCELERATED_BI_WEEKLY = "ACCELERATED_BI_WEEKLY"
    WEEKLY = "WEEKLY"
    ACCELERATED_WEEKLY = "ACCELERATED_WEEKLY"


def parse_frequency(value) -> PaymentFrequency:
    """Coerce a frequency name (or enum member) into a PaymentFrequency."""
    if isinstance(value, PaymentFrequency):
        return value
    try:
        return PaymentFrequency(str(value).upper())
    except ValueError:
        raise InvalidFrequency(
            f"paymentFrequency must be one of: "
            f"{', '.join(f.value for f in PaymentFrequency)} (got {value!r})"
        ) from None


def parse_rate_kind(value) -> RateKind:
    """Coerce a rate type name (or enum member) into a RateKind."""
    if isinstance(value, RateKind):
        return value
    try:
        return RateKind(str(value).upper())
    except ValueError:
        raise InvalidRateKind(
            f"rateType must be either FIXED or VARIABLE (got {value!r})"
        ) from None


def check_rate(rate: float, label: str = "interestRate") -> float:
    """Validate a nominal annual rate expressed as a decimal."""
    if rate is None or not math.isfinite(rate):
        raise InvalidRate(f"{label} is required")
    if rate < 0 or rate > MAX_NOMINAL_RATE:
        raise InvalidRate(f"{label} must be between 0 and 50% (got {rate:.4f})")
    return float(rate)


@dataclass(frozen=True)
class LoanTerms:
    """
    A mortgage as contracted.

    Attributes:
        principal: Amount borrowed (or balance being re-amortized)
        nominal_annual_rate: All-in annual rate as decimal (0.0269 for 2.69%)
        amortization_months: Months needed to repay the loan in full
        start_date: Date of the first payment
        payment_frequency: Payment frequency
        term_months: Months until renewal, defaults to the amortization period
        rate_kind: FIXED or VARIABLE
        variable_spread: Spread over prime for VARIABLE loans (informational)
    """

    principal: float
    nominal_annual_rate: float
    amortization_months: int
    start_date: date
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    term_months: Optional[int] = None
    rate_kind: RateKind = RateKind.FIXED
    variable_spread: Optional[float] = None

    def __post_init__(self):
        if self.principal is None or not math.isfinite(self.principal) or self.principal <= 0:
            raise InvalidPrincipal("originalAmount must be a positive number")
        check_rate(self.nominal_annual_rate)

        if int(self.amortization_months) != self.amortization_months:
            raise InvalidTerm("amortizationPeriod must be a whole number of months")
        if not 1 <= self.amortization_months <= MAX_AMORTIZATION_MONTHS:
            raise InvalidTerm(
                f"amortizationPeriod must be between 1 and {MAX_AMORTIZATION_MONTHS} months"
            )

        term = self.term_months if self.term_months is not None else self.amortization_months
        if not 1 <= term <= self.amortization_months:
            raise InvalidTerm("termLength must be between 1 month and the amortization period")

        kind = parse_rate_kind(self.rate_kind)
        if kind is RateKind.FIXED and self.variable_spread is not None:
            raise InvalidRateKind("variableRateSpread is only allowed for VARIABLE rates")
        if self.variable_spread is not None and abs(self.variable_spread) > MAX_VARIABLE_SPREAD:
            raise InvalidRateKind("variableRateSpread must be between -10% and 10%")

        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "principal", float(self.principal))
        object.__setattr__(self, "nominal_annual_rate", float(self.nominal_annual_rate))
        object.__setattr__(self, "amortization_months", int(self.amortization_months))
        object.__setattr__(self, "term_months", int(term))
        object.__setattr__(self, "payment_frequency", parse_frequency(self.payment_frequency))
        object.__setattr__(self, "rate_kind", kind)

    @property
    def has_renewal(self) -> bool:
        """True when the term ends before the loan is fully amortized."""
        return self.term_months < self.amortization_months
