"""
Calculation Errors

Failure taxonomy for the calculation engine. Input problems raise a
ValidationError subclass whose message is safe to show to the user; anything
that breaks while computing a valid input raises InternalComputationError.
"""


class MortgageCalculationError(Exception):
    """Base exception for the calculation engine."""


class ValidationError(MortgageCalculationError, ValueError):
    """Raised for malformed or out-of-range inputs."""


class InvalidPrincipal(ValidationError):
    """Loan principal is missing or not positive."""


class InvalidRate(ValidationError):
    """Interest rate is outside the supported range."""


class InvalidTerm(ValidationError):
    """Amortization period, term or period count is out of range."""


class InvalidFrequency(ValidationError):
    """Payment frequency is not one of the supported options."""


class InvalidRateKind(ValidationError):
    """Rate type is unknown or inconsistent with the variable spread."""


class InvalidAmount(ValidationError):
    """A currency amount that must be positive is not."""


class InvalidPaymentNumber(ValidationError):
    """A reference payment number falls outside the schedule."""


class OverpaymentExceedsBalance(ValidationError):
    """A lump sum is larger than the balance it is applied to."""


class InvalidIntervention(ValidationError):
    """Prepayment intervention type is not supported."""


class InvalidAssumption(ValidationError):
    """Forecast assumption is outside [0, 1]."""


class MissingBaseline(ValidationError):
    """Property lacks the rent, expense or mortgage data a forecast needs."""


class InvalidScenario(ValidationError):
    """What-if inputs would leave the property in an impossible state."""


class InternalComputationError(MortgageCalculationError):
    """Raised when a valid input produces a non-finite or inconsistent result."""
