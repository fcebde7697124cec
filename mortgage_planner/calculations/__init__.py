"""
Mortgage Calculation Engine

Pure calculation modules for rental property mortgages and forecasts.
Rates follow the Canadian semi-annual compounding convention except in the
quick estimators.
"""

from mortgage_planner.calculations import (
    amortization,
    breakeven,
    cashflow,
    errors,
    estimators,
    export,
    irr,
    metrics,
    prepayment,
    rates,
    refinance,
    scenarios,
    sensitivity,
    terms,
)

__all__ = [
    "amortization",
    "breakeven",
    "cashflow",
    "errors",
    "estimators",
    "export",
    "irr",
    "metrics",
    "prepayment",
    "rates",
    "refinance",
    "scenarios",
    "sensitivity",
    "terms",
]
