"""
IRR and NPV Calculations

IRR is solved as the roots of the NPV polynomial in the discount factor
x = 1 / (1 + r), which finds every real rate without a starting guess.
"""

from typing import List

import numpy as np

DEFAULT_GUESS = 0.1
IMAGINARY_TOLERANCE = 1e-9


def calculate_npv(cash_flows: List[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of annual cash flows.

    Args:
        cash_flows: Cash flows starting at period 0 (negative = outflow)
        discount_rate: Discount rate per period (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    if discount_rate <= -1:
        raise ValueError("Discount rate must be greater than -100%")
    flows = np.asarray(cash_flows, dtype=float)
    factors = (1 + discount_rate) ** -np.arange(len(flows))
    return float(np.sum(flows * factors))


def calculate_irr(cash_flows: List[float], guess: float = DEFAULT_GUESS) -> float:
    """
    Calculate IRR (Internal Rate of Return) for periodic cash flows.

    When several real rates exist the one closest to guess is returned.

    Args:
        cash_flows: Periodic cash flows starting at period 0
        guess: Rate used to pick among multiple solutions

    Returns:
        IRR per period as decimal (e.g., 0.15 for 15%)

    Raises:
        ValueError: If IRR is undefined for the cash flows
    """
    if len(cash_flows) < 2:
        raise ValueError("At least 2 cash flows required")

    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)

    if not has_positive or not has_negative:
        raise ValueError("Cash flows must contain both positive and negative values")

    # np.roots wants the highest power first: cf_n x^n + ... + cf_0
    roots = np.roots(np.asarray(cash_flows, dtype=float)[::-1])
    real = roots[np.abs(roots.imag) < IMAGINARY_TOLERANCE].real
    factors = real[real > 0]

    if factors.size == 0:
        raise ValueError("IRR calculation failed: no real solution")

    rates = 1 / factors - 1
    return float(rates[np.argmin(np.abs(rates - guess))])


def calculate_multiple(cash_flows: List[float]) -> float:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Array of cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return)
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        raise ValueError("No investment (outflows) found")

    return total_inflows / total_outflows


def calculate_profit(cash_flows: List[float]) -> float:
    """Calculate profit (total inflows minus total outflows)."""
    return sum(cash_flows)
