"""
Quick Estimators

Back-of-the-envelope calculators for the planning screens. These use the
simple monthly convention (annual rate / 12) and stay separate from
Schedules, which always compound semi-annually.
"""

import math
from typing import Dict

from mortgage_planner.calculations.amortization import calculate_payment
from mortgage_planner.calculations.errors import InvalidAmount, InvalidTerm
from mortgage_planner.calculations.rates import simple_monthly_rate
from mortgage_planner.calculations.terms import check_rate


def _check_positive(value: float, label: str) -> None:
    if value is None or not math.isfinite(value) or value <= 0:
        raise InvalidAmount(f"{label} must be greater than 0")


def _check_years(years: float) -> int:
    if years is None or years <= 0:
        raise InvalidTerm("Number of years must be greater than 0")
    return int(round(years * 12))


def simple_monthly_payment(principal: float, annual_rate: float, months: int) -> float:
    """Monthly payment at annual_rate / 12."""
    return calculate_payment(principal, simple_monthly_rate(check_rate(annual_rate)), months)


def estimate_mortgage_payment(
    price: float, down_payment: float, annual_rate: float, years: float
) -> Dict:
    """
    Estimate the monthly payment for a purchase.

    Args:
        price: Purchase price
        down_payment: Cash put down
        annual_rate: Annual rate as decimal
        years: Amortization in years

    Returns:
        Dict with principal, monthly_payment, total_interest and total_cost
    """
    _check_positive(price, "Price")
    if down_payment is None or down_payment < 0:
        raise InvalidAmount("Down payment must be 0 or greater")
    principal = price - down_payment
    if principal <= 0:
        raise InvalidAmount("Down payment must be less than the price")

    months = _check_years(years)
    payment = simple_monthly_payment(principal, annual_rate, months)
    total_cost = payment * months

    return {
        "principal": principal,
        "monthly_payment": payment,
        "total_interest": total_cost - principal,
        "total_cost": total_cost,
        "number_of_payments": months,
    }


def estimate_refinance(
    balance: float,
    remaining_years: float,
    current_rate: float,
    new_rate: float,
    refinance_cost: float = 0.0,
) -> Dict:
    """
    Estimate savings from refinancing a balance over the same remaining term.

    Returns:
        Dict with both payments, monthly_savings, break_even_months (None when
        there are no savings) and lifetime interest_savings
    """
    _check_positive(balance, "Balance")
    if refinance_cost is None or refinance_cost < 0:
        raise InvalidAmount("Refinance cost must be 0 or greater")
    months = _check_years(remaining_years)

    current_payment = simple_monthly_payment(balance, current_rate, months)
    new_payment = simple_monthly_payment(balance, new_rate, months)
    monthly_savings = max(0.0, current_payment - new_payment)

    if monthly_savings > 0:
        break_even_months = int(math.ceil(refinance_cost / monthly_savings))
    else:
        break_even_months = None

    current_interest = current_payment * months - balance
    new_interest = new_payment * months - balance

    return {
        "current_payment": current_payment,
        "new_payment": new_payment,
        "monthly_savings": monthly_savings,
        "break_even_months": break_even_months,
        "interest_savings": max(0.0, current_interest - new_interest),
    }


def estimate_break_penalty(
    balance: float, contract_rate: float, comparison_rate: float, months_remaining: int
) -> Dict:
    """
    Estimate a fixed-rate prepayment penalty.

    The penalty is the greater of three months' interest and the interest
    rate differential (IRD) over the months left in the term.

    Args:
        balance: Outstanding balance
        contract_rate: Rate on the current mortgage as decimal
        comparison_rate: Lender's current rate for the remaining term as decimal
        months_remaining: Months left in the term

    Returns:
        Dict with three_months_interest, interest_rate_differential and penalty
    """
    _check_positive(balance, "Balance")
    check_rate(contract_rate, "contractRate")
    check_rate(comparison_rate, "comparisonRate")
    if months_remaining is None or months_remaining < 0:
        raise InvalidTerm("Months remaining must be 0 or greater")

    three_months_interest = balance * contract_rate * 3 / 12
    rate_difference = max(0.0, contract_rate - comparison_rate)
    ird = balance * rate_difference * months_remaining / 12

    return {
        "three_months_interest": three_months_interest,
        "interest_rate_differential": ird,
        "penalty": max(three_months_interest, ird),
    }
