"""
Property Metrics

Operating metrics for a single rental property and portfolio roll-ups.
Operating expenses never include mortgage payments; cash flow subtracts the
monthly-equivalent mortgage payment.
"""

from datetime import date
from typing import List, Dict, Optional

from mortgage_planner.calculations.amortization import generate_schedule
from mortgage_planner.calculations.cashflow import PropertySnapshot


def annual_operating_expenses(snapshot: PropertySnapshot) -> float:
    return snapshot.total_monthly_expenses * 12


def net_operating_income(snapshot: PropertySnapshot) -> float:
    """Annual rent less annual operating expenses."""
    if not snapshot.monthly_rent:
        return 0.0
    return snapshot.monthly_rent * 12 - annual_operating_expenses(snapshot)


def cap_rate(snapshot: PropertySnapshot) -> float:
    """NOI over current market value, as a percentage."""
    if not snapshot.current_market_value or snapshot.current_market_value <= 0:
        return 0.0
    return net_operating_income(snapshot) / snapshot.current_market_value * 100


def monthly_mortgage_payment(snapshot: PropertySnapshot) -> float:
    if snapshot.loan is None:
        return 0.0
    return generate_schedule(snapshot.loan).monthly_equivalent_payment


def monthly_cash_flow(snapshot: PropertySnapshot) -> float:
    """Rent less operating expenses and the monthly-equivalent mortgage payment."""
    if not snapshot.monthly_rent:
        return 0.0
    return (
        snapshot.monthly_rent
        - snapshot.total_monthly_expenses
        - monthly_mortgage_payment(snapshot)
    )


def cash_on_cash_return(snapshot: PropertySnapshot) -> float:
    """Annual cash flow over purchase price plus closing costs, as a percentage."""
    investment = snapshot.total_investment
    if investment <= 0:
        return 0.0
    return monthly_cash_flow(snapshot) * 12 / investment * 100


def mortgage_balance(snapshot: PropertySnapshot, on_date: Optional[date] = None) -> float:
    """Loan balance before on_date (defaults to the snapshot's as-of date)."""
    if snapshot.loan is None:
        return 0.0
    schedule = generate_schedule(snapshot.loan)
    return schedule.balance_before(on_date or snapshot.forecast_start)


def property_metrics(snapshot: PropertySnapshot, on_date: Optional[date] = None) -> Dict:
    """All single-property metrics, rounded for display."""
    balance = mortgage_balance(snapshot, on_date)
    value = snapshot.current_market_value or 0.0
    return {
        "property_id": snapshot.property_id,
        "annual_operating_expenses": round(annual_operating_expenses(snapshot), 2),
        "net_operating_income": round(net_operating_income(snapshot), 2),
        "cap_rate": round(cap_rate(snapshot), 2),
        "monthly_mortgage_payment": round(monthly_mortgage_payment(snapshot), 2),
        "monthly_cash_flow": round(monthly_cash_flow(snapshot), 2),
        "annual_cash_flow": round(monthly_cash_flow(snapshot) * 12, 2),
        "cash_on_cash_return": round(cash_on_cash_return(snapshot), 2),
        "mortgage_balance": round(balance, 2),
        "equity": round(value - balance, 2),
    }


def portfolio_metrics(snapshots: List[PropertySnapshot], on_date: Optional[date] = None) -> Dict:
    """
    Aggregate metrics over a portfolio of properties.

    Args:
        snapshots: Properties in the portfolio
        on_date: Date mortgage balances are read at

    Returns:
        Totals and simple averages of cap rate and cash-on-cash return
    """
    if not snapshots:
        return {
            "total_properties": 0,
            "total_value": 0.0,
            "total_investment": 0.0,
            "total_mortgage_balance": 0.0,
            "total_equity": 0.0,
            "total_monthly_rent": 0.0,
            "total_annual_operating_expenses": 0.0,
            "net_operating_income": 0.0,
            "total_monthly_cash_flow": 0.0,
            "total_annual_cash_flow": 0.0,
            "average_cap_rate": 0.0,
            "average_cash_on_cash_return": 0.0,
        }

    total_value = sum(s.current_market_value or 0.0 for s in snapshots)
    total_balance = sum(mortgage_balance(s, on_date) for s in snapshots)
    total_rent = sum(s.monthly_rent or 0.0 for s in snapshots)
    total_opex = sum(annual_operating_expenses(s) for s in snapshots)
    total_cash_flow = sum(monthly_cash_flow(s) for s in snapshots)
    count = len(snapshots)

    return {
        "total_properties": count,
        "total_value": round(total_value, 2),
        "total_investment": round(sum(s.total_investment for s in snapshots), 2),
        "total_mortgage_balance": round(total_balance, 2),
        "total_equity": round(total_value - total_balance, 2),
        "total_monthly_rent": round(total_rent, 2),
        "total_annual_operating_expenses": round(total_opex, 2),
        "net_operating_income": round(total_rent * 12 - total_opex, 2),
        "total_monthly_cash_flow": round(total_cash_flow, 2),
        "total_annual_cash_flow": round(total_cash_flow * 12, 2),
        "average_cap_rate": round(sum(cap_rate(s) for s in snapshots) / count, 2),
        "average_cash_on_cash_return": round(
            sum(cash_on_cash_return(s) for s in snapshots) / count, 2
        ),
    }
