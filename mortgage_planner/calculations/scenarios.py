"""
What-If Scenarios

Single-property what-if analyses on today's figures: a rent change, an
expense change, months of unit vacancy and selling the property. Each one
compares the property as it stands with the changed figures; nothing is
stored.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Optional

from mortgage_planner.calculations import metrics
from mortgage_planner.calculations.cashflow import PropertySnapshot
from mortgage_planner.calculations.errors import (
    InvalidAmount,
    InvalidAssumption,
    InvalidScenario,
    MissingBaseline,
)

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12
DAYS_PER_YEAR = 365.25
DEFAULT_COMPARISON_YEARS = 5
DEFAULT_ALTERNATIVE_RETURN = 0.05

COMPARED_METRICS = (
    "net_operating_income",
    "monthly_cash_flow",
    "annual_cash_flow",
    "cap_rate",
    "cash_on_cash_return",
)


def _require_rent(snapshot: PropertySnapshot) -> None:
    if not snapshot.monthly_rent or snapshot.monthly_rent <= 0:
        raise MissingBaseline(f"Property {snapshot.property_id} is missing rent data")


def _check_finite(value: float, label: str) -> None:
    if value is None or not math.isfinite(value):
        raise InvalidAmount(f"{label} is required")


@dataclass(frozen=True)
class MetricsChange:
    """Property metrics before and after a change to today's figures."""

    kind: str
    current: PropertySnapshot
    changed: PropertySnapshot
    details: Dict

    @property
    def monthly_impact(self) -> float:
        """Change in monthly cash flow."""
        return metrics.monthly_cash_flow(self.changed) - metrics.monthly_cash_flow(self.current)

    @property
    def annual_impact(self) -> float:
        return self.monthly_impact * MONTHS_PER_YEAR

    def to_dict(self) -> Dict:
        before = metrics.property_metrics(self.current)
        after = metrics.property_metrics(self.changed)
        result = {
            "type": self.kind,
            "property_id": self.current.property_id,
            "current": {name: before[name] for name in COMPARED_METRICS},
            "projected": {name: after[name] for name in COMPARED_METRICS},
            "monthly_impact": round(self.monthly_impact, 2),
            "annual_impact": round(self.annual_impact, 2),
        }
        result.update(self.details)
        return result


def analyze_rent_change(snapshot: PropertySnapshot, change_amount: float) -> MetricsChange:
    """
    Re-evaluate a property with its monthly rent raised or lowered.

    Args:
        snapshot: Property as it stands
        change_amount: Monthly rent change (negative for a decrease)

    Returns:
        MetricsChange with current and projected metrics

    Raises:
        InvalidScenario: The change would leave no rent
    """
    _require_rent(snapshot)
    _check_finite(change_amount, "Rent change")

    new_rent = snapshot.monthly_rent + change_amount
    if new_rent <= 0:
        raise InvalidScenario(
            f"Rent change {change_amount:.2f} would leave no rent (current {snapshot.monthly_rent:.2f})"
        )

    logger.debug("Rent change on %s: %.2f -> %.2f", snapshot.property_id, snapshot.monthly_rent, new_rent)
    return MetricsChange(
        kind="rent_change",
        current=snapshot,
        changed=replace(snapshot, monthly_rent=new_rent),
        details={
            "current_rent": round(snapshot.monthly_rent, 2),
            "new_rent": round(new_rent, 2),
            "change_amount": round(change_amount, 2),
        },
    )


def analyze_expense_change(
    snapshot: PropertySnapshot, category: str, change_amount: float
) -> MetricsChange:
    """
    Re-evaluate a property with one operating expense category changed.

    Args:
        snapshot: Property as it stands
        category: Expense category, e.g. "condo_fees"
        change_amount: Monthly change to that category (negative for a decrease)

    Returns:
        MetricsChange with current and projected metrics

    Raises:
        InvalidScenario: Unknown category, or the expense would go negative
    """
    _require_rent(snapshot)
    _check_finite(change_amount, "Expense change")

    expenses = dict(snapshot.monthly_expenses or {})
    if category not in expenses:
        raise InvalidScenario(
            f"Unknown expense category {category!r}; expected one of: {', '.join(sorted(expenses))}"
        )

    current_expense = expenses[category]
    new_expense = current_expense + change_amount
    if new_expense < 0:
        raise InvalidScenario(
            f"Expense change {change_amount:.2f} would make {category} negative "
            f"(current {current_expense:.2f})"
        )
    expenses[category] = new_expense

    return MetricsChange(
        kind="expense_change",
        current=snapshot,
        changed=replace(snapshot, monthly_expenses=expenses),
        details={
            "category": category,
            "current_expense": round(current_expense, 2),
            "new_expense": round(new_expense, 2),
            "change_amount": round(change_amount, 2),
        },
    )


@dataclass(frozen=True)
class VacancyImpact:
    """A unit sitting empty for part of the coming year."""

    snapshot: PropertySnapshot
    months_vacant: float

    @property
    def monthly_carrying_cost(self) -> float:
        """Operating expenses and mortgage payment that continue while vacant."""
        return self.snapshot.total_monthly_expenses + metrics.monthly_mortgage_payment(self.snapshot)

    @property
    def lost_rent(self) -> float:
        return self.snapshot.monthly_rent * self.months_vacant

    @property
    def carrying_cost_while_vacant(self) -> float:
        return self.monthly_carrying_cost * self.months_vacant

    @property
    def annual_rent(self) -> float:
        return self.snapshot.monthly_rent * (MONTHS_PER_YEAR - self.months_vacant)

    @property
    def annual_cash_flow(self) -> float:
        return self.annual_rent - self.monthly_carrying_cost * MONTHS_PER_YEAR

    @property
    def annual_cash_flow_impact(self) -> float:
        return self.annual_cash_flow - metrics.monthly_cash_flow(self.snapshot) * MONTHS_PER_YEAR

    @property
    def cap_rate(self) -> float:
        value = self.snapshot.current_market_value
        if not value or value <= 0:
            return 0.0
        return (self.annual_rent - metrics.annual_operating_expenses(self.snapshot)) / value * 100

    @property
    def cash_on_cash_return(self) -> float:
        investment = self.snapshot.total_investment
        if investment <= 0:
            return 0.0
        return self.annual_cash_flow / investment * 100

    def to_dict(self) -> Dict:
        return {
            "type": "vacancy",
            "property_id": self.snapshot.property_id,
            "months_vacant": self.months_vacant,
            "monthly_cash_flow_while_vacant": round(-self.monthly_carrying_cost, 2),
            "lost_rent": round(self.lost_rent, 2),
            "carrying_cost_while_vacant": round(self.carrying_cost_while_vacant, 2),
            "annual_rent": round(self.annual_rent, 2),
            "annual_cash_flow": round(self.annual_cash_flow, 2),
            "annual_cash_flow_impact": round(self.annual_cash_flow_impact, 2),
            "current_cap_rate": round(metrics.cap_rate(self.snapshot), 2),
            "cap_rate": round(self.cap_rate, 2),
            "current_cash_on_cash_return": round(metrics.cash_on_cash_return(self.snapshot), 2),
            "cash_on_cash_return": round(self.cash_on_cash_return, 2),
        }


def analyze_vacancy(snapshot: PropertySnapshot, months_vacant: float) -> VacancyImpact:
    """
    Cash flow over the next year with the unit empty for months_vacant.

    Raises:
        InvalidScenario: months_vacant is outside 0 to 12
    """
    _require_rent(snapshot)
    if months_vacant is None or not 0 <= months_vacant <= MONTHS_PER_YEAR:
        raise InvalidScenario(f"Months vacant must be between 0 and 12 (got {months_vacant!r})")
    return VacancyImpact(snapshot=snapshot, months_vacant=months_vacant)


@dataclass(frozen=True)
class SaleAnalysis:
    """Selling a property now against keeping it."""

    snapshot: PropertySnapshot
    sale_price: float
    selling_costs: float
    sale_date: date
    comparison_years: int
    alternative_return: float

    @property
    def mortgage_balance(self) -> float:
        return metrics.mortgage_balance(self.snapshot, self.sale_date)

    @property
    def net_proceeds(self) -> float:
        """Cash left after selling costs and paying off the mortgage."""
        return self.sale_price - self.selling_costs - self.mortgage_balance

    @property
    def capital_gain(self) -> float:
        return self.sale_price - self.snapshot.purchase_price

    @property
    def cash_invested(self) -> float:
        """Down payment and closing costs put in at purchase."""
        loan = self.snapshot.loan.principal if self.snapshot.loan else 0.0
        return self.snapshot.total_investment - loan

    @property
    def total_gain(self) -> float:
        return self.net_proceeds - self.cash_invested

    @property
    def total_return(self) -> Optional[float]:
        if self.cash_invested <= 0:
            return None
        return self.total_gain / self.cash_invested * 100

    @property
    def years_owned(self) -> float:
        start = self.snapshot.ownership_start
        if start is None:
            return 0.0
        return (self.sale_date - start).days / DAYS_PER_YEAR

    @property
    def annualized_return(self) -> Optional[float]:
        """Compound annual return on cash invested, None when undefined."""
        if self.years_owned <= 0 or self.cash_invested <= 0 or self.net_proceeds <= 0:
            return None
        return ((self.net_proceeds / self.cash_invested) ** (1 / self.years_owned) - 1) * 100

    @property
    def keep_value(self) -> float:
        """Equity today plus the cash flow collected over the comparison years."""
        equity = (self.snapshot.current_market_value or 0.0) - self.mortgage_balance
        annual_cash_flow = metrics.monthly_cash_flow(self.snapshot) * MONTHS_PER_YEAR
        return equity + annual_cash_flow * self.comparison_years

    @property
    def sell_value(self) -> float:
        """Net proceeds invested at the alternative return over the comparison years."""
        return self.net_proceeds * (1 + self.alternative_return) ** self.comparison_years

    @property
    def opportunity_cost(self) -> float:
        """Positive when selling comes out ahead."""
        return self.sell_value - self.keep_value

    def to_dict(self) -> Dict:
        def optional(value):
            return round(value, 2) if value is not None else None

        return {
            "type": "sale",
            "property_id": self.snapshot.property_id,
            "sale_date": self.sale_date.isoformat(),
            "sale_price": round(self.sale_price, 2),
            "selling_costs": round(self.selling_costs, 2),
            "mortgage_balance": round(self.mortgage_balance, 2),
            "net_proceeds": round(self.net_proceeds, 2),
            "capital_gain": round(self.capital_gain, 2),
            "cash_invested": round(self.cash_invested, 2),
            "total_gain": round(self.total_gain, 2),
            "total_return": optional(self.total_return),
            "years_owned": round(self.years_owned, 2),
            "annualized_return": optional(self.annualized_return),
            "comparison_years": self.comparison_years,
            "alternative_return": self.alternative_return,
            "keep_value": round(self.keep_value, 2),
            "sell_value": round(self.sell_value, 2),
            "opportunity_cost": round(self.opportunity_cost, 2),
            "recommendation": "sell" if self.opportunity_cost > 0 else "keep",
        }


def analyze_sale(
    snapshot: PropertySnapshot,
    sale_price: float,
    selling_costs: float = 0.0,
    sale_date: Optional[date] = None,
    comparison_years: int = DEFAULT_COMPARISON_YEARS,
    alternative_return: float = DEFAULT_ALTERNATIVE_RETURN,
) -> SaleAnalysis:
    """
    Analyze selling a property against keeping it.

    Args:
        snapshot: Property with a purchase price
        sale_price: Gross sale price
        selling_costs: Commissions, legal and other costs of the sale
        sale_date: Closing date, defaults to the snapshot's as-of date or today
        comparison_years: Years over which keeping and selling are compared
        alternative_return: Annual return earned on the proceeds if sold

    Returns:
        SaleAnalysis

    Raises:
        MissingBaseline: Purchase price is unknown
        InvalidAmount: Sale price is not positive or selling costs are negative
        InvalidAssumption: Comparison years or alternative return out of range
    """
    if snapshot.purchase_price is None or snapshot.purchase_price <= 0:
        raise MissingBaseline(f"Property {snapshot.property_id} is missing purchase price data")
    if sale_price is None or not math.isfinite(sale_price) or sale_price <= 0:
        raise InvalidAmount("Sale price must be greater than 0")
    if selling_costs is None or not math.isfinite(selling_costs) or selling_costs < 0:
        raise InvalidAmount("Selling costs must be 0 or greater")
    if comparison_years is None or comparison_years < 1:
        raise InvalidAssumption("Comparison period must be at least 1 year")
    if alternative_return is None or not 0 <= alternative_return <= 1:
        raise InvalidAssumption("alternative_return must be between 0 and 1")

    if sale_date is None:
        sale_date = snapshot.as_of or date.today()

    analysis = SaleAnalysis(
        snapshot=snapshot,
        sale_price=float(sale_price),
        selling_costs=float(selling_costs),
        sale_date=sale_date,
        comparison_years=int(comparison_years),
        alternative_return=float(alternative_return),
    )
    logger.debug(
        "Sale of %s at %.2f on %s: net proceeds %.2f",
        snapshot.property_id,
        sale_price,
        sale_date.isoformat(),
        analysis.net_proceeds,
    )
    return analysis
