"""
Cash Flow Forecast

Projects rental income, operating expenses, debt service, property value and
equity year by year for a rental property under compounding growth
assumptions.
"""

import logging
import math
from dataclasses import dataclass, field, fields
from datetime import date
from typing import List, Dict, Optional

from dateutil.relativedelta import relativedelta

from mortgage_planner.calculations.amortization import (
    Schedule,
    generate_schedule,
    renew_schedule,
)
from mortgage_planner.calculations.errors import InvalidAssumption, MissingBaseline
from mortgage_planner.calculations.terms import LoanTerms

logger = logging.getLogger(__name__)

DEFAULT_FORECAST_YEARS = 10


@dataclass(frozen=True)
class ForecastAssumptions:
    """Growth and valuation assumptions, all decimals in [0, 1]."""

    annual_rent_growth: float = 0.02
    annual_expense_inflation: float = 0.025
    annual_appreciation: float = 0.03
    vacancy_rate: float = 0.05
    future_interest_rate: float = 0.05  # Applied when the current term matures
    exit_cap_rate: float = 0.05

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or not math.isfinite(value) or not 0 <= value <= 1:
                raise InvalidAssumption(f"{f.name} must be between 0 and 1 (got {value!r})")

    def to_dict(self) -> Dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PropertySnapshot:
    """
    Current financial state of a rental property.

    Attributes:
        property_id: Identifier used by the property provider
        name: Display name
        monthly_rent: Current monthly rent
        monthly_expenses: Monthly operating expenses by category, excluding debt service
        current_market_value: Current estimated value
        loan: Active mortgage
        purchase_price: Price paid, if known
        closing_costs: Acquisition costs on top of the purchase price
        as_of: Start of forecast year 1, defaults to the loan start date
        current_vacancy_rate: Observed vacancy as decimal
        address: Street address
        purchase_date: Date the property was bought, defaults to the loan start date
    """

    property_id: str
    name: str
    monthly_rent: Optional[float]
    monthly_expenses: Optional[Dict[str, float]]
    current_market_value: Optional[float]
    loan: Optional[LoanTerms]
    purchase_price: Optional[float] = None
    closing_costs: float = 0.0
    as_of: Optional[date] = None
    current_vacancy_rate: float = 0.0
    address: Optional[str] = None
    purchase_date: Optional[date] = None

    @property
    def total_monthly_expenses(self) -> float:
        return sum((self.monthly_expenses or {}).values())

    @property
    def total_investment(self) -> float:
        """Purchase price plus closing costs."""
        return (self.purchase_price or 0.0) + (self.closing_costs or 0.0)

    @property
    def forecast_start(self) -> date:
        if self.as_of is not None:
            return self.as_of
        return self.loan.start_date

    @property
    def ownership_start(self) -> Optional[date]:
        if self.purchase_date is not None:
            return self.purchase_date
        return self.loan.start_date if self.loan else None


@dataclass(frozen=True)
class ForecastYear:
    """Projection for one forecast year."""

    year: int
    gross_rental_income: float
    operating_expenses: float
    debt_service: float
    net_operating_income: float
    net_cash_flow: float
    cumulative_cash_flow: float
    property_value: float
    mortgage_balance: float
    equity: float

    def to_dict(self) -> Dict:
        return {
            f.name: (getattr(self, f.name) if f.name == "year" else round(getattr(self, f.name), 2))
            for f in fields(self)
        }


@dataclass(frozen=True)
class Forecast:
    """Complete forecast with the debt schedule it was computed from."""

    years: List[ForecastYear]
    assumptions: ForecastAssumptions
    schedule: Schedule
    initial_equity: float
    sale_proceeds_gross: Optional[float]
    property_id: Optional[str] = None

    @property
    def final_year(self) -> ForecastYear:
        return self.years[-1]

    @property
    def total_rental_income(self) -> float:
        return sum(y.gross_rental_income for y in self.years)

    @property
    def total_operating_expenses(self) -> float:
        return sum(y.operating_expenses for y in self.years)

    @property
    def final_mortgage_payoff(self) -> float:
        return self.final_year.mortgage_balance

    @property
    def total_debt_paid(self) -> float:
        """Debt service over the horizon plus paying off the balance at sale."""
        return sum(y.debt_service for y in self.years) + self.final_mortgage_payoff

    @property
    def total_net_cash_flow(self) -> float:
        return sum(y.net_cash_flow for y in self.years)

    def to_dict(self) -> Dict:
        sale = self.sale_proceeds_gross
        return {
            "property_id": self.property_id,
            "assumptions": self.assumptions.to_dict(),
            "years": [y.to_dict() for y in self.years],
            "totals": {
                "total_rental_income": round(self.total_rental_income, 2),
                "total_operating_expenses": round(self.total_operating_expenses, 2),
                "total_debt_paid": round(self.total_debt_paid, 2),
                "total_net_cash_flow": round(self.total_net_cash_flow, 2),
                "initial_equity": round(self.initial_equity, 2),
                "final_mortgage_payoff": round(self.final_mortgage_payoff, 2),
                "final_property_value": round(self.final_year.property_value, 2),
                "sale_proceeds_gross": round(sale, 2) if sale is not None else None,
            },
        }


def check_baseline(snapshot: PropertySnapshot, require_value: bool = True) -> None:
    """Raise MissingBaseline when a snapshot cannot be projected."""
    missing = []
    if snapshot.monthly_rent is None or snapshot.monthly_rent <= 0:
        missing.append("rent")
    if snapshot.monthly_expenses is None:
        missing.append("operating expenses")
    if snapshot.loan is None:
        missing.append("mortgage")
    has_value = snapshot.current_market_value is not None and snapshot.current_market_value > 0
    if require_value and not has_value:
        missing.append("market value")
    if missing:
        raise MissingBaseline(
            f"Property {snapshot.property_id} is missing {', '.join(missing)} data"
        )


def debt_schedule(loan: LoanTerms, assumptions: ForecastAssumptions) -> Schedule:
    """Schedule for the forecast, renewed at the future rate when the term matures."""
    schedule = generate_schedule(loan)
    if loan.has_renewal:
        schedule = renew_schedule(schedule, assumptions.future_interest_rate)
    return schedule


def initial_equity(snapshot: PropertySnapshot) -> float:
    """Purchase price less the original loan amount (market value if price unknown)."""
    basis = snapshot.purchase_price
    if basis is None:
        basis = snapshot.current_market_value
    return basis - snapshot.loan.principal


def generate_forecast(
    snapshot: PropertySnapshot,
    assumptions: Optional[ForecastAssumptions] = None,
    years: int = DEFAULT_FORECAST_YEARS,
) -> Forecast:
    """
    Project a property's performance over a number of years.

    Income, expenses and value compound from today's figures; debt service
    for year y is the sum of payments dated inside that year's window and
    the mortgage balance is read from the schedule at the window end.

    Args:
        snapshot: Property with rent, expenses, value and an active loan
        assumptions: Growth assumptions (defaults when omitted)
        years: Forecast horizon in years

    Returns:
        Forecast with one ForecastYear per year

    Raises:
        MissingBaseline: Snapshot lacks rent, expenses, value or a loan
        InvalidAssumption: Horizon is shorter than a year
    """
    if assumptions is None:
        assumptions = ForecastAssumptions()
    check_baseline(snapshot)
    if years is None or years < 1:
        raise InvalidAssumption("Forecast horizon must be at least 1 year")

    schedule = debt_schedule(snapshot.loan, assumptions)
    anchor = snapshot.forecast_start

    gross_income = snapshot.monthly_rent * 12
    operating_expenses = snapshot.total_monthly_expenses * 12
    property_value = snapshot.current_market_value
    cumulative = 0.0
    projection = []

    for year in range(1, years + 1):
        gross_income *= 1 + assumptions.annual_rent_growth
        operating_expenses *= 1 + assumptions.annual_expense_inflation
        property_value *= 1 + assumptions.annual_appreciation

        window_start = anchor + relativedelta(years=year - 1)
        window_end = anchor + relativedelta(years=year)
        debt_service = sum(
            line.payment_amount for line in schedule.lines_between(window_start, window_end)
        )
        balance = schedule.balance_before(window_end)

        noi = gross_income * (1 - assumptions.vacancy_rate) - operating_expenses
        net_cash_flow = noi - debt_service
        cumulative += net_cash_flow

        projection.append(
            ForecastYear(
                year=year,
                gross_rental_income=gross_income,
                operating_expenses=operating_expenses,
                debt_service=debt_service,
                net_operating_income=noi,
                net_cash_flow=net_cash_flow,
                cumulative_cash_flow=cumulative,
                property_value=property_value,
                mortgage_balance=balance,
                equity=property_value - balance,
            )
        )

    # Income-approach valuation of the final year, reported next to the
    # appreciation-based value
    final_noi = projection[-1].net_operating_income
    sale_proceeds = final_noi / assumptions.exit_cap_rate if assumptions.exit_cap_rate > 0 else None

    logger.debug(
        "Forecast for %s: %d years from %s, final equity %.2f",
        snapshot.property_id,
        years,
        anchor.isoformat(),
        projection[-1].equity,
    )
    return Forecast(
        years=projection,
        assumptions=assumptions,
        schedule=schedule,
        initial_equity=initial_equity(snapshot),
        sale_proceeds_gross=sale_proceeds,
        property_id=snapshot.property_id,
    )
