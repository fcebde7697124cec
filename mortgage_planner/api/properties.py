"""
Rental property API endpoints.

Properties come from the injected PropertyProvider; forecasts, break-even,
sensitivity and what-if scenarios are computed on request and never stored.
"""

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, NonNegativeFloat

from mortgage_planner.calculations import breakeven, metrics, scenarios, sensitivity
from mortgage_planner.calculations.amortization import generate_schedule, term_maturity_date
from mortgage_planner.calculations.cashflow import (
    ForecastAssumptions,
    PropertySnapshot,
    generate_forecast,
)
from mortgage_planner.config import Settings, get_settings
from mortgage_planner.services.properties import PropertyProvider, get_property_provider

router = APIRouter()


class PropertyUpdate(BaseModel):
    """Schema for updating a property's current figures."""

    name: Optional[str] = None
    monthly_rent: Optional[float] = Field(None, gt=0)
    monthly_expenses: Optional[Dict[str, NonNegativeFloat]] = None
    current_market_value: Optional[float] = Field(None, gt=0)
    current_vacancy_rate: Optional[float] = Field(None, ge=0, le=1)


class AssumptionsInput(BaseModel):
    """Forecast assumptions; omitted values use the configured defaults."""

    annual_rent_growth: Optional[float] = Field(None, ge=0, le=1)
    annual_expense_inflation: Optional[float] = Field(None, ge=0, le=1)
    annual_appreciation: Optional[float] = Field(None, ge=0, le=1)
    vacancy_rate: Optional[float] = Field(None, ge=0, le=1)
    future_interest_rate: Optional[float] = Field(None, ge=0, le=1)
    exit_cap_rate: Optional[float] = Field(None, ge=0, le=1)

    def to_assumptions(self, settings: Settings) -> ForecastAssumptions:
        defaults = default_assumptions(settings)
        values = defaults.to_dict()
        values.update(self.model_dump(exclude_none=True))
        return ForecastAssumptions(**values)


class ForecastInput(AssumptionsInput):
    """Input for a property forecast."""

    years: Optional[int] = Field(None, ge=1, le=40)


class RentChangeInput(BaseModel):
    """Monthly rent change, negative for a decrease."""

    change_amount: float


class ExpenseChangeInput(BaseModel):
    """Monthly change to one expense category, negative for a decrease."""

    category: str
    change_amount: float


class VacancyInput(BaseModel):
    """Months the unit sits empty over the coming year."""

    months_vacant: float = Field(..., ge=0, le=12)


class SaleInput(BaseModel):
    """Input for the sell-vs-keep analysis."""

    sale_price: float = Field(..., gt=0)
    selling_costs: float = Field(0.0, ge=0)
    sale_date: Optional[date] = None
    comparison_years: Optional[int] = Field(None, ge=1, le=40)
    alternative_return: Optional[float] = Field(None, ge=0, le=1)


class SensitivityInput(BaseModel):
    """Scenario assumptions compared against a baseline."""

    scenario: AssumptionsInput
    baseline: Optional[AssumptionsInput] = None
    years: Optional[int] = Field(None, ge=1, le=40)


def default_assumptions(settings: Settings) -> ForecastAssumptions:
    return ForecastAssumptions(
        annual_rent_growth=settings.default_rent_growth,
        annual_expense_inflation=settings.default_expense_inflation,
        annual_appreciation=settings.default_appreciation,
        vacancy_rate=settings.default_vacancy_rate,
        future_interest_rate=settings.default_future_interest_rate,
        exit_cap_rate=settings.default_exit_cap_rate,
    )


def loan_to_response(snapshot: PropertySnapshot) -> Optional[dict]:
    loan = snapshot.loan
    if loan is None:
        return None
    schedule = generate_schedule(loan)
    return {
        "principal": round(loan.principal, 2),
        "interest_rate": loan.nominal_annual_rate,
        "rate_type": loan.rate_kind.value,
        "variable_spread": loan.variable_spread,
        "amortization_months": loan.amortization_months,
        "term_months": loan.term_months,
        "payment_frequency": loan.payment_frequency.value,
        "start_date": loan.start_date.isoformat(),
        "term_maturity_date": term_maturity_date(loan).isoformat(),
        "payment": round(schedule.payment, 2),
        "final_payment_date": schedule.final_payment_date.isoformat(),
    }


def property_to_response(snapshot: PropertySnapshot) -> dict:
    """Convert a PropertySnapshot to a response payload with its metrics."""
    return {
        "id": snapshot.property_id,
        "name": snapshot.name,
        "address": snapshot.address,
        "monthly_rent": snapshot.monthly_rent,
        "monthly_expenses": dict(snapshot.monthly_expenses or {}),
        "current_market_value": snapshot.current_market_value,
        "purchase_price": snapshot.purchase_price,
        "closing_costs": snapshot.closing_costs,
        "purchase_date": snapshot.purchase_date.isoformat() if snapshot.purchase_date else None,
        "current_vacancy_rate": snapshot.current_vacancy_rate,
        "as_of": snapshot.forecast_start.isoformat() if snapshot.loan or snapshot.as_of else None,
        "loan": loan_to_response(snapshot),
        "metrics": metrics.property_metrics(snapshot) if snapshot.loan else None,
    }


@router.get("/")
async def list_properties(provider: PropertyProvider = Depends(get_property_provider)):
    """List all properties."""
    properties = provider.list_properties()
    return {
        "properties": [property_to_response(p) for p in properties],
        "total": len(properties),
    }


@router.get("/portfolio")
async def get_portfolio(provider: PropertyProvider = Depends(get_property_provider)):
    """Portfolio totals and averages."""
    return metrics.portfolio_metrics(provider.list_properties())


@router.get("/{property_id}")
async def get_property(
    property_id: str,
    provider: PropertyProvider = Depends(get_property_provider),
):
    """Get a property by ID."""
    return property_to_response(provider.get_property(property_id))


@router.put("/{property_id}")
async def update_property(
    property_id: str,
    property_data: PropertyUpdate,
    provider: PropertyProvider = Depends(get_property_provider),
):
    """Update rent, expenses, value or vacancy of a property."""
    # Update only provided fields
    update_data = property_data.model_dump(exclude_unset=True, exclude_none=True)
    updated = provider.update_property(property_id, **update_data)
    return property_to_response(updated)


@router.post("/{property_id}/forecast")
async def forecast_property(
    property_id: str,
    inputs: Optional[ForecastInput] = None,
    provider: PropertyProvider = Depends(get_property_provider),
    settings: Settings = Depends(get_settings),
):
    """Project the property year by year."""
    inputs = inputs or ForecastInput()
    snapshot = provider.get_property(property_id)
    forecast = generate_forecast(
        snapshot,
        inputs.to_assumptions(settings),
        inputs.years or settings.forecast_years,
    )
    result = forecast.to_dict()
    result["yoy_growth"] = sensitivity.forecast_yoy_growth(forecast)
    return result


@router.get("/{property_id}/break-even")
async def property_break_even(
    property_id: str,
    provider: PropertyProvider = Depends(get_property_provider),
):
    """Vacancy rate at which the property breaks even on cash flow."""
    return breakeven.calculate_break_even(provider.get_property(property_id)).to_dict()


@router.post("/{property_id}/sensitivity")
async def property_sensitivity(
    property_id: str,
    inputs: SensitivityInput,
    provider: PropertyProvider = Depends(get_property_provider),
    settings: Settings = Depends(get_settings),
):
    """Compare return metrics under scenario assumptions with a baseline."""
    snapshot = provider.get_property(property_id)
    years = inputs.years or settings.forecast_years
    baseline_input = inputs.baseline or AssumptionsInput()

    baseline = sensitivity.calculate_return_metrics(
        snapshot, baseline_input.to_assumptions(settings), years
    )
    scenario = sensitivity.calculate_return_metrics(
        snapshot, inputs.scenario.to_assumptions(settings), years
    )
    return {
        "property_id": property_id,
        "baseline": baseline.to_dict(),
        "scenario": scenario.to_dict(),
        "comparison": sensitivity.compare_scenarios(baseline, scenario),
    }


@router.post("/{property_id}/scenarios/rent-change")
async def rent_change_scenario(
    property_id: str,
    inputs: RentChangeInput,
    provider: PropertyProvider = Depends(get_property_provider),
):
    """Metrics with the rent raised or lowered."""
    snapshot = provider.get_property(property_id)
    return scenarios.analyze_rent_change(snapshot, inputs.change_amount).to_dict()


@router.post("/{property_id}/scenarios/expense-change")
async def expense_change_scenario(
    property_id: str,
    inputs: ExpenseChangeInput,
    provider: PropertyProvider = Depends(get_property_provider),
):
    """Metrics with one expense category changed."""
    snapshot = provider.get_property(property_id)
    return scenarios.analyze_expense_change(
        snapshot, inputs.category, inputs.change_amount
    ).to_dict()


@router.post("/{property_id}/scenarios/vacancy")
async def vacancy_scenario(
    property_id: str,
    inputs: VacancyInput,
    provider: PropertyProvider = Depends(get_property_provider),
):
    """Cash flow over the next year with the unit empty for some months."""
    snapshot = provider.get_property(property_id)
    return scenarios.analyze_vacancy(snapshot, inputs.months_vacant).to_dict()


@router.post("/{property_id}/scenarios/sale")
async def sale_scenario(
    property_id: str,
    inputs: SaleInput,
    provider: PropertyProvider = Depends(get_property_provider),
    settings: Settings = Depends(get_settings),
):
    """Net proceeds and returns from selling, compared with keeping the property."""
    snapshot = provider.get_property(property_id)
    comparison_years = inputs.comparison_years or settings.sale_comparison_years
    alternative_return = inputs.alternative_return
    if alternative_return is None:
        alternative_return = settings.sale_alternative_return

    return scenarios.analyze_sale(
        snapshot,
        inputs.sale_price,
        inputs.selling_costs,
        sale_date=inputs.sale_date,
        comparison_years=comparison_years,
        alternative_return=alternative_return,
    ).to_dict()
