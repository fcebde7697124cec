"""
Return Metrics and Scenario Comparison

Investment returns over a forecast horizon (IRR, average cash flow, profit
at sale) and the difference between a baseline and an alternative set of
assumptions.
"""

from dataclasses import dataclass
from typing import List, Dict, Optional

from mortgage_planner.calculations.cashflow import (
    DEFAULT_FORECAST_YEARS,
    Forecast,
    ForecastAssumptions,
    PropertySnapshot,
    generate_forecast,
)
from mortgage_planner.calculations.irr import calculate_irr, calculate_multiple, calculate_profit

COMPARED_METRICS = ("irr", "average_annual_cash_flow", "total_profit_at_sale")


@dataclass(frozen=True)
class ReturnMetrics:
    """Returns of holding a property for the forecast horizon and selling."""

    cash_flows: List[float]
    irr: Optional[float]
    average_annual_cash_flow: float
    total_profit_at_sale: float
    equity_multiple: float
    forecast: Forecast

    def to_dict(self, include_forecast: bool = False) -> Dict:
        result = {
            "irr": round(self.irr, 6) if self.irr is not None else None,
            "average_annual_cash_flow": round(self.average_annual_cash_flow, 2),
            "total_profit_at_sale": round(self.total_profit_at_sale, 2),
            "equity_multiple": round(self.equity_multiple, 4),
            "cash_flows": [round(cf, 2) for cf in self.cash_flows],
        }
        if include_forecast:
            result["forecast"] = self.forecast.to_dict()
        return result


def investment_cash_flows(forecast: Forecast, closing_costs: float = 0.0) -> List[float]:
    """
    Annual equity cash flows for a hold-and-sell investment.

    Year 0 is the cash put in (initial equity plus closing costs); the final
    year adds the equity released by selling at the projected value.
    """
    flows = [-(forecast.initial_equity + closing_costs)]
    flows.extend(y.net_cash_flow for y in forecast.years)
    flows[-1] += forecast.final_year.equity
    return flows


def calculate_return_metrics(
    snapshot: PropertySnapshot,
    assumptions: Optional[ForecastAssumptions] = None,
    years: int = DEFAULT_FORECAST_YEARS,
) -> ReturnMetrics:
    """
    Forecast a property and summarize the returns of holding it.

    Args:
        snapshot: Property to forecast
        assumptions: Growth assumptions (defaults when omitted)
        years: Holding period in years

    Returns:
        ReturnMetrics, with irr None when the cash flows have no IRR
    """
    forecast = generate_forecast(snapshot, assumptions, years)
    flows = investment_cash_flows(forecast, snapshot.closing_costs or 0.0)

    try:
        irr = calculate_irr(flows)
    except ValueError:
        irr = None

    try:
        multiple = calculate_multiple(flows)
    except ValueError:
        multiple = 0.0

    return ReturnMetrics(
        cash_flows=flows,
        irr=irr,
        average_annual_cash_flow=forecast.total_net_cash_flow / len(forecast.years),
        total_profit_at_sale=calculate_profit(flows),
        equity_multiple=multiple,
        forecast=forecast,
    )


def _compare(baseline: Optional[float], scenario: Optional[float]) -> Dict:
    if baseline is None or scenario is None:
        return {"baseline": baseline, "scenario": scenario, "difference": None, "percent_change": None}
    difference = scenario - baseline
    percent_change = difference / abs(baseline) * 100 if baseline != 0 else 0.0
    return {
        "baseline": baseline,
        "scenario": scenario,
        "difference": difference,
        "percent_change": percent_change,
    }


def compare_scenarios(baseline: ReturnMetrics, scenario: ReturnMetrics) -> Dict:
    """Difference and percent change of each headline metric."""
    return {
        name: _compare(getattr(baseline, name), getattr(scenario, name))
        for name in COMPARED_METRICS
    }


def forecast_yoy_growth(forecast: Forecast) -> List[Dict]:
    """Year-over-year growth in net cash flow and equity, from year 2 on."""
    growth = []
    for previous, current in zip(forecast.years, forecast.years[1:]):
        cash_flow_growth = (
            (current.net_cash_flow - previous.net_cash_flow) / abs(previous.net_cash_flow) * 100
            if previous.net_cash_flow != 0
            else 0.0
        )
        equity_growth = (
            (current.equity - previous.equity) / abs(previous.equity) * 100
            if previous.equity != 0
            else 0.0
        )
        growth.append(
            {
                "year": current.year,
                "cash_flow_growth": round(cash_flow_growth, 2),
                "equity_growth": round(equity_growth, 2),
                "net_cash_flow": round(current.net_cash_flow, 2),
                "equity": round(current.equity, 2),
            }
        )
    return growth
