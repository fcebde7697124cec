"""
Break-Even Vacancy Analysis

Vacancy rate at which a property's rent exactly covers operating expenses
and debt service.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from mortgage_planner.calculations.amortization import Schedule, generate_schedule
from mortgage_planner.calculations.cashflow import PropertySnapshot, check_baseline
from mortgage_planner.calculations.errors import InvalidAmount

LOW_RISK_MARGIN = 20.0
MODERATE_RISK_MARGIN = 10.0


@dataclass(frozen=True)
class BreakEvenResult:
    """Break-even vacancy and the cushion against current vacancy, in percent."""

    potential_gross_income: float
    annual_operating_expenses: float
    annual_debt_service: float
    break_even_vacancy_rate: float
    current_vacancy_rate: float
    safety_margin: float

    @property
    def risk_level(self) -> str:
        if self.safety_margin > LOW_RISK_MARGIN:
            return "Low"
        if self.safety_margin > MODERATE_RISK_MARGIN:
            return "Moderate"
        return "High"

    def to_dict(self) -> Dict:
        return {
            "potential_gross_income": round(self.potential_gross_income, 2),
            "annual_operating_expenses": round(self.annual_operating_expenses, 2),
            "annual_debt_service": round(self.annual_debt_service, 2),
            "break_even_vacancy_rate": round(self.break_even_vacancy_rate, 2),
            "current_vacancy_rate": round(self.current_vacancy_rate, 2),
            "safety_margin": round(self.safety_margin, 2),
            "risk_level": self.risk_level,
        }


def calculate_break_even(
    snapshot: PropertySnapshot, schedule: Optional[Schedule] = None
) -> BreakEvenResult:
    """
    Calculate the break-even vacancy rate for a property.

    Args:
        snapshot: Property with rent, expenses and an active loan
        schedule: Active debt schedule, generated from the loan when omitted

    Returns:
        BreakEvenResult with rates expressed as percentages
    """
    check_baseline(snapshot, require_value=False)
    if schedule is None:
        schedule = generate_schedule(snapshot.loan)

    potential_gross_income = snapshot.monthly_rent * 12
    if potential_gross_income <= 0:
        raise InvalidAmount("Potential gross income must be greater than 0")

    annual_operating_expenses = snapshot.total_monthly_expenses * 12
    annual_debt_service = schedule.payment * schedule.periods_per_year

    break_even = (annual_operating_expenses + annual_debt_service) / potential_gross_income * 100
    current = snapshot.current_vacancy_rate * 100

    return BreakEvenResult(
        potential_gross_income=potential_gross_income,
        annual_operating_expenses=annual_operating_expenses,
        annual_debt_service=annual_debt_service,
        break_even_vacancy_rate=break_even,
        current_vacancy_rate=current,
        safety_margin=break_even - current,
    )
