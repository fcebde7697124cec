"""
Mortgage calculation API endpoints.

These endpoints accept loan inputs and return calculated results. Engine
validation errors are turned into 400 responses by the handlers registered
in main.py.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, Field

from mortgage_planner.calculations import amortization, estimators, export, prepayment, refinance
from mortgage_planner.calculations.errors import InvalidIntervention
from mortgage_planner.calculations.rates import convert_rate, effective_annual_rate
from mortgage_planner.calculations.terms import (
    MAX_AMORTIZATION_MONTHS,
    MAX_NOMINAL_RATE,
    MAX_VARIABLE_SPREAD,
    LoanTerms,
    PaymentFrequency,
    RateKind,
)
from mortgage_planner.config import Settings, get_settings

router = APIRouter()


class LoanSpecInput(BaseModel):
    """Loan terms without the amount borrowed."""

    interest_rate: float = Field(..., ge=0, le=MAX_NOMINAL_RATE)
    amortization_months: int = Field(..., ge=1, le=MAX_AMORTIZATION_MONTHS)
    term_months: Optional[int] = Field(None, ge=1, le=MAX_AMORTIZATION_MONTHS)
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    rate_type: RateKind = RateKind.FIXED
    variable_spread: Optional[float] = Field(None, ge=-MAX_VARIABLE_SPREAD, le=MAX_VARIABLE_SPREAD)
    start_date: date

    def to_terms(self, principal: float) -> LoanTerms:
        return LoanTerms(
            principal=principal,
            nominal_annual_rate=self.interest_rate,
            amortization_months=self.amortization_months,
            term_months=self.term_months,
            payment_frequency=self.payment_frequency,
            rate_kind=self.rate_type,
            variable_spread=self.variable_spread,
            start_date=self.start_date,
        )


class LoanTermsInput(LoanSpecInput):
    """Complete loan terms."""

    principal: float = Field(..., gt=0)

    def to_loan_terms(self) -> LoanTerms:
        return self.to_terms(self.principal)


class PaymentInput(LoanTermsInput):
    """Input for payment calculation."""

    include_schedule: bool = False


class RateConversionResponse(BaseModel):
    """Rate charged per period for a frequency."""

    periods_per_year: int
    periodic_rate: float
    effective_annual_rate: float


class PaymentResponse(BaseModel):
    """Payment, rate conversion and schedule summary."""

    payment: float
    monthly_equivalent_payment: float
    rate: RateConversionResponse
    summary: dict
    payments: Optional[List[dict]] = None


class AmortizationInput(LoanTermsInput):
    """Input for schedule generation."""

    renewal_rate: Optional[float] = Field(None, ge=0, le=MAX_NOMINAL_RATE)
    property_name: str = "Mortgage"


class PreviewInput(AmortizationInput):
    """Input for the capped schedule table."""

    max_rows: Optional[int] = Field(None, ge=1)


class PrepaymentInput(BaseModel):
    """Input for a prepayment scenario."""

    loan: LoanTermsInput
    type: str = "lump_sum"  # lump_sum or increased_payment
    amount: float
    payment_number: int = 1
    include_schedule: bool = False


class RefinanceInput(BaseModel):
    """Input for refinance comparison."""

    remaining_balance: float
    refinance_cost: float = 0.0
    current: LoanSpecInput
    proposed: LoanSpecInput


class RenewalInput(BaseModel):
    """Input for renewal at a new rate."""

    loan: LoanTermsInput
    renewal_rate: float = Field(..., ge=0, le=MAX_NOMINAL_RATE)
    at_payment_number: Optional[int] = Field(None, ge=1)


class QuickPaymentInput(BaseModel):
    """Input for the quick payment estimator."""

    price: float = Field(..., gt=0)
    down_payment: float = Field(0.0, ge=0)
    interest_rate: float = Field(..., ge=0, le=MAX_NOMINAL_RATE)
    years: float = Field(..., gt=0, le=50)


class QuickRefinanceInput(BaseModel):
    """Input for the quick refinance estimator."""

    balance: float = Field(..., gt=0)
    remaining_years: float = Field(..., gt=0, le=50)
    current_rate: float = Field(..., ge=0, le=MAX_NOMINAL_RATE)
    new_rate: float = Field(..., ge=0, le=MAX_NOMINAL_RATE)
    refinance_cost: float = Field(0.0, ge=0)


class BreakPenaltyInput(BaseModel):
    """Input for the quick break-penalty estimator."""

    balance: float = Field(..., gt=0)
    contract_rate: float = Field(..., ge=0, le=MAX_NOMINAL_RATE)
    comparison_rate: float = Field(..., ge=0, le=MAX_NOMINAL_RATE)
    months_remaining: int = Field(..., ge=0, le=MAX_AMORTIZATION_MONTHS)


def _rounded(values: dict) -> dict:
    return {k: round(v, 2) if isinstance(v, float) else v for k, v in values.items()}


def _build_schedule(inputs: AmortizationInput) -> amortization.Schedule:
    schedule = amortization.generate_schedule(inputs.to_loan_terms())
    if inputs.renewal_rate is not None:
        schedule = amortization.renew_schedule(schedule, inputs.renewal_rate)
    return schedule


@router.post("/payment", response_model=PaymentResponse)
async def calculate_payment(inputs: PaymentInput):
    """Calculate the regular payment and schedule summary for a loan."""
    terms = inputs.to_loan_terms()
    conversion = convert_rate(terms.nominal_annual_rate, terms.payment_frequency)
    schedule = amortization.generate_schedule(terms)

    return PaymentResponse(
        payment=round(schedule.payment, 2),
        monthly_equivalent_payment=round(schedule.monthly_equivalent_payment, 2),
        rate=RateConversionResponse(
            periods_per_year=conversion.periods_per_year,
            periodic_rate=conversion.periodic_rate,
            effective_annual_rate=effective_annual_rate(terms.nominal_annual_rate),
        ),
        summary=amortization.schedule_summary(schedule),
        payments=[line.to_dict() for line in schedule.lines] if inputs.include_schedule else None,
    )


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate the full amortization schedule, renewed when a rate is given."""
    schedule = _build_schedule(inputs)
    result = schedule.to_dict()
    result["annual_summary"] = amortization.summarize_by_year(schedule)
    return result


@router.post("/amortization/csv")
async def download_amortization_csv(inputs: AmortizationInput):
    """Download the schedule as CSV."""
    schedule = _build_schedule(inputs)
    return Response(
        content=export.schedule_to_csv(schedule),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{export.csv_filename(inputs.property_name)}"'
        },
    )


@router.post("/amortization/preview")
async def preview_amortization(inputs: PreviewInput, settings: Settings = Depends(get_settings)):
    """First rows of the schedule for tables, with a note when truncated."""
    schedule = _build_schedule(inputs)
    return export.schedule_preview(schedule, inputs.max_rows or settings.schedule_preview_rows)


INTERVENTIONS = {
    "lump_sum": prepayment.LumpSum,
    "increased_payment": prepayment.PermanentIncrease,
}


@router.post("/prepayment")
async def calculate_prepayment(inputs: PrepaymentInput):
    """Compare a loan with and without a prepayment."""
    intervention_type = INTERVENTIONS.get(inputs.type)
    if intervention_type is None:
        raise InvalidIntervention(
            f"type must be one of: {', '.join(INTERVENTIONS)} (got {inputs.type!r})"
        )

    baseline = amortization.generate_schedule(inputs.loan.to_loan_terms())
    scenario = prepayment.analyze_prepayment(
        baseline, intervention_type(inputs.amount, inputs.payment_number)
    )
    return scenario.to_dict(include_lines=inputs.include_schedule)


@router.post("/refinance")
async def calculate_refinance(inputs: RefinanceInput):
    """Compare the current loan with a refinance of the remaining balance."""
    # Principal is replaced by the remaining balance
    scenario = refinance.analyze_refinance(
        inputs.current.to_terms(principal=1.0),
        inputs.proposed.to_terms(principal=1.0),
        remaining_balance=inputs.remaining_balance,
        refinance_cost=inputs.refinance_cost,
    )
    return scenario.to_dict()


@router.post("/renewal")
async def calculate_renewal(inputs: RenewalInput):
    """Project renewing the loan at a new rate when its term matures."""
    scenario = refinance.analyze_renewal(
        inputs.loan.to_loan_terms(), inputs.renewal_rate, inputs.at_payment_number
    )
    return scenario.to_dict()


@router.post("/quick/payment")
async def quick_payment(inputs: QuickPaymentInput):
    """Quick monthly payment estimate (simple monthly rate)."""
    return _rounded(
        estimators.estimate_mortgage_payment(
            inputs.price, inputs.down_payment, inputs.interest_rate, inputs.years
        )
    )


@router.post("/quick/refinance")
async def quick_refinance(inputs: QuickRefinanceInput):
    """Quick refinance savings estimate (simple monthly rate)."""
    return _rounded(
        estimators.estimate_refinance(
            inputs.balance,
            inputs.remaining_years,
            inputs.current_rate,
            inputs.new_rate,
            inputs.refinance_cost,
        )
    )


@router.post("/quick/break-penalty")
async def quick_break_penalty(inputs: BreakPenaltyInput):
    """Estimate the penalty for breaking a fixed-rate mortgage."""
    return _rounded(
        estimators.estimate_break_penalty(
            inputs.balance, inputs.contract_rate, inputs.comparison_rate, inputs.months_remaining
        )
    )
