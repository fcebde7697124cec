"""
Sample rental properties used to seed the in-memory property provider.
"""

from datetime import date
from typing import List

from mortgage_planner.calculations.cashflow import PropertySnapshot
from mortgage_planner.calculations.terms import LoanTerms, PaymentFrequency, RateKind

SEED_AS_OF = date(2025, 1, 1)


def sample_properties() -> List[PropertySnapshot]:
    """Build a fresh list of sample properties on every call."""
    return [
        PropertySnapshot(
            property_id="richmond-st-e-403",
            name="Richmond St E Condo",
            address="403-311 Richmond St E, Toronto, ON M5A4S8",
            monthly_rent=3450.0,
            monthly_expenses={
                "property_tax": 321.0,
                "insurance": 42.67,
                "maintenance": 16.67,
                "condo_fees": 829.58,
            },
            current_market_value=800000.0,
            purchase_price=615000.0,
            closing_costs=18150.0,
            purchase_date=date(2019, 2, 4),
            loan=LoanTerms(
                principal=492000.0,
                nominal_annual_rate=0.052,
                amortization_months=300,
                term_months=60,
                start_date=date(2022, 2, 4),
                payment_frequency=PaymentFrequency.BI_WEEKLY,
            ),
            as_of=SEED_AS_OF,
        ),
        PropertySnapshot(
            property_id="tretti-way-317",
            name="Tretti Way Condo",
            address="317-30 Tretti Way, Toronto, ON M3H0E3",
            monthly_rent=2300.0,
            monthly_expenses={
                "property_tax": 213.93,
                "insurance": 38.92,
                "maintenance": 16.67,
                "condo_fees": 473.10,
            },
            current_market_value=550000.0,
            purchase_price=448618.0,
            closing_costs=68086.0,
            purchase_date=date(2023, 10, 4),
            loan=LoanTerms(
                principal=358800.0,
                nominal_annual_rate=0.0549,
                amortization_months=360,
                term_months=48,
                start_date=date(2023, 8, 1),
                payment_frequency=PaymentFrequency.MONTHLY,
            ),
            as_of=SEED_AS_OF,
        ),
        PropertySnapshot(
            property_id="wilson-ave-415",
            name="Wilson Ave Condo",
            address="415-500 Wilson Ave, Toronto, ON M3H 0E5",
            monthly_rent=2300.0,
            monthly_expenses={
                "property_tax": 211.46,
                "insurance": 43.92,
                "maintenance": 16.67,
                "condo_fees": 395.58,
            },
            current_market_value=550000.0,
            purchase_price=533379.0,
            closing_costs=53241.9,
            loan=LoanTerms(
                principal=385000.0,
                nominal_annual_rate=0.048,
                amortization_months=360,
                term_months=60,
                start_date=date(2023, 1, 15),
                payment_frequency=PaymentFrequency.MONTHLY,
                rate_kind=RateKind.VARIABLE,
                variable_spread=-0.004,
            ),
            as_of=SEED_AS_OF,
            current_vacancy_rate=0.05,
        ),
    ]
