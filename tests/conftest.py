"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from mortgage_planner.main import app
from mortgage_planner.calculations.cashflow import PropertySnapshot
from mortgage_planner.calculations.terms import LoanTerms, PaymentFrequency
from mortgage_planner.services.properties import InMemoryPropertyProvider, get_property_provider
from mortgage_planner.services.seed_data import sample_properties


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def provider():
    """Fresh seeded provider, so updates never leak between tests."""
    return InMemoryPropertyProvider(sample_properties())


@pytest.fixture
def client(provider):
    """Test client with the property provider overridden."""
    app.dependency_overrides[get_property_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def monthly_terms():
    """25-year monthly fixed loan with a 5-year term."""
    return LoanTerms(
        principal=400000,
        nominal_annual_rate=0.05,
        amortization_months=300,
        term_months=60,
        start_date=date(2024, 1, 1),
        payment_frequency=PaymentFrequency.MONTHLY,
    )


@pytest.fixture
def rental_snapshot(monthly_terms):
    """Rental condo carrying the monthly loan."""
    return PropertySnapshot(
        property_id="test-condo",
        name="Test Condo",
        monthly_rent=3000.0,
        monthly_expenses={"property_tax": 300.0, "insurance": 50.0, "condo_fees": 650.0},
        current_market_value=600000.0,
        loan=monthly_terms,
        purchase_price=500000.0,
        closing_costs=15000.0,
    )
