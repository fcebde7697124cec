"""
Tests for the calculation and property API endpoints.
"""

import pytest

from mortgage_planner.calculations import amortization
from mortgage_planner.calculations.errors import InternalComputationError

# Provider override is handled by conftest.py


@pytest.fixture
def loan_payload():
    """Monthly 25-year loan with a 5-year term."""
    return {
        "principal": 400000,
        "interest_rate": 0.05,
        "amortization_months": 300,
        "term_months": 60,
        "payment_frequency": "MONTHLY",
        "start_date": "2024-01-01",
    }


class TestPaymentAPI:
    """Test payment and schedule endpoints."""

    def test_zero_rate_payment(self, client):
        response = client.post(
            "/api/calculate/payment",
            json={
                "principal": 120000,
                "interest_rate": 0,
                "amortization_months": 120,
                "start_date": "2024-01-01",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["payment"] == 1000.0
        assert data["summary"]["total_interest"] == 0
        assert data["payments"] is None

    def test_payment_with_schedule(self, client, loan_payload):
        response = client.post(
            "/api/calculate/payment", json={**loan_payload, "include_schedule": True}
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["payment"] - 2326.42) < 0.5
        assert data["rate"]["periods_per_year"] == 12
        assert abs(data["rate"]["effective_annual_rate"] - 0.050625) < 1e-9
        assert len(data["payments"]) == 300
        assert data["payments"][-1]["balance"] == 0

    def test_rate_out_of_range_rejected(self, client, loan_payload):
        """Field ranges are enforced before the engine runs."""
        response = client.post(
            "/api/calculate/payment", json={**loan_payload, "interest_rate": 0.6}
        )
        assert response.status_code == 422

    def test_unknown_frequency_rejected(self, client, loan_payload):
        response = client.post(
            "/api/calculate/payment", json={**loan_payload, "payment_frequency": "DAILY"}
        )
        assert response.status_code == 422

    def test_engine_validation_message_returned(self, client, loan_payload):
        """Engine validation errors come back as 400 with their message."""
        response = client.post(
            "/api/calculate/payment", json={**loan_payload, "term_months": 360}
        )
        assert response.status_code == 400
        assert "termLength" in response.json()["detail"]

    def test_internal_error_is_hidden(self, client, loan_payload, monkeypatch):
        def broken_schedule(terms):
            raise InternalComputationError("payment is NaN")

        monkeypatch.setattr(amortization, "generate_schedule", broken_schedule)
        response = client.post("/api/calculate/payment", json=loan_payload)
        assert response.status_code == 500
        assert "NaN" not in response.json()["detail"]

    def test_amortization(self, client, loan_payload):
        response = client.post("/api/calculate/amortization", json=loan_payload)
        assert response.status_code == 200
        data = response.json()
        assert data["total_payments"] == 300
        assert len(data["payments"]) == 300
        assert data["payments"][0]["date"] == "2024-01-01"
        assert data["annual_summary"][0]["year"] == 2024

    def test_amortization_with_renewal(self, client, loan_payload):
        base = client.post("/api/calculate/amortization", json=loan_payload).json()
        renewed = client.post(
            "/api/calculate/amortization", json={**loan_payload, "renewal_rate": 0.07}
        ).json()
        assert renewed["payments"][60]["payment"] > base["payments"][60]["payment"]
        assert renewed["total_interest"] > base["total_interest"]

    def test_csv_download(self, client, loan_payload):
        response = client.post(
            "/api/calculate/amortization/csv",
            json={**loan_payload, "property_name": "Richmond St E"},
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "Richmond_St_E_amortization_schedule.csv" in response.headers["content-disposition"]
        lines = response.text.strip().split("\n")
        assert lines[0] == "Payment #,Date,Payment,Principal,Interest,Remaining Balance"
        assert len(lines) == 301

    def test_preview(self, client, loan_payload):
        response = client.post("/api/calculate/amortization/preview", json=loan_payload)
        assert response.status_code == 200
        data = response.json()
        assert len(data["rows"]) == 50
        assert data["truncated"] is True
        assert data["note"]

    def test_preview_row_limit(self, client, loan_payload):
        response = client.post(
            "/api/calculate/amortization/preview", json={**loan_payload, "max_rows": 10}
        )
        assert len(response.json()["rows"]) == 10


class TestScenarioAPI:
    """Test prepayment, refinance and renewal endpoints."""

    def test_lump_sum(self, client, loan_payload):
        response = client.post(
            "/api/calculate/prepayment",
            json={"loan": loan_payload, "type": "lump_sum", "amount": 20000, "payment_number": 12},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "lump_sum"
        assert data["interest_saved"] > 0
        assert data["term_shortened_by_periods"] > 0

    def test_increased_payment(self, client, loan_payload):
        response = client.post(
            "/api/calculate/prepayment",
            json={"loan": loan_payload, "type": "increased_payment", "amount": 250},
        )
        assert response.status_code == 200
        assert response.json()["interest_saved"] > 0

    @pytest.mark.parametrize("amount", [0, -100])
    def test_non_positive_amount(self, client, loan_payload, amount):
        response = client.post(
            "/api/calculate/prepayment",
            json={"loan": loan_payload, "type": "lump_sum", "amount": amount},
        )
        assert response.status_code == 400
        assert "greater than 0" in response.json()["detail"]

    def test_overpayment(self, client, loan_payload):
        response = client.post(
            "/api/calculate/prepayment",
            json={"loan": loan_payload, "type": "lump_sum", "amount": 1000000, "payment_number": 1},
        )
        assert response.status_code == 400
        assert "exceeds the remaining balance" in response.json()["detail"]

    def test_unknown_prepayment_type(self, client, loan_payload):
        response = client.post(
            "/api/calculate/prepayment",
            json={"loan": loan_payload, "type": "skip_payment", "amount": 100},
        )
        assert response.status_code == 400

    def test_payment_number_out_of_range(self, client, loan_payload):
        response = client.post(
            "/api/calculate/prepayment",
            json={"loan": loan_payload, "amount": 100, "payment_number": 999},
        )
        assert response.status_code == 400

    def test_refinance(self, client):
        loan = {"amortization_months": 240, "start_date": "2025-01-01"}
        response = client.post(
            "/api/calculate/refinance",
            json={
                "remaining_balance": 350000,
                "refinance_cost": 3000,
                "current": {**loan, "interest_rate": 0.052},
                "proposed": {**loan, "interest_rate": 0.044},
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["remaining_balance"] == 350000
        assert data["payment_delta"] > 0
        assert data["break_even_periods"] > 0
        assert data["comparison_horizon_months"] == 240

    def test_refinance_invalid_balance(self, client):
        loan = {"amortization_months": 240, "start_date": "2025-01-01", "interest_rate": 0.05}
        response = client.post(
            "/api/calculate/refinance",
            json={"remaining_balance": -1, "current": loan, "proposed": loan},
        )
        assert response.status_code == 400

    def test_renewal(self, client, loan_payload):
        response = client.post(
            "/api/calculate/renewal", json={"loan": loan_payload, "renewal_rate": 0.065}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["renewal_payment_number"] == 60
        assert data["payment_change"] > 0


class TestQuickEstimatorAPI:
    """Test quick estimator endpoints."""

    def test_quick_payment(self, client):
        response = client.post(
            "/api/calculate/quick/payment",
            json={"price": 500000, "down_payment": 100000, "interest_rate": 0.055, "years": 25},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["principal"] == 400000
        assert abs(data["monthly_payment"] - 2457.30) <= 1.0

    def test_quick_refinance(self, client):
        response = client.post(
            "/api/calculate/quick/refinance",
            json={
                "balance": 350000,
                "remaining_years": 20,
                "current_rate": 0.052,
                "new_rate": 0.044,
                "refinance_cost": 3000,
            },
        )
        data = response.json()
        assert 153 <= data["monthly_savings"] <= 155
        assert data["break_even_months"] == 20

    def test_quick_break_penalty(self, client):
        response = client.post(
            "/api/calculate/quick/break-penalty",
            json={"balance": 300000, "contract_rate": 0.05, "comparison_rate": 0.035, "months_remaining": 24},
        )
        data = response.json()
        assert data["three_months_interest"] == 3750.0
        assert data["interest_rate_differential"] == 9000.0
        assert data["penalty"] == 9000.0


class TestPropertyAPI:
    """Test property endpoints."""

    def test_list_properties(self, client):
        response = client.get("/api/properties/")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["properties"][0]["id"] == "richmond-st-e-403"
        assert data["properties"][0]["metrics"]["net_operating_income"] == 26880.96

    def test_get_property(self, client):
        response = client.get("/api/properties/wilson-ave-415")
        assert response.status_code == 200
        data = response.json()
        assert data["loan"]["rate_type"] == "VARIABLE"
        assert data["loan"]["term_maturity_date"] == "2028-01-15"

    def test_get_nonexistent_property(self, client):
        response = client.get("/api/properties/nonexistent-id")
        assert response.status_code == 404

    def test_portfolio(self, client):
        response = client.get("/api/properties/portfolio")
        assert response.status_code == 200
        data = response.json()
        assert data["total_properties"] == 3
        assert data["total_monthly_rent"] == 8050

    def test_update_property(self, client):
        response = client.put(
            "/api/properties/tretti-way-317",
            json={"monthly_rent": 2500, "current_vacancy_rate": 0.02},
        )
        assert response.status_code == 200
        assert response.json()["monthly_rent"] == 2500

        fetched = client.get("/api/properties/tretti-way-317").json()
        assert fetched["monthly_rent"] == 2500
        assert fetched["current_vacancy_rate"] == 0.02

    def test_update_nonexistent_property(self, client):
        response = client.put("/api/properties/nonexistent-id", json={"monthly_rent": 2500})
        assert response.status_code == 404

    def test_update_negative_expense_rejected(self, client):
        response = client.put(
            "/api/properties/tretti-way-317",
            json={"monthly_expenses": {"condo_fees": -10}},
        )
        assert response.status_code == 422

        fetched = client.get("/api/properties/tretti-way-317").json()
        assert fetched["monthly_expenses"]["condo_fees"] == 473.10

    def test_forecast_defaults(self, client):
        response = client.post("/api/properties/richmond-st-e-403/forecast")
        assert response.status_code == 200
        data = response.json()
        assert len(data["years"]) == 10
        assert data["assumptions"]["annual_rent_growth"] == 0.02
        assert len(data["yoy_growth"]) == 9
        assert data["totals"]["sale_proceeds_gross"] > 0

    def test_forecast_with_assumptions(self, client):
        response = client.post(
            "/api/properties/richmond-st-e-403/forecast",
            json={"annual_rent_growth": 0.04, "years": 5},
        )
        data = response.json()
        assert len(data["years"]) == 5
        assert data["assumptions"]["annual_rent_growth"] == 0.04
        assert data["assumptions"]["vacancy_rate"] == 0.05

    def test_forecast_assumption_out_of_range(self, client):
        response = client.post(
            "/api/properties/richmond-st-e-403/forecast", json={"vacancy_rate": 1.5}
        )
        assert response.status_code == 422

    def test_break_even(self, client):
        response = client.get("/api/properties/richmond-st-e-403/break-even")
        assert response.status_code == 200
        data = response.json()
        assert data["break_even_vacancy_rate"] > 0
        assert data["risk_level"] in ("Low", "Moderate", "High")

    def test_sensitivity(self, client):
        response = client.post(
            "/api/properties/tretti-way-317/sensitivity",
            json={"scenario": {"annual_rent_growth": 0.05}},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["comparison"]["average_annual_cash_flow"]["difference"] > 0
        assert len(data["baseline"]["cash_flows"]) == 11


class TestWhatIfScenarioAPI:
    """Test rent, expense, vacancy and sale what-if endpoints."""

    def test_rent_change(self, client):
        response = client.post(
            "/api/properties/tretti-way-317/scenarios/rent-change",
            json={"change_amount": 150},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["type"] == "rent_change"
        assert data["new_rent"] == 2450
        assert data["monthly_impact"] == 150
        assert data["annual_impact"] == 1800

    def test_rent_change_removing_all_rent(self, client):
        response = client.post(
            "/api/properties/tretti-way-317/scenarios/rent-change",
            json={"change_amount": -2300},
        )
        assert response.status_code == 400
        assert "would leave no rent" in response.json()["detail"]

    def test_expense_change(self, client):
        response = client.post(
            "/api/properties/tretti-way-317/scenarios/expense-change",
            json={"category": "condo_fees", "change_amount": 26.90},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["new_expense"] == 500
        assert data["monthly_impact"] == -26.9
        assert data["projected"]["cap_rate"] < data["current"]["cap_rate"]

    def test_expense_change_unknown_category(self, client):
        response = client.post(
            "/api/properties/tretti-way-317/scenarios/expense-change",
            json={"category": "parking", "change_amount": 50},
        )
        assert response.status_code == 400
        assert "parking" in response.json()["detail"]

    def test_vacancy(self, client):
        response = client.post(
            "/api/properties/tretti-way-317/scenarios/vacancy",
            json={"months_vacant": 2},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["lost_rent"] == 4600
        assert data["annual_rent"] == 23000
        assert data["annual_cash_flow_impact"] == -4600
        assert data["monthly_cash_flow_while_vacant"] < 0

    def test_vacancy_out_of_range(self, client):
        response = client.post(
            "/api/properties/tretti-way-317/scenarios/vacancy",
            json={"months_vacant": 13},
        )
        assert response.status_code == 422

    def test_sale_with_defaults(self, client):
        response = client.post(
            "/api/properties/richmond-st-e-403/scenarios/sale",
            json={"sale_price": 850000, "selling_costs": 40000},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["sale_date"] == "2025-01-01"
        assert data["capital_gain"] == 235000
        assert data["cash_invested"] == 141150
        assert data["years_owned"] == 5.91
        assert data["annualized_return"] is not None
        assert data["comparison_years"] == 5
        assert data["alternative_return"] == 0.05
        assert data["recommendation"] in ("sell", "keep")

    def test_sale_with_assumptions(self, client):
        response = client.post(
            "/api/properties/richmond-st-e-403/scenarios/sale",
            json={
                "sale_price": 850000,
                "sale_date": "2026-06-30",
                "comparison_years": 10,
                "alternative_return": 0,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["sale_date"] == "2026-06-30"
        assert data["selling_costs"] == 0
        assert data["comparison_years"] == 10
        assert data["alternative_return"] == 0
        assert data["sell_value"] == data["net_proceeds"]

    def test_sale_invalid_price(self, client):
        response = client.post(
            "/api/properties/richmond-st-e-403/scenarios/sale",
            json={"sale_price": 0},
        )
        assert response.status_code == 422

    def test_scenario_for_nonexistent_property(self, client):
        response = client.post(
            "/api/properties/nonexistent-id/scenarios/vacancy",
            json={"months_vacant": 1},
        )
        assert response.status_code == 404


class TestHealthCheck:
    """Test health check endpoint."""

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "0.1.0"}
