"""
Tests for the rent, expense, vacancy and sale what-if scenarios.
"""

import pytest
from dataclasses import replace
from datetime import date

from mortgage_planner.calculations.amortization import generate_schedule
from mortgage_planner.calculations.errors import (
    InvalidAmount,
    InvalidAssumption,
    InvalidScenario,
    MissingBaseline,
)
from mortgage_planner.calculations.metrics import monthly_cash_flow, monthly_mortgage_payment
from mortgage_planner.calculations.scenarios import (
    analyze_expense_change,
    analyze_rent_change,
    analyze_sale,
    analyze_vacancy,
)


class TestRentChange:
    """Test the rent change scenario."""

    def test_increase(self, rental_snapshot):
        result = analyze_rent_change(rental_snapshot, 200)
        assert result.changed.monthly_rent == 3200
        assert abs(result.monthly_impact - 200) < 1e-9
        assert abs(result.annual_impact - 2400) < 1e-9

        data = result.to_dict()
        assert data["type"] == "rent_change"
        assert data["new_rent"] == 3200
        assert data["current"]["cap_rate"] == 4.0
        assert data["projected"]["cap_rate"] == 4.4

    def test_decrease(self, rental_snapshot):
        result = analyze_rent_change(rental_snapshot, -500)
        assert abs(result.monthly_impact + 500) < 1e-9
        assert result.to_dict()["projected"]["net_operating_income"] == 18000

    def test_original_unchanged(self, rental_snapshot):
        analyze_rent_change(rental_snapshot, 200)
        assert rental_snapshot.monthly_rent == 3000

    @pytest.mark.parametrize("change", [-3000, -3500])
    def test_cannot_remove_all_rent(self, rental_snapshot, change):
        with pytest.raises(InvalidScenario):
            analyze_rent_change(rental_snapshot, change)

    def test_requires_rent(self, rental_snapshot):
        with pytest.raises(MissingBaseline):
            analyze_rent_change(replace(rental_snapshot, monthly_rent=None), 100)


class TestExpenseChange:
    """Test the expense change scenario."""

    def test_increase_reduces_cash_flow(self, rental_snapshot):
        result = analyze_expense_change(rental_snapshot, "condo_fees", 100)
        assert result.changed.monthly_expenses["condo_fees"] == 750
        assert abs(result.monthly_impact + 100) < 1e-9

        data = result.to_dict()
        assert data["category"] == "condo_fees"
        assert data["current_expense"] == 650
        assert data["new_expense"] == 750
        assert data["projected"]["cap_rate"] == 3.8

    def test_decrease(self, rental_snapshot):
        result = analyze_expense_change(rental_snapshot, "property_tax", -50)
        assert abs(result.annual_impact - 600) < 1e-9

    def test_original_expenses_unchanged(self, rental_snapshot):
        analyze_expense_change(rental_snapshot, "condo_fees", 100)
        assert rental_snapshot.monthly_expenses["condo_fees"] == 650

    def test_unknown_category(self, rental_snapshot):
        with pytest.raises(InvalidScenario, match="parking"):
            analyze_expense_change(rental_snapshot, "parking", 50)

    def test_expense_cannot_go_negative(self, rental_snapshot):
        with pytest.raises(InvalidScenario):
            analyze_expense_change(rental_snapshot, "insurance", -60)


class TestVacancy:
    """Test the unit vacancy scenario."""

    def test_two_months_vacant(self, rental_snapshot):
        result = analyze_vacancy(rental_snapshot, 2)
        payment = monthly_mortgage_payment(rental_snapshot)

        assert result.lost_rent == 6000
        assert abs(result.carrying_cost_while_vacant - (1000 + payment) * 2) < 1e-9
        assert abs(result.annual_cash_flow - (30000 - (1000 + payment) * 12)) < 1e-6
        assert abs(result.annual_cash_flow_impact + 6000) < 1e-6
        assert abs(result.cap_rate - 3.0) < 1e-9

    def test_no_vacancy_matches_current_cash_flow(self, rental_snapshot):
        result = analyze_vacancy(rental_snapshot, 0)
        assert abs(result.annual_cash_flow - monthly_cash_flow(rental_snapshot) * 12) < 1e-6
        assert abs(result.annual_cash_flow_impact) < 1e-6

    def test_cash_flow_while_vacant(self, rental_snapshot):
        data = analyze_vacancy(rental_snapshot, 3).to_dict()
        payment = monthly_mortgage_payment(rental_snapshot)
        assert data["type"] == "vacancy"
        assert data["monthly_cash_flow_while_vacant"] == round(-(1000 + payment), 2)

    @pytest.mark.parametrize("months", [-1, 13])
    def test_months_out_of_range(self, rental_snapshot, months):
        with pytest.raises(InvalidScenario):
            analyze_vacancy(rental_snapshot, months)


class TestSale:
    """Test the sell-vs-keep scenario."""

    def test_sale_at_loan_start(self, rental_snapshot):
        result = analyze_sale(rental_snapshot, 650000, 30000, sale_date=date(2024, 1, 1))

        assert result.mortgage_balance == 400000
        assert result.net_proceeds == 220000
        assert result.capital_gain == 150000
        assert result.cash_invested == 115000
        assert result.total_gain == 105000
        assert abs(result.total_return - 105000 / 115000 * 100) < 1e-9
        assert result.years_owned == 0
        assert result.annualized_return is None

    def test_annualized_return(self, rental_snapshot):
        sale_date = date(2029, 1, 1)
        result = analyze_sale(rental_snapshot, 700000, 35000, sale_date=sale_date)

        balance = generate_schedule(rental_snapshot.loan).balance_before(sale_date)
        assert abs(result.mortgage_balance - balance) < 1e-9
        years = (sale_date - date(2024, 1, 1)).days / 365.25
        expected = ((result.net_proceeds / 115000) ** (1 / years) - 1) * 100
        assert abs(result.annualized_return - expected) < 1e-9

    def test_purchase_date_used_for_years_owned(self, rental_snapshot):
        snapshot = replace(rental_snapshot, purchase_date=date(2020, 1, 1))
        result = analyze_sale(snapshot, 650000, sale_date=date(2024, 1, 1))
        assert abs(result.years_owned - 1461 / 365.25) < 1e-9

    def test_keep_versus_sell(self, rental_snapshot):
        result = analyze_sale(rental_snapshot, 650000, 30000, sale_date=date(2024, 1, 1))

        keep = 200000 + monthly_cash_flow(rental_snapshot) * 12 * 5
        sell = 220000 * 1.05 ** 5
        assert abs(result.keep_value - keep) < 1e-6
        assert abs(result.sell_value - sell) < 1e-6
        assert abs(result.opportunity_cost - (sell - keep)) < 1e-6
        assert result.to_dict()["recommendation"] == "sell"

    def test_keep_recommended_without_alternative_return(self, rental_snapshot):
        result = analyze_sale(
            rental_snapshot, 600000, 60000, sale_date=date(2024, 1, 1), alternative_return=0.0
        )
        assert result.opportunity_cost == result.sell_value - result.keep_value
        assert result.to_dict()["recommendation"] == "keep"

    def test_requires_purchase_price(self, rental_snapshot):
        with pytest.raises(MissingBaseline):
            analyze_sale(replace(rental_snapshot, purchase_price=None), 650000)

    @pytest.mark.parametrize("price, costs", [(0, 0), (-1, 0), (650000, -1)])
    def test_invalid_amounts(self, rental_snapshot, price, costs):
        with pytest.raises(InvalidAmount):
            analyze_sale(rental_snapshot, price, costs)

    def test_invalid_assumptions(self, rental_snapshot):
        with pytest.raises(InvalidAssumption):
            analyze_sale(rental_snapshot, 650000, alternative_return=1.5)
        with pytest.raises(InvalidAssumption):
            analyze_sale(rental_snapshot, 650000, comparison_years=0)
