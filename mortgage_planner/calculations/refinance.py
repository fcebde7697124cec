"""
Refinance and Renewal Comparison

Compares continuing an existing loan with replacing it by a new loan on the
same outstanding balance, and renewing a loan at a new rate when its term
matures.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Optional

from dateutil.relativedelta import relativedelta

from mortgage_planner.calculations.amortization import (
    Schedule,
    generate_schedule,
    renew_schedule,
    renewal_payment_number,
)
from mortgage_planner.calculations.errors import InvalidAmount, InvalidTerm
from mortgage_planner.calculations.terms import LoanTerms

logger = logging.getLogger(__name__)


def interest_over_months(schedule: Schedule, months: int) -> float:
    """Interest paid on payments dated within `months` of the loan start."""
    start = schedule.terms.start_date
    end = start + relativedelta(months=months)
    return sum(line.interest_portion for line in schedule.lines_between(start, end))


@dataclass(frozen=True)
class RefinanceScenario:
    """Current loan against a proposed loan on the same balance."""

    current_terms: LoanTerms
    proposed_terms: LoanTerms
    current_schedule: Schedule
    proposed_schedule: Schedule
    refinance_cost: float
    comparison_horizon_months: int

    @property
    def current_monthly_payment(self) -> float:
        return self.current_schedule.monthly_equivalent_payment

    @property
    def proposed_monthly_payment(self) -> float:
        return self.proposed_schedule.monthly_equivalent_payment

    @property
    def payment_delta(self) -> float:
        """Monthly savings; negative when the new loan costs more per month."""
        return self.current_monthly_payment - self.proposed_monthly_payment

    @property
    def current_interest_over_horizon(self) -> float:
        return interest_over_months(self.current_schedule, self.comparison_horizon_months)

    @property
    def proposed_interest_over_horizon(self) -> float:
        return interest_over_months(self.proposed_schedule, self.comparison_horizon_months)

    @property
    def lifetime_interest_delta(self) -> float:
        return self.current_interest_over_horizon - self.proposed_interest_over_horizon

    @property
    def break_even_periods(self) -> Optional[int]:
        """Months until savings repay the refinance cost, None if never."""
        if self.payment_delta <= 0:
            return None
        return int(math.ceil(self.refinance_cost / self.payment_delta))

    @property
    def net_savings(self) -> float:
        return self.lifetime_interest_delta - self.refinance_cost

    @property
    def recommended(self) -> bool:
        return self.payment_delta > 0 and self.net_savings > 0

    def to_dict(self) -> Dict:
        return {
            "remaining_balance": round(self.current_terms.principal, 2),
            "current_payment": round(self.current_schedule.payment, 2),
            "proposed_payment": round(self.proposed_schedule.payment, 2),
            "current_monthly_payment": round(self.current_monthly_payment, 2),
            "proposed_monthly_payment": round(self.proposed_monthly_payment, 2),
            "payment_delta": round(self.payment_delta, 2),
            "comparison_horizon_months": self.comparison_horizon_months,
            "current_interest": round(self.current_interest_over_horizon, 2),
            "proposed_interest": round(self.proposed_interest_over_horizon, 2),
            "lifetime_interest_delta": round(self.lifetime_interest_delta, 2),
            "refinance_cost": round(self.refinance_cost, 2),
            "break_even_periods": self.break_even_periods,
            "net_savings": round(self.net_savings, 2),
            "recommended": self.recommended,
        }


def analyze_refinance(
    current_terms: LoanTerms,
    proposed_terms: LoanTerms,
    remaining_balance: float,
    refinance_cost: float = 0.0,
) -> RefinanceScenario:
    """
    Compare keeping the current loan with refinancing the remaining balance.

    Both loans are pinned to remaining_balance. Payments are compared as
    monthly equivalents; interest over the shorter amortization period.

    Args:
        current_terms: Existing loan (rate, amortization and frequency used)
        proposed_terms: New loan terms
        remaining_balance: Balance being refinanced
        refinance_cost: One-time cost (penalty, fees) of refinancing

    Returns:
        RefinanceScenario

    Raises:
        InvalidAmount: Balance is not positive or cost is negative
    """
    if remaining_balance is None or not math.isfinite(remaining_balance) or remaining_balance <= 0:
        raise InvalidAmount("Remaining balance must be greater than 0")
    if refinance_cost is None or not math.isfinite(refinance_cost) or refinance_cost < 0:
        raise InvalidAmount("Refinance cost must be 0 or greater")

    current = replace(current_terms, principal=remaining_balance)
    proposed = replace(proposed_terms, principal=remaining_balance)

    scenario = RefinanceScenario(
        current_terms=current,
        proposed_terms=proposed,
        current_schedule=generate_schedule(current),
        proposed_schedule=generate_schedule(proposed),
        refinance_cost=float(refinance_cost),
        comparison_horizon_months=min(current.amortization_months, proposed.amortization_months),
    )
    logger.debug(
        "Refinance %.4f -> %.4f on %.2f: delta %.2f/month, break-even %s",
        current.nominal_annual_rate,
        proposed.nominal_annual_rate,
        remaining_balance,
        scenario.payment_delta,
        scenario.break_even_periods,
    )
    return scenario


@dataclass(frozen=True)
class RenewalScenario:
    """A loan carried to maturity at its rate against renewal at a new rate."""

    schedule: Schedule
    renewed: Schedule
    renewal_payment_number: int

    @property
    def balance_at_renewal(self) -> float:
        return self.schedule.balance_after(self.renewal_payment_number)

    @property
    def current_payment(self) -> float:
        return self.schedule.segment_for(self.renewal_payment_number).payment

    @property
    def renewed_payment(self) -> float:
        return self.renewed.segment_for(self.renewal_payment_number + 1).payment

    @property
    def payment_change(self) -> float:
        return self.renewed_payment - self.current_payment

    @property
    def additional_interest(self) -> float:
        """Extra lifetime interest caused by the new rate (negative = savings)."""
        return self.renewed.total_interest - self.schedule.total_interest

    def to_dict(self) -> Dict:
        renewal_line = self.schedule.line(self.renewal_payment_number)
        return {
            "renewal_payment_number": self.renewal_payment_number,
            "renewal_date": renewal_line.payment_date.isoformat(),
            "balance_at_renewal": round(self.balance_at_renewal, 2),
            "current_rate": self.schedule.segment_for(self.renewal_payment_number).nominal_annual_rate,
            "renewal_rate": self.renewed.segment_for(self.renewal_payment_number + 1).nominal_annual_rate,
            "current_payment": round(self.current_payment, 2),
            "renewed_payment": round(self.renewed_payment, 2),
            "payment_change": round(self.payment_change, 2),
            "additional_interest": round(self.additional_interest, 2),
            "final_payment_date": self.renewed.final_payment_date.isoformat(),
        }


def analyze_renewal(
    terms: LoanTerms, new_rate: float, at_payment_number: Optional[int] = None
) -> RenewalScenario:
    """
    Project a loan renewed at new_rate when its term matures.

    Args:
        terms: Loan terms (term_months marks the renewal date)
        new_rate: Nominal annual rate offered at renewal
        at_payment_number: Override for the last payment at the current rate

    Returns:
        RenewalScenario

    Raises:
        InvalidTerm: The loan has no renewal inside its amortization period
    """
    schedule = generate_schedule(terms)
    number = at_payment_number
    if number is None:
        number = renewal_payment_number(schedule)
        if number is None:
            raise InvalidTerm("Loan has no renewal before it is paid off; shorten termLength")
    renewed = renew_schedule(schedule, new_rate, at_payment_number=number)
    return RenewalScenario(schedule=schedule, renewed=renewed, renewal_payment_number=number)
