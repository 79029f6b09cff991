# retireplan/core/cashflow.py
"""
Per-year household cash flow.

For one calendar year, totals
- spending: the recurring retirement budget plus every spending goal active
  that year, inflated from the reference year
- income: every income event active that year, after tax

Ages map to calendar years as reference_year + (age - current_age). A one-time
item applies only in its start year (its end_age is ignored); an ongoing item
without end_age runs through the life-expectancy year.

In tax-aware mode spending is grossed up (each amount is a net need funded by
taxable withdrawals) and before-tax income is netted down. In legacy mode all
amounts are taken at face value.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .scenario import ColaType, HouseholdScenario, IncomeCategory, TaxStatus
from .tax import TaxEngine

SS_SHORTFALL_YEAR = 2034
SS_SHORTFALL_FACTOR = 0.77  # 23% across-the-board benefit cut


def is_active(
    scenario: HouseholdScenario,
    start_age: int,
    end_age: Optional[int],
    is_one_time: bool,
    year: int,
) -> bool:
    start_year = scenario.year_for_age(start_age)
    if is_one_time:
        return year == start_year
    end_year = scenario.year_for_age(end_age) if end_age is not None else scenario.final_year
    return start_year <= year <= end_year


def inflation_factor(scenario: HouseholdScenario, year: int) -> float:
    return (1.0 + scenario.inflation_rate) ** (year - scenario.reference_year)


class CashFlowAggregator:
    """Totals a household's spending and income for a given calendar year."""

    def __init__(self, tax_engine: Optional[TaxEngine] = None, tax_aware: bool = True):
        self.tax_engine = tax_engine if tax_engine is not None else TaxEngine()
        self.tax_aware = tax_aware

    # ---------- Tax helpers ----------

    def _gross_up(self, scenario: HouseholdScenario, amount: float, year: int) -> float:
        if not self.tax_aware or amount <= 0:
            return amount
        return self.tax_engine.calculate_gross_income_needed(
            amount,
            scenario.state_tax_rate,
            scenario.filing_status,
            scenario.age_in_year(year),
            year,
            scenario.spouse_age_in_year(year),
        )

    def _net_down(self, scenario: HouseholdScenario, amount: float, year: int) -> float:
        if not self.tax_aware or amount <= 0:
            return amount
        return self.tax_engine.calculate_net_from_gross(
            amount,
            scenario.state_tax_rate,
            scenario.filing_status,
            scenario.age_in_year(year),
            year,
            scenario.spouse_age_in_year(year),
        )

    # ---------- Totals ----------

    def annual_spending(self, scenario: HouseholdScenario, year: int) -> float:
        total = 0.0
        infl = inflation_factor(scenario, year)

        rule = scenario.retirement_spending
        start_year = scenario.year_for_age(rule.start_age)
        if year >= start_year and rule.monthly_amount > 0:
            amount = rule.monthly_amount * 12.0 * infl
            if rule.yearly_decrease_percent:
                amount *= (1.0 - rule.yearly_decrease_percent / 100.0) ** (year - start_year)
            total += self._gross_up(scenario, amount, year)

        for goal in scenario.spending_goals:
            if not is_active(scenario, goal.start_age, goal.end_age, goal.is_one_time, year):
                continue
            amount = goal.amount * infl if goal.inflation_adjusted else goal.amount
            total += self._gross_up(scenario, amount, year)

        return total

    def annual_income(self, scenario: HouseholdScenario, year: int) -> float:
        total = 0.0
        infl = inflation_factor(scenario, year)

        for event in scenario.income_events:
            if not is_active(scenario, event.start_age, event.end_age, event.is_one_time, year):
                continue
            amount = event.amount * infl if event.cola_type == ColaType.INFLATION_ADJUSTED else event.amount
            if event.category == IncomeCategory.SOCIAL_SECURITY and year >= SS_SHORTFALL_YEAR:
                amount *= SS_SHORTFALL_FACTOR
            if event.tax_status == TaxStatus.BEFORE_TAX:
                amount = self._net_down(scenario, amount, year)
            total += amount

        return total

    def contributions(self, scenario: HouseholdScenario, year: int) -> float:
        return scenario.annual_savings if year < scenario.retirement_year else 0.0

    def year_flows(self, scenario: HouseholdScenario, year: int) -> Tuple[float, float, float]:
        """(spending, income, contributions) for one year."""
        return (
            self.annual_spending(scenario, year),
            self.annual_income(scenario, year),
            self.contributions(scenario, year),
        )

    def net_flow_schedule(self, scenario: HouseholdScenario) -> np.ndarray:
        """income + contributions - spending for every simulated year."""
        flows = [self.year_flows(scenario, year) for year in scenario.years]
        return np.array([inc + contrib - spend for spend, inc, contrib in flows], dtype=float)

    def breakdown(self, scenario: HouseholdScenario) -> pd.DataFrame:
        rows: List[dict] = []
        for year in scenario.years:
            spending, income, contrib = self.year_flows(scenario, year)
            rows.append({
                "year": year,
                "age": scenario.age_in_year(year),
                "spending": spending,
                "income": income,
                "contributions": contrib,
                "net_cash_flow": income + contrib - spending,
            })
        return pd.DataFrame(rows)


def annual_spending(
    scenario: HouseholdScenario,
    year: int,
    tax_engine: Optional[TaxEngine] = None,
    tax_aware: bool = True,
) -> float:
    return CashFlowAggregator(tax_engine, tax_aware).annual_spending(scenario, year)


def annual_income(
    scenario: HouseholdScenario,
    year: int,
    tax_engine: Optional[TaxEngine] = None,
    tax_aware: bool = True,
) -> float:
    return CashFlowAggregator(tax_engine, tax_aware).annual_income(scenario, year)


def annual_breakdown(
    scenario: HouseholdScenario,
    tax_engine: Optional[TaxEngine] = None,
    tax_aware: bool = True,
) -> pd.DataFrame:
    """Year-by-year spending, income and net cash flow as a DataFrame."""
    return CashFlowAggregator(tax_engine, tax_aware).breakdown(scenario)
