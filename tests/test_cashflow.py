"""
Tests for per-year spending and income aggregation.
"""
import pytest

from retireplan.core.cashflow import (
    CashFlowAggregator,
    annual_breakdown,
    annual_income,
    annual_spending,
    is_active,
)
from retireplan.core.scenario import (
    ColaType,
    HouseholdScenario,
    IncomeCategory,
    IncomeEvent,
    RetirementSpending,
    SpendingCategory,
    SpendingGoal,
    TaxStatus,
)
from retireplan.core.tax import TaxEngine
from retireplan.core.tax_tables import FilingStatus


def make_scenario(**overrides):
    params = dict(
        current_age=60,
        retirement_age=65,
        life_expectancy=90,
        current_savings=500000,
        annual_savings=10000,
        reference_year=2024,
        inflation_rate=0.0,
        retirement_spending=RetirementSpending(monthly_amount=0, start_age=65),
    )
    params.update(overrides)
    return HouseholdScenario(**params)


def pension(amount=10000, **kw):
    kw.setdefault("cola_type", ColaType.FIXED)
    return IncomeEvent(category=IncomeCategory.PENSION_INCOME, amount=amount, **kw)


@pytest.mark.unit
class TestEligibilityWindows:

    def test_recurring_window(self):
        """start 65 / end 70 at age 60 in 2024 covers 2029-2034 inclusive."""
        scenario = make_scenario(income_events=[pension(start_age=65, end_age=70)])
        for year in range(2029, 2035):
            assert annual_income(scenario, year, tax_aware=False) == 10000
        for year in (2024, 2028, 2035, 2040):
            assert annual_income(scenario, year, tax_aware=False) == 0

    def test_one_time_ignores_end_age(self):
        goal = SpendingGoal(SpendingCategory.VEHICLE, 30000, start_age=65, end_age=70,
                            is_one_time=True, inflation_adjusted=False)
        scenario = make_scenario(spending_goals=[goal])
        spent = {y: annual_spending(scenario, y, tax_aware=False) for y in range(2024, 2040)}
        assert spent[2029] == 30000
        assert sum(spent.values()) == 30000

    def test_open_ended_runs_to_life_expectancy(self):
        scenario = make_scenario()
        assert is_active(scenario, 65, None, False, 2054)
        assert not is_active(scenario, 65, None, False, 2055)
        assert not is_active(scenario, 65, None, False, 2028)


@pytest.mark.unit
class TestSpending:

    def test_retirement_budget_starts_at_start_age(self):
        scenario = make_scenario(retirement_spending=RetirementSpending(monthly_amount=1000, start_age=65))
        assert annual_spending(scenario, 2028, tax_aware=False) == 0
        assert annual_spending(scenario, 2029, tax_aware=False) == 12000

    def test_retirement_budget_inflates_and_decreases(self):
        scenario = make_scenario(
            inflation_rate=0.03,
            retirement_spending=RetirementSpending(monthly_amount=1000, start_age=65,
                                                   yearly_decrease_percent=10),
        )
        # inflated from 2024, then two years of 10% decrease since 2029
        expected = 12000 * 1.03 ** 7 * 0.9 ** 2
        assert annual_spending(scenario, 2031, tax_aware=False) == pytest.approx(expected)

    def test_goal_inflation_modes(self):
        goals = [
            SpendingGoal(SpendingCategory.HEALTHCARE, 10000, start_age=60, inflation_adjusted=True),
            SpendingGoal(SpendingCategory.CHARITY, 5000, start_age=60, inflation_adjusted=False),
        ]
        scenario = make_scenario(inflation_rate=0.03, spending_goals=goals)
        assert annual_spending(scenario, 2026, tax_aware=False) == pytest.approx(10000 * 1.03 ** 2 + 5000)

    def test_tax_aware_grosses_up_each_item(self):
        engine = TaxEngine()
        goal = SpendingGoal(SpendingCategory.EDUCATION, 40000, start_age=60, end_age=60)
        scenario = make_scenario(spending_goals=[goal])
        spent = annual_spending(scenario, 2024, tax_engine=engine)
        assert spent > 40000
        assert spent == engine.calculate_gross_income_needed(40000, 0.0, FilingStatus.SINGLE, 60, 2024)

    def test_state_rate_feeds_gross_up(self):
        goal = SpendingGoal(SpendingCategory.VACATION, 20000, start_age=60)
        no_tax_state = make_scenario(state="TX", spending_goals=[goal])
        taxed_state = make_scenario(state="CA", spending_goals=[goal])
        assert annual_spending(taxed_state, 2024) > annual_spending(no_tax_state, 2024)


@pytest.mark.unit
class TestIncome:

    def test_cola_inflation_adjusted(self):
        scenario = make_scenario(
            inflation_rate=0.02,
            income_events=[pension(start_age=60, cola_type=ColaType.INFLATION_ADJUSTED)],
        )
        assert annual_income(scenario, 2027, tax_aware=False) == pytest.approx(10000 * 1.02 ** 3)

    def test_social_security_shortfall(self):
        ss = IncomeEvent(IncomeCategory.SOCIAL_SECURITY, 20000, start_age=60, cola_type=ColaType.FIXED)
        scenario = make_scenario(income_events=[ss])
        assert annual_income(scenario, 2033, tax_aware=False) == pytest.approx(20000)
        assert annual_income(scenario, 2034, tax_aware=False) == pytest.approx(15400)

    def test_before_tax_is_netted(self):
        # 50,000 gross, single, age 60 in 2024 -> 45,984 net
        scenario = make_scenario(income_events=[pension(50000, start_age=60)])
        assert annual_income(scenario, 2024) == pytest.approx(45984.0)

    def test_after_tax_passes_through(self):
        scenario = make_scenario(
            income_events=[pension(50000, start_age=60, tax_status=TaxStatus.AFTER_TAX)]
        )
        assert annual_income(scenario, 2024) == 50000

    def test_social_security_always_before_tax(self):
        ss = IncomeEvent(IncomeCategory.SOCIAL_SECURITY, 30000, start_age=67,
                         tax_status=TaxStatus.AFTER_TAX)
        assert ss.tax_status == TaxStatus.BEFORE_TAX

    def test_events_sum(self):
        scenario = make_scenario(income_events=[
            pension(10000, start_age=60),
            IncomeEvent(IncomeCategory.RENTAL_INCOME, 12000, start_age=62, cola_type=ColaType.FIXED),
            IncomeEvent(IncomeCategory.INHERITANCE, 100000, start_age=63, is_one_time=True,
                        cola_type=ColaType.FIXED),
        ])
        assert annual_income(scenario, 2025, tax_aware=False) == 10000
        assert annual_income(scenario, 2026, tax_aware=False) == 22000
        assert annual_income(scenario, 2027, tax_aware=False) == 122000
        assert annual_income(scenario, 2028, tax_aware=False) == 22000


@pytest.mark.unit
class TestSchedule:

    def test_contributions_stop_at_retirement(self):
        agg = CashFlowAggregator(tax_aware=False)
        scenario = make_scenario()
        assert agg.contributions(scenario, 2028) == 10000
        assert agg.contributions(scenario, 2029) == 0

    def test_net_flow_schedule(self):
        scenario = make_scenario(
            retirement_spending=RetirementSpending(monthly_amount=2000, start_age=65),
            income_events=[pension(6000, start_age=65)],
        )
        flows = CashFlowAggregator(tax_aware=False).net_flow_schedule(scenario)
        assert len(flows) == scenario.total_years == 31
        assert flows[0] == 10000
        assert flows[5] == 6000 - 24000

    def test_breakdown_frame(self):
        scenario = make_scenario(
            retirement_spending=RetirementSpending(monthly_amount=3000, start_age=65),
            income_events=[pension(20000, start_age=65)],
        )
        df = annual_breakdown(scenario)
        assert list(df.columns) == ["year", "age", "spending", "income", "contributions", "net_cash_flow"]
        assert len(df) == 31
        assert df["year"].iloc[0] == 2024 and df["age"].iloc[-1] == 90
        row = df[df["year"] == 2030].iloc[0]
        assert row["net_cash_flow"] == pytest.approx(row["income"] + row["contributions"] - row["spending"])
        assert row["spending"] > 36000
