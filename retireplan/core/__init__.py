"""
Projection core - tax engine, growth sampling, cash flow and Monte Carlo.

- TaxEngine: federal brackets + flat state rate, gross <-> net with memoization
- returns: Box-Muller / Marsaglia-Tsang / Student-t samplers and growth regimes
- CashFlowAggregator: per-year spending and after-tax income for a household
- MonteCarloDriver: runs the ensemble and extracts median / downside bands
"""

from .errors import (
    ConfigurationError,
    ConvergenceWarning,
    InvalidInputError,
    SimulationCancelled,
)
from .tax_tables import FilingStatus, state_tax_rate
from .tax import TaxCache, TaxEngine
from .returns import (
    CustomNormal,
    FatTail,
    LegacyNormal,
    LogNormal,
    RiskLevel,
    SimulationType,
    select_growth_model,
)
from .scenario import (
    ColaType,
    HouseholdScenario,
    IncomeCategory,
    IncomeEvent,
    PortfolioAssumptions,
    RetirementSpending,
    SpendingCategory,
    SpendingGoal,
    TaxStatus,
    new_scenario,
)
from .cashflow import CashFlowAggregator, annual_breakdown, annual_income, annual_spending
from .config import SimulationConfig
from .monte_carlo import MonteCarloDriver, SimulationResult, run_simulation

__all__ = [
    # Errors
    "ConfigurationError",
    "ConvergenceWarning",
    "InvalidInputError",
    "SimulationCancelled",
    # Tax
    "FilingStatus",
    "state_tax_rate",
    "TaxCache",
    "TaxEngine",
    # Returns
    "CustomNormal",
    "FatTail",
    "LegacyNormal",
    "LogNormal",
    "RiskLevel",
    "SimulationType",
    "select_growth_model",
    # Scenario
    "ColaType",
    "HouseholdScenario",
    "IncomeCategory",
    "IncomeEvent",
    "PortfolioAssumptions",
    "RetirementSpending",
    "SpendingCategory",
    "SpendingGoal",
    "TaxStatus",
    "new_scenario",
    # Cash flow
    "CashFlowAggregator",
    "annual_breakdown",
    "annual_income",
    "annual_spending",
    # Simulation
    "SimulationConfig",
    "MonteCarloDriver",
    "SimulationResult",
    "run_simulation",
]
