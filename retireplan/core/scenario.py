# retireplan/core/scenario.py
"""
Household scenario model.

A HouseholdScenario is the read-only input to a simulation run: ages, savings,
the recurring retirement-spending rule, spending goals, income events and
portfolio assumptions. Amounts are annual and expressed in reference-year
dollars unless noted.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .errors import InvalidInputError
from .returns import RiskLevel, SimulationType
from .tax_tables import FilingStatus, state_tax_rate


class SpendingCategory(Enum):
    MONTHLY_RETIREMENT = "monthly_retirement"
    CHARITY = "charity"
    DEPENDENT_SUPPORT = "dependent_support"
    HEALTHCARE = "healthcare"
    HOME_PURCHASE = "home_purchase"
    EDUCATION = "education"
    RENOVATION = "renovation"
    VACATION = "vacation"
    VEHICLE = "vehicle"
    WEDDING = "wedding"
    OTHER = "other"


class IncomeCategory(Enum):
    SOCIAL_SECURITY = "social_security"
    ANNUITY_INCOME = "annuity_income"
    INHERITANCE = "inheritance"
    PENSION_INCOME = "pension_income"
    RENTAL_INCOME = "rental_income"
    SALE_OF_PROPERTY = "sale_of_property"
    WORK_DURING_RETIREMENT = "work_during_retirement"
    OTHER_INCOME = "other_income"


class TaxStatus(Enum):
    BEFORE_TAX = "before_tax"
    AFTER_TAX = "after_tax"


class ColaType(Enum):
    FIXED = "fixed"
    INFLATION_ADJUSTED = "inflation_adjusted"


def _new_id() -> str:
    return str(uuid.uuid4())


def _check_item(amount: float, start_age: int, end_age: Optional[int], name: Optional[str], needs_name: bool):
    if amount < 0:
        raise InvalidInputError(f"amount must be non-negative, got {amount}")
    if end_age is not None and end_age < start_age:
        raise InvalidInputError(f"end_age {end_age} is before start_age {start_age}")
    if needs_name and not (name and name.strip()):
        raise InvalidInputError("a name is required for 'other' items")


@dataclass
class RetirementSpending:
    """Recurring retirement budget, entered monthly in reference-year dollars."""

    monthly_amount: float = 5000.0
    start_age: int = 65
    yearly_decrease_percent: Optional[float] = None  # applied after inflation

    def __post_init__(self):
        if self.monthly_amount < 0:
            raise InvalidInputError("monthly_amount must be non-negative")
        if self.yearly_decrease_percent is not None and not 0 <= self.yearly_decrease_percent <= 100:
            raise InvalidInputError("yearly_decrease_percent must be between 0 and 100")

    def to_dict(self) -> dict:
        return {
            "monthly_amount": self.monthly_amount,
            "start_age": self.start_age,
            "yearly_decrease_percent": self.yearly_decrease_percent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RetirementSpending":
        return cls(
            monthly_amount=data.get("monthly_amount", 5000.0),
            start_age=data.get("start_age", 65),
            yearly_decrease_percent=data.get("yearly_decrease_percent"),
        )


@dataclass
class SpendingGoal:
    category: SpendingCategory
    amount: float
    start_age: int
    end_age: Optional[int] = None       # None -> through life expectancy
    is_one_time: bool = False           # one-time wins over end_age
    inflation_adjusted: bool = True
    name: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.category = SpendingCategory(self.category)
        # end_age is irrelevant to one-time goals, so it is not range-checked
        _check_item(
            self.amount, self.start_age, None if self.is_one_time else self.end_age,
            self.name, self.category == SpendingCategory.OTHER,
        )

    @property
    def label(self) -> str:
        return self.name or self.category.value.replace("_", " ").title()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category.value,
            "name": self.name,
            "amount": self.amount,
            "start_age": self.start_age,
            "end_age": self.end_age,
            "is_one_time": self.is_one_time,
            "inflation_adjusted": self.inflation_adjusted,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SpendingGoal":
        return cls(
            id=data.get("id") or _new_id(),
            category=SpendingCategory(data["category"]),
            name=data.get("name"),
            amount=data["amount"],
            start_age=data["start_age"],
            end_age=data.get("end_age"),
            is_one_time=data.get("is_one_time", False),
            inflation_adjusted=data.get("inflation_adjusted", True),
        )


@dataclass
class IncomeEvent:
    category: IncomeCategory
    amount: float
    start_age: int
    end_age: Optional[int] = None
    is_one_time: bool = False
    tax_status: TaxStatus = TaxStatus.BEFORE_TAX
    cola_type: ColaType = ColaType.INFLATION_ADJUSTED
    name: Optional[str] = None
    sync_with_estimate: bool = False    # Social Security estimate sync (editor only)
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.category = IncomeCategory(self.category)
        self.tax_status = TaxStatus(self.tax_status)
        self.cola_type = ColaType(self.cola_type)
        _check_item(
            self.amount, self.start_age, None if self.is_one_time else self.end_age,
            self.name, self.category == IncomeCategory.OTHER_INCOME,
        )
        # Social Security benefits are always taxable income
        if self.category == IncomeCategory.SOCIAL_SECURITY:
            self.tax_status = TaxStatus.BEFORE_TAX

    @property
    def label(self) -> str:
        return self.name or self.category.value.replace("_", " ").title()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category.value,
            "name": self.name,
            "amount": self.amount,
            "start_age": self.start_age,
            "end_age": self.end_age,
            "is_one_time": self.is_one_time,
            "tax_status": self.tax_status.value,
            "cola_type": self.cola_type.value,
            "sync_with_estimate": self.sync_with_estimate,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IncomeEvent":
        return cls(
            id=data.get("id") or _new_id(),
            category=IncomeCategory(data["category"]),
            name=data.get("name"),
            amount=data["amount"],
            start_age=data["start_age"],
            end_age=data.get("end_age"),
            is_one_time=data.get("is_one_time", False),
            tax_status=TaxStatus(data.get("tax_status", "before_tax")),
            cola_type=ColaType(data.get("cola_type", "inflation_adjusted")),
            sync_with_estimate=data.get("sync_with_estimate", False),
        )


@dataclass
class PortfolioAssumptions:
    risk_level: RiskLevel = RiskLevel.MODERATE
    expected_return: Optional[float] = None      # custom only
    standard_deviation: Optional[float] = None   # custom only
    simulation_type: Optional[SimulationType] = None
    degrees_of_freedom: Optional[float] = None   # fat-tail override
    custom_allocation: Optional[Dict[str, float]] = None  # stocks/bonds/cash %

    def __post_init__(self):
        self.risk_level = RiskLevel(self.risk_level)
        if self.simulation_type is not None:
            self.simulation_type = SimulationType(self.simulation_type)

    def to_dict(self) -> dict:
        return {
            "risk_level": self.risk_level.value,
            "expected_return": self.expected_return,
            "standard_deviation": self.standard_deviation,
            "simulation_type": self.simulation_type.value if self.simulation_type else None,
            "degrees_of_freedom": self.degrees_of_freedom,
            "custom_allocation": dict(self.custom_allocation) if self.custom_allocation else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PortfolioAssumptions":
        return cls(
            risk_level=RiskLevel(data.get("risk_level", "moderate")),
            expected_return=data.get("expected_return"),
            standard_deviation=data.get("standard_deviation"),
            simulation_type=data.get("simulation_type"),
            degrees_of_freedom=data.get("degrees_of_freedom"),
            custom_allocation=data.get("custom_allocation"),
        )


@dataclass
class HouseholdScenario:
    current_age: int
    retirement_age: int
    life_expectancy: int
    current_savings: float
    annual_savings: float = 0.0                 # contributed until retirement
    reference_year: int = field(default_factory=lambda: datetime.date.today().year)
    inflation_rate: float = 0.035
    filing_status: FilingStatus = FilingStatus.SINGLE
    spouse_age: Optional[int] = None
    state: Optional[str] = None
    retirement_spending: RetirementSpending = field(default_factory=RetirementSpending)
    spending_goals: List[SpendingGoal] = field(default_factory=list)
    income_events: List[IncomeEvent] = field(default_factory=list)
    portfolio: PortfolioAssumptions = field(default_factory=PortfolioAssumptions)

    def __post_init__(self):
        self.filing_status = FilingStatus(self.filing_status)
        if self.retirement_age < self.current_age:
            raise InvalidInputError("retirement_age must be >= current_age")
        if self.life_expectancy < self.current_age:
            raise InvalidInputError("life_expectancy must be >= current_age")
        if self.current_savings < 0:
            raise InvalidInputError("current_savings must be non-negative")

    # ---------- Timeline ----------

    def year_for_age(self, age: int) -> int:
        return self.reference_year + (age - self.current_age)

    def age_in_year(self, year: int) -> int:
        return self.current_age + (year - self.reference_year)

    def spouse_age_in_year(self, year: int) -> Optional[int]:
        if self.spouse_age is None:
            return None
        return self.spouse_age + (year - self.reference_year)

    @property
    def retirement_year(self) -> int:
        return self.year_for_age(self.retirement_age)

    @property
    def final_year(self) -> int:
        return self.year_for_age(self.life_expectancy)

    @property
    def total_years(self) -> int:
        return self.life_expectancy - self.current_age + 1

    @property
    def years(self) -> List[int]:
        return [self.reference_year + i for i in range(self.total_years)]

    @property
    def state_tax_rate(self) -> float:
        return state_tax_rate(self.state)

    # ---------- Serialization ----------

    def to_dict(self) -> dict:
        return {
            "current_age": self.current_age,
            "retirement_age": self.retirement_age,
            "life_expectancy": self.life_expectancy,
            "current_savings": self.current_savings,
            "annual_savings": self.annual_savings,
            "reference_year": self.reference_year,
            "inflation_rate": self.inflation_rate,
            "filing_status": self.filing_status.value,
            "spouse_age": self.spouse_age,
            "state": self.state,
            "retirement_spending": self.retirement_spending.to_dict(),
            "spending_goals": [g.to_dict() for g in self.spending_goals],
            "income_events": [e.to_dict() for e in self.income_events],
            "portfolio": self.portfolio.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HouseholdScenario":
        kwargs: Dict[str, Any] = dict(
            current_age=data["current_age"],
            retirement_age=data["retirement_age"],
            life_expectancy=data["life_expectancy"],
            current_savings=data["current_savings"],
            annual_savings=data.get("annual_savings", 0.0),
            inflation_rate=data.get("inflation_rate", 0.035),
            filing_status=FilingStatus(data.get("filing_status", "single")),
            spouse_age=data.get("spouse_age"),
            state=data.get("state"),
            retirement_spending=RetirementSpending.from_dict(data.get("retirement_spending") or {}),
            spending_goals=[SpendingGoal.from_dict(g) for g in data.get("spending_goals", [])],
            income_events=[IncomeEvent.from_dict(e) for e in data.get("income_events", [])],
            portfolio=PortfolioAssumptions.from_dict(data.get("portfolio") or {}),
        )
        if data.get("reference_year") is not None:
            kwargs["reference_year"] = data["reference_year"]
        return cls(**kwargs)


def new_scenario() -> HouseholdScenario:
    """A fresh scenario with the editor's starting values."""
    return HouseholdScenario(
        current_age=40,
        retirement_age=65,
        life_expectancy=92,
        current_savings=100000.0,
        annual_savings=20000.0,
        retirement_spending=RetirementSpending(monthly_amount=5000.0, start_age=65),
        income_events=[
            IncomeEvent(
                category=IncomeCategory.SOCIAL_SECURITY,
                amount=30000.0,
                start_age=65,
                sync_with_estimate=True,
            )
        ],
        portfolio=PortfolioAssumptions(risk_level=RiskLevel.MODERATE),
    )
