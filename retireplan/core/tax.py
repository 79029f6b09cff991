# retireplan/core/tax.py
"""
Progressive federal income tax and gross/net conversion.

TaxEngine answers two questions for a filing status, tax year and ages:
- how much is left after federal and flat state tax on a gross amount
  (calculate_net_from_gross)
- how much gross income is needed to net a target amount
  (calculate_gross_income_needed, solved by bisection)

Both directions are memoized in a TaxCache owned by the engine. The cache
never evicts; call TaxEngine.clear_cache() when tax-relevant scenario inputs
change.
"""

from __future__ import annotations

import logging
import threading
import warnings
from typing import Dict, Hashable, Optional, Tuple, Union

from .errors import ConvergenceWarning, InvalidInputError
from .tax_tables import (
    SENIOR_ADDITION_PER_PERSON,
    SENIOR_AGE,
    STANDARD_DEDUCTIONS,
    TEMP_SENIOR_AMOUNT,
    TEMP_SENIOR_FIRST_YEAR,
    TEMP_SENIOR_LAST_YEAR,
    TEMP_SENIOR_PHASEOUT_RATE,
    TEMP_SENIOR_THRESHOLD_JOINT,
    TEMP_SENIOR_THRESHOLD_SINGLE,
    FilingStatus,
    brackets_for,
    nearest_year,
)

logger = logging.getLogger(__name__)

StatusLike = Union[FilingStatus, str]

_MISSING = object()


def coerce_status(status: StatusLike) -> FilingStatus:
    if isinstance(status, FilingStatus):
        return status
    try:
        return FilingStatus(status)
    except ValueError:
        raise InvalidInputError(f"Unknown filing status: {status!r}") from None


class TaxCache:
    """Exact-match memo of tax results, safe to share between threads."""

    def __init__(self):
        self._data: Dict[Hashable, float] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable, default=None):
        with self._lock:
            value = self._data.get(key, _MISSING)
            if value is _MISSING:
                self.misses += 1
                return default
            self.hits += 1
            return value

    def put(self, key: Hashable, value: float) -> None:
        with self._lock:
            self._data[key] = value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data


class TaxEngine:
    """Federal bracket tax plus a flat state rate, with gross-up solving."""

    def __init__(
        self,
        cache: Optional[TaxCache] = None,
        tolerance: float = 0.01,
        max_iterations: int = 1000,
    ):
        if tolerance <= 0:
            raise ValueError("tolerance must be positive")
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.cache = cache if cache is not None else TaxCache()
        self.tolerance = tolerance
        self.max_iterations = max_iterations

    def clear_cache(self) -> None:
        self.cache.clear()

    # ---------- Building blocks ----------

    def federal_tax(self, taxable_income: float, filing_status: StatusLike, tax_year: int) -> float:
        """Walk the brackets, taxing each slice of income at its marginal rate."""
        if taxable_income < 0:
            raise InvalidInputError("taxable income must be non-negative")
        status = coerce_status(filing_status)
        tax = 0.0
        prev_upper = 0.0
        for rate, upper in brackets_for(status, tax_year):
            amount_in_bracket = min(taxable_income, upper) - prev_upper
            if amount_in_bracket > 0:
                tax += amount_in_bracket * rate
            if taxable_income <= upper:
                break
            prev_upper = upper
        return tax

    def standard_deduction(self, filing_status: StatusLike, tax_year: int) -> float:
        status = coerce_status(filing_status)
        return float(STANDARD_DEDUCTIONS[nearest_year(STANDARD_DEDUCTIONS, tax_year)][status])

    @staticmethod
    def qualifying_seniors(status: FilingStatus, age: int, spouse_age: Optional[int]) -> int:
        count = 1 if age >= SENIOR_AGE else 0
        if status == FilingStatus.MFJ and spouse_age is not None and spouse_age >= SENIOR_AGE:
            count += 1
        return count

    def senior_deduction(
        self,
        filing_status: StatusLike,
        age: int,
        spouse_age: Optional[int],
        tax_year: int,
        gross_estimate: float,
    ) -> float:
        """
        Per-senior additional standard deduction plus the temporary senior
        deduction (2025-2028), which phases out at 6 cents per dollar of gross
        above $75k ($150k joint) and is unavailable to separate filers.
        """
        status = coerce_status(filing_status)
        seniors = self.qualifying_seniors(status, age, spouse_age)
        if seniors == 0:
            return 0.0

        per_person = SENIOR_ADDITION_PER_PERSON[nearest_year(SENIOR_ADDITION_PER_PERSON, tax_year)]
        usual = seniors * per_person[status]

        temporary = 0.0
        if status != FilingStatus.MFS and TEMP_SENIOR_FIRST_YEAR <= tax_year <= TEMP_SENIOR_LAST_YEAR:
            threshold = TEMP_SENIOR_THRESHOLD_JOINT if status == FilingStatus.MFJ else TEMP_SENIOR_THRESHOLD_SINGLE
            over = max(0.0, gross_estimate - threshold)
            temporary = max(0.0, TEMP_SENIOR_AMOUNT * seniors - over * TEMP_SENIOR_PHASEOUT_RATE)

        return float(usual + temporary)

    # ---------- Gross <-> net ----------

    @staticmethod
    def _validate(amount: float, state_tax_rate: float, what: str) -> None:
        if amount < 0:
            raise InvalidInputError(f"{what} must be non-negative, got {amount}")
        if not 0 <= state_tax_rate < 1:
            raise InvalidInputError(f"state tax rate must be in [0, 1), got {state_tax_rate}")

    def _net(
        self,
        gross: float,
        state_tax_rate: float,
        status: FilingStatus,
        age: int,
        tax_year: int,
        spouse_age: Optional[int],
    ) -> float:
        deduction = self.standard_deduction(status, tax_year) + self.senior_deduction(
            status, age, spouse_age, tax_year, gross
        )
        taxable = max(0.0, gross - deduction)
        return gross - self.federal_tax(taxable, status, tax_year) - gross * state_tax_rate

    def calculate_net_from_gross(
        self,
        gross: float,
        state_tax_rate: float,
        filing_status: StatusLike,
        age: int,
        tax_year: int,
        spouse_age: Optional[int] = None,
    ) -> float:
        """After-tax amount left from a gross (pre-tax) amount."""
        status = coerce_status(filing_status)
        key: Tuple = ("net", gross, state_tax_rate, status, age, tax_year, spouse_age)
        cached = self.cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        self._validate(gross, state_tax_rate, "gross income")
        result = self._net(gross, state_tax_rate, status, age, tax_year, spouse_age)
        self.cache.put(key, result)
        return result

    def calculate_gross_income_needed(
        self,
        target_net: float,
        state_tax_rate: float,
        filing_status: StatusLike,
        age: int,
        tax_year: int,
        spouse_age: Optional[int] = None,
    ) -> float:
        """
        Gross amount whose after-tax value is target_net, to the nearest cent.

        Bisection over [target_net, 3 * target_net]. Stops once the interval
        is no wider than the tolerance or after max_iterations; running out of
        iterations emits a ConvergenceWarning and returns the current estimate.
        """
        status = coerce_status(filing_status)
        key: Tuple = ("gross", target_net, state_tax_rate, status, age, tax_year, spouse_age)
        cached = self.cache.get(key, _MISSING)
        if cached is not _MISSING:
            return cached

        self._validate(target_net, state_tax_rate, "net income")

        low = float(target_net)
        high = float(target_net) * 3.0
        iterations = 0
        while high - low > self.tolerance and iterations < self.max_iterations:
            mid = (low + high) / 2.0
            if self._net(mid, state_tax_rate, status, age, tax_year, spouse_age) < target_net:
                low = mid
            else:
                high = mid
            iterations += 1

        if high - low > self.tolerance:
            msg = (
                f"Gross-up for net {target_net:,.2f} stopped after {iterations} iterations "
                f"with interval width {high - low:.4f}; result may not be precise."
            )
            logger.warning(msg)
            warnings.warn(msg, ConvergenceWarning, stacklevel=2)
        elif target_net > 0 and high >= target_net * 3.0:
            logger.warning(
                "Gross-up for net %.2f hit the 3x upper bound (state rate %.4f)",
                target_net, state_tax_rate,
            )

        result = round((low + high) / 2.0, 2)
        self.cache.put(key, result)
        return result
