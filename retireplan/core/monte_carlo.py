# retireplan/core/monte_carlo.py
"""
Monte Carlo engine for household retirement outcomes.

Inputs:
- scenario: HouseholdScenario (ages, savings, spending, income, portfolio)
- config: SimulationConfig (num_sims, seed, tax_aware, downside_quantile, workers)
- rng: optional uniform source (anything with .random()); overrides the seed

Each path starts at current savings and, for every year from the reference
year through the life-expectancy year:
  1. records the balance in today's dollars (before the year's flows in
     tax-aware mode, after flows and growth in legacy mode)
  2. adds income + pre-retirement savings and subtracts spending; a negative
     balance marks the path failed and is clamped to 0
  3. multiplies by one year of sampled portfolio growth

Outputs (SimulationResult):
- probability: % of paths never marked failed (0-100, rounded)
- median / downside: per-year floored-rank picks from the sorted path values
  (index n//2 and floor(n * downside_quantile)), not interpolated
- years: calendar year labels
"""

from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .cashflow import CashFlowAggregator
from .config import SimulationConfig
from .errors import SimulationCancelled
from .returns import GrowthModel, UniformSource, select_growth_model
from .scenario import HouseholdScenario
from .tax import TaxEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class SimulationResult:
    probability: int            # 0-100
    median: np.ndarray          # shape (years,), today's dollars
    downside: np.ndarray        # shape (years,), today's dollars
    years: np.ndarray           # calendar years
    num_sims: int

    def to_dict(self) -> dict:
        return {
            "probability": self.probability,
            "median": self.median.tolist(),
            "downside": self.downside.tolist(),
            "years": [int(y) for y in self.years],
        }

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "year": self.years,
            "median": self.median,
            "downside": self.downside,
        })


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class MonteCarloDriver:
    """Runs independent yearly balance paths and summarizes them."""

    def __init__(self, config: Optional[SimulationConfig] = None, tax_engine: Optional[TaxEngine] = None):
        self.config = config if config is not None else SimulationConfig()
        self.tax_engine = tax_engine if tax_engine is not None else TaxEngine()
        self.cashflow = CashFlowAggregator(self.tax_engine, tax_aware=self.config.tax_aware)

    def clear_tax_cache(self) -> None:
        """Drop memoized tax results; call after tax-relevant scenario edits."""
        self.tax_engine.clear_cache()

    def _run_path(
        self,
        model: GrowthModel,
        flows: np.ndarray,
        deflators: np.ndarray,
        initial: float,
        rng: UniformSource,
        out: np.ndarray,
    ) -> bool:
        """Walk one path, writing deflated balances into out. Returns True if it failed."""
        record_before = self.config.tax_aware
        balance = initial
        failed = False
        for i in range(len(flows)):
            if record_before:
                out[i] = balance / deflators[i]
            balance += flows[i]
            if balance < 0:
                failed = True
                balance = 0.0
            balance *= model.sample(rng)
            if not record_before:
                out[i] = balance / deflators[i]
        return failed

    def run(
        self,
        scenario: HouseholdScenario,
        rng: Optional[UniformSource] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SimulationResult:
        cfg = self.config
        n = cfg.num_sims
        T = scenario.total_years

        model = select_growth_model(scenario.portfolio)
        # cash flow depends only on (scenario, year), so every path shares it
        flows = self.cashflow.net_flow_schedule(scenario)
        deflators = (1.0 + scenario.inflation_rate) ** np.arange(T, dtype=float)
        initial = float(scenario.current_savings)

        logger.debug(
            "Simulating %d paths x %d years (tax_aware=%s, workers=%d, model=%r)",
            n, T, cfg.tax_aware, cfg.workers, model,
        )

        # Values matrix [n, T]; each path owns its row
        V = np.zeros((n, T), dtype=float)
        failed = np.zeros(n, dtype=bool)

        def check_cancel():
            if cancel_event is not None and cancel_event.is_set():
                raise SimulationCancelled("simulation cancelled by caller")

        if rng is not None or cfg.workers == 1:
            source = rng if rng is not None else np.random.default_rng(cfg.seed)
            for p in range(n):
                check_cancel()
                failed[p] = self._run_path(model, flows, deflators, initial, source, V[p])
        else:
            children = np.random.SeedSequence(cfg.seed).spawn(n)

            def one_path(p: int) -> bool:
                check_cancel()
                path_rng = np.random.default_rng(children[p])
                return self._run_path(model, flows, deflators, initial, path_rng, V[p])

            with ThreadPoolExecutor(max_workers=cfg.workers) as pool:
                for p, path_failed in enumerate(pool.map(one_path, range(n))):
                    failed[p] = path_failed

        success_count = int((~failed).sum())
        probability = _round_half_up(100.0 * success_count / n)

        sorted_v = np.sort(V, axis=0)
        median = sorted_v[n // 2].copy()
        downside = sorted_v[int(math.floor(n * cfg.downside_quantile))].copy()
        years = np.array(scenario.years, dtype=int)

        logger.info(
            "Simulation finished: %d paths, %d years (%d-%d), success %d%%",
            n, T, years[0], years[-1], probability,
        )
        return SimulationResult(
            probability=probability,
            median=median,
            downside=downside,
            years=years,
            num_sims=n,
        )


def run_simulation(
    scenario: HouseholdScenario,
    config: Optional[SimulationConfig] = None,
    rng: Optional[UniformSource] = None,
    cancel_event: Optional[threading.Event] = None,
    tax_engine: Optional[TaxEngine] = None,
) -> SimulationResult:
    """Run the full ensemble for a scenario."""
    return MonteCarloDriver(config, tax_engine).run(scenario, rng=rng, cancel_event=cancel_event)
