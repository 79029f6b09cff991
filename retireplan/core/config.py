# retireplan/core/config.py
"""Simulation settings, with optional RETIREPLAN_* environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .errors import ConfigurationError

ENV_PREFIX = "RETIREPLAN_"


@dataclass(frozen=True)
class SimulationConfig:
    num_sims: int = 5000
    seed: Optional[int] = None
    tax_aware: bool = True              # gross-up spending / net-down income
    downside_quantile: float = 0.1
    workers: int = 1                    # >1 runs paths on a thread pool

    def __post_init__(self):
        if self.num_sims < 1:
            raise ConfigurationError("num_sims must be at least 1")
        if not 0 <= self.downside_quantile < 1:
            raise ConfigurationError("downside_quantile must be in [0, 1)")
        if self.workers < 1:
            raise ConfigurationError("workers must be at least 1")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "SimulationConfig":
        """Defaults, then RETIREPLAN_NUM_SIMS / _SEED / _WORKERS, then overrides."""
        env = os.environ if environ is None else environ
        cfg = cls()
        updates = {}
        try:
            if env.get(ENV_PREFIX + "NUM_SIMS"):
                updates["num_sims"] = int(env[ENV_PREFIX + "NUM_SIMS"])
            if env.get(ENV_PREFIX + "SEED"):
                updates["seed"] = int(env[ENV_PREFIX + "SEED"])
            if env.get(ENV_PREFIX + "WORKERS"):
                updates["workers"] = int(env[ENV_PREFIX + "WORKERS"])
        except ValueError as e:
            raise ConfigurationError(f"Bad {ENV_PREFIX}* environment value: {e}") from e
        updates.update(overrides)
        return replace(cfg, **updates)
