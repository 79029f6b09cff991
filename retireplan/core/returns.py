# retireplan/core/returns.py
"""
Yearly portfolio growth sampling.

Samplers take a uniform source: any object whose random() returns a float in
[0, 1), e.g. numpy.random.Generator or random.Random. Injecting a seeded
source makes a run reproducible.

Growth regimes
- LegacyNormal / CustomNormal: 1 + mean + sigma * Z  (additive normal return)
- LogNormal:                   exp(mu + sigma * Z)
- FatTail:                     exp(mean + std_dev * T(df))  (Student-t shock)

select_growth_model() picks the regime once per scenario; the driver then only
calls .sample(rng).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Protocol, Tuple, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class UniformSource(Protocol):
    def random(self) -> float: ...


class RiskLevel(Enum):
    """Portfolio risk tags (legacy and current)."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"        # legacy
    HIGH = "high"                # legacy
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"
    CUSTOM = "custom"


class SimulationType(Enum):
    LOGNORMAL = "lognormal"
    FAT_TAIL = "fat_tail"


# ---------- Primitive samplers ----------

def _positive_uniform(rng: UniformSource) -> float:
    u = 0.0
    while u == 0.0:
        u = rng.random()
    return u


def standard_normal(rng: UniformSource) -> float:
    """Box-Muller transform of two uniforms."""
    u = _positive_uniform(rng)
    v = rng.random()
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def gamma_sample(shape: float, scale: float, rng: UniformSource) -> float:
    """Marsaglia-Tsang gamma draw; shape < 1 is boosted via U^(1/shape)."""
    if shape <= 0 or scale <= 0:
        raise ConfigurationError(f"gamma needs positive shape and scale, got {shape}, {scale}")

    if shape < 1:
        u = _positive_uniform(rng)
        return gamma_sample(shape + 1.0, scale, rng) * u ** (1.0 / shape)

    d = shape - 1.0 / 3.0
    c = 1.0 / math.sqrt(9.0 * d)
    while True:
        x = standard_normal(rng)
        v = 1.0 + c * x
        if v <= 0:
            continue
        v = v * v * v
        u = rng.random()
        if u < 1.0 - 0.0331 * x ** 4:
            return d * v * scale
        if u > 0 and math.log(u) < 0.5 * x * x + d * (1.0 - v + math.log(v)):
            return d * v * scale


def chi_squared(df: float, rng: UniformSource) -> float:
    return gamma_sample(df / 2.0, 2.0, rng)


def student_t(df: float, rng: UniformSource) -> float:
    z = standard_normal(rng)
    return z / math.sqrt(chi_squared(df, rng) / df)


# ---------- Growth factors ----------

def legacy_growth_factor(mean: float, sigma: float, rng: UniformSource) -> float:
    # unbounded below: a draw under -1 turns the balance negative
    return 1.0 + mean + sigma * standard_normal(rng)


def log_normal_growth_factor(mu: float, sigma: float, rng: UniformSource) -> float:
    return math.exp(mu + sigma * standard_normal(rng))


def fat_tail_growth_factor(mean: float, std_dev: float, df: Optional[float], rng: UniformSource) -> float:
    if df is None or df <= 0:
        raise ConfigurationError("fat-tail growth requires positive degrees of freedom")
    return math.exp(mean + std_dev * student_t(df, rng))


# ---------- Regime variant ----------

@dataclass(frozen=True)
class LegacyNormal:
    mean: float
    sigma: float

    def sample(self, rng: UniformSource) -> float:
        return legacy_growth_factor(self.mean, self.sigma, rng)


@dataclass(frozen=True)
class CustomNormal:
    """Scenario-supplied expected return / std dev on the additive model."""

    mean: float
    std_dev: float

    def sample(self, rng: UniformSource) -> float:
        return legacy_growth_factor(self.mean, self.std_dev, rng)


@dataclass(frozen=True)
class LogNormal:
    mu: float
    sigma: float

    def sample(self, rng: UniformSource) -> float:
        return log_normal_growth_factor(self.mu, self.sigma, rng)


@dataclass(frozen=True)
class FatTail:
    mean: float      # Student-t location of the log return
    std_dev: float   # Student-t scale of the log return
    df: Optional[float]

    def sample(self, rng: UniformSource) -> float:
        return fat_tail_growth_factor(self.mean, self.std_dev, self.df, rng)


GrowthModel = Union[LegacyNormal, CustomNormal, LogNormal, FatTail]


@dataclass(frozen=True)
class RegimeParams:
    mean: float      # arithmetic expected return
    std_dev: float   # arithmetic volatility
    mu: float        # log-space drift matching mean/std_dev
    sigma: float     # log-space volatility
    df: float        # Student-t degrees of freedom for the fat-tail regime


REGIME_PARAMS: Dict[RiskLevel, RegimeParams] = {
    RiskLevel.CONSERVATIVE: RegimeParams(mean=0.04, std_dev=0.06, mu=0.0376, sigma=0.0577, df=8),
    RiskLevel.BALANCED: RegimeParams(mean=0.06, std_dev=0.11, mu=0.0529, sigma=0.1035, df=6),
    RiskLevel.AGGRESSIVE: RegimeParams(mean=0.08, std_dev=0.16, mu=0.0661, sigma=0.1474, df=5),
}

LEGACY_PARAMS: Dict[RiskLevel, Tuple[float, float]] = {
    RiskLevel.CONSERVATIVE: (0.03, 0.05),
    RiskLevel.MODERATE: (0.045, 0.10),
    RiskLevel.HIGH: (0.06, 0.15),
}

_REGIME_ALIASES = {
    RiskLevel.MODERATE: RiskLevel.BALANCED,
    RiskLevel.HIGH: RiskLevel.AGGRESSIVE,
}


def fat_tail_scale(sigma: float, df: float) -> float:
    """Student-t scale whose variance equals sigma**2 (df > 2)."""
    if df > 2:
        return sigma * math.sqrt((df - 2.0) / df)
    return sigma


def select_growth_model(assumptions) -> GrowthModel:
    """
    Resolve a PortfolioAssumptions into its growth regime.

    custom -> CustomNormal; legacy tags without a simulation type ->
    LegacyNormal; otherwise the log-normal or fat-tail regime of the tag.
    """
    risk = RiskLevel(assumptions.risk_level)
    sim_type = (
        SimulationType(assumptions.simulation_type)
        if assumptions.simulation_type is not None else None
    )

    if risk == RiskLevel.CUSTOM:
        if assumptions.expected_return is None or assumptions.standard_deviation is None:
            raise ConfigurationError(
                "custom risk level requires expected_return and standard_deviation"
            )
        model: GrowthModel = CustomNormal(assumptions.expected_return, assumptions.standard_deviation)
    elif sim_type is None and risk in LEGACY_PARAMS:
        model = LegacyNormal(*LEGACY_PARAMS[risk])
    else:
        params = REGIME_PARAMS[_REGIME_ALIASES.get(risk, risk)]
        if sim_type == SimulationType.FAT_TAIL:
            df = assumptions.degrees_of_freedom
            if df is None:
                df = params.df
            model = FatTail(mean=params.mu, std_dev=fat_tail_scale(params.sigma, df), df=df)
        else:
            model = LogNormal(mu=params.mu, sigma=params.sigma)

    logger.debug("Growth model for risk=%s type=%s: %r", risk.value, sim_type, model)
    return model
