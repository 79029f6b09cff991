# retireplan/core/tax_tables.py
"""
Federal tax tables (2024-2026) and flat state rates.

Brackets are (rate, upper) pairs in ascending order; the last upper bound is
infinite. Tables are keyed by tax year, and lookups for a year that is not in
a table resolve through nearest_year().
"""

from bisect import bisect_right
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from .errors import ConfigurationError


class FilingStatus(Enum):
    """Federal filing statuses."""

    SINGLE = "single"
    MFS = "mfs"    # Married filing separately
    MFJ = "mfj"    # Married filing jointly
    HOH = "hoh"    # Head of household


Bracket = Tuple[float, float]  # (rate, upper)

INF = float("inf")

_SINGLE_2024: List[Bracket] = [
    (0.10, 11600), (0.12, 47150), (0.22, 100525), (0.24, 191950),
    (0.32, 243725), (0.35, 609350), (0.37, INF),
]
_SINGLE_2025: List[Bracket] = [
    (0.10, 11925), (0.12, 48475), (0.22, 103350), (0.24, 197300),
    (0.32, 250525), (0.35, 626350), (0.37, INF),
]
_SINGLE_2026: List[Bracket] = [
    (0.10, 12400), (0.12, 50400), (0.22, 105700), (0.24, 201775),
    (0.32, 256225), (0.35, 640600), (0.37, INF),
]

FEDERAL_BRACKETS: Dict[int, Dict[FilingStatus, List[Bracket]]] = {
    2024: {
        FilingStatus.SINGLE: _SINGLE_2024,
        FilingStatus.MFS: [
            (0.10, 11600), (0.12, 47150), (0.22, 100525), (0.24, 191950),
            (0.32, 243725), (0.35, 365600), (0.37, INF),
        ],
        FilingStatus.MFJ: [
            (0.10, 23200), (0.12, 94300), (0.22, 201050), (0.24, 383900),
            (0.32, 487450), (0.35, 731200), (0.37, INF),
        ],
        FilingStatus.HOH: [
            (0.10, 16550), (0.12, 63100), (0.22, 100500), (0.24, 191950),
            (0.32, 243700), (0.35, 609350), (0.37, INF),
        ],
    },
    2025: {
        FilingStatus.SINGLE: _SINGLE_2025,
        FilingStatus.MFS: _SINGLE_2025,
        FilingStatus.MFJ: [
            (0.10, 23850), (0.12, 96950), (0.22, 206700), (0.24, 394600),
            (0.32, 501050), (0.35, 751600), (0.37, INF),
        ],
        FilingStatus.HOH: [
            (0.10, 17000), (0.12, 64850), (0.22, 103350), (0.24, 197300),
            (0.32, 250500), (0.35, 626350), (0.37, INF),
        ],
    },
    2026: {
        FilingStatus.SINGLE: _SINGLE_2026,
        FilingStatus.MFS: _SINGLE_2026,
        FilingStatus.MFJ: [
            (0.10, 24800), (0.12, 100800), (0.22, 211400), (0.24, 403550),
            (0.32, 512450), (0.35, 768700), (0.37, INF),
        ],
        FilingStatus.HOH: [
            (0.10, 17700), (0.12, 67450), (0.22, 105700), (0.24, 201775),
            (0.32, 256200), (0.35, 640600), (0.37, INF),
        ],
    },
}

STANDARD_DEDUCTIONS: Dict[int, Dict[FilingStatus, float]] = {
    2024: {FilingStatus.SINGLE: 14600, FilingStatus.MFS: 14600,
           FilingStatus.MFJ: 29200, FilingStatus.HOH: 21900},
    2025: {FilingStatus.SINGLE: 15750, FilingStatus.MFS: 15750,
           FilingStatus.MFJ: 31500, FilingStatus.HOH: 23625},
    2026: {FilingStatus.SINGLE: 16100, FilingStatus.MFS: 16100,
           FilingStatus.MFJ: 32200, FilingStatus.HOH: 24150},
}

# Additional standard deduction per qualifying senior (65+)
SENIOR_ADDITION_PER_PERSON: Dict[int, Dict[FilingStatus, float]] = {
    2024: {FilingStatus.SINGLE: 1950, FilingStatus.MFS: 1950,
           FilingStatus.MFJ: 1550, FilingStatus.HOH: 1950},
    2025: {FilingStatus.SINGLE: 2000, FilingStatus.MFS: 2000,
           FilingStatus.MFJ: 1600, FilingStatus.HOH: 2000},
    2026: {FilingStatus.SINGLE: 2050, FilingStatus.MFS: 2050,
           FilingStatus.MFJ: 1650, FilingStatus.HOH: 2050},
}

# Temporary senior deduction (tax years 2025-2028)
TEMP_SENIOR_FIRST_YEAR = 2025
TEMP_SENIOR_LAST_YEAR = 2028
TEMP_SENIOR_AMOUNT = 6000.0
TEMP_SENIOR_PHASEOUT_RATE = 0.06
TEMP_SENIOR_THRESHOLD_SINGLE = 75000.0
TEMP_SENIOR_THRESHOLD_JOINT = 150000.0

SENIOR_AGE = 65


def nearest_year(table: Mapping[int, object], year: int) -> int:
    """
    Most recent table year <= year.

    A year before every table year resolves to the EARLIEST table (2019 -> 2024),
    not the latest one.
    """
    years = sorted(table)
    if not years:
        raise ConfigurationError("empty tax table")
    idx = bisect_right(years, year)
    return years[idx - 1] if idx > 0 else years[0]


def brackets_for(status: FilingStatus, tax_year: int) -> List[Bracket]:
    by_status = FEDERAL_BRACKETS[nearest_year(FEDERAL_BRACKETS, tax_year)]
    if status not in by_status:
        raise ConfigurationError(
            f"No brackets available for tax year {tax_year} and status {status.value}"
        )
    return by_status[status]


# ---------- State rates ----------

# Flat approximations of each state's top marginal rate on ordinary income.
STATE_TAX_RATES: Dict[str, Tuple[str, float]] = {
    "AL": ("Alabama", 0.05),
    "AK": ("Alaska", 0.0),
    "AZ": ("Arizona", 0.025),
    "AR": ("Arkansas", 0.039),
    "CA": ("California", 0.093),
    "CO": ("Colorado", 0.044),
    "CT": ("Connecticut", 0.0699),
    "DE": ("Delaware", 0.066),
    "DC": ("District of Columbia", 0.085),
    "FL": ("Florida", 0.0),
    "GA": ("Georgia", 0.0539),
    "HI": ("Hawaii", 0.0825),
    "ID": ("Idaho", 0.05695),
    "IL": ("Illinois", 0.0495),
    "IN": ("Indiana", 0.03),
    "IA": ("Iowa", 0.038),
    "KS": ("Kansas", 0.0558),
    "KY": ("Kentucky", 0.04),
    "LA": ("Louisiana", 0.03),
    "ME": ("Maine", 0.0715),
    "MD": ("Maryland", 0.0575),
    "MA": ("Massachusetts", 0.05),
    "MI": ("Michigan", 0.0425),
    "MN": ("Minnesota", 0.0785),
    "MS": ("Mississippi", 0.044),
    "MO": ("Missouri", 0.047),
    "MT": ("Montana", 0.059),
    "NE": ("Nebraska", 0.052),
    "NV": ("Nevada", 0.0),
    "NH": ("New Hampshire", 0.0),
    "NJ": ("New Jersey", 0.0637),
    "NM": ("New Mexico", 0.049),
    "NY": ("New York", 0.0685),
    "NC": ("North Carolina", 0.0425),
    "ND": ("North Dakota", 0.025),
    "OH": ("Ohio", 0.035),
    "OK": ("Oklahoma", 0.0475),
    "OR": ("Oregon", 0.0875),
    "PA": ("Pennsylvania", 0.0307),
    "RI": ("Rhode Island", 0.0599),
    "SC": ("South Carolina", 0.062),
    "SD": ("South Dakota", 0.0),
    "TN": ("Tennessee", 0.0),
    "TX": ("Texas", 0.0),
    "UT": ("Utah", 0.0455),
    "VT": ("Vermont", 0.066),
    "VA": ("Virginia", 0.0575),
    "WA": ("Washington", 0.0),
    "WV": ("West Virginia", 0.0482),
    "WI": ("Wisconsin", 0.053),
    "WY": ("Wyoming", 0.0),
}

_STATE_LOOKUP: Dict[str, float] = {}
for _code, (_name, _rate) in STATE_TAX_RATES.items():
    _STATE_LOOKUP[_code.lower()] = _rate
    _STATE_LOOKUP[_name.lower()] = _rate


def state_tax_rate(state: Optional[str]) -> float:
    """Flat rate for a state name or postal code; no state means no state tax."""
    if not state or not state.strip():
        return 0.0
    try:
        return _STATE_LOOKUP[state.strip().lower()]
    except KeyError:
        raise ConfigurationError(f"Unknown state: {state!r}") from None
