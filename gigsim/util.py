# gigsim/util.py
from __future__ import annotations

from typing import Iterable, Optional

from gigsim.config import FACTOR_MAX, FACTOR_MIN


def clamp(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def clamp_factor(x: float) -> float:
    """Pin a scoring input to the 0..100 factor scale."""
    return clamp(float(x), FACTOR_MIN, FACTOR_MAX)


def mean(values: Iterable[float], default: Optional[float] = None) -> Optional[float]:
    vals = list(values)
    if not vals:
        return default
    return sum(vals) / len(vals)
