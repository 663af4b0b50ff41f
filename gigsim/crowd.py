# gigsim/crowd.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

from gigsim.config import (
    AUDIENCE_MEMORY_NEUTRAL,
    ENGAGEMENT_BASE,
    ENGAGEMENT_MAX,
    ENGAGEMENT_MIN,
    FAME_CAP,
    FAME_SPAN,
    SOCIAL_BUZZ_CAP,
    SOCIAL_BUZZ_PER_POST,
    SOCIAL_BUZZ_WINDOW_DAYS,
)
from gigsim.models import AudienceMemory, Band
from gigsim.store import GigDataStore
from gigsim.util import clamp, clamp_factor


def fame_term(fame: float) -> float:
    return ENGAGEMENT_BASE + (clamp(fame, 0.0, FAME_CAP) / FAME_CAP) * FAME_SPAN  # 0.5..1.5


def audience_memory_delta(memory: Optional[AudienceMemory]) -> float:
    """How the city remembers the band; negative for bad past shows."""
    if memory is None:
        return 0.0
    score = clamp_factor(memory.avg_experience_score)
    return (score - AUDIENCE_MEMORY_NEUTRAL) / 100.0


def social_buzz(recent_posts: int) -> float:
    return min(SOCIAL_BUZZ_CAP, max(0, recent_posts) * SOCIAL_BUZZ_PER_POST)


def crowd_engagement(
    band: Band,
    *,
    memory: Optional[AudienceMemory] = None,
    recent_posts: int = 0,
) -> Tuple[float, float]:
    """
    Returns (engagement multiplier clamped to 0.3..2.0, unclamped audience memory delta).
    """
    memory_delta = audience_memory_delta(memory)
    engagement = fame_term(band.fame) + memory_delta + social_buzz(recent_posts)
    return clamp(engagement, ENGAGEMENT_MIN, ENGAGEMENT_MAX), memory_delta


async def fetch_crowd_engagement(
    store: GigDataStore,
    band: Band,
    *,
    city_id: Optional[str],
    now: datetime,
    window_days: int = SOCIAL_BUZZ_WINDOW_DAYS,
) -> Tuple[float, float]:
    memory = await store.get_audience_memory(band.id, city_id) if city_id else None
    posts = await store.count_recent_promotions(band.id, now - timedelta(days=window_days))
    return crowd_engagement(band, memory=memory, recent_posts=posts)
