# gigsim/modifiers.py
from __future__ import annotations

from typing import Optional, Tuple

from gigsim.config import (
    PROMOTER_NEUTRAL_REPUTATION,
    PROMOTER_REPUTATION_DIVISOR,
    PROMOTER_TIER_BONUS,
    VENUE_LOYALTY_SCALE,
)
from gigsim.models import Promoter, VenueRelationship
from gigsim.store import GigDataStore
from gigsim.util import clamp_factor


def promoter_modifier(promoter: Optional[Promoter]) -> float:
    """Additive points: tier bonus + reputation swing + the promoter's own crowd bonus."""
    if promoter is None:
        return 0.0
    tier = PROMOTER_TIER_BONUS.get((promoter.quality_tier or "").lower(), 0.0)
    reputation = (clamp_factor(promoter.reputation) - PROMOTER_NEUTRAL_REPUTATION) / PROMOTER_REPUTATION_DIVISOR
    return tier + reputation + (promoter.crowd_engagement_bonus or 0.0)


def venue_loyalty_modifier(relationship: Optional[VenueRelationship]) -> float:
    # payout bonus is a fraction (0..~0.3) -> 0..~3 points
    if relationship is None:
        return 0.0
    return (relationship.payout_bonus or 0.0) * VENUE_LOYALTY_SCALE


async def fetch_modifiers(
    store: GigDataStore,
    *,
    band_id: str,
    venue_id: str,
    promoter_id: Optional[str],
) -> Tuple[float, float]:
    """(promoter modifier, venue loyalty modifier)"""
    promoter = await store.get_promoter(promoter_id) if promoter_id else None
    relationship = await store.get_venue_relationship(band_id, venue_id)
    return promoter_modifier(promoter), venue_loyalty_modifier(relationship)
