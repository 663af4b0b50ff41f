# gigsim/scoring.py
"""
Composite scoring.

Songs and performance items are scored by two separate variants, each with
its own weight table and its own crowd-response thresholds. The two are not
interchangeable: item scores are built directly on the 0..25 scale, song
scores go through a 0..100 quality figure first, and the response bands
differ accordingly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from gigsim.config import (
    ENERGY_CURVE_WEIGHT,
    GENRE_MATCH_WEIGHT,
    QUALITY_WEIGHT,
    SCORE_DECIMALS,
    SCORE_MAX,
    SCORE_MIN,
)
from gigsim.models import CrowdResponse, ScoreKind
from gigsim.quality import ItemFactors
from gigsim.util import clamp, clamp_factor


@dataclass(frozen=True)
class ScoringVariant:
    kind: ScoreKind
    weights: Mapping[str, float]
    # (minimum score, response), checked top-down
    tiers: Tuple[Tuple[float, CrowdResponse], ...]
    # scores strictly below floor[0] get floor[1]
    floor: Tuple[float, CrowdResponse]
    default: CrowdResponse


SONG_VARIANT = ScoringVariant(
    kind=ScoreKind.SONG,
    weights={
        "song_quality": QUALITY_WEIGHT,
        "energy_curve": ENERGY_CURVE_WEIGHT,
        "genre_match": GENRE_MATCH_WEIGHT,
    },
    tiers=(
        (22.0, CrowdResponse.ECSTATIC),
        (19.0, CrowdResponse.ENTHUSIASTIC),
        (15.0, CrowdResponse.ENGAGED),
    ),
    floor=(10.0, CrowdResponse.DISAPPOINTED),
    default=CrowdResponse.MIXED,
)

ITEM_VARIANT = ScoringVariant(
    kind=ScoreKind.ITEM,
    weights={
        "crowd_appeal": 0.35,
        "skill_match": 0.25,
        "chemistry": 0.20,
        "member_skill": 0.20,
    },
    tiers=(
        (20.0, CrowdResponse.ECSTATIC),
        (16.0, CrowdResponse.ENTHUSIASTIC),
        (12.0, CrowdResponse.ENGAGED),
    ),
    # items have no "disappointed" tier
    floor=(8.0, CrowdResponse.MIXED),
    default=CrowdResponse.ENGAGED,
)

VARIANTS: Dict[ScoreKind, ScoringVariant] = {
    ScoreKind.SONG: SONG_VARIANT,
    ScoreKind.ITEM: ITEM_VARIANT,
}


def classify(score: float, kind: ScoreKind) -> CrowdResponse:
    variant = VARIANTS[kind]
    for minimum, response in variant.tiers:
        if score >= minimum:
            return response
    if score < variant.floor[0]:
        return variant.floor[1]
    return variant.default


def round_score(x: float) -> float:
    return round(clamp(x, SCORE_MIN, SCORE_MAX), SCORE_DECIMALS)


@dataclass(frozen=True)
class SongFactors:
    skill: float                      # 0..100
    synergy: float                    # multiplier, ~0.7..1.7
    crowd_engagement: float           # multiplier, 0.3..2.0
    quality: float                    # 0..100
    promoter_modifier: float = 0.0    # points
    venue_loyalty_modifier: float = 0.0  # points
    audience_memory_delta: float = 0.0   # already inside crowd_engagement; reported only


def _multiplicative_terms(factors: SongFactors) -> Dict[str, float]:
    return {
        "skill_contribution": (clamp_factor(factors.skill) / 100.0) * SCORE_MAX,
        "synergy_delta": factors.synergy - 1.0,
        "crowd_engagement_delta": factors.crowd_engagement - 1.0,
        "quality_factor": clamp_factor(factors.quality) / 100.0,
    }


def _base_from(terms: Mapping[str, float]) -> float:
    return (
        terms["skill_contribution"]
        * (1.0 + terms["synergy_delta"])
        * (1.0 + terms["crowd_engagement_delta"])
        * terms["quality_factor"]
    )


def song_base_score(factors: SongFactors) -> float:
    """The deterministic multiplicative part of the song formula (0..~42 before clamping)."""
    return _base_from(_multiplicative_terms(factors))


def score_song(
    factors: SongFactors,
    random_factor: float,
) -> Tuple[float, CrowdResponse, Dict[str, float]]:
    terms = _multiplicative_terms(factors)
    base = _base_from(terms)
    raw = base + factors.promoter_modifier + factors.venue_loyalty_modifier + random_factor
    score = round_score(raw)

    breakdown = {
        **terms,
        "base_score": base,
        "promoter_modifier": factors.promoter_modifier,
        "audience_memory_delta": factors.audience_memory_delta,
        "venue_loyalty_modifier": factors.venue_loyalty_modifier,
        "random_factor": random_factor,
        "unclamped_score": raw,
    }
    return score, classify(score, ScoreKind.SONG), breakdown


def reconstruct_song_score(breakdown: Mapping[str, float]) -> float:
    """Rebuild a persisted song score from its breakdown."""
    return round_score(
        _base_from(breakdown)
        + breakdown["promoter_modifier"]
        + breakdown["venue_loyalty_modifier"]
        + breakdown["random_factor"]
    )


def score_item(factors: ItemFactors) -> Tuple[float, CrowdResponse, Dict[str, float]]:
    w = ITEM_VARIANT.weights
    contributions = {
        "crowd_appeal_contribution": clamp_factor(factors.crowd_appeal) / 100.0 * SCORE_MAX * w["crowd_appeal"],
        "skill_match_contribution": clamp_factor(factors.skill_match) / 100.0 * SCORE_MAX * w["skill_match"],
        "chemistry_contribution": clamp_factor(factors.chemistry) / 100.0 * SCORE_MAX * w["chemistry"],
        "member_skill_contribution": clamp_factor(factors.member_skill) / 100.0 * SCORE_MAX * w["member_skill"],
    }
    score = round_score(sum(contributions.values()))
    return score, classify(score, ScoreKind.ITEM), contributions
