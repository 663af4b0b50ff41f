# gigsim/quality.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from gigsim.config import (
    DEFAULT_CROWD_APPEAL,
    DEFAULT_ENERGY_LEVEL,
    DEFAULT_GENRE_AFFINITY,
    DEFAULT_SONG_QUALITY,
    ENERGY_CURVE_IDEAL,
    ENERGY_CURVE_MIN_ENTRIES,
    ENERGY_CURVE_NEUTRAL,
    ENERGY_CURVE_RISING,
    ENERGY_CURVE_WEIGHT,
    FACTOR_MAX,
    GENRE_MATCH_WEIGHT,
    NEUTRAL_QUALITY,
    NEUTRAL_SKILL_MATCH,
    QUALITY_WEIGHT,
)
from gigsim.models import Band, PerformanceItem, SetlistEntry, Song, Venue
from gigsim.store import GigDataStore
from gigsim.util import clamp, clamp_factor, mean


# --- Song path -------------------------------------------------------------

def energy_curve_score(levels: Sequence[int]) -> float:
    """
    Compare opening / middle / closing energy against the ideal
    "start medium, peak mid-set, stay high" shape.

    Long sets use two-song edges; three or four song sets use one-song edges
    so the middle segment is never empty.
    """
    n = len(levels)
    if n < ENERGY_CURVE_MIN_ENTRIES:
        return ENERGY_CURVE_NEUTRAL

    edge = 2 if n >= 5 else 1
    start = mean(levels[:edge])
    middle = mean(levels[edge:n - edge])
    end = mean(levels[n - edge:])

    if 4 <= start <= 6 and middle >= 7 and end >= 6:
        return ENERGY_CURVE_IDEAL
    if start < 7 and middle > start and end > start:
        return ENERGY_CURVE_RISING
    return ENERGY_CURVE_NEUTRAL


def average_song_quality(songs: Sequence[Song]) -> float:
    if not songs:
        return NEUTRAL_QUALITY
    return mean(
        clamp_factor(s.quality_score if s.quality_score is not None else DEFAULT_SONG_QUALITY)
        for s in songs
    )


def genre_match_score(songs: Sequence[Song], venue: Optional[Venue]) -> float:
    """Mean venue affinity of the setlist's genres, on 0..100."""
    if venue is None or not venue.genre_bias:
        return DEFAULT_GENRE_AFFINITY * 100.0
    affinities = [
        venue.genre_bias.get(s.genre, DEFAULT_GENRE_AFFINITY)
        for s in songs if s.genre
    ]
    if not affinities:
        return DEFAULT_GENRE_AFFINITY * 100.0
    return clamp_factor(mean(affinities) * 100.0)


def setlist_quality(
    entries: Sequence[SetlistEntry],
    songs_by_id: Dict[str, Song],
    venue: Optional[Venue],
) -> float:
    """Weighted blend of song quality, energy curve and venue genre fit (0..100)."""
    song_entries = [e for e in entries if e.song_id is not None]
    if not song_entries:
        return NEUTRAL_QUALITY

    main_set = [e for e in entries if not e.is_encore]
    quality_pool = [e for e in song_entries if not e.is_encore] or song_entries
    # a song whose row is missing counts at the default quality
    quality = average_song_quality([
        songs_by_id.get(e.song_id) or Song(id=e.song_id) for e in quality_pool
    ])

    energy = energy_curve_score([
        int(clamp(e.energy_level if e.energy_level is not None else DEFAULT_ENERGY_LEVEL, 0, 10))
        for e in main_set
    ])
    genre = genre_match_score(
        [songs_by_id[e.song_id] for e in song_entries if e.song_id in songs_by_id], venue)

    total = quality * QUALITY_WEIGHT + energy * ENERGY_CURVE_WEIGHT + genre * GENRE_MATCH_WEIGHT
    return clamp_factor(total)


async def fetch_setlist_quality(
    store: GigDataStore,
    entries: List[SetlistEntry],
    venue_id: str,
) -> float:
    song_ids = {e.song_id for e in entries if e.song_id is not None}
    songs = await store.list_songs(song_ids) if song_ids else []
    venue = await store.get_venue(venue_id)
    return setlist_quality(entries, {s.id: s for s in songs}, venue)


# --- Item path -------------------------------------------------------------

@dataclass(frozen=True)
class ItemFactors:
    """All on 0..100."""
    crowd_appeal: float
    skill_match: float
    chemistry: float
    member_skill: float


def skill_match(item: PerformanceItem, member_skill: float) -> float:
    """
    How well the band clears the item's skill gate.
    No required skill -> neutral 70; a zero or missing threshold is no gate.
    """
    if not item.required_skill:
        return NEUTRAL_SKILL_MATCH
    threshold = item.min_skill_level or 0.0
    if threshold <= 0:
        return FACTOR_MAX
    return min(FACTOR_MAX, clamp_factor(member_skill) / threshold * 100.0)


def item_factors(item: PerformanceItem, band: Band, member_skill: float) -> ItemFactors:
    appeal = item.crowd_appeal if item.crowd_appeal is not None else DEFAULT_CROWD_APPEAL
    return ItemFactors(
        crowd_appeal=clamp_factor(appeal),
        skill_match=clamp_factor(skill_match(item, member_skill)),
        chemistry=clamp_factor(band.chemistry_level),
        member_skill=clamp_factor(member_skill),
    )
