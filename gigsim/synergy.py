# gigsim/synergy.py
from __future__ import annotations

from typing import Dict, List, Sequence

from gigsim.config import (
    CHEMISTRY_BASE,
    CHEMISTRY_SPAN,
    EXPERIENCE_CAP,
    EXPERIENCE_PER_SHOW,
    REHEARSAL_LEVEL_MAX,
    REHEARSAL_SPAN,
)
from gigsim.models import Band, SetlistEntry
from gigsim.store import GigDataStore
from gigsim.util import clamp, clamp_factor


def chemistry_term(chemistry: float) -> float:
    return CHEMISTRY_BASE + (clamp_factor(chemistry) / 100.0) * CHEMISTRY_SPAN  # 0.7..1.3


def experience_term(performance_count: int) -> float:
    return min(EXPERIENCE_CAP, max(0, performance_count) * EXPERIENCE_PER_SHOW)  # 0..0.2


def rehearsal_term(song_ids: Sequence[str], levels: Dict[str, float]) -> float:
    """
    Average rehearsal depth across every song in the setlist.
    A song with no rehearsal record counts as 0.
    """
    if not song_ids:
        return 0.0
    total = sum(
        clamp(float(levels.get(s, 0.0)), 0.0, REHEARSAL_LEVEL_MAX) for s in song_ids
    )
    avg = total / len(song_ids)
    return (avg / REHEARSAL_LEVEL_MAX) * REHEARSAL_SPAN  # 0..0.2


def band_synergy(band: Band, song_ids: Sequence[str], levels: Dict[str, float]) -> float:
    """Multiplier, ~0.7..1.7. Deliberately left unclamped."""
    return (
        chemistry_term(band.chemistry_level)
        + experience_term(band.performance_count)
        + rehearsal_term(song_ids, levels)
    )


def setlist_song_ids(entries: List[SetlistEntry]) -> List[str]:
    return [e.song_id for e in entries if e.song_id is not None]


async def fetch_synergy(store: GigDataStore, band: Band, entries: List[SetlistEntry]) -> float:
    song_ids = setlist_song_ids(entries)
    rehearsals = await store.list_song_rehearsals(band.id, set(song_ids)) if song_ids else []
    levels = {r.song_id: r.rehearsal_level for r in rehearsals}
    return band_synergy(band, song_ids, levels)
