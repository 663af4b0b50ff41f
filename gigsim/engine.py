# gigsim/engine.py
"""
Per-position entry point.

    process_position(request, rng)
      1. gig lookup (hard failure if missing)
      2. stage event roll starts as an independent task
      3. band / subject / setlist / outcome reads, joined
      4. component reads fanned out and joined
      5. compose score, persist the record
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from gigsim.config import (
    DEFAULT_CAPACITY_USED,
    DEFAULT_CREW_SKILL,
    DEFAULT_EQUIPMENT_QUALITY,
    DEFAULT_VENUE_CAPACITY,
    RANDOM_FACTOR_MAX,
    RANDOM_FACTOR_MIN,
    SOCIAL_BUZZ_WINDOW_DAYS,
)
from gigsim.crowd import fetch_crowd_engagement
from gigsim.errors import (
    BandNotFoundError,
    GigNotFoundError,
    MissingEntityError,
    PerformanceItemNotFoundError,
    SongNotFoundError,
)
from gigsim.events import generate_stage_event
from gigsim.log import get_logger
from gigsim.models import (
    Band,
    Gig,
    GigOutcome,
    PerformanceRecord,
    PerformanceRequest,
    ScoreKind,
    SetlistEntry,
    StageEvent,
)
from gigsim.modifiers import fetch_modifiers
from gigsim.quality import fetch_setlist_quality, item_factors
from gigsim.scoring import SongFactors, score_item, score_song
from gigsim.skill import fetch_skill, stage_skill
from gigsim.store import GigDataStore
from gigsim.synergy import fetch_synergy
from gigsim.util import clamp_factor, mean

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PositionResult:
    record: PerformanceRecord
    stage_event: Optional[StageEvent] = None


class PerformanceEngine:
    """Scores one setlist position at a time against a collaborator store."""

    def __init__(
        self,
        store: GigDataStore,
        *,
        clock: Callable[[], datetime] = utcnow,
        social_buzz_window_days: int = SOCIAL_BUZZ_WINDOW_DAYS,
    ) -> None:
        self.store = store
        self.clock = clock
        self.social_buzz_window_days = social_buzz_window_days

    async def process_position(self, request: PerformanceRequest, rng: random.Random) -> PositionResult:
        """
        Score and persist one position. Raises MissingEntityError subclasses
        (no record written) and DuplicatePerformanceError. The stage event is
        rolled and stored regardless of how scoring ends, once the gig exists.
        """
        gig = await self.store.get_gig(request.gig_id)
        if gig is None:
            logger.warning("performance_hard_failure", gig_id=request.gig_id,
                           position=request.position, reason="gig_not_found")
            raise GigNotFoundError(request.gig_id)

        now = self.clock()
        event_rng = random.Random(rng.getrandbits(64))
        random_factor = rng.uniform(RANDOM_FACTOR_MIN, RANDOM_FACTOR_MAX)
        event_task = asyncio.ensure_future(generate_stage_event(
            self.store, event_rng, gig_id=gig.id, position=request.position, now=now,
        ))

        try:
            record = await self._score(gig, request, random_factor, now)
        except MissingEntityError as exc:
            logger.warning("performance_hard_failure", gig_id=gig.id,
                           position=request.position, reason=str(exc))
            await event_task
            raise
        except Exception:
            await event_task
            raise

        stage_event = await event_task
        return PositionResult(record=record, stage_event=stage_event)

    async def _score(
        self,
        gig: Gig,
        request: PerformanceRequest,
        random_factor: float,
        now: datetime,
    ) -> PerformanceRecord:
        """random_factor only applies to songs; items are scored without swing."""
        if request.kind is ScoreKind.SONG:
            subject_lookup = self.store.get_song(request.song_id)
        else:
            subject_lookup = self.store.get_performance_item(request.item_id)

        band, subject, entries, outcome = await asyncio.gather(
            self.store.get_band(gig.band_id),
            subject_lookup,
            self.store.list_setlist_entries(request.setlist_id),
            self.store.get_gig_outcome(gig.id),
        )
        if band is None:
            raise BandNotFoundError(gig.band_id)
        if subject is None:
            if request.kind is ScoreKind.SONG:
                raise SongNotFoundError(request.song_id)
            raise PerformanceItemNotFoundError(request.item_id)

        if request.kind is ScoreKind.SONG:
            (
                skill,
                synergy,
                (engagement, memory_delta),
                quality,
                (promoter_mod, loyalty_mod),
                production,
            ) = await asyncio.gather(
                fetch_skill(self.store, band.id),
                fetch_synergy(self.store, band, entries),
                fetch_crowd_engagement(
                    self.store, band, city_id=request.city_id, now=now,
                    window_days=self.social_buzz_window_days,
                ),
                fetch_setlist_quality(self.store, entries, request.venue_id),
                fetch_modifiers(
                    self.store, band_id=band.id, venue_id=request.venue_id,
                    promoter_id=request.promoter_id,
                ),
                self._production(band, request.venue_id, outcome),
            )
            factors = SongFactors(
                skill=skill,
                synergy=synergy,
                crowd_engagement=engagement,
                quality=quality,
                promoter_modifier=promoter_mod,
                venue_loyalty_modifier=loyalty_mod,
                audience_memory_delta=memory_delta,
            )
            score, response, breakdown = score_song(factors, random_factor)
            title = subject.title
        else:
            skill, production = await asyncio.gather(
                fetch_skill(self.store, band.id),
                self._production(band, request.venue_id, outcome),
            )
            score, response, breakdown = score_item(item_factors(subject, band, skill))
            title = subject.name

        record = PerformanceRecord(
            gig_id=gig.id,
            setlist_id=request.setlist_id,
            venue_id=request.venue_id,
            position=request.position,
            item_type=request.kind,
            score=score,
            crowd_response=response,
            breakdown=breakdown,
            outcome_id=outcome.id if outcome else None,
            song_id=request.song_id,
            item_id=request.item_id,
            title=title,
            production=production,
            created_at=now,
        )
        await self.store.save_performance_record(record)
        logger.info(
            "performance_scored",
            gig_id=gig.id,
            position=request.position,
            item_type=request.kind.value,
            score=score,
            crowd_response=response.value,
        )
        return record

    async def _production(
        self,
        band: Band,
        venue_id: str,
        outcome: Optional[GigOutcome],
    ) -> Dict[str, float]:
        """Equipment, crew, stage skill and room fill on 0..100; reported alongside the score."""
        equipment, crew, members, venue = await asyncio.gather(
            self.store.list_equipment(band.id),
            self.store.list_crew(band.id),
            self.store.list_band_members(band.id),
            self.store.get_venue(venue_id),
        )
        equipment_quality = mean(
            (clamp_factor(e.quality_rating) for e in equipment), default=DEFAULT_EQUIPMENT_QUALITY)
        crew_skill = mean(
            (clamp_factor(c.skill_level) for c in crew), default=DEFAULT_CREW_SKILL)

        capacity = (venue.capacity if venue and venue.capacity else 0) or DEFAULT_VENUE_CAPACITY
        if outcome is None:
            capacity_used = DEFAULT_CAPACITY_USED
        else:
            capacity_used = clamp_factor(outcome.actual_attendance / capacity * 100.0)

        return {
            "equipment_quality": equipment_quality,
            "crew_skill": crew_skill,
            "stage_skill": stage_skill(members),
            "capacity_used": capacity_used,
        }


def entries_to_requests(
    gig: Gig,
    entries: List[SetlistEntry],
) -> List[PerformanceRequest]:
    """One request per setlist entry, in position order."""
    return [
        PerformanceRequest(
            gig_id=gig.id,
            setlist_id=gig.setlist_id,
            venue_id=gig.venue_id,
            position=e.position,
            song_id=e.song_id,
            item_id=e.item_id,
            promoter_id=gig.promoter_id,
            city_id=gig.city_id,
        )
        for e in sorted(entries, key=lambda e: e.position)
    ]
