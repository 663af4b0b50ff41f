"""Shared fixtures: a seeded in-memory store describing one gig at one venue."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from gigsim.engine import PerformanceEngine
from gigsim.models import (
    AudienceMemory,
    Band,
    BandMember,
    CrewMember,
    Equipment,
    Gig,
    GigOutcome,
    PerformanceItem,
    PerformanceRequest,
    Promoter,
    PromotionPost,
    SetlistEntry,
    Song,
    SongRehearsal,
    Venue,
    VenueRelationship,
)
from gigsim.store import MemoryGigStore

NOW = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)


class ScriptedRandom(random.Random):
    """random() replays the given values, then returns 0.0."""

    def __init__(self, values: List[float]) -> None:
        super().__init__(0)
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0) if self._values else 0.0


def gig_rows() -> list:
    """
    Headline scenario. Expected component values:
      skill 80, synergy 1.38, engagement 1.3 (memory +0.2), quality 89,
      promoter +6, venue loyalty +2, production 70 / 40 / 68 / 75.
    """
    rows: list = [
        Band(id="b1", chemistry_level=80, fame=5000, performance_count=10),
        BandMember(id="m1", band_id="b1", skills={"guitar": 80, "vocals": 60},
                   stage_presence=16, charisma=10),
        BandMember(id="m2", band_id="b1", skill_contribution=90),
        BandMember(id="m3", band_id="b1", is_touring_member=True, skill_contribution=10),
        Venue(id="v1", capacity=200, genre_bias={"rock": 1.0}),
        Promoter(id="p1", quality_tier="professional", reputation=70, crowd_engagement_bonus=1),
        VenueRelationship(band_id="b1", venue_id="v1", payout_bonus=0.2),
        AudienceMemory(band_id="b1", city_id="c1", avg_experience_score=70),
        Equipment(id="e1", band_id="b1", quality_rating=60),
        Equipment(id="e2", band_id="b1", quality_rating=80),
        PerformanceItem(id="i1", name="Crowd sing-along", crowd_appeal=90,
                        required_skill="vocals", min_skill_level=100, energy_cost=10),
        Gig(id="g1", band_id="b1", venue_id="v1", setlist_id="sl1",
            promoter_id="p1", city_id="c1"),
        GigOutcome(id="o1", gig_id="g1", actual_attendance=150),
        SongRehearsal(band_id="b1", song_id="s1", rehearsal_level=10),
        SongRehearsal(band_id="b1", song_id="s2", rehearsal_level=10),
        SongRehearsal(band_id="b1", song_id="s3", rehearsal_level=5),
        PromotionPost(id="t1", band_id="b1", created_at=NOW - timedelta(days=1)),
        PromotionPost(id="t2", band_id="b1", created_at=NOW - timedelta(days=3)),
        PromotionPost(id="t3", band_id="b1", created_at=NOW - timedelta(days=10)),
        PromotionPost(id="t4", band_id="b2", created_at=NOW - timedelta(days=1)),
    ]
    for i, energy in enumerate([5, 5, 8, 8, 7], start=1):
        rows.append(Song(id=f"s{i}", title=f"Song {i}", quality_score=80, genre="rock"))
        rows.append(SetlistEntry(setlist_id="sl1", position=i, song_id=f"s{i}", energy_level=energy))
    rows.append(SetlistEntry(setlist_id="sl1", position=6, item_id="i1", energy_level=7))
    return rows


@pytest.fixture
def store() -> MemoryGigStore:
    return MemoryGigStore().add(*gig_rows())


@pytest.fixture
def engine(store: MemoryGigStore) -> PerformanceEngine:
    return PerformanceEngine(store, clock=lambda: NOW)


def song_request(position: int = 1, song_id: str = "s1", **overrides) -> PerformanceRequest:
    fields = dict(
        gig_id="g1", setlist_id="sl1", venue_id="v1", position=position,
        song_id=song_id, promoter_id="p1", city_id="c1",
    )
    fields.update(overrides)
    return PerformanceRequest(**fields)


def item_request(position: int = 6, item_id: str = "i1", **overrides) -> PerformanceRequest:
    fields = dict(
        gig_id="g1", setlist_id="sl1", venue_id="v1", position=position,
        item_id=item_id, promoter_id="p1", city_id="c1",
    )
    fields.update(overrides)
    return PerformanceRequest(**fields)
