"""Tests for the per-position performance engine."""

from __future__ import annotations

import dataclasses
import random

import pytest

from gigsim.engine import PerformanceEngine
from gigsim.errors import (
    BandNotFoundError,
    DuplicatePerformanceError,
    GigNotFoundError,
    PerformanceItemNotFoundError,
    SongNotFoundError,
)
from gigsim.models import (
    Band,
    CrowdResponse,
    Gig,
    ScoreKind,
    Severity,
    SetlistEntry,
    Song,
    StageEvent,
    StageEventType,
)
from gigsim.scoring import reconstruct_song_score
from gigsim.store import MemoryGigStore

from tests.conftest import NOW, gig_rows, item_request, song_request


def _weak_store() -> MemoryGigStore:
    """A small band whose base score sits well inside 0..25 either side of the swing."""
    rows = [
        Band(id="wb", chemistry_level=50, fame=3000, performance_count=1),
        Song(id="ws", title="Demo", quality_score=60, genre="punk"),
        SetlistEntry(setlist_id="wsl", position=1, song_id="ws", energy_level=5),
        Gig(id="wg", band_id="wb", venue_id="nowhere", setlist_id="wsl"),
    ]
    return MemoryGigStore().add(*rows)


def _fixed_event(rng, *, gig_id, position):
    return StageEvent(gig_id=gig_id, position=position, event_type=StageEventType.CROWD_SURGE,
                      severity=Severity.MINOR, impact_score=2, description="surge")


# ─── Song path ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_song_position_scores_and_persists(engine, store):
    result = await engine.process_position(song_request(), random.Random(1))
    record = result.record

    assert record.item_type is ScoreKind.SONG
    assert record.score == 25.0
    assert record.crowd_response is CrowdResponse.ECSTATIC
    assert record.title == "Song 1"
    assert record.outcome_id == "o1"
    assert record.created_at == NOW

    b = record.breakdown
    assert b["skill_contribution"] == pytest.approx(20)
    assert b["synergy_delta"] == pytest.approx(0.38)
    assert b["crowd_engagement_delta"] == pytest.approx(0.3)
    assert b["quality_factor"] == pytest.approx(0.89)
    assert b["promoter_modifier"] == pytest.approx(6)
    assert b["venue_loyalty_modifier"] == pytest.approx(2)
    assert b["audience_memory_delta"] == pytest.approx(0.2)
    assert b["base_score"] == pytest.approx(20 * 1.38 * 1.3 * 0.89)
    assert -5 <= b["random_factor"] <= 5

    assert record.production == pytest.approx(
        {"equipment_quality": 70, "crew_skill": 40, "stage_skill": 68, "capacity_used": 75})
    assert await store.list_performance_records("g1") == [record]


@pytest.mark.asyncio
async def test_unclamped_song_matches_breakdown():
    engine = PerformanceEngine(_weak_store(), clock=lambda: NOW)
    request = song_request(gig_id="wg", setlist_id="wsl", venue_id="nowhere",
                           song_id="ws", promoter_id=None, city_id=None)
    record = (await engine.process_position(request, random.Random(3))).record

    assert record.breakdown["unclamped_score"] == pytest.approx(record.score, abs=0.005)
    assert record.score == reconstruct_song_score(record.breakdown)
    assert record.breakdown["promoter_modifier"] == 0
    assert record.breakdown["venue_loyalty_modifier"] == 0
    assert record.breakdown["audience_memory_delta"] == 0
    assert record.outcome_id is None
    assert record.production == {
        "equipment_quality": 40, "crew_skill": 40, "stage_skill": 50, "capacity_used": 70,
    }


@pytest.mark.asyncio
async def test_same_seed_same_record():
    async def run():
        engine = PerformanceEngine(_weak_store(), clock=lambda: NOW)
        request = song_request(gig_id="wg", setlist_id="wsl", venue_id="nowhere",
                               song_id="ws", promoter_id=None, city_id=None)
        return await engine.process_position(request, random.Random(11))

    first, second = await run(), await run()
    assert first.record == second.record
    assert first.stage_event == second.stage_event


@pytest.mark.asyncio
async def test_missing_optional_rows_degrade(store):
    store.add(Gig(id="g2", band_id="b1", venue_id="v1", setlist_id="sl1"))
    engine = PerformanceEngine(store, clock=lambda: NOW)
    request = song_request(gig_id="g2", promoter_id="ghost", city_id="atlantis")
    record = (await engine.process_position(request, random.Random(2))).record
    assert record.breakdown["promoter_modifier"] == 0
    assert record.breakdown["audience_memory_delta"] == 0
    assert record.production["capacity_used"] == 70


@pytest.mark.asyncio
async def test_saved_record_cannot_be_rewritten(engine, store):
    record = (await engine.process_position(song_request(), random.Random(1))).record
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.score = 0.0

    record.breakdown["promoter_modifier"] = 99
    record.production["crew_skill"] = 0
    [stored] = await store.list_performance_records("g1")
    assert stored.score == 25.0
    assert stored.breakdown["promoter_modifier"] == pytest.approx(6)
    assert stored.production["crew_skill"] == 40

    stored.breakdown["base_score"] = -1
    [again] = await store.list_performance_records("g1")
    assert again.breakdown["base_score"] == pytest.approx(20 * 1.38 * 1.3 * 0.89)


# ─── Item path ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_item_position(engine):
    record = (await engine.process_position(item_request(), random.Random(1))).record
    assert record.item_type is ScoreKind.ITEM
    assert record.title == "Crowd sing-along"
    # appeal 90, skill match 80, chemistry 80, member skill 80
    assert record.score == pytest.approx(20.875, abs=0.01)
    assert record.crowd_response is CrowdResponse.ECSTATIC
    assert set(record.breakdown) == {
        "crowd_appeal_contribution", "skill_match_contribution",
        "chemistry_contribution", "member_skill_contribution",
    }


# ─── Hard failures ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_missing_gig(engine, store):
    with pytest.raises(GigNotFoundError):
        await engine.process_position(song_request(gig_id="nope"), random.Random(1))
    assert store.records == {}
    assert store.stage_events == []


@pytest.mark.asyncio
async def test_missing_band(store):
    store.add(Gig(id="g3", band_id="ghost", venue_id="v1", setlist_id="sl1"))
    engine = PerformanceEngine(store, clock=lambda: NOW)
    with pytest.raises(BandNotFoundError):
        await engine.process_position(song_request(gig_id="g3"), random.Random(1))
    assert await store.list_performance_records("g3") == []


@pytest.mark.asyncio
async def test_missing_song(engine, store):
    with pytest.raises(SongNotFoundError):
        await engine.process_position(song_request(song_id="ghost"), random.Random(1))
    assert store.records == {}


@pytest.mark.asyncio
async def test_missing_item(engine, store):
    with pytest.raises(PerformanceItemNotFoundError):
        await engine.process_position(item_request(item_id="ghost"), random.Random(1))
    assert store.records == {}


@pytest.mark.asyncio
async def test_stage_event_survives_hard_failure(engine, store, monkeypatch):
    monkeypatch.setattr("gigsim.events.roll_stage_event", _fixed_event)
    with pytest.raises(SongNotFoundError):
        await engine.process_position(song_request(position=2, song_id="ghost"), random.Random(1))
    events = await store.list_stage_events("g1")
    assert [e.position for e in events] == [2]


@pytest.mark.asyncio
async def test_stage_event_returned_with_record(engine, monkeypatch):
    monkeypatch.setattr("gigsim.events.roll_stage_event", _fixed_event)
    result = await engine.process_position(song_request(position=3), random.Random(1))
    assert result.stage_event.event_type is StageEventType.CROWD_SURGE
    assert result.stage_event.created_at == NOW


@pytest.mark.asyncio
async def test_position_written_once(engine, store):
    await engine.process_position(song_request(), random.Random(1))
    with pytest.raises(DuplicatePerformanceError):
        await engine.process_position(song_request(), random.Random(2))
    assert len(await store.list_performance_records("g1")) == 1


def test_request_needs_exactly_one_subject():
    with pytest.raises(ValueError):
        song_request(item_id="i1")
    with pytest.raises(ValueError):
        song_request(song_id=None)
    with pytest.raises(ValueError):
        song_request(position=0)
