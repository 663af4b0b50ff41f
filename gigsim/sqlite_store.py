# gigsim/sqlite_store.py
"""
SQLite-backed collaborator store (aiosqlite).

Collaborator rows are kept as JSON documents keyed by (kind, key) with a
`scope` column for the band/setlist filtered lists. Performance records and
stage events get their own tables with a UNIQUE(gig_id, position) guard.
"""
from __future__ import annotations

import dataclasses
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar, Union

import aiosqlite

from gigsim.errors import DuplicatePerformanceError, StoreError
from gigsim.log import get_logger
from gigsim.models import (
    AudienceMemory,
    Band,
    BandMember,
    CrewMember,
    CrowdResponse,
    Equipment,
    Gig,
    GigOutcome,
    PerformanceItem,
    PerformanceRecord,
    Promoter,
    PromotionPost,
    ScoreKind,
    SetlistEntry,
    Severity,
    Song,
    SongRehearsal,
    StageEvent,
    StageEventType,
    Venue,
    VenueRelationship,
)
from gigsim.store import GigDataStore

logger = get_logger(__name__)

T = TypeVar("T")

_CREATE_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    kind   TEXT NOT NULL,
    key    TEXT NOT NULL,
    scope  TEXT,
    body   TEXT NOT NULL,
    PRIMARY KEY (kind, key)
);""",
    "CREATE INDEX IF NOT EXISTS idx_documents_scope ON documents(kind, scope);",
    """\
CREATE TABLE IF NOT EXISTS promotion_posts (
    id           TEXT PRIMARY KEY,
    band_id      TEXT NOT NULL,
    linked_type  TEXT NOT NULL,
    created_at   TEXT NOT NULL
);""",
    "CREATE INDEX IF NOT EXISTS idx_posts_band ON promotion_posts(band_id, created_at);",
    """\
CREATE TABLE IF NOT EXISTS performance_records (
    gig_id          TEXT    NOT NULL,
    position        INTEGER NOT NULL,
    setlist_id      TEXT    NOT NULL,
    venue_id        TEXT    NOT NULL,
    outcome_id      TEXT,
    item_type       TEXT    NOT NULL,
    song_id         TEXT,
    item_id         TEXT,
    title           TEXT    NOT NULL DEFAULT '',
    score           REAL    NOT NULL,
    crowd_response  TEXT    NOT NULL,
    breakdown       TEXT    NOT NULL,
    production      TEXT    NOT NULL,
    created_at      TEXT,
    UNIQUE (gig_id, position)
);""",
    """\
CREATE TABLE IF NOT EXISTS stage_events (
    gig_id        TEXT    NOT NULL,
    position      INTEGER NOT NULL,
    event_type    TEXT    NOT NULL,
    severity      TEXT    NOT NULL,
    impact_score  REAL    NOT NULL,
    description   TEXT    NOT NULL,
    created_at    TEXT,
    UNIQUE (gig_id, position)
);""",
]

# row type -> (kind, key fn, scope fn)
_DOCUMENT_KINDS: Dict[type, Tuple[str, Any, Any]] = {
    Gig: ("gig", lambda r: r.id, lambda r: None),
    GigOutcome: ("outcome", lambda r: r.gig_id, lambda r: None),
    Band: ("band", lambda r: r.id, lambda r: None),
    BandMember: ("member", lambda r: r.id, lambda r: r.band_id),
    Song: ("song", lambda r: r.id, lambda r: None),
    SetlistEntry: ("setlist_entry", lambda r: f"{r.setlist_id}|{r.position}", lambda r: r.setlist_id),
    PerformanceItem: ("item", lambda r: r.id, lambda r: None),
    SongRehearsal: ("rehearsal", lambda r: f"{r.band_id}|{r.song_id}", lambda r: r.band_id),
    Equipment: ("equipment", lambda r: r.id, lambda r: r.band_id),
    CrewMember: ("crew", lambda r: r.id, lambda r: r.band_id),
    Venue: ("venue", lambda r: r.id, lambda r: None),
    Promoter: ("promoter", lambda r: r.id, lambda r: None),
    VenueRelationship: ("venue_relationship", lambda r: f"{r.band_id}|{r.venue_id}", lambda r: r.band_id),
    AudienceMemory: ("audience_memory", lambda r: f"{r.band_id}|{r.city_id}", lambda r: r.band_id),
}


def _iso(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteGigStore(GigDataStore):

    def __init__(self, db_path: Union[str, Path] = "data/gigsim.db") -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            for sql in _CREATE_SQL:
                await db.execute(sql)
            await db.commit()
        logger.info("gig_store_initialized", path=str(self._db_path))

    # --- seeding ---

    async def add(self, *rows: object) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            for row in rows:
                if isinstance(row, PromotionPost):
                    await db.execute(
                        "INSERT OR REPLACE INTO promotion_posts (id, band_id, linked_type, created_at) "
                        "VALUES (?, ?, ?, ?)",
                        (row.id, row.band_id, row.linked_type, _iso(row.created_at)),
                    )
                    continue
                kind_entry = _DOCUMENT_KINDS.get(type(row))
                if kind_entry is None:
                    raise TypeError(f"Unsupported row type: {type(row).__name__}")
                kind, key_fn, scope_fn = kind_entry
                await db.execute(
                    "INSERT OR REPLACE INTO documents (kind, key, scope, body) VALUES (?, ?, ?, ?)",
                    (kind, key_fn(row), scope_fn(row), json.dumps(dataclasses.asdict(row))),
                )
            await db.commit()

    # --- document helpers ---

    async def _get(self, cls: Type[T], key: str) -> Optional[T]:
        kind = _DOCUMENT_KINDS[cls][0]
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT body FROM documents WHERE kind = ? AND key = ?", (kind, key))
            row = await cursor.fetchone()
        return cls(**json.loads(row[0])) if row else None

    async def _list(self, cls: Type[T], scope: str) -> List[T]:
        kind = _DOCUMENT_KINDS[cls][0]
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT body FROM documents WHERE kind = ? AND scope = ?", (kind, scope))
            rows = await cursor.fetchall()
        return [cls(**json.loads(r[0])) for r in rows]

    # --- reads ---

    async def get_gig(self, gig_id: str) -> Optional[Gig]:
        return await self._get(Gig, gig_id)

    async def get_gig_outcome(self, gig_id: str) -> Optional[GigOutcome]:
        return await self._get(GigOutcome, gig_id)

    async def get_band(self, band_id: str) -> Optional[Band]:
        return await self._get(Band, band_id)

    async def list_band_members(self, band_id: str, include_touring: bool = False) -> List[BandMember]:
        members = await self._list(BandMember, band_id)
        return [m for m in members if include_touring or not m.is_touring_member]

    async def get_song(self, song_id: str) -> Optional[Song]:
        return await self._get(Song, song_id)

    async def list_songs(self, song_ids: Iterable[str]) -> List[Song]:
        ids = list(song_ids)
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                f"SELECT body FROM documents WHERE kind = 'song' AND key IN ({placeholders})", ids)
            rows = await cursor.fetchall()
        return [Song(**json.loads(r[0])) for r in rows]

    async def list_setlist_entries(self, setlist_id: str) -> List[SetlistEntry]:
        entries = await self._list(SetlistEntry, setlist_id)
        return sorted(entries, key=lambda e: e.position)

    async def get_performance_item(self, item_id: str) -> Optional[PerformanceItem]:
        return await self._get(PerformanceItem, item_id)

    async def list_song_rehearsals(self, band_id: str, song_ids: Iterable[str]) -> List[SongRehearsal]:
        wanted = set(song_ids)
        rehearsals = await self._list(SongRehearsal, band_id)
        return [r for r in rehearsals if r.song_id in wanted]

    async def list_equipment(self, band_id: str) -> List[Equipment]:
        return await self._list(Equipment, band_id)

    async def list_crew(self, band_id: str) -> List[CrewMember]:
        return await self._list(CrewMember, band_id)

    async def get_venue(self, venue_id: str) -> Optional[Venue]:
        return await self._get(Venue, venue_id)

    async def get_promoter(self, promoter_id: str) -> Optional[Promoter]:
        return await self._get(Promoter, promoter_id)

    async def get_venue_relationship(self, band_id: str, venue_id: str) -> Optional[VenueRelationship]:
        return await self._get(VenueRelationship, f"{band_id}|{venue_id}")

    async def get_audience_memory(self, band_id: str, city_id: str) -> Optional[AudienceMemory]:
        return await self._get(AudienceMemory, f"{band_id}|{city_id}")

    async def count_recent_promotions(self, band_id: str, since: datetime) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM promotion_posts "
                "WHERE band_id = ? AND linked_type = 'gig' AND created_at >= ?",
                (band_id, _iso(since)),
            )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    # --- writes ---

    async def save_performance_record(self, record: PerformanceRecord) -> PerformanceRecord:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    "INSERT INTO performance_records (gig_id, position, setlist_id, venue_id, "
                    "outcome_id, item_type, song_id, item_id, title, score, crowd_response, "
                    "breakdown, production, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        record.gig_id, record.position, record.setlist_id, record.venue_id,
                        record.outcome_id, record.item_type.value, record.song_id, record.item_id,
                        record.title, record.score, record.crowd_response.value,
                        json.dumps(record.breakdown), json.dumps(record.production),
                        _iso(record.created_at),
                    ),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            raise DuplicatePerformanceError(record.gig_id, record.position) from exc
        return record

    async def save_stage_event(self, event: StageEvent) -> StageEvent:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    "INSERT INTO stage_events (gig_id, position, event_type, severity, "
                    "impact_score, description, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        event.gig_id, event.position, event.event_type.value,
                        event.severity.value, event.impact_score, event.description,
                        _iso(event.created_at),
                    ),
                )
                await db.commit()
        except aiosqlite.IntegrityError as exc:
            raise StoreError(
                f"Stage event already recorded for position {event.position}", event.gig_id
            ) from exc
        return event

    async def list_performance_records(self, gig_id: str) -> List[PerformanceRecord]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM performance_records WHERE gig_id = ? ORDER BY position", (gig_id,))
            rows = await cursor.fetchall()
        return [
            PerformanceRecord(
                gig_id=r["gig_id"],
                setlist_id=r["setlist_id"],
                venue_id=r["venue_id"],
                position=r["position"],
                item_type=ScoreKind(r["item_type"]),
                score=r["score"],
                crowd_response=CrowdResponse(r["crowd_response"]),
                breakdown=json.loads(r["breakdown"]),
                outcome_id=r["outcome_id"],
                song_id=r["song_id"],
                item_id=r["item_id"],
                title=r["title"],
                production=json.loads(r["production"]),
                created_at=_parse_dt(r["created_at"]),
            )
            for r in rows
        ]

    async def list_stage_events(self, gig_id: str) -> List[StageEvent]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM stage_events WHERE gig_id = ? ORDER BY position", (gig_id,))
            rows = await cursor.fetchall()
        return [
            StageEvent(
                gig_id=r["gig_id"],
                position=r["position"],
                event_type=StageEventType(r["event_type"]),
                severity=Severity(r["severity"]),
                impact_score=r["impact_score"],
                description=r["description"],
                created_at=_parse_dt(r["created_at"]),
            )
            for r in rows
        ]
