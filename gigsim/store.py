# gigsim/store.py
"""
Collaborator data store contract.

Each read is a keyed lookup or a small filtered list; optional rows come back
as ``None`` (or an empty list) and the calculators decide the neutral default.
The only writes are performance records and stage events, both keyed by
(gig, position).
"""
from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from gigsim.errors import DuplicatePerformanceError, StoreError
from gigsim.models import (
    AudienceMemory,
    Band,
    BandMember,
    CrewMember,
    Equipment,
    Gig,
    GigOutcome,
    PerformanceItem,
    PerformanceRecord,
    Promoter,
    PromotionPost,
    SetlistEntry,
    Song,
    SongRehearsal,
    StageEvent,
    Venue,
    VenueRelationship,
)


class GigDataStore(ABC):

    # --- reads ---

    @abstractmethod
    async def get_gig(self, gig_id: str) -> Optional[Gig]: ...

    @abstractmethod
    async def get_gig_outcome(self, gig_id: str) -> Optional[GigOutcome]: ...

    @abstractmethod
    async def get_band(self, band_id: str) -> Optional[Band]: ...

    @abstractmethod
    async def list_band_members(self, band_id: str, include_touring: bool = False) -> List[BandMember]:
        """Members of a band; touring members are excluded unless asked for."""

    @abstractmethod
    async def get_song(self, song_id: str) -> Optional[Song]: ...

    @abstractmethod
    async def list_songs(self, song_ids: Iterable[str]) -> List[Song]: ...

    @abstractmethod
    async def list_setlist_entries(self, setlist_id: str) -> List[SetlistEntry]:
        """Entries ordered by position."""

    @abstractmethod
    async def get_performance_item(self, item_id: str) -> Optional[PerformanceItem]: ...

    @abstractmethod
    async def list_song_rehearsals(self, band_id: str, song_ids: Iterable[str]) -> List[SongRehearsal]: ...

    @abstractmethod
    async def list_equipment(self, band_id: str) -> List[Equipment]: ...

    @abstractmethod
    async def list_crew(self, band_id: str) -> List[CrewMember]: ...

    @abstractmethod
    async def get_venue(self, venue_id: str) -> Optional[Venue]: ...

    @abstractmethod
    async def get_promoter(self, promoter_id: str) -> Optional[Promoter]: ...

    @abstractmethod
    async def get_venue_relationship(self, band_id: str, venue_id: str) -> Optional[VenueRelationship]: ...

    @abstractmethod
    async def get_audience_memory(self, band_id: str, city_id: str) -> Optional[AudienceMemory]: ...

    @abstractmethod
    async def count_recent_promotions(self, band_id: str, since: datetime) -> int:
        """Gig-linked promotional posts for the band created at or after `since`."""

    # --- writes ---

    @abstractmethod
    async def save_performance_record(self, record: PerformanceRecord) -> PerformanceRecord:
        """Persist a record; raises DuplicatePerformanceError if the position is taken."""

    @abstractmethod
    async def save_stage_event(self, event: StageEvent) -> StageEvent:
        """Persist an event; at most one per (gig, position), else StoreError."""

    @abstractmethod
    async def list_performance_records(self, gig_id: str) -> List[PerformanceRecord]: ...

    @abstractmethod
    async def list_stage_events(self, gig_id: str) -> List[StageEvent]: ...


class MemoryGigStore(GigDataStore):
    """Dict-backed store. Seed it with `add()`. Writes are stored and read back as copies."""

    def __init__(self) -> None:
        self.gigs: Dict[str, Gig] = {}
        self.outcomes: Dict[str, GigOutcome] = {}
        self.bands: Dict[str, Band] = {}
        self.members: List[BandMember] = []
        self.songs: Dict[str, Song] = {}
        self.setlist_entries: List[SetlistEntry] = []
        self.items: Dict[str, PerformanceItem] = {}
        self.rehearsals: Dict[Tuple[str, str], SongRehearsal] = {}
        self.equipment: List[Equipment] = []
        self.crew: List[CrewMember] = []
        self.venues: Dict[str, Venue] = {}
        self.promoters: Dict[str, Promoter] = {}
        self.relationships: Dict[Tuple[str, str], VenueRelationship] = {}
        self.audience_memory: Dict[Tuple[str, str], AudienceMemory] = {}
        self.posts: List[PromotionPost] = []
        self.records: Dict[Tuple[str, int], PerformanceRecord] = {}
        self.stage_events: List[StageEvent] = []

    def add(self, *rows: object) -> "MemoryGigStore":
        for row in rows:
            if isinstance(row, Gig):
                self.gigs[row.id] = row
            elif isinstance(row, GigOutcome):
                self.outcomes[row.gig_id] = row
            elif isinstance(row, Band):
                self.bands[row.id] = row
            elif isinstance(row, BandMember):
                self.members.append(row)
            elif isinstance(row, Song):
                self.songs[row.id] = row
            elif isinstance(row, SetlistEntry):
                self.setlist_entries.append(row)
            elif isinstance(row, PerformanceItem):
                self.items[row.id] = row
            elif isinstance(row, SongRehearsal):
                self.rehearsals[(row.band_id, row.song_id)] = row
            elif isinstance(row, Equipment):
                self.equipment.append(row)
            elif isinstance(row, CrewMember):
                self.crew.append(row)
            elif isinstance(row, Venue):
                self.venues[row.id] = row
            elif isinstance(row, Promoter):
                self.promoters[row.id] = row
            elif isinstance(row, VenueRelationship):
                self.relationships[(row.band_id, row.venue_id)] = row
            elif isinstance(row, AudienceMemory):
                self.audience_memory[(row.band_id, row.city_id)] = row
            elif isinstance(row, PromotionPost):
                self.posts.append(row)
            else:
                raise TypeError(f"Unsupported row type: {type(row).__name__}")
        return self

    async def get_gig(self, gig_id: str) -> Optional[Gig]:
        return self.gigs.get(gig_id)

    async def get_gig_outcome(self, gig_id: str) -> Optional[GigOutcome]:
        return self.outcomes.get(gig_id)

    async def get_band(self, band_id: str) -> Optional[Band]:
        return self.bands.get(band_id)

    async def list_band_members(self, band_id: str, include_touring: bool = False) -> List[BandMember]:
        return [
            m for m in self.members
            if m.band_id == band_id and (include_touring or not m.is_touring_member)
        ]

    async def get_song(self, song_id: str) -> Optional[Song]:
        return self.songs.get(song_id)

    async def list_songs(self, song_ids: Iterable[str]) -> List[Song]:
        return [self.songs[s] for s in song_ids if s in self.songs]

    async def list_setlist_entries(self, setlist_id: str) -> List[SetlistEntry]:
        entries = [e for e in self.setlist_entries if e.setlist_id == setlist_id]
        return sorted(entries, key=lambda e: e.position)

    async def get_performance_item(self, item_id: str) -> Optional[PerformanceItem]:
        return self.items.get(item_id)

    async def list_song_rehearsals(self, band_id: str, song_ids: Iterable[str]) -> List[SongRehearsal]:
        return [
            self.rehearsals[(band_id, s)]
            for s in song_ids if (band_id, s) in self.rehearsals
        ]

    async def list_equipment(self, band_id: str) -> List[Equipment]:
        return [e for e in self.equipment if e.band_id == band_id]

    async def list_crew(self, band_id: str) -> List[CrewMember]:
        return [c for c in self.crew if c.band_id == band_id]

    async def get_venue(self, venue_id: str) -> Optional[Venue]:
        return self.venues.get(venue_id)

    async def get_promoter(self, promoter_id: str) -> Optional[Promoter]:
        return self.promoters.get(promoter_id)

    async def get_venue_relationship(self, band_id: str, venue_id: str) -> Optional[VenueRelationship]:
        return self.relationships.get((band_id, venue_id))

    async def get_audience_memory(self, band_id: str, city_id: str) -> Optional[AudienceMemory]:
        return self.audience_memory.get((band_id, city_id))

    async def count_recent_promotions(self, band_id: str, since: datetime) -> int:
        return sum(
            1 for p in self.posts
            if p.band_id == band_id and p.linked_type == "gig" and p.created_at >= since
        )

    async def save_performance_record(self, record: PerformanceRecord) -> PerformanceRecord:
        key = (record.gig_id, record.position)
        if key in self.records:
            raise DuplicatePerformanceError(record.gig_id, record.position)
        self.records[key] = copy.deepcopy(record)
        return record

    async def save_stage_event(self, event: StageEvent) -> StageEvent:
        if any(e.gig_id == event.gig_id and e.position == event.position for e in self.stage_events):
            raise StoreError(
                f"Stage event already recorded for position {event.position}", event.gig_id)
        self.stage_events.append(copy.deepcopy(event))
        return event

    async def list_performance_records(self, gig_id: str) -> List[PerformanceRecord]:
        rows = [copy.deepcopy(r) for (g, _), r in self.records.items() if g == gig_id]
        return sorted(rows, key=lambda r: r.position)

    async def list_stage_events(self, gig_id: str) -> List[StageEvent]:
        return sorted(
            (copy.deepcopy(e) for e in self.stage_events if e.gig_id == gig_id),
            key=lambda e: e.position,
        )
