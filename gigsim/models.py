# gigsim/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class ScoreKind(str, Enum):
    SONG = "song"
    ITEM = "performance_item"


class CrowdResponse(str, Enum):
    """Ordered lowest to highest; see RESPONSE_RANK."""
    DISAPPOINTED = "disappointed"
    MIXED = "mixed"
    ENGAGED = "engaged"
    ENTHUSIASTIC = "enthusiastic"
    ECSTATIC = "ecstatic"


RESPONSE_RANK: Dict[CrowdResponse, int] = {
    r: i for i, r in enumerate(CrowdResponse)
}


class StageEventType(str, Enum):
    MISHAP = "mishap"
    PERFECT_MOMENT = "perfect_moment"
    SURPRISE_GUEST = "surprise_guest"
    CROWD_SURGE = "crowd_surge"
    TECHNICAL_FAILURE = "technical_failure"


class Severity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


# --- Collaborator records (read-only from the engine's point of view) ---

@dataclass(frozen=True)
class Band:
    id: str
    chemistry_level: float = 0.0
    fame: float = 0.0
    performance_count: int = 0


@dataclass(frozen=True)
class BandMember:
    """
    A band seat. `skills` holds per-attribute levels (guitar, vocals, ...);
    `role` narrows which of them count. `skill_contribution` is the flat
    fallback when no attributes exist. Stage presence and charisma are on
    the 0..20 attribute scale.
    """
    id: str
    band_id: str
    is_touring_member: bool = False
    skill_contribution: Optional[float] = None
    skills: Dict[str, float] = field(default_factory=dict)
    role: Optional[str] = None
    stage_presence: Optional[float] = None
    charisma: Optional[float] = None


@dataclass(frozen=True)
class Song:
    id: str
    title: str = ""
    quality_score: Optional[float] = None
    genre: Optional[str] = None


@dataclass(frozen=True)
class SetlistEntry:
    """One slot in a setlist: exactly one of song_id / item_id is set."""
    setlist_id: str
    position: int
    song_id: Optional[str] = None
    item_id: Optional[str] = None
    is_encore: bool = False
    energy_level: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.song_id is None) == (self.item_id is None):
            raise ValueError(
                "SetlistEntry needs exactly one of song_id or item_id")

    @property
    def kind(self) -> ScoreKind:
        return ScoreKind.SONG if self.song_id is not None else ScoreKind.ITEM


@dataclass(frozen=True)
class PerformanceItem:
    """Catalog entry for a non-song stage activity."""
    id: str
    name: str = ""
    crowd_appeal: Optional[float] = None
    required_skill: Optional[str] = None
    min_skill_level: Optional[float] = None
    energy_cost: Optional[float] = None


@dataclass(frozen=True)
class SongRehearsal:
    band_id: str
    song_id: str
    rehearsal_level: float = 0.0


@dataclass(frozen=True)
class Equipment:
    id: str
    band_id: str
    quality_rating: float = 0.0


@dataclass(frozen=True)
class CrewMember:
    id: str
    band_id: str
    skill_level: float = 0.0


@dataclass(frozen=True)
class Venue:
    id: str
    capacity: int = 100
    # genre -> affinity multiplier; None means "no bias declared"
    genre_bias: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class Promoter:
    id: str
    quality_tier: str = "standard"
    reputation: float = 50.0
    crowd_engagement_bonus: float = 0.0


@dataclass(frozen=True)
class VenueRelationship:
    band_id: str
    venue_id: str
    payout_bonus: float = 0.0
    relationship_tier: Optional[str] = None


@dataclass(frozen=True)
class AudienceMemory:
    band_id: str
    city_id: str
    avg_experience_score: float = 50.0
    loyalty_level: Optional[str] = None


@dataclass(frozen=True)
class PromotionPost:
    """A social post; only gig-linked posts count towards buzz."""
    id: str
    band_id: str
    created_at: datetime
    linked_type: str = "gig"


@dataclass(frozen=True)
class Gig:
    id: str
    band_id: str
    venue_id: str
    setlist_id: str
    promoter_id: Optional[str] = None
    city_id: Optional[str] = None


@dataclass(frozen=True)
class GigOutcome:
    id: str
    gig_id: str
    actual_attendance: int = 0


# --- Engine input / output ---

@dataclass(frozen=True)
class PerformanceRequest:
    """Everything needed to score one setlist position."""
    gig_id: str
    setlist_id: str
    venue_id: str
    position: int
    song_id: Optional[str] = None
    item_id: Optional[str] = None
    promoter_id: Optional[str] = None
    city_id: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.song_id is None) == (self.item_id is None):
            raise ValueError(
                "PerformanceRequest needs exactly one of song_id or item_id")
        if self.position < 1:
            raise ValueError(f"position must be >= 1, got {self.position}")

    @property
    def kind(self) -> ScoreKind:
        return ScoreKind.SONG if self.song_id is not None else ScoreKind.ITEM


@dataclass(frozen=True)
class PerformanceRecord:
    """The engine's write: one per (gig, position). Never changes once saved."""
    gig_id: str
    setlist_id: str
    venue_id: str
    position: int
    item_type: ScoreKind
    score: float
    crowd_response: CrowdResponse
    breakdown: Dict[str, float]
    outcome_id: Optional[str] = None
    song_id: Optional[str] = None
    item_id: Optional[str] = None
    title: str = ""
    production: Dict[str, float] = field(default_factory=dict)
    created_at: Optional[datetime] = None


@dataclass
class StageEvent:
    gig_id: str
    position: int
    event_type: StageEventType
    severity: Severity
    impact_score: float
    description: str
    created_at: Optional[datetime] = None


@dataclass
class GigRun:
    """Summary of driving the engine over a setlist."""
    gig_id: str
    records: List[PerformanceRecord] = field(default_factory=list)
    stage_events: List[StageEvent] = field(default_factory=list)
    failures: Dict[int, str] = field(default_factory=dict)
    skipped_positions: List[int] = field(default_factory=list)
    aborted: bool = False
