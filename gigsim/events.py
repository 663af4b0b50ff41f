# gigsim/events.py
from __future__ import annotations

import random
from datetime import datetime
from typing import Optional

from gigsim.config import (
    MISHAP_CHANCE,
    MISHAP_MINOR_CHANCE,
    PERFECT_MOMENT_MIN_POSITION,
    PERFECT_MOMENT_THRESHOLD,
    RARE_EVENT_CHANCE,
)
from gigsim.log import get_logger
from gigsim.models import Severity, StageEvent, StageEventType
from gigsim.store import GigDataStore

logger = get_logger(__name__)

MISHAPS = (
    "Guitar string broke mid-solo",
    "Microphone feedback disrupted the song",
    "Drummer dropped a stick",
    "Wrong lyrics sung in the chorus",
)

PERFECT_MOMENT = "The crowd went absolutely wild! Perfect execution!"

# (type, severity, impact, description), equally likely
RARE_EVENTS = (
    (StageEventType.SURPRISE_GUEST, Severity.MINOR, 5.0,
     "A local celebrity jumped on stage to join the performance!"),
    (StageEventType.CROWD_SURGE, Severity.MINOR, 2.0,
     "The crowd surged forward in excitement!"),
    (StageEventType.TECHNICAL_FAILURE, Severity.MAJOR, -5.0,
     "Sound system failed for 30 seconds"),
)


def roll_stage_event(
    rng: random.Random,
    *,
    gig_id: str,
    position: int,
) -> Optional[StageEvent]:
    """
    One primary draw split into disjoint bands:
      < 0.05                    mishap
      > 0.95 and position >= 4  perfect moment
    plus a separate 2% rare roll, drawn every time and used only when
    neither band fired. At most one event per position.
    """
    primary = rng.random()
    rare = rng.random()

    if primary < MISHAP_CHANCE:
        minor = rng.random() < MISHAP_MINOR_CHANCE
        return StageEvent(
            gig_id=gig_id,
            position=position,
            event_type=StageEventType.MISHAP,
            severity=Severity.MINOR if minor else Severity.MODERATE,
            impact_score=-1.0 if minor else -3.0,
            description=rng.choice(MISHAPS),
        )

    if primary > PERFECT_MOMENT_THRESHOLD and position >= PERFECT_MOMENT_MIN_POSITION:
        return StageEvent(
            gig_id=gig_id,
            position=position,
            event_type=StageEventType.PERFECT_MOMENT,
            severity=Severity.MINOR,
            impact_score=3.0,
            description=PERFECT_MOMENT,
        )

    if rare < RARE_EVENT_CHANCE:
        # rescale the 0..0.02 slice to pick one of the three outcomes
        idx = min(len(RARE_EVENTS) - 1, int(rare / RARE_EVENT_CHANCE * len(RARE_EVENTS)))
        event_type, severity, impact, description = RARE_EVENTS[idx]
        return StageEvent(
            gig_id=gig_id,
            position=position,
            event_type=event_type,
            severity=severity,
            impact_score=impact,
            description=description,
        )

    return None


async def generate_stage_event(
    store: GigDataStore,
    rng: random.Random,
    *,
    gig_id: str,
    position: int,
    now: Optional[datetime] = None,
) -> Optional[StageEvent]:
    """Roll and persist. Never raises: a lost stage event is only narrative."""
    event = roll_stage_event(rng, gig_id=gig_id, position=position)
    if event is None:
        return None
    event.created_at = now
    try:
        await store.save_stage_event(event)
    except Exception:
        logger.warning(
            "stage_event_dropped",
            gig_id=gig_id,
            position=position,
            event_type=event.event_type.value,
            exc_info=True,
        )
        return None
    logger.info(
        "stage_event_rolled",
        gig_id=gig_id,
        position=position,
        event_type=event.event_type.value,
        severity=event.severity.value,
        impact=event.impact_score,
    )
    return event
