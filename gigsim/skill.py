# gigsim/skill.py
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from gigsim.config import (
    CHARISMA_WEIGHT,
    DEFAULT_STAGE_ATTRIBUTE,
    NEUTRAL_SKILL,
    NEUTRAL_STAGE_SKILL,
    ROLE_SKILLS,
    STAGE_ATTRIBUTE_MAX,
    STAGE_PRESENCE_WEIGHT,
)
from gigsim.models import BandMember
from gigsim.store import GigDataStore
from gigsim.util import clamp_factor, mean


def role_skills(role: Optional[str]) -> Tuple[str, ...]:
    """Skill attributes for an instrument role; loose matches like "Bass (5-string)" count."""
    if not role:
        return ()
    key = role.strip().lower()
    if key in ROLE_SKILLS:
        return ROLE_SKILLS[key]
    for name, attrs in ROLE_SKILLS.items():
        if name in key or key in name:
            return attrs
    return ()


def member_skill(member: BandMember) -> Optional[float]:
    """
    Mean of the member's skill attributes, each pinned to 0..100. When the
    member's role maps to attributes they actually have, only those count.
    Falls back to `skill_contribution`; None when the member has no skill data.
    """
    relevant = set(role_skills(member.role))
    present = {k: v for k, v in member.skills.items() if v is not None}
    chosen = [v for k, v in present.items() if k in relevant] or list(present.values())
    if chosen:
        return mean(clamp_factor(v) for v in chosen)
    if member.skill_contribution is not None:
        return clamp_factor(member.skill_contribution)
    return None


def aggregate_skill(members: Iterable[BandMember]) -> float:
    """
    Average of per-member means across non-touring members.
    Empty bands (or bands with no skill data at all) get the neutral 50.
    """
    per_member = [
        s for s in (member_skill(m) for m in members if not m.is_touring_member)
        if s is not None
    ]
    return mean(per_member, default=NEUTRAL_SKILL)


def stage_skill(members: Iterable[BandMember]) -> float:
    # 60% stage presence + 40% charisma, 0..20 rescaled to 0..100
    scores = []
    for m in members:
        if m.is_touring_member or (m.stage_presence is None and m.charisma is None):
            continue
        presence = m.stage_presence if m.stage_presence is not None else DEFAULT_STAGE_ATTRIBUTE
        charisma = m.charisma if m.charisma is not None else DEFAULT_STAGE_ATTRIBUTE
        blended = presence * STAGE_PRESENCE_WEIGHT + charisma * CHARISMA_WEIGHT
        scores.append(clamp_factor(blended / STAGE_ATTRIBUTE_MAX * 100.0))
    return mean(scores, default=NEUTRAL_STAGE_SKILL)


async def fetch_skill(store: GigDataStore, band_id: str) -> float:
    members = await store.list_band_members(band_id)
    return aggregate_skill(members)
