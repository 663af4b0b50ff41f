# gigsim/errors.py
"""
Exception hierarchy for the engine.

    GigSimError
    +-- MissingEntityError          (required row absent: hard failure)
    |   +-- GigNotFoundError
    |   +-- BandNotFoundError
    |   +-- SongNotFoundError
    |   +-- PerformanceItemNotFoundError
    +-- DuplicatePerformanceError   (second write for a (gig, position))
    +-- StoreError                  (backend failure)

Missing *optional* rows never raise; they fall back to neutral defaults.
"""
from __future__ import annotations

from typing import Optional


class GigSimError(Exception):
    def __init__(
        self,
        message: str = "Gig simulation failed",
        entity_id: Optional[str] = None,
    ) -> None:
        self._message = message
        self._entity_id = entity_id
        super().__init__(message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def entity_id(self) -> Optional[str]:
        return self._entity_id

    def __str__(self) -> str:
        if self._entity_id:
            return f"{self._message} ({self._entity_id})"
        return self._message


class MissingEntityError(GigSimError):
    entity = "entity"

    def __init__(self, entity_id: Optional[str] = None, message: Optional[str] = None) -> None:
        super().__init__(message or f"{self.entity} not found", entity_id)


class GigNotFoundError(MissingEntityError):
    entity = "Gig"


class BandNotFoundError(MissingEntityError):
    entity = "Band"


class SongNotFoundError(MissingEntityError):
    entity = "Song"


class PerformanceItemNotFoundError(MissingEntityError):
    entity = "Performance item"


class DuplicatePerformanceError(GigSimError):
    def __init__(self, gig_id: str, position: int) -> None:
        super().__init__(
            f"Performance already recorded for position {position}", gig_id)
        self.position = position


class StoreError(GigSimError):
    pass
