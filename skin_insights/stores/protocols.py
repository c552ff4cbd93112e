"""
Interfaces of the host-owned collaborators the engine reads from and writes to.

Implementations may be databases, HTTP services or in-memory fakes; the
engine only depends on these method shapes.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from skin_insights.analysis.normalizer import RawModelOutput
from skin_insights.models.assessment import Assessment
from skin_insights.models.catalog import CatalogItem


@runtime_checkable
class CatalogStore(Protocol):
    """Read access to the product catalog."""

    def list_items(self) -> list[CatalogItem]: ...


@runtime_checkable
class HistoricalStore(Protocol):
    """Read access to a user's past assessments."""

    def list_assessments(
        self,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> list[Assessment]: ...

    def get_assessment(self, assessment_id: str) -> Optional[Assessment]: ...


@runtime_checkable
class ModelRunner(Protocol):
    """Source of raw model output; ``None`` when the model path is not ready."""

    def run(self) -> Optional[RawModelOutput]: ...


@runtime_checkable
class PersistenceSink(Protocol):
    """Receives completed assessments for storage."""

    def save_assessments(self, assessments: Sequence[Assessment]) -> int: ...
