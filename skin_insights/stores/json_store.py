"""
JSON-file implementations of the store protocols.

File layouts
------------
catalog file:
    ``[{...item...}, ...]`` or ``{"items": [...]}``
history file:
    ``[{...assessment...}, ...]`` or ``{"assessments": [...]}``
model output file:
    one raw model-output object (see ``RawModelOutput.from_mapping``), or
    ``null`` when the model produced nothing.

Error policy
------------
- A missing file raises ``FileNotFoundError``; a file that is not valid JSON
  raises ``ValueError``.  Both are caller errors the CLI reports.
- Inside a readable catalog file, a record that fails validation is skipped
  with a WARNING and the rest load.  One bad product never hides the others.
- History records are written by this engine and are loaded strictly.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from skin_insights.analysis.normalizer import RawModelOutput
from skin_insights.models.assessment import Assessment
from skin_insights.models.catalog import CatalogItem
from skin_insights.utils.time_utils import as_utc

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path} is not valid JSON: {exc}") from exc


def _records(data: Any, key: str, path: Path) -> list[Any]:
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list or an object with '{key}'.")
    return data


# ── Catalog ───────────────────────────────────────────────────────────────────


def load_catalog(path: Path) -> list[CatalogItem]:
    """Load catalog items, skipping records that fail validation.

    Returns:
        Valid items in file order.
    """
    items: list[CatalogItem] = []
    skipped = 0
    for idx, record in enumerate(_records(_read_json(path), "items", path)):
        try:
            items.append(CatalogItem.model_validate(record))
        except ValidationError as exc:
            skipped += 1
            logger.warning(
                "Skipping catalog record %d in %s: %d validation error(s).",
                idx, path, exc.error_count(),
            )
    logger.info("Loaded %d catalog items from %s (%d skipped).", len(items), path, skipped)
    return items


class JsonCatalogStore:
    """``CatalogStore`` backed by a JSON file, read once on first use."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._items: Optional[list[CatalogItem]] = None

    def list_items(self) -> list[CatalogItem]:
        if self._items is None:
            self._items = load_catalog(self.path)
        return list(self._items)


# ── Assessment history ────────────────────────────────────────────────────────


def load_assessments(path: Path) -> list[Assessment]:
    """Load assessments in file order, skipping records that fail validation."""
    assessments: list[Assessment] = []
    skipped = 0
    for idx, record in enumerate(_records(_read_json(path), "assessments", path)):
        try:
            assessments.append(Assessment.model_validate(record))
        except ValidationError as exc:
            skipped += 1
            logger.warning(
                "Skipping assessment record %d in %s: %d validation error(s).",
                idx, path, exc.error_count(),
            )
    if skipped:
        logger.info(
            "Loaded %d assessments from %s (%d skipped).", len(assessments), path, skipped
        )
    return assessments


def save_assessments(assessments: Sequence[Assessment], path: Path) -> Path:
    """Write assessments as a pretty-printed JSON list (parents created)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [a.model_dump(mode="json") for a in assessments]
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


class JsonHistoricalStore:
    """``HistoricalStore`` and ``PersistenceSink`` over one JSON history file.

    A missing file reads as an empty history and is created on first save.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def list_assessments(
        self,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> list[Assessment]:
        """Assessments for ``user_id`` (all users when ``None``), oldest first."""
        if not self.path.exists():
            return []
        rows = [
            a for a in load_assessments(self.path)
            if (user_id is None or a.user_id == user_id)
            and (since is None or as_utc(a.captured_at) >= as_utc(since))
        ]
        return sorted(rows, key=lambda a: as_utc(a.captured_at))

    def get_assessment(self, assessment_id: str) -> Optional[Assessment]:
        for a in self.list_assessments():
            if a.assessment_id == assessment_id:
                return a
        return None

    def save_assessments(self, assessments: Sequence[Assessment]) -> int:
        """Append assessments, replacing any existing record with the same id.

        Existing records that no longer validate are not carried over.

        Returns:
            Number of assessments written.
        """
        incoming = {a.assessment_id: a for a in assessments}
        existing = load_assessments(self.path) if self.path.exists() else []
        kept = [a for a in existing if a.assessment_id not in incoming]
        save_assessments(kept + list(incoming.values()), self.path)
        logger.info("Saved %d assessment(s) to %s.", len(incoming), self.path)
        return len(incoming)


# ── Model output ──────────────────────────────────────────────────────────────


def load_model_output(path: Path) -> Optional[RawModelOutput]:
    """Read a raw model-output file; ``None`` when it holds ``null``."""
    data = _read_json(path)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a model output object or null.")
    return RawModelOutput.from_mapping(data)


class JsonModelRunner:
    """``ModelRunner`` replaying a saved model-output file.

    A missing file means the model is not ready and yields ``None``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def run(self) -> Optional[RawModelOutput]:
        if not self.path.exists():
            logger.info("No model output at %s.", self.path)
            return None
        return load_model_output(self.path)
