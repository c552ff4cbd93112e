"""
Cached explanation entry held by the explanation coordinator.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class CachedExplanation(BaseModel):
    """One explanation text with its provenance.

    Attributes:
        key: Cache key, ``"<assessment_id>_<item_id>"`` by convention.
        text: The explanation shown to the user.
        generated_at: UTC time the text was produced.
        is_generator_backed: ``True`` if the text generator produced it,
            ``False`` for the template fallback.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    text: str
    generated_at: datetime
    is_generator_backed: bool

    @field_validator("text")
    @classmethod
    def validate_text_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("text must not be empty.")
        return v.strip()
