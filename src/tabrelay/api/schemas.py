"""Pydantic models for the tabrelay API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TabResultModel(BaseModel):
    id: Any = Field(default=None, description="Upstream tab identifier")
    song: Optional[str] = None
    artist: Optional[str] = None
    type: Optional[str] = Field(default=None, description="Upstream category, e.g. Chords or Pro")
    url: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, description="Omitted when upstream has no rating")


class OnSongRequest(BaseModel):
    # Validated by parse_tab_id so that bools and floats are not coerced.
    id: Any = Field(default=None, description="Positive integer tab id")


class WorshipchordsRequest(BaseModel):
    url: Any = Field(default=None, description="Song page on worshipchords.com")


class SubmissionPayload(BaseModel):
    """Finished submission; unknown fields are forwarded untouched."""

    model_config = ConfigDict(extra="allow")

    content: Any = None
    song: Any = None
    artist: Any = None
    id: Any = None
    isManualSubmission: Optional[bool] = None
    requiresAutomation: Optional[bool] = None
