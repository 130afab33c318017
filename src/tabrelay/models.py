"""Shared domain models used across the tabrelay pipelines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

UNKNOWN_ARTIST_KEY = "Unknown"


@dataclass(frozen=True)
class RawSearchResult:
    """One tab entry as found in the scraped search page."""

    id: Any
    song_name: str | None
    artist_name: str | None
    type: str | None
    tab_url: str | None
    rating: float | None = None

    @property
    def artist_key(self) -> str:
        return self.artist_name or UNKNOWN_ARTIST_KEY

    @property
    def is_chords(self) -> bool:
        return (self.type or "").strip().lower() == "chords"

    @property
    def sort_rating(self) -> float:
        return self.rating if self.rating is not None else 0.0


@dataclass(frozen=True)
class AggregatedResult(RawSearchResult):
    """The single result kept for an artist after aggregation."""

    @classmethod
    def from_raw(cls, raw: RawSearchResult) -> "AggregatedResult":
        return cls(
            id=raw.id,
            song_name=raw.song_name,
            artist_name=raw.artist_name,
            type=raw.type,
            tab_url=raw.tab_url,
            rating=raw.rating,
        )

    def to_public(self) -> dict[str, Any]:
        """Shape used on the wire: rating is dropped when absent."""

        payload: dict[str, Any] = {
            "id": self.id,
            "song": self.song_name,
            "artist": self.artist_name,
            "type": self.type,
            "url": self.tab_url,
        }
        if self.rating is not None:
            payload["rating"] = self.rating
        return payload
