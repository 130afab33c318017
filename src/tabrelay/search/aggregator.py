"""Per-artist deduplication of search results."""

from __future__ import annotations

from typing import Iterable, List

from tabrelay.models import AggregatedResult, RawSearchResult


def prefers(candidate: RawSearchResult, current: RawSearchResult) -> bool:
    """True when ``candidate`` should replace ``current`` for the same artist.

    A chords entry always beats a non-chords one. Inside the same tier the
    strictly higher rating wins, so on a tie the earlier entry is kept.
    """

    if candidate.is_chords != current.is_chords:
        return candidate.is_chords
    return candidate.sort_rating > current.sort_rating


def aggregate_results(results: Iterable[RawSearchResult]) -> List[AggregatedResult]:
    """Keep one result per artist, in order of each artist's first appearance."""

    winners: dict[str, RawSearchResult] = {}
    for result in results:
        key = result.artist_key
        current = winners.get(key)
        if current is None or prefers(result, current):
            winners[key] = result
    return [AggregatedResult.from_raw(result) for result in winners.values()]


__all__ = ["aggregate_results", "prefers"]
