"""Pull the embedded result set out of a fetched search page."""

from __future__ import annotations

import json
import math
from typing import Any, Iterable, List, Mapping

from bs4 import BeautifulSoup

from tabrelay.errors import UpstreamFormatError
from tabrelay.metrics.observability import get_logger
from tabrelay.models import RawSearchResult

# The page ships its state as JSON in the data-content attribute of a
# <div class="js-store">.
STORE_CLASS = "js-store"
RESULTS_PATH: tuple[str, ...] = ("store", "page", "data", "results")

_logger = get_logger("extractor")


def find_data_content(markup: str) -> str | None:
    soup = BeautifulSoup(markup, "html.parser")
    store = soup.find("div", class_=STORE_CLASS)
    if store is None:
        return None
    # The parser decodes entities in a single pass, so "&amp;quot;" becomes "&quot;".
    content = store.get("data-content")
    return content if isinstance(content, str) else None


def dig(data: Any, path: Iterable[str]) -> Any:
    """Follow ``path`` through nested mappings, or return None when absent."""

    current = data
    for key in path:
        if not isinstance(current, Mapping) or key not in current:
            return None
        current = current[key]
    return current


def _coerce_rating(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(rating) or rating < 0:
        return None
    return rating


def _coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def to_raw_result(item: Mapping[str, Any]) -> RawSearchResult:
    return RawSearchResult(
        id=item.get("id"),
        song_name=_coerce_text(item.get("song_name")),
        artist_name=_coerce_text(item.get("artist_name")),
        type=_coerce_text(item.get("type")),
        tab_url=_coerce_text(item.get("tab_url")),
        rating=_coerce_rating(item.get("rating")),
    )


def extract_results(markup: str) -> List[RawSearchResult]:
    """Return the search results embedded in ``markup``.

    A page without the data attribute, or whose data has no results array,
    means "no results". A data attribute that is not valid JSON means the
    upstream format changed and raises :class:`UpstreamFormatError`.
    """

    decoded = find_data_content(markup)
    if decoded is None:
        _logger.info("extract.no_data_content", markup_length=len(markup))
        return []
    try:
        data = json.loads(decoded)
    except json.JSONDecodeError as exc:
        raise UpstreamFormatError(f"Embedded search data is not valid JSON: {exc}") from exc

    items = dig(data, RESULTS_PATH)
    if not isinstance(items, list):
        _logger.info("extract.no_results_path", path=".".join(RESULTS_PATH))
        return []
    return [to_raw_result(item) for item in items if isinstance(item, Mapping)]


__all__ = ["RESULTS_PATH", "STORE_CLASS", "dig", "extract_results", "find_data_content", "to_raw_result"]
