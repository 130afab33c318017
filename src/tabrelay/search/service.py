"""Search orchestration: fetch the upstream page, extract, aggregate."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol, Sequence

import httpx

from tabrelay.errors import UpstreamFetchError
from tabrelay.metrics.observability import PipelineMetrics, get_logger
from tabrelay.models import AggregatedResult
from tabrelay.search.aggregator import aggregate_results
from tabrelay.search.extractor import extract_results


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for upstream tab search."""

    url: str = "https://www.ultimate-guitar.com/search.php"
    timeout_seconds: float = 10.0
    user_agent: str = "Mozilla/5.0"


class SearchService(Protocol):
    """Return aggregated results for a title query."""

    async def search(self, title: str) -> Sequence[AggregatedResult]:
        """Fetch and aggregate results for ``title``."""


class TabSearchService:
    """Searches Ultimate Guitar by title and keeps one result per artist."""

    def __init__(self, config: SearchConfig | None = None, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config or SearchConfig()
        self._transport = transport
        self._logger = get_logger("search")

    async def fetch_page(self, title: str) -> str:
        params = {"search_type": "title", "value": title}
        headers = {"User-Agent": self._config.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(self._config.url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamFetchError(f"Search request failed: {exc!r}") from exc
        if response.status_code >= 400:
            raise UpstreamFetchError(f"Search page answered {response.status_code}")
        return response.text

    async def search(self, title: str) -> Sequence[AggregatedResult]:
        start = time.perf_counter()
        markup = await self.fetch_page(title)
        raw = extract_results(markup)
        aggregated = aggregate_results(raw)
        duration = time.perf_counter() - start
        PipelineMetrics.observe_search(duration, len(raw), len(aggregated))
        self._logger.info(
            "search.complete",
            title=title,
            raw_count=len(raw),
            result_count=len(aggregated),
            duration_seconds=duration,
        )
        return aggregated
