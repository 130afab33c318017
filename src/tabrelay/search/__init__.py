"""Tab search: page extraction and per-artist aggregation."""

from .aggregator import aggregate_results, prefers
from .extractor import RESULTS_PATH, dig, extract_results, find_data_content
from .service import SearchConfig, SearchService, TabSearchService

__all__ = [
    "RESULTS_PATH",
    "SearchConfig",
    "SearchService",
    "TabSearchService",
    "aggregate_results",
    "dig",
    "extract_results",
    "find_data_content",
    "prefers",
]
