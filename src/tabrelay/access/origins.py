"""Origin allow-list matching for cross-origin requests."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from tabrelay.errors import OriginNotAllowed
from tabrelay.metrics.observability import get_logger

WILDCARD = "*"
# One or more DNS labels, e.g. "a" or "a.b".
_LABELS = r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*"


def compile_pattern(pattern: str) -> str:
    """Translate an origin pattern to a regular expression source."""

    if WILDCARD not in pattern:
        return re.escape(pattern)
    return _LABELS.join(re.escape(part) for part in pattern.split(WILDCARD))


class OriginMatcher:
    """Decides whether a request origin is on the allow-list.

    Patterns without ``*`` must match exactly. In a pattern with ``*`` the
    wildcard stands for one or more subdomain labels, so
    ``https://*.example.com`` admits ``https://a.b.example.com`` but not
    ``https://example.com``. A lone ``*`` admits everything.
    """

    def __init__(self, patterns: Iterable[str]) -> None:
        self._patterns: tuple[str, ...] = tuple(p.strip() for p in patterns if p and p.strip())
        self._allow_all = WILDCARD in self._patterns
        self._exact = frozenset(p for p in self._patterns if WILDCARD not in p)
        self._wildcards = tuple(
            re.compile(compile_pattern(p)) for p in self._patterns if WILDCARD in p and p != WILDCARD
        )
        self._logger = get_logger("origins")

    @property
    def patterns(self) -> Sequence[str]:
        return self._patterns

    @property
    def allow_all(self) -> bool:
        return self._allow_all

    def as_regex(self) -> str | None:
        """Single alternation covering every pattern, for CORS middleware."""

        if not self._patterns or self._allow_all:
            return None
        return "|".join(f"(?:{compile_pattern(p)})" for p in self._patterns)

    def is_allowed(self, origin: str | None) -> bool:
        if not origin:
            # Same-origin navigation or a non-browser client.
            return True
        if self._allow_all or origin in self._exact:
            return True
        return any(regex.fullmatch(origin) for regex in self._wildcards)

    def check(self, origin: str | None) -> None:
        if self.is_allowed(origin):
            return
        self._logger.warning("origin.rejected", origin=origin, allowed_origins=list(self._patterns))
        raise OriginNotAllowed(f"Origin {origin!r} is not in the allow-list")


__all__ = ["OriginMatcher", "compile_pattern"]
