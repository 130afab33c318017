"""Request access policies: origin allow-list and rate limits."""

from .origins import OriginMatcher, compile_pattern
from .ratelimit import RateLimiter, RateWindow

__all__ = ["OriginMatcher", "RateLimiter", "RateWindow", "compile_pattern"]
