from __future__ import annotations

import re

import pytest

from tabrelay.access import OriginMatcher
from tabrelay.errors import OriginNotAllowed


def test_absent_origin_is_always_allowed():
    matcher = OriginMatcher([])
    assert matcher.is_allowed(None)
    assert matcher.is_allowed("")


def test_exact_pattern_requires_equality():
    matcher = OriginMatcher(["https://app.example.com"])
    assert matcher.is_allowed("https://app.example.com")
    assert not matcher.is_allowed("https://app.example.com:8443")
    assert not matcher.is_allowed("http://app.example.com")
    assert not matcher.is_allowed("https://app.example.com.evil.net")


def test_wildcard_matches_one_or_more_labels():
    matcher = OriginMatcher(["https://*.example.com"])
    assert matcher.is_allowed("https://a.example.com")
    assert matcher.is_allowed("https://a.b.example.com")
    assert not matcher.is_allowed("https://example.com")
    assert not matcher.is_allowed("https://a.example.com.evil.net")
    assert not matcher.is_allowed("https://evilexample.com")
    assert not matcher.is_allowed("http://a.example.com")


def test_dots_in_patterns_are_literal():
    matcher = OriginMatcher(["https://*.example.com"])
    assert not matcher.is_allowed("https://a.exampleXcom")


def test_lone_wildcard_allows_everything():
    matcher = OriginMatcher(["*"])
    assert matcher.allow_all
    assert matcher.is_allowed("https://anything.test")
    assert matcher.as_regex() is None


def test_check_raises_generic_policy_violation():
    matcher = OriginMatcher(["https://app.example.com"])
    with pytest.raises(OriginNotAllowed) as info:
        matcher.check("https://evil.test")
    assert info.value.status_code == 403
    assert "app.example.com" not in info.value.public_message


def test_regex_agrees_with_matcher():
    matcher = OriginMatcher(["https://app.example.com", "https://*.example.org"])
    regex = re.compile(matcher.as_regex())
    for origin in ("https://app.example.com", "https://x.example.org", "https://example.org", "https://evil.test"):
        assert bool(regex.fullmatch(origin)) == matcher.is_allowed(origin)
