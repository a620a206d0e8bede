"""Tests for input validators and timestamp coercion."""

from datetime import datetime, timedelta, timezone

import pytest

from shortcut_analytics.core.validators import (
    coerce_timestamp,
    is_valid_link,
    normalize_referrer,
    normalize_tags,
    sanitize_shortcut_name,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class TestShortcutName:
    def test_valid_names(self):
        for name in ["docs", "team-wiki", "q4_report", "A1"]:
            assert sanitize_shortcut_name(name) == name

    def test_whitespace_is_trimmed(self):
        assert sanitize_shortcut_name("  docs ") == "docs"

    def test_invalid_names(self):
        for name in ["", "   ", "has space", "../etc", "a/b", "x" * 65, None]:
            assert sanitize_shortcut_name(name) is None, f"Should be invalid: {name!r}"


class TestLinkValidation:
    def test_valid_links(self):
        for link in ["http://example.com", "https://localhost:8080/a?b=c", "https://sub.example.org/path"]:
            assert is_valid_link(link), f"Should be valid: {link}"

    def test_invalid_links(self):
        for link in ["", "example.com", "ftp://example.com", "javascript:alert(1)", "http://"]:
            assert not is_valid_link(link), f"Should be invalid: {link}"


class TestNormalizeReferrer:
    def test_empty_becomes_none(self):
        assert normalize_referrer("") is None
        assert normalize_referrer(None) is None

    def test_referrer_kept_verbatim(self):
        assert normalize_referrer("https://x.com/a?b=1") == "https://x.com/a?b=1"

    def test_blank_becomes_none(self):
        for referrer in ["   ", "\t", "\r\n "]:
            assert normalize_referrer(referrer) is None, f"Should be direct: {referrer!r}"

    def test_surrounding_whitespace_is_stripped(self):
        assert normalize_referrer("  https://x.com/ ") == "https://x.com/"


class TestNormalizeTags:
    def test_cleans_and_dedupes(self):
        assert normalize_tags([" work ", "docs", "", "work", "  "]) == ["work", "docs"]

    def test_none_is_empty(self):
        assert normalize_tags(None) == []

    @pytest.mark.parametrize("tags", [["x" * 65], [str(i) for i in range(33)], [1]])
    def test_invalid_tags(self, tags):
        with pytest.raises(ValueError):
            normalize_tags(tags)


class TestCoerceTimestamp:
    def test_missing_defaults_to_now(self):
        assert coerce_timestamp(None, now=NOW) == NOW

    def test_aware_datetime_is_converted_to_utc(self):
        value = datetime(2026, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=2)))
        assert coerce_timestamp(value, now=NOW) == datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)

    def test_naive_datetime_is_taken_as_utc(self):
        value = datetime(2026, 1, 1, 8, 0)
        assert coerce_timestamp(value, now=NOW) == datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert coerce_timestamp(0, now=NOW) == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert coerce_timestamp("86400", now=NOW) == datetime(1970, 1, 2, tzinfo=timezone.utc)

    def test_iso_string(self):
        assert coerce_timestamp("2026-01-01T08:00:00Z", now=NOW) == datetime(
            2026, 1, 1, 8, 0, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize(
        "value",
        [-1, -0.5, "-100", "yesterday", "", float("nan"), float("inf"), "1e400", True, {"ts": 1}, [1]],
    )
    def test_malformed_values_fall_back_to_now(self, value):
        assert coerce_timestamp(value, now=NOW) == NOW
