"""Tests for filesystem-safe naming (flowsplit/extract/naming.py)."""

import pytest

from flowsplit.extract.naming import NameResolver, entity_basename, sanitize_name


class TestSanitizeName:
    """Tests for sanitize_name."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Process Data", "Process_Data"),
            ("a/b\\c", "a-b-c"),
            ('x:y*z?"<>|', "x-y-z-----"),
            ("  padded  ", "padded"),
            ("tabs\tand   spaces", "tabs_and_spaces"),
            ("already_safe-name", "already_safe-name"),
        ],
    )
    def test_replaces_unsafe_characters(self, raw, expected):
        assert sanitize_name(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", 42])
    def test_placeholder_for_unusable_names(self, raw):
        assert sanitize_name(raw, "unnamed-function") == "unnamed-function"

    def test_result_has_no_separators(self):
        """A sanitized name never escapes its directory."""
        result = sanitize_name("../../etc/passwd")
        assert "/" not in result
        assert "\\" not in result


class TestEntityBasename:
    """Tests for entity_basename."""

    def test_lowercases_and_dashes(self):
        assert entity_basename("My Dashboard") == "my-dashboard"

    def test_unsafe_characters(self):
        assert entity_basename("Ops: Alerts/Main") == "ops--alerts-main"

    def test_fallback(self):
        assert entity_basename("", fallback="abc123") == "abc123"


class TestNameResolver:
    """Tests for per-pass collision handling."""

    def test_first_occurrence_keeps_name(self):
        resolver = NameResolver()
        resolved = resolver.resolve("Foo")
        assert resolved.sanitized == "Foo"
        assert resolved.file_name == "Foo"

    def test_repeats_get_ordinal_suffix(self):
        resolver = NameResolver()
        names = [resolver.resolve("Foo").file_name for _ in range(3)]
        assert names == ["Foo", "Foo(2)", "Foo(3)"]

    def test_collision_after_sanitizing(self):
        """Names that differ only in unsafe characters still collide."""
        resolver = NameResolver()
        assert resolver.resolve("a/b").file_name == "a-b"
        assert resolver.resolve("a:b").file_name == "a-b(2)"

    def test_placeholders_collide_too(self):
        resolver = NameResolver()
        assert resolver.resolve("", "unnamed-function").file_name == "unnamed-function"
        assert resolver.resolve(None, "unnamed-function").file_name == "unnamed-function(2)"

    def test_literal_suffix_after_collision(self):
        resolver = NameResolver()
        names = [resolver.resolve(n).file_name for n in ("Foo", "Foo", "Foo(2)")]
        assert names == ["Foo", "Foo(2)", "Foo(2)(2)"]
        assert len(set(names)) == 3

    def test_collision_after_literal_suffix(self):
        resolver = NameResolver()
        names = [resolver.resolve(n).file_name for n in ("Foo(2)", "Foo", "Foo")]
        assert names == ["Foo(2)", "Foo", "Foo(3)"]

    def test_reset(self):
        resolver = NameResolver()
        resolver.resolve("Foo")
        resolver.reset()
        assert resolver.resolve("Foo").file_name == "Foo"

    def test_claim_registers_raw_stem(self):
        resolver = NameResolver()
        assert resolver.claim("dashboard") == "dashboard"
        assert resolver.claim("dashboard") == "dashboard(2)"
