"""Tests for the parse cache."""

from pathlib import Path

import pytest

from pyreflect.core.errors import ParseError, SourceIOError
from pyreflect.source.cache import SourceCache, parse_source


class TestParseSource:
    """parse_source tests."""

    def test_parses_valid_source(self, tmp_path: Path) -> None:
        """Valid bytes produce a module tree and a digest."""
        parsed = parse_source(tmp_path / "m.py", b"X = 1\n")
        assert parsed.tree.body
        assert len(parsed.digest) == 64
        assert parsed.line_count == 1

    def test_syntax_error_becomes_parse_error(self, tmp_path: Path) -> None:
        """The parser's line number is preserved."""
        with pytest.raises(ParseError) as exc_info:
            parse_source(tmp_path / "bad.py", b"x = 1\ndef broken(:\n")
        assert exc_info.value.line == 2

    def test_undecodable_bytes_raise_source_io_error(self, tmp_path: Path) -> None:
        """A bad coding cookie is an IO error, not a parse error."""
        with pytest.raises(SourceIOError):
            parse_source(tmp_path / "enc.py", b"# -*- coding: nope -*-\nx = 1\n")


class TestSourceCache:
    """SourceCache tests."""

    def test_given_same_path_when_get_twice_then_same_object(self, tmp_path: Path) -> None:
        """A file is parsed once per cache."""
        # Given
        path = tmp_path / "mod.py"
        path.write_text("VALUE = 1\n")
        cache = SourceCache()

        # When
        first = cache.get(path)
        second = cache.get(str(path))

        # Then
        assert first is second
        assert path in cache
        assert len(cache) == 1

    def test_source_changes_ignored_until_evicted(self, tmp_path: Path) -> None:
        """Entries are stable until explicitly evicted."""
        path = tmp_path / "mod.py"
        path.write_text("VALUE = 1\n")
        cache = SourceCache()
        original = cache.get(path)

        path.write_text("VALUE = 2\nOTHER = 3\n")
        assert cache.get(path) is original

        assert cache.evict(path) is True
        assert cache.get(path).line_count == 2
        assert cache.evict(tmp_path / "missing.py") is False

    def test_missing_file_raises_source_io_error(self, tmp_path: Path) -> None:
        """Unreadable paths are reported, not cached."""
        cache = SourceCache()
        with pytest.raises(SourceIOError):
            cache.get(tmp_path / "missing.py")
        assert len(cache) == 0

    def test_parse_failure_does_not_poison_cache(self, tmp_path: Path) -> None:
        """Other files stay usable after one fails to parse."""
        bad = tmp_path / "bad.py"
        bad.write_text("def (:\n")
        good = tmp_path / "good.py"
        good.write_text("X = 1\n")
        cache = SourceCache()

        with pytest.raises(ParseError):
            cache.get(bad)
        assert cache.get_ast(good).body

    def test_clear(self, tmp_path: Path) -> None:
        """clear drops everything."""
        path = tmp_path / "mod.py"
        path.write_text("")
        cache = SourceCache()
        cache.get(path)
        cache.clear()
        assert path not in cache
        assert 42 not in cache
