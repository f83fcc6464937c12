"""Tests for slicer.lib.envparse module."""

import pytest

from slicer.lib.envparse import load_env, parse_env


class TestParseEnv:
    """Tests for parse_env()."""

    def test_basic(self):
        assert parse_env("A=1\nB_2=two\n") == {"A": "1", "B_2": "two"}

    def test_comments_and_blank_lines(self):
        assert parse_env("# comment\n\nA=1\n") == {"A": "1"}

    def test_strips_quotes(self):
        assert parse_env('A="x y"\nB=\'z\'\n') == {"A": "x y", "B": "z"}

    def test_empty_value(self):
        assert parse_env("A=\n") == {"A": ""}

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="Line 2"):
            parse_env("A=1\nBROKEN\n")

    def test_invalid_key(self):
        with pytest.raises(ValueError, match="Invalid key 'lower'"):
            parse_env("lower=1\n")

    @pytest.mark.parametrize("value", ["`id`", "$(id)", "${HOME}", "a;b", "a && b", "a || b", "a | b"])
    def test_forbidden_patterns(self, value):
        with pytest.raises(ValueError, match="Forbidden pattern"):
            parse_env(f"A={value}\n")


class TestLoadEnv:
    """Tests for load_env()."""

    def test_reads_file(self, tmp_path):
        path = tmp_path / "slicer.env"
        path.write_text("MAX_WORKERS=2\n")
        assert load_env(path) == {"MAX_WORKERS": "2"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_env(tmp_path / "nope.env")
