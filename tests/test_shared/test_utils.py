"""Tests for shared file utilities."""
from __future__ import annotations

from src.shared.utils import atomic_write_json, atomic_write_text, ensure_dir, load_json


class TestAtomicWrites:
    def test_write_text_creates_parents(self, tmp_dir):
        target = tmp_dir / "a" / "b" / "file.txt"
        assert atomic_write_text(target, "hello") == target
        assert target.read_text(encoding="utf-8") == "hello"
        assert not (target.parent / "file.txt.tmp").exists()

    def test_write_json_round_trip(self, tmp_dir):
        target = atomic_write_json(tmp_dir / "data.json", {"a": 1})
        assert load_json(target) == {"a": 1}


class TestLoadJson:
    def test_missing_file(self, tmp_dir):
        assert load_json(tmp_dir / "missing.json") is None

    def test_invalid_json(self, tmp_dir):
        path = tmp_dir / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_json(path) is None


def test_ensure_dir(tmp_dir):
    path = ensure_dir(tmp_dir / "x" / "y")
    assert path.is_dir()
