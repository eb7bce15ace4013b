"""Tests for genre keyword loading and tag normalization."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from workout_mix.genre import (
    DEFAULT_GENRE_KEYWORDS,
    extract_genre_keywords,
    load_genre_keywords,
    normalize_genre_tag,
)

KEYWORDS = frozenset({"jazz", "jazz-rap", "hip-hop", "rock", "house", "deep-house"})


class TestNormalizeGenreTag:
    def test_compound_prefers_hyphenated_form(self):
        assert normalize_genre_tag("jazz rap", KEYWORDS) == ["jazz-rap"]

    def test_unknown_words_dropped(self):
        assert normalize_genre_tag("deep thoughts", KEYWORDS) == []

    def test_single_word(self):
        assert normalize_genre_tag(" Rock ", KEYWORDS) == ["rock"]
        assert normalize_genre_tag("polka", KEYWORDS) == []

    def test_split_when_no_compound(self):
        assert normalize_genre_tag("alternative rock", KEYWORDS) == ["rock"]
        assert normalize_genre_tag("jazz   house", KEYWORDS) == ["jazz", "house"]

    def test_blank_and_non_string(self):
        assert normalize_genre_tag("   ", KEYWORDS) == []
        assert normalize_genre_tag(None, KEYWORDS) == []

    def test_default_set_examples(self):
        assert normalize_genre_tag("hip hop", DEFAULT_GENRE_KEYWORDS) == ["hip-hop"]
        assert normalize_genre_tag("deep house", DEFAULT_GENRE_KEYWORDS) == ["deep-house"]


def test_extract_dedupes_in_first_seen_order():
    tags = ["jazz rap", "rock", "jazz", "Rock", "classic rock"]
    assert extract_genre_keywords(tags, KEYWORDS) == ["jazz-rap", "rock", "jazz"]


class TestLoadGenreKeywords:
    def test_none_returns_default(self):
        assert load_genre_keywords(None) is DEFAULT_GENRE_KEYWORDS

    def test_text_file(self, tmp_path):
        path = tmp_path / "genres.txt"
        path.write_text("# catalog seeds\nHouse\n\ntechno\n", encoding="utf-8")
        assert load_genre_keywords(str(path)) == {"house", "techno"}

    def test_yaml_mapping(self, tmp_path):
        path = tmp_path / "genres.yaml"
        path.write_text("genres:\n  - jazz\n  - jazz-rap\n", encoding="utf-8")
        assert load_genre_keywords(str(path)) == {"jazz", "jazz-rap"}

    def test_yaml_list(self, tmp_path):
        path = tmp_path / "genres.yml"
        path.write_text("- punk\n- ska\n", encoding="utf-8")
        assert load_genre_keywords(str(path)) == {"punk", "ska"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_genre_keywords(str(tmp_path / "nope.txt"))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "genres.txt"
        path.write_text("# nothing here\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_genre_keywords(str(path))

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "genres.yaml"
        path.write_text("genres: house\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_genre_keywords(str(path))
