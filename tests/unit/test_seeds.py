"""Tests for seed selection."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from workout_mix.playlist.config import SeedConfig
from workout_mix.playlist.seeds import SeedSet, select_seeds

KEYWORDS = frozenset({"jazz", "jazz-rap", "rock", "house"})


def artist(artist_id, *genres):
    return {"id": artist_id, "name": artist_id, "genres": list(genres)}


def test_empty_history_uses_fallback_genre():
    seeds = select_seeds([], [], genre_keywords=KEYWORDS)
    assert seeds == SeedSet(genres=("electronic",))
    assert seeds.as_dict() == {"artists": [], "tracks": [], "genres": ["electronic"]}


def test_priority_and_limits():
    artists = [artist("a1", "jazz rap"), artist("a2", "rock"), artist("a3", "house")]
    tracks = [{"id": "t1"}, {"id": "t2"}, {"id": "t3"}]
    seeds = select_seeds(artists, tracks, genre_keywords=KEYWORDS)
    assert seeds.artists == ("a1", "a2")
    assert seeds.tracks == ("t1", "t2")
    assert seeds.genres == ("jazz-rap",)
    assert seeds.total == 5


def test_genres_come_from_all_top_artists():
    artists = [artist("a1", "deep thoughts"), artist("a2"), artist("a3", "house")]
    seeds = select_seeds(artists, [], genre_keywords=KEYWORDS)
    assert seeds.genres == ("house",)


def test_fallback_genre_when_tags_unusable():
    seeds = select_seeds([artist("a1", "deep thoughts")], [{"id": "t1"}], genre_keywords=KEYWORDS)
    assert seeds.artists == ("a1",)
    assert seeds.tracks == ("t1",)
    assert seeds.genres == ("electronic",)


def test_configured_fallback_genre():
    seeds = select_seeds([], [], genre_keywords=KEYWORDS, cfg=SeedConfig(fallback_genre="house"))
    assert seeds.genres == ("house",)


def test_items_without_ids_skipped():
    seeds = select_seeds([{"genres": ["rock"]}, artist("a1")], [{"name": "x"}], genre_keywords=KEYWORDS)
    assert seeds.artists == ("a1",)
    assert seeds.tracks == ()
    assert seeds.genres == ("rock",)


@pytest.mark.parametrize("n_artists,n_tracks", [(0, 0), (1, 0), (0, 3), (4, 4), (2, 1)])
def test_total_bounds(n_artists, n_tracks):
    artists = [artist(f"a{i}", "rock") for i in range(n_artists)]
    tracks = [{"id": f"t{i}"} for i in range(n_tracks)]
    seeds = select_seeds(artists, tracks, genre_keywords=KEYWORDS)
    assert 1 <= seeds.total <= 5
    assert len(seeds.artists) <= 2
    assert len(seeds.tracks) <= 2
    assert len(seeds.genres) <= 1


def test_no_room_for_genres():
    cfg = SeedConfig(max_artists=3, max_tracks=2, max_total=5)
    artists = [artist(f"a{i}", "rock") for i in range(3)]
    tracks = [{"id": "t1"}, {"id": "t2"}]
    seeds = select_seeds(artists, tracks, genre_keywords=KEYWORDS, cfg=cfg)
    assert seeds.genres == ()
    assert seeds.total == 5
