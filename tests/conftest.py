"""Test configuration and fixtures."""

import sys
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from workout_mix.errors import CatalogError, RunCancelled
from workout_mix.playlist.pipeline import WorkoutPlaylistGenerator
from workout_mix.workout.store import WorkoutStore


def track(track_id: str) -> Dict[str, str]:
    return {"id": track_id, "uri": f"spotify:track:{track_id}", "name": track_id.upper()}


def features(track_id: str, tempo: float, energy: float, valence: float) -> Dict[str, Any]:
    return {"id": track_id, "tempo": tempo, "energy": energy, "valence": valence}


class FakeCatalog:
    """
    In-memory stand-in for CatalogClient.

    Every method records its call; `fail[method]` raises the given
    CatalogError instead, and `hooks[method]` runs before the method body.
    Once the bound cancel event is set, calls are refused with RunCancelled
    and listed in `refused` instead of `calls`.
    """

    def __init__(self):
        self.profile: Dict[str, Any] = {"id": "user-1", "display_name": None}
        self.top_artists: List[Dict[str, Any]] = []
        self.top_tracks: List[Dict[str, Any]] = []
        self.related: Dict[str, List[Dict[str, Any]]] = {}
        self.artist_tracks: Dict[str, List[Dict[str, Any]]] = {}
        self.genre_tracks: Dict[str, List[Dict[str, Any]]] = {}
        self.features: Dict[str, Dict[str, Any]] = {}
        self.fail: Dict[str, CatalogError] = {}
        self.create_failures: Dict[str, CatalogError] = {}
        self.hooks: Dict[str, Callable[[], None]] = {}
        self.calls: List[tuple] = []
        self.playlists: List[Dict[str, Any]] = []
        self.added: List[List[str]] = []
        self.closed = False
        self.cancel_event: Optional[threading.Event] = None
        self.refused: List[str] = []
        self._lock = threading.Lock()

    def bind(self, cancel_event: threading.Event) -> "FakeCatalog":
        self.cancel_event = cancel_event
        return self

    def _enter(self, method: str, *args) -> None:
        with self._lock:
            if self.cancel_event is not None and self.cancel_event.is_set():
                self.refused.append(method)
                raise RunCancelled("Playlist generation was cancelled")
            self.calls.append((method, *args))
        hook = self.hooks.get(method)
        if hook:
            hook()
        if method in self.fail:
            raise self.fail[method]

    def called(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]

    def get_current_user(self):
        self._enter("get_current_user")
        return dict(self.profile)

    def get_top_items(self, kind, limit=5):
        self._enter(f"get_top_{kind}", limit)
        items = self.top_artists if kind == "artists" else self.top_tracks
        return list(items[:limit])

    def get_related_artists(self, artist_id):
        self._enter("get_related_artists", artist_id)
        return list(self.related.get(artist_id, []))

    def get_artist_top_tracks(self, artist_id, market="US"):
        self._enter("get_artist_top_tracks", artist_id)
        if f"get_artist_top_tracks:{artist_id}" in self.fail:
            raise self.fail[f"get_artist_top_tracks:{artist_id}"]
        return list(self.artist_tracks.get(artist_id, []))

    def search_tracks(self, query, limit=50, market="US"):
        self._enter("search_tracks", query, limit)
        genre = query.split(":", 1)[-1]
        return list(self.genre_tracks.get(genre, []))[:limit]

    def get_audio_features(self, track_ids):
        self._enter("get_audio_features", tuple(track_ids))
        assert len(track_ids) <= 100
        return [self.features.get(i) for i in track_ids]

    def create_playlist(self, owner_id, name, description="", public=False):
        self._enter("create_playlist", owner_id)
        if owner_id in self.create_failures:
            raise self.create_failures[owner_id]
        playlist = {
            "id": f"pl-{len(self.playlists) + 1}",
            "url": f"https://open.spotify.com/playlist/pl-{len(self.playlists) + 1}",
            "owner": owner_id,
            "name": name,
            "description": description,
            "public": public,
        }
        self.playlists.append(playlist)
        return {"id": playlist["id"], "url": playlist["url"]}

    def add_tracks(self, playlist_id, uris):
        self._enter("add_tracks", playlist_id, len(uris))
        assert len(uris) <= 100
        self.added.append(list(uris))
        return {"snapshot_id": f"snap-{len(self.added)}"}

    def close(self):
        self.closed = True

    @property
    def added_uris(self) -> List[str]:
        return [u for batch in self.added for u in batch]


@pytest.fixture()
def fake_catalog():
    return FakeCatalog()


@pytest.fixture()
def workout_store():
    store = WorkoutStore(db_path=":memory:")
    yield store
    store.close()


@pytest.fixture()
def make_generator(workout_store):
    """Build a generator whose client factory always hands out the given fake."""

    def _make(catalog: FakeCatalog, cfg=None, **kwargs) -> WorkoutPlaylistGenerator:
        generator = WorkoutPlaylistGenerator(
            workout_store, lambda token, cancel_event: catalog.bind(cancel_event), cfg, **kwargs
        )
        generator.poll_interval = 0.01
        return generator

    return _make


@pytest.fixture()
def stored_workout(workout_store) -> Callable[..., str]:
    """Create a workout with the given sections and return its id."""

    def _create(sections: List[Dict[str, Any]], name: str = "Leg Day", workout_type: str = "strength") -> str:
        workout_id = workout_store.create_workout(name, workout_type)
        workout_store.update_sections(workout_id, sections)
        return workout_id

    return _create
