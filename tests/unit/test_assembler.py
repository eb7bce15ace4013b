"""Tests for playlist creation and track appending."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from conftest import FakeCatalog
from workout_mix.errors import CatalogError, ServerError, TerminalError
from workout_mix.playlist.assembler import (
    build_draft,
    chunked,
    concat_section_uris,
    create_playlist,
    publish_playlist,
    resolve_owner_ids,
)
from workout_mix.playlist.candidate_pool import CandidateTrack
from workout_mix.playlist.config import PublishConfig
from workout_mix.playlist.matching import MatchMode, MatchResult
from workout_mix.playlist.policy import TolerancePolicy
from workout_mix.workout.models import Workout

WORKOUT = Workout("w1", "Leg Day", "strength")


def test_draft_name_and_description():
    draft = build_draft(WORKOUT)
    assert draft.name == "Leg Day • Auto-generated"
    assert draft.description == "Generated for strength workout via Workout Mix"
    assert draft.public is False


def test_concat_keeps_section_order():
    first = MatchResult([CandidateTrack("a", "u:a"), CandidateTrack("b", "u:b")], MatchMode.STRICT, 2)
    skipped = MatchResult([], MatchMode.SKIPPED, 5)
    last = MatchResult([CandidateTrack("c", "u:c")], MatchMode.RELAXED, 5)
    assert concat_section_uris([first, skipped, last]) == ["u:a", "u:b", "u:c"]


@pytest.mark.parametrize("profile,expected", [
    ({"id": "u1", "display_name": "Jo"}, ("Jo", "u1")),
    ({"id": "u1", "display_name": None}, ("u1", None)),
    ({"id": "u1", "display_name": "u1"}, ("u1", None)),
    ({"id": "", "display_name": "Jo"}, ("Jo", None)),
])
def test_resolve_owner_ids(profile, expected):
    assert resolve_owner_ids(profile) == expected


def test_chunked():
    assert [len(c) for c in chunked([str(i) for i in range(250)], 100)] == [100, 100, 50]
    assert list(chunked([], 100)) == []


class TestCreatePlaylist:
    def test_display_name_first(self):
        catalog = FakeCatalog()
        profile = {"id": "u1", "display_name": "Jo"}
        create_playlist(catalog, profile, build_draft(WORKOUT), policy=TolerancePolicy())
        assert [c[1] for c in catalog.called("create_playlist")] == ["Jo"]

    @pytest.mark.parametrize("status", [400, 403, 404])
    def test_retries_with_user_id(self, status):
        catalog = FakeCatalog()
        catalog.create_failures["Jo"] = CatalogError("bad owner", status=status)
        profile = {"id": "u1", "display_name": "Jo"}
        playlist = create_playlist(catalog, profile, build_draft(WORKOUT), policy=TolerancePolicy())
        assert playlist["id"] == "pl-1"
        assert [c[1] for c in catalog.called("create_playlist")] == ["Jo", "u1"]
        assert catalog.playlists[0]["owner"] == "u1"

    def test_server_error_not_retried(self):
        catalog = FakeCatalog()
        catalog.create_failures["Jo"] = ServerError("down", status=500)
        profile = {"id": "u1", "display_name": "Jo"}
        with pytest.raises(TerminalError) as exc_info:
            create_playlist(catalog, profile, build_draft(WORKOUT), policy=TolerancePolicy())
        assert exc_info.value.status == 500
        assert len(catalog.called("create_playlist")) == 1

    def test_no_distinct_fallback_is_terminal(self):
        catalog = FakeCatalog()
        catalog.create_failures["u1"] = CatalogError("forbidden", status=403, body={"error": "nope"})
        with pytest.raises(TerminalError) as exc_info:
            create_playlist(catalog, {"id": "u1"}, build_draft(WORKOUT), policy=TolerancePolicy())
        assert exc_info.value.call == "create-playlist"
        assert exc_info.value.status == 403
        assert exc_info.value.body == {"error": "nope"}

    def test_fallback_failure_is_terminal(self):
        catalog = FakeCatalog()
        catalog.create_failures["Jo"] = CatalogError("bad owner", status=404)
        catalog.create_failures["u1"] = CatalogError("still bad", status=404)
        with pytest.raises(TerminalError):
            create_playlist(catalog, {"id": "u1", "display_name": "Jo"}, build_draft(WORKOUT), policy=TolerancePolicy())
        assert len(catalog.called("create_playlist")) == 2

    def test_profile_without_identifier(self):
        catalog = FakeCatalog()
        with pytest.raises(TerminalError):
            create_playlist(catalog, {}, build_draft(WORKOUT), policy=TolerancePolicy())
        assert catalog.calls == []


class TestPublishPlaylist:
    def test_batches_of_one_hundred_in_order(self):
        catalog = FakeCatalog()
        uris = [f"spotify:track:{i}" for i in range(230)]
        published = publish_playlist(catalog, {"id": "u1"}, WORKOUT, uris, policy=TolerancePolicy())
        assert [len(b) for b in catalog.added] == [100, 100, 30]
        assert catalog.added_uris == uris
        assert published.track_count == 230
        assert published.url.endswith("pl-1")

    def test_configured_batch_size(self):
        catalog = FakeCatalog()
        uris = [f"u{i}" for i in range(5)]
        publish_playlist(catalog, {"id": "u1"}, WORKOUT, uris, policy=TolerancePolicy(), cfg=PublishConfig(add_batch_size=2))
        assert [len(b) for b in catalog.added] == [2, 2, 1]

    def test_empty_playlist_still_created(self):
        catalog = FakeCatalog()
        published = publish_playlist(catalog, {"id": "u1"}, WORKOUT, [], policy=TolerancePolicy())
        assert published.track_count == 0
        assert len(catalog.playlists) == 1
        assert catalog.added == []

    def test_batch_failure_is_terminal_without_rollback(self):
        catalog = FakeCatalog()
        uris = [f"u{i}" for i in range(150)]

        def fail_second_batch():
            if len(catalog.called("add_tracks")) == 2:
                raise ServerError("down", status=502)

        catalog.hooks["add_tracks"] = fail_second_batch
        with pytest.raises(TerminalError) as exc_info:
            publish_playlist(catalog, {"id": "u1"}, WORKOUT, uris, policy=TolerancePolicy())
        assert exc_info.value.call == "add-tracks"
        assert catalog.added_uris == uris[:100]
        assert len(catalog.playlists) == 1
