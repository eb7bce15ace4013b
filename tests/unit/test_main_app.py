"""Tests for the command line entry point."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

import main_app
from workout_mix.errors import PreconditionError


@pytest.fixture()
def app_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WORKOUT_MIX_CONFIG", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)
    monkeypatch.setenv("CATALOG_ACCESS_TOKEN", "token")
    monkeypatch.setenv("WORKOUT_DB_PATH", ":memory:")
    return tmp_path


@pytest.fixture()
def app(app_env):
    application = main_app.WorkoutMixApp()
    yield application
    application.close()


def test_malformed_workout_file(app, app_env):
    path = app_env / "workout.json"
    path.write_text('{"name": "Leg Day", "sections": [', encoding="utf-8")

    with pytest.raises(PreconditionError) as exc:
        app.run_file(str(path))
    assert exc.value.reason == "invalid"
    assert "not valid JSON" in str(exc.value)


def test_missing_workout_file(app, app_env):
    with pytest.raises(PreconditionError) as exc:
        app.run_file(str(app_env / "missing.json"))
    assert exc.value.reason == "not_found"


def test_workout_file_with_bad_sections(app, app_env):
    path = app_env / "workout.json"
    path.write_text('{"name": "Leg Day", "type": "strength", "sections": "all"}', encoding="utf-8")

    with pytest.raises(PreconditionError) as exc:
        app.run_file(str(path))
    assert exc.value.reason == "invalid"


def test_cli_reports_bad_workout_file(app_env, monkeypatch, capsys):
    path = app_env / "workout.json"
    path.write_text("not json", encoding="utf-8")
    monkeypatch.setattr(sys, "argv", ["workout-mix", "--workout-file", str(path)])

    with pytest.raises(SystemExit) as exc:
        main_app.main()

    out = capsys.readouterr().out
    assert exc.value.code == 1
    assert "not valid JSON" in out
    assert "Configuration Error" not in out
