# -*- coding: utf-8 -*-
"""
Workout Mix - Command line entry point
Generates a catalog playlist whose tracks follow a workout's section intensities
"""
import argparse
import json
import logging
import os
import sys
from typing import Optional

from workout_mix.config_loader import Config
from workout_mix.credentials import Credential
from workout_mix.errors import PreconditionError, RunCancelled, TerminalError
from workout_mix.logging_utils import add_logging_args, configure_logging, resolve_log_level
from workout_mix.playlist.pipeline import GenerationResult, WorkoutPlaylistGenerator
from workout_mix.workout.models import Workout
from workout_mix.workout.store import WorkoutStore

logger = logging.getLogger(__name__)


class WorkoutMixApp:
    """Main application orchestrator"""

    def __init__(self, config_path: Optional[str] = None, log_level: Optional[str] = None, log_file: Optional[str] = None):
        if config_path or os.path.exists(os.getenv("WORKOUT_MIX_CONFIG", "config.yaml")):
            self.config = Config(config_path)
        else:
            self.config = Config.from_dict({})

        # CLI flags win over the config file
        configure_logging(
            level=log_level or self.config.log_level,
            log_file=log_file or self.config.log_file,
            force=True,
        )
        logger.info("Initializing Workout Mix")
        self.store = WorkoutStore(db_path=self.config.database_path)
        self.generator = WorkoutPlaylistGenerator.from_config(self.config, self.store)

    def _credential(self) -> Credential:
        token = self.config.catalog_access_token
        if not token:
            raise PreconditionError(
                "No catalog access token; set CATALOG_ACCESS_TOKEN or catalog.access_token",
                reason="unauthenticated",
            )
        return Credential(access_token=token)

    def run_stored(self, workout_id: str, dry_run: bool = False) -> GenerationResult:
        return self.generator.generate(workout_id, self._credential(), dry_run=dry_run)

    def run_file(self, path: str, dry_run: bool = False) -> GenerationResult:
        """Generate from a workout JSON document instead of the database."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                workout = Workout.from_dict(json.load(f))
        except FileNotFoundError as e:
            raise PreconditionError(f"Workout file not found: {path}", reason="not_found") from e
        except json.JSONDecodeError as e:
            raise PreconditionError(f"Workout file {path} is not valid JSON: {e}", reason="invalid") from e
        except ValueError as e:
            raise PreconditionError(f"Workout file {path} is malformed: {e}", reason="invalid") from e
        token = self._credential().bearer_token()
        return self.generator.generate_for_workout(workout, token, dry_run=dry_run)

    def close(self) -> None:
        self.store.close()


def _print_result(result: GenerationResult) -> None:
    print(f"\nSeeds: {result.seeds.as_dict()}")
    for report in result.sections:
        print(
            f"  [{report.index + 1}] {report.name or '(unnamed)'} "
            f"({report.intensity}): {report.matched_count}/{report.fetch_target} tracks, {report.mode}"
        )
    print(f"Total tracks: {len(result.track_uris)}")
    if result.dry_run:
        print("\nDry run - playlist not created\n")
    else:
        print(f"\nPlaylist created: {result.playlist_url or result.playlist_id}\n")


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Generate a workout playlist matched to section intensity"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--workout-id",
        type=str,
        help="Id of a workout stored in the local database"
    )
    source.add_argument(
        "--workout-file",
        type=str,
        metavar="PATH",
        help="Workout JSON document ({name, type, sections: [...]})"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to config.yaml (default: $WORKOUT_MIX_CONFIG or ./config.yaml)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Select and match tracks without creating the playlist"
    )
    add_logging_args(parser)
    args = parser.parse_args()

    print("\nWorkout Mix\n")
    if args.dry_run:
        print("DRY RUN MODE - No playlist will be created\n")

    app = None
    try:
        cli_level = resolve_log_level(args)
        app = WorkoutMixApp(
            config_path=args.config,
            log_level=None if cli_level == "INFO" else cli_level,
            log_file=args.log_file,
        )
        if args.workout_file:
            result = app.run_file(args.workout_file, dry_run=args.dry_run)
        else:
            result = app.run_stored(args.workout_id, dry_run=args.dry_run)
        _print_result(result)
    except PreconditionError as e:
        print(f"\nCannot generate playlist: {e}\n")
        sys.exit(1)
    except TerminalError as e:
        status = f" (status {e.status})" if e.status else ""
        print(f"\nCatalog request failed{status}: {e}\n")
        sys.exit(1)
    except RunCancelled:
        print("\nCancelled\n")
        sys.exit(1)
    except (FileNotFoundError, ValueError) as e:
        print(f"\nConfiguration Error: {e}")
        print("\nPlease check your config.yaml file.\n")
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error")
        print(f"\nUnexpected Error: {e}\n")
        sys.exit(1)
    finally:
        if app is not None:
            app.close()


if __name__ == "__main__":
    main()
