import logging
import os
import sys
import traceback
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

# Allow running from a checkout without installing the package
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from workout_mix.config_loader import Config  # type: ignore
from workout_mix.credentials import Credential  # type: ignore
from workout_mix.errors import PreconditionError, RunCancelled, TerminalError  # type: ignore
from workout_mix.logging_utils import configure_logging  # type: ignore
from workout_mix.playlist.pipeline import WorkoutPlaylistGenerator  # type: ignore
from workout_mix.workout.store import WorkoutStore  # type: ignore

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.getenv("WORKOUT_MIX_CONFIG", ROOT_DIR / "config.yaml"))

config: Optional[Config] = None
store: Optional[WorkoutStore] = None
generator: Optional[WorkoutPlaylistGenerator] = None

PRECONDITION_STATUS = {
    "unauthenticated": 401,
    "not_found": 404,
    "no_sections": 400,
    "invalid": 400,
}


def _init_services() -> None:
    """Initialize shared services once for the API process."""
    global config, store, generator
    if config and store and generator:
        return

    if config is None:
        if CONFIG_PATH.exists():
            config = Config(str(CONFIG_PATH))
        else:
            logger.warning(f"{CONFIG_PATH} not found, using built-in defaults")
            config = Config.from_dict({})
    if store is None:
        store = WorkoutStore(db_path=config.database_path)
    if generator is None:
        generator = WorkoutPlaylistGenerator.from_config(config, store)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))
    _init_services()
    yield
    if store:
        store.close()


app = FastAPI(title="Workout Mix API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class CreateWorkoutRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None


class SectionPayload(BaseModel):
    name: str = ""
    intensity: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    rounds: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    work: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    rest: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class UpdateSectionsRequest(BaseModel):
    sections: List[SectionPayload]


class GeneratePlaylistRequest(BaseModel):
    workoutId: Optional[str] = None


def _error_response(status_code: int, message: str, exc: Optional[BaseException] = None, **extra: Any) -> JSONResponse:
    payload: Dict[str, Any] = {"error": message, **extra}
    if exc is not None and config is not None and not config.is_production:
        payload["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=payload)


def _credential_from_headers(authorization: Optional[str], expires_at: Optional[str]) -> Credential:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise PreconditionError("Not authenticated", reason="unauthenticated")
    try:
        expiry = float(expires_at) if expires_at else None
    except ValueError:
        raise PreconditionError("Invalid token expiry header", reason="unauthenticated")
    return Credential(access_token=authorization[7:].strip(), expires_at=expiry)


@app.post("/api/workouts")
def create_workout(request: CreateWorkoutRequest):
    _init_services()
    assert store is not None
    if not request.name or not request.type:
        return _error_response(400, "Workout name and type are required")
    workout_id = store.create_workout(request.name, request.type)
    return {"id": workout_id}


@app.get("/api/workouts")
def list_workouts():
    _init_services()
    assert store is not None
    return {"workouts": store.list_workouts()}


@app.get("/api/workouts/{workout_id}")
def get_workout(workout_id: str):
    _init_services()
    assert store is not None
    doc = store.get_workout_document(workout_id)
    if doc is None:
        return _error_response(404, "Workout not found")
    return doc


@app.put("/api/workouts/{workout_id}")
def update_workout_sections(workout_id: str, request: UpdateSectionsRequest):
    _init_services()
    assert store is not None
    sections = [s.model_dump(exclude_none=True) for s in request.sections]
    if not store.update_sections(workout_id, sections):
        return _error_response(404, "Workout not found")
    return {"success": True}


@app.post("/api/playlist/generate")
def generate_playlist(
    request: GeneratePlaylistRequest,
    authorization: Optional[str] = Header(None),
    x_token_expires_at: Optional[str] = Header(None),
):
    """
    Build and publish the playlist for a stored workout.

    Returns {playlistId, playlistUrl}, or {error, status?, details?} on failure.
    """
    _init_services()
    assert generator is not None

    if not request.workoutId:
        return _error_response(400, "workoutId required")

    try:
        credential = _credential_from_headers(authorization, x_token_expires_at)
        result = generator.generate(request.workoutId, credential)
    except PreconditionError as e:
        return _error_response(PRECONDITION_STATUS.get(e.reason, 400), str(e))
    except TerminalError as e:
        logger.error(f"Playlist generation failed: {e}")
        return _error_response(502, str(e), e, status=e.status, call=e.call)
    except RunCancelled as e:
        return _error_response(503, str(e))
    except Exception as e:
        logger.exception("Unexpected error generating playlist")
        return _error_response(500, str(e) or "Failed to generate playlist", e)

    return result.to_payload()
