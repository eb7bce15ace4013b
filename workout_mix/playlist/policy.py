"""
Failure tolerance for remote catalog calls.

Every remote call made by the pipeline goes through `attempt()`, which turns
a CatalogError into a `SourceResult` instead of letting it propagate. What
happens next is looked up in a `TolerancePolicy` table keyed by the call:

    ABORT                -> TerminalError, the run stops
    SUBSTITUTE_EMPTY     -> an empty result is used and a warning logged
    SUBSTITUTE_FALLBACK  -> the caller's fallback value is used (degraded mode)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

from workout_mix.errors import CatalogError, NetworkError, TerminalError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RemoteCall(str, Enum):
    CURRENT_USER = "current-user-profile"
    TOP_ARTISTS = "top-artists"
    TOP_TRACKS = "top-tracks"
    RELATED_ARTISTS = "related-artists"
    ARTIST_TOP_TRACKS = "artist-top-tracks"
    GENRE_SEARCH = "genre-search"
    AUDIO_FEATURES = "audio-features"
    CREATE_PLAYLIST = "create-playlist"
    ADD_TRACKS = "add-tracks"


class PolicyAction(str, Enum):
    ABORT = "abort"
    SUBSTITUTE_EMPTY = "substitute-empty"
    SUBSTITUTE_FALLBACK = "substitute-fallback"


class SourceErrorKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP = "http"


DEFAULT_POLICY: Mapping[RemoteCall, PolicyAction] = {
    RemoteCall.CURRENT_USER: PolicyAction.ABORT,
    RemoteCall.TOP_ARTISTS: PolicyAction.SUBSTITUTE_EMPTY,
    RemoteCall.TOP_TRACKS: PolicyAction.SUBSTITUTE_EMPTY,
    RemoteCall.RELATED_ARTISTS: PolicyAction.SUBSTITUTE_EMPTY,
    RemoteCall.ARTIST_TOP_TRACKS: PolicyAction.SUBSTITUTE_EMPTY,
    RemoteCall.GENRE_SEARCH: PolicyAction.SUBSTITUTE_EMPTY,
    RemoteCall.AUDIO_FEATURES: PolicyAction.SUBSTITUTE_FALLBACK,
    RemoteCall.CREATE_PLAYLIST: PolicyAction.ABORT,
    RemoteCall.ADD_TRACKS: PolicyAction.ABORT,
}


@dataclass(frozen=True)
class SourceError:
    call: RemoteCall
    kind: SourceErrorKind
    message: str
    status: Optional[int] = None
    body: Any = None

    @classmethod
    def from_exception(cls, call: RemoteCall, exc: CatalogError) -> "SourceError":
        if isinstance(exc, NetworkError):
            kind = SourceErrorKind.TIMEOUT if "timed out" in str(exc) else SourceErrorKind.NETWORK
        else:
            kind = SourceErrorKind.HTTP
        return cls(call=call, kind=kind, message=str(exc), status=exc.status, body=exc.body)


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    call: RemoteCall
    value: Optional[T] = None
    error: Optional[SourceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def attempt(call: RemoteCall, fn: Callable[..., T], *args, **kwargs) -> SourceResult[T]:
    """Run one remote call, capturing catalog failures as a SourceResult."""
    try:
        return SourceResult(call=call, value=fn(*args, **kwargs))
    except CatalogError as exc:
        return SourceResult(call=call, error=SourceError.from_exception(call, exc))


class TolerancePolicy:
    """Maps each remote call to what the pipeline does when it fails."""

    def __init__(self, table: Optional[Mapping[RemoteCall, PolicyAction]] = None):
        merged: Dict[RemoteCall, PolicyAction] = dict(DEFAULT_POLICY)
        if table:
            merged.update(table)
        self.table = merged

    def action_for(self, call: RemoteCall) -> PolicyAction:
        return self.table[call]

    def resolve(self, result: SourceResult[T], substitute: T, context: str = "") -> T:
        """
        Return the call's value, or apply the policy to its failure.

        Args:
            result: Outcome of `attempt()`
            substitute: Value used for SUBSTITUTE_EMPTY/SUBSTITUTE_FALLBACK
            context: Extra text for the log line (artist id, section name)

        Raises:
            TerminalError: when the call's action is ABORT
        """
        if result.ok:
            return result.value  # type: ignore[return-value]

        err = result.error
        assert err is not None
        action = self.action_for(result.call)
        where = f" ({context})" if context else ""

        if action is PolicyAction.ABORT:
            logger.error(f"{err.call.value} failed{where}: {err.message}")
            raise TerminalError(
                f"{err.call.value} failed{where}: {err.message}",
                call=err.call.value,
                status=err.status,
                body=err.body,
            )

        label = "empty result" if action is PolicyAction.SUBSTITUTE_EMPTY else "fallback"
        logger.warning(f"{err.call.value} failed{where}, continuing with {label}: {err.message}")
        return substitute
