"""
Catalog API Client - Spotify-style Web API access for playlist generation

Covers the eight endpoints the pipeline drives: profile, top items, related
artists, artist top tracks, track search, audio features, playlist creation
and track append. Every request is rate limited, bounded by a timeout, and
retried on 429/5xx/network failures before surfacing as a CatalogError.
"""
import logging
import threading
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from .errors import CatalogError, NetworkError, RateLimitError, RunCancelled, ServerError
from .logging_utils import redact
from .rate_limiter import RateLimiter
from .retry_helper import retry_with_backoff

logger = logging.getLogger(__name__)


class CatalogClient:
    """Client for the remote music catalog"""

    BASE_URL = "https://api.spotify.com/v1"
    MAX_FEATURE_IDS = 100
    MAX_ADD_URIS = 100
    TOP_ITEM_KINDS = ("artists", "tracks")

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        *,
        timeout: float = 10.0,
        max_retries: int = 3,
        rate_limiter: Optional[RateLimiter] = None,
        cancel_event: Optional[threading.Event] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize catalog client

        Args:
            access_token: Validated bearer token for the current user
            base_url: API root (defaults to BASE_URL)
            timeout: Per-request timeout in seconds
            max_retries: Retries for transient failures (429, 5xx, network)
            rate_limiter: Shared limiter; one run shares one limiter across threads
            cancel_event: When set, pending and retrying calls raise RunCancelled
            session: Pre-built requests session (tests inject a mock)
        """
        if not access_token:
            raise ValueError("access_token is required")
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limiter = rate_limiter or RateLimiter(calls_per_second=10.0)
        self.cancel_event = cancel_event
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        })

        logger.debug(f"Initialized catalog client for {self.base_url} (timeout={timeout}s, retries={max_retries})")

    def _check_cancelled(self, *_args) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RunCancelled("Playlist generation was cancelled")

    def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Single attempt; maps failures onto the CatalogError hierarchy."""
        self._check_cancelled()
        self.rate_limiter.wait()
        self._check_cancelled()

        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, params=params, json=json_body, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"{method} {path} timed out after {self.timeout}s", endpoint=path) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"{method} {path} failed: {e}", endpoint=path) from e

        status = response.status_code
        if 200 <= status < 300:
            if status == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError as e:
                raise CatalogError(
                    f"{method} {path} returned invalid JSON", status=status,
                    body=response.text, endpoint=path,
                ) from e

        body = self._error_body(response)
        message = f"Catalog {method} {path} failed: {status} {redact(body)}"
        if status == 429:
            raise RateLimitError(
                message, retry_after=self._retry_after(response),
                status=status, body=body, endpoint=path,
            )
        if status >= 500:
            raise ServerError(message, status=status, body=body, endpoint=path)
        raise CatalogError(message, status=status, body=body, endpoint=path)

    @staticmethod
    def _error_body(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text or "No error details"

    @staticmethod
    def _retry_after(response: requests.Response) -> Optional[float]:
        raw = response.headers.get("Retry-After")
        if raw is None:
            return None
        try:
            return max(0.0, float(raw))
        except (TypeError, ValueError):
            return None

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Request with retry/backoff for transient failures."""
        send = retry_with_backoff(
            max_retries=self.max_retries,
            initial_delay=0.5,
            max_delay=10.0,
            before_sleep=self._check_cancelled,
        )(self._send)
        return send(method, path, params=params, json_body=json_body)

    # ------------------------------------------------------------------
    # Parsing helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_track(item: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(item, dict) or not item.get("id") or not item.get("uri"):
            return None
        return {"id": item["id"], "uri": item["uri"], "name": item.get("name", "")}

    @staticmethod
    def _parse_artist(item: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(item, dict) or not item.get("id"):
            return None
        genres = item.get("genres") or []
        return {
            "id": item["id"],
            "name": item.get("name", ""),
            "genres": [g for g in genres if isinstance(g, str)],
        }

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def get_current_user(self) -> Dict[str, Any]:
        """Get the profile of the token's user ({id, display_name})"""
        data = self._request("GET", "/me")
        return {"id": data.get("id", ""), "display_name": data.get("display_name")}

    def get_top_items(self, kind: str, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Get the user's top artists or tracks

        Args:
            kind: "artists" or "tracks"
            limit: Number of items to return

        Returns:
            Parsed artists ({id, name, genres}) or tracks ({id, uri, name})
        """
        if kind not in self.TOP_ITEM_KINDS:
            raise ValueError(f"Unsupported top item kind: {kind}")
        data = self._request("GET", f"/me/top/{kind}", params={"limit": limit})
        parse = self._parse_artist if kind == "artists" else self._parse_track
        items = [parse(item) for item in data.get("items") or []]
        parsed = [i for i in items if i]
        logger.debug(f"Retrieved {len(parsed)} top {kind}")
        return parsed

    def get_related_artists(self, artist_id: str) -> List[Dict[str, Any]]:
        data = self._request("GET", f"/artists/{quote(artist_id, safe='')}/related-artists")
        artists = [self._parse_artist(a) for a in data.get("artists") or []]
        return [a for a in artists if a]

    def get_artist_top_tracks(self, artist_id: str, market: str = "US") -> List[Dict[str, Any]]:
        data = self._request(
            "GET", f"/artists/{quote(artist_id, safe='')}/top-tracks", params={"market": market}
        )
        tracks = [self._parse_track(t) for t in data.get("tracks") or []]
        return [t for t in tracks if t]

    def search_tracks(self, query: str, limit: int = 50, market: str = "US") -> List[Dict[str, Any]]:
        """Keyword track search (e.g. query="genre:house")"""
        data = self._request(
            "GET", "/search",
            params={"q": query, "type": "track", "limit": limit, "market": market},
        )
        items = (data.get("tracks") or {}).get("items") or []
        tracks = [self._parse_track(t) for t in items]
        return [t for t in tracks if t]

    def get_audio_features(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """
        Batch audio-feature lookup

        Returns:
            One entry per returned record; unavailable tracks come back as None
        """
        if len(track_ids) > self.MAX_FEATURE_IDS:
            raise ValueError(f"At most {self.MAX_FEATURE_IDS} ids per audio-features request")
        if not track_ids:
            return []
        data = self._request("GET", "/audio-features", params={"ids": ",".join(track_ids)})
        records: List[Optional[Dict[str, Any]]] = []
        for f in data.get("audio_features") or []:
            if not isinstance(f, dict) or not f.get("id"):
                records.append(None)
                continue
            records.append({
                "id": f["id"],
                "tempo": f.get("tempo"),
                "energy": f.get("energy"),
                "valence": f.get("valence"),
            })
        return records

    def create_playlist(
        self,
        owner_id: str,
        name: str,
        description: str = "",
        public: bool = False,
    ) -> Dict[str, Any]:
        """Create a playlist; returns {id, url}"""
        data = self._request(
            "POST", f"/users/{quote(owner_id, safe='')}/playlists",
            json_body={"name": name, "description": description, "public": public},
        )
        url = (data.get("external_urls") or {}).get("spotify") or data.get("href", "")
        return {"id": data.get("id", ""), "url": url}

    def add_tracks(self, playlist_id: str, uris: Sequence[str]) -> Dict[str, Any]:
        if len(uris) > self.MAX_ADD_URIS:
            raise ValueError(f"At most {self.MAX_ADD_URIS} uris per add-tracks request")
        return self._request(
            "POST", f"/playlists/{quote(playlist_id, safe='')}/tracks",
            json_body={"uris": list(uris)},
        )

    def close(self) -> None:
        self.session.close()
