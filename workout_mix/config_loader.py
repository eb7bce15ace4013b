"""
Configuration Loader - Manages YAML configuration and environment variables
"""
import yaml
import os
from typing import Any, Dict, Optional


DEFAULT_CONFIG_PATH = "config.yaml"


class Config:
    """Configuration manager for Workout Mix"""

    def __init__(self, config_path: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        """
        Args:
            config_path: YAML file to load (defaults to $WORKOUT_MIX_CONFIG or config.yaml)
            data: Already-parsed configuration; skips the file entirely
        """
        self.config_path = config_path or os.getenv('WORKOUT_MIX_CONFIG', DEFAULT_CONFIG_PATH)
        self.config = data if data is not None else self._load_config()
        self._validate_config()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        return cls(config_path="<dict>", data=data)

    def _load_config(self) -> dict:
        """Load configuration from YAML file"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}

    def _validate_config(self):
        """Validate value ranges; every field has a default so none is required"""
        if not isinstance(self.config, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")

        positive_fields = [
            ('catalog', 'timeout_seconds', self.catalog_timeout_seconds),
            ('catalog', 'calls_per_second', self.catalog_calls_per_second),
            ('playlist', 'avg_seconds_per_track', self.avg_seconds_per_track),
            ('playlist', 'min_tracks_per_section', self.min_tracks_per_section),
            ('playlist', 'add_batch_size', self.add_batch_size),
            ('concurrency', 'section_workers', self.section_workers),
            ('concurrency', 'fetch_workers', self.fetch_workers),
        ]
        for section, field, value in positive_fields:
            if value <= 0:
                raise ValueError(f"{section}.{field} must be positive (got {value})")

        if self.catalog_max_retries < 0:
            raise ValueError(f"catalog.max_retries must be >= 0 (got {self.catalog_max_retries})")
        if self.max_tracks_per_section < self.min_tracks_per_section:
            raise ValueError(
                "playlist.max_tracks_per_section must be >= playlist.min_tracks_per_section"
            )
        if self.add_batch_size > 100:
            raise ValueError("playlist.add_batch_size cannot exceed the catalog limit of 100")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            section: Configuration section
            key: Configuration key
            default: Default value if not found

        Returns:
            Configuration value or default
        """
        if section not in self.config or not isinstance(self.config[section], dict):
            return default
        return self.config[section].get(key, default)

    # Catalog
    @property
    def catalog_base_url(self) -> str:
        return self.get('catalog', 'base_url', 'https://api.spotify.com/v1')

    @property
    def catalog_market(self) -> str:
        return self.get('catalog', 'market', 'US')

    @property
    def catalog_timeout_seconds(self) -> float:
        """Per-request timeout; a timeout counts as a failed call"""
        return float(self.get('catalog', 'timeout_seconds', 10))

    @property
    def catalog_max_retries(self) -> int:
        return int(self.get('catalog', 'max_retries', 3))

    @property
    def catalog_calls_per_second(self) -> float:
        return float(self.get('catalog', 'calls_per_second', 10.0))

    @property
    def catalog_access_token(self) -> str:
        """Get catalog bearer token (with environment variable override)"""
        return os.getenv('CATALOG_ACCESS_TOKEN') or self.get('catalog', 'access_token', '') or ''

    # Playlist
    @property
    def avg_seconds_per_track(self) -> int:
        return int(self.get('playlist', 'avg_seconds_per_track', 210))

    @property
    def min_tracks_per_section(self) -> int:
        return int(self.get('playlist', 'min_tracks_per_section', 5))

    @property
    def max_tracks_per_section(self) -> int:
        return int(self.get('playlist', 'max_tracks_per_section', 20))

    @property
    def playlist_public(self) -> bool:
        return bool(self.get('playlist', 'public', False))

    @property
    def playlist_description_template(self) -> str:
        return self.get('playlist', 'description_template', 'Generated for {type} workout via Workout Mix')

    @property
    def add_batch_size(self) -> int:
        return int(self.get('playlist', 'add_batch_size', 100))

    # Seeds
    @property
    def fallback_genre(self) -> str:
        return self.get('seeds', 'fallback_genre', 'electronic')

    @property
    def genre_keywords_path(self) -> Optional[str]:
        """Optional keyword file replacing the built-in genre keyword list"""
        return os.getenv('GENRE_KEYWORDS_PATH') or self.get('seeds', 'genre_keywords_path')

    @property
    def top_items_limit(self) -> int:
        return int(self.get('seeds', 'top_items_limit', 5))

    # Concurrency
    @property
    def section_workers(self) -> int:
        return int(self.get('concurrency', 'section_workers', 3))

    @property
    def fetch_workers(self) -> int:
        return int(self.get('concurrency', 'fetch_workers', 5))

    # Storage / runtime
    @property
    def database_path(self) -> str:
        return os.getenv('WORKOUT_DB_PATH') or self.get('storage', 'database_path', 'data/workouts.db')

    @property
    def log_level(self) -> str:
        return self.get('logging', 'level', 'INFO')

    @property
    def log_file(self) -> Optional[str]:
        return self.get('logging', 'file')

    @property
    def environment(self) -> str:
        return os.getenv('WORKOUT_MIX_ENV') or self.config.get('environment', 'development')

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == 'production'
