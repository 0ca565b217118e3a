"""Configuration models using simple dataclasses."""

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Type
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)

API_KEY_ENV_VAR = "YOUTUBE_API_KEY"


@dataclass
class ApiConfig:
    """YouTube Data API connection settings."""

    api_key: str = ""
    base_url: str = "https://www.googleapis.com/youtube/v3"
    timeout_seconds: float = 15.0
    max_concurrent_requests: int = 4


@dataclass
class SearchConfig:
    """Search, ranking and cache behaviour."""

    # Declared duration bounds; only applied when enforce_duration_filter is set
    min_duration_seconds: int = 60
    max_duration_seconds: int = 600
    enforce_duration_filter: bool = False

    cache_ttl_minutes: float = 60.0
    cache_max_entries: Optional[int] = None
    history_max_entries: int = 10

    max_results: int = 10
    category_id: str = "10"
    order: str = "viewCount"
    region_code: Optional[str] = "AR"
    relevance_language: Optional[str] = "es"

    demo_mode: bool = False
    dedupe_in_flight: bool = True


@dataclass
class StorageConfig:
    """Key-value persistence backend."""

    backend: str = "sqlite"
    path: str = "tunesearch.db"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file_path: str = "tunesearch.log"
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = True


@dataclass
class TuneSearchConfig:
    """Main configuration model."""

    api: ApiConfig = field(default_factory=ApiConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _filter_fields(data: Dict[str, Any], cls: Type[Any]) -> Dict[str, Any]:
    """Return only keys present on the dataclass to avoid TypeErrors."""
    valid_fields = cls.__dataclass_fields__.keys()
    return {k: v for k, v in data.items() if k in valid_fields}


def validate_config(cfg: TuneSearchConfig) -> None:
    """Validate bounds and cross-field consistency."""
    # API validation
    parsed = urlparse(cfg.api.base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("api.base_url must be a valid HTTP/HTTPS URL")
    if not (1 <= cfg.api.timeout_seconds <= 300):
        raise ValueError("api.timeout_seconds must be between 1 and 300")
    if not (1 <= cfg.api.max_concurrent_requests <= 50):
        raise ValueError("api.max_concurrent_requests must be between 1 and 50")

    # Search validation
    if cfg.search.min_duration_seconds < 0:
        raise ValueError("search.min_duration_seconds cannot be negative")
    if cfg.search.max_duration_seconds < cfg.search.min_duration_seconds:
        raise ValueError("search.max_duration_seconds must be >= min_duration_seconds")
    if cfg.search.cache_ttl_minutes <= 0:
        raise ValueError("search.cache_ttl_minutes must be positive")
    if cfg.search.cache_max_entries is not None and cfg.search.cache_max_entries < 1:
        raise ValueError("search.cache_max_entries must be at least 1 when set")
    if not (1 <= cfg.search.history_max_entries <= 1000):
        raise ValueError("search.history_max_entries must be between 1 and 1000")
    if not (1 <= cfg.search.max_results <= 50):
        raise ValueError("search.max_results must be between 1 and 50")
    if cfg.search.region_code and len(cfg.search.region_code) != 2:
        raise ValueError("search.region_code must be a 2-letter ISO code")

    # Storage validation
    if cfg.storage.backend not in ("sqlite", "memory"):
        raise ValueError("storage.backend must be 'sqlite' or 'memory'")
    if cfg.storage.backend == "sqlite" and not cfg.storage.path:
        raise ValueError("storage.path is required for the sqlite backend")

    # Logging validation
    if not (1 <= cfg.logging.max_file_size_mb <= 1000):
        raise ValueError("max_file_size_mb must be between 1 and 1000 MB")
    if not (0 <= cfg.logging.backup_count <= 100):
        raise ValueError("backup_count must be between 0 and 100")

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if cfg.logging.level.upper() not in valid_levels:
        raise ValueError(f"logging.level must be one of: {valid_levels}")


def _apply_environment(cfg: TuneSearchConfig) -> None:
    if not cfg.api.api_key:
        cfg.api.api_key = os.environ.get(API_KEY_ENV_VAR, "")


def load_config(config_path: Optional[str] = None) -> TuneSearchConfig:
    """Load configuration from YAML file or return defaults."""
    if config_path and Path(config_path).exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)

            # Handle None/empty/non-dict configs
            if config_data is None:
                logger.warning(f"Configuration file {config_path} is empty, using defaults")
                config_data = {}
            elif not isinstance(config_data, dict):
                raise ValueError(
                    f"Configuration file must contain a dictionary, got {type(config_data).__name__}"
                )

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except (IOError, OSError) as e:
            raise ValueError(f"Cannot read configuration file {config_path}: {e}")

        try:
            cfg = TuneSearchConfig(
                api=ApiConfig(**_filter_fields(config_data.get("api") or {}, ApiConfig)),
                search=SearchConfig(
                    **_filter_fields(config_data.get("search") or {}, SearchConfig)
                ),
                storage=StorageConfig(
                    **_filter_fields(config_data.get("storage") or {}, StorageConfig)
                ),
                logging=LoggingConfig(
                    **_filter_fields(config_data.get("logging") or {}, LoggingConfig)
                ),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid configuration values in {config_path}: {e}")
    else:
        if config_path:
            logger.warning(f"Configuration file {config_path} not found, using defaults")
        cfg = TuneSearchConfig()

    _apply_environment(cfg)
    try:
        validate_config(cfg)
    except TypeError as e:
        raise ValueError(f"Invalid configuration value types: {e}")
    return cfg


def save_config_template(output_path: str = "config_template.yaml") -> None:
    """Save a template configuration file."""
    config_dict = asdict(TuneSearchConfig())
    # Never write a real key into a template
    config_dict["api"]["api_key"] = ""

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    logger.info(f"Configuration template saved to: {output_path}")
