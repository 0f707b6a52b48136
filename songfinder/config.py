"""Configuration models using simple dataclasses."""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Type
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ProviderConfig:
    """External source configuration."""

    lyrics_api_url: str = "https://api.lyrics.ovh/v1"
    lyrics_timeout_seconds: float = 10.0
    lyrics_max_attempts: int = 3
    lyrics_backoff_seconds: float = 0.5
    lyrics_user_agent: str = "SongFinder/1.0"

    video_search_url: str = "https://www.youtube.com/results"


@dataclass
class CacheConfig:
    """Lookup cache configuration."""

    enabled: bool = True
    max_size: int = 1000
    ttl_seconds: Optional[float] = None  # None keeps entries until evicted


@dataclass
class MatchingConfig:
    """Fuzzy matching configuration."""

    min_similarity: float = 0.8
    artist_weight: float = 0.6
    retry_simplified: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file_path: str = "songfinder.log"
    max_file_size_mb: int = 10
    backup_count: int = 3
    console_output: bool = True


@dataclass
class SongFinderConfig:
    """Main configuration model."""

    providers: ProviderConfig = field(default_factory=ProviderConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _filter_fields(data: Dict[str, Any], cls: Type[Any]) -> Dict[str, Any]:
    """Return only keys present on the dataclass to avoid TypeErrors."""
    valid_fields = cls.__dataclass_fields__.keys()
    return {k: v for k, v in data.items() if k in valid_fields}


def validate_config(cfg: SongFinderConfig) -> None:
    """Validate configuration values with bounds checking."""

    def validate_url(url: str, name: str):
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"{name} must be a valid HTTP/HTTPS URL")
        if not parsed.netloc:
            raise ValueError(f"{name} must have a valid hostname")

    validate_url(cfg.providers.lyrics_api_url, "lyrics_api_url")
    validate_url(cfg.providers.video_search_url, "video_search_url")

    if not (0 < cfg.providers.lyrics_timeout_seconds <= 120):
        raise ValueError("lyrics_timeout_seconds must be between 0 and 120")
    if not (1 <= cfg.providers.lyrics_max_attempts <= 10):
        raise ValueError("lyrics_max_attempts must be between 1 and 10")
    if cfg.providers.lyrics_backoff_seconds < 0:
        raise ValueError("lyrics_backoff_seconds cannot be negative")

    if not (1 <= cfg.cache.max_size <= 1_000_000):
        raise ValueError("cache.max_size must be between 1 and 1000000")
    if cfg.cache.ttl_seconds is not None and cfg.cache.ttl_seconds <= 0:
        raise ValueError("cache.ttl_seconds must be positive when set")

    if not (0.1 <= cfg.matching.min_similarity <= 1.0):
        raise ValueError("matching.min_similarity must be between 0.1 and 1.0")
    if not (0.0 <= cfg.matching.artist_weight <= 1.0):
        raise ValueError("matching.artist_weight must be between 0 and 1")

    if not (1 <= cfg.logging.max_file_size_mb <= 1000):
        raise ValueError("max_file_size_mb must be between 1 and 1000 MB")
    if not (0 <= cfg.logging.backup_count <= 100):
        raise ValueError("backup_count must be between 0 and 100")

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if cfg.logging.level.upper() not in valid_levels:
        raise ValueError(f"logging.level must be one of: {valid_levels}")


def load_config(config_path: Optional[str] = None) -> SongFinderConfig:
    """Load configuration from YAML file or return defaults."""
    if not (config_path and Path(config_path).exists()):
        cfg = SongFinderConfig()
        validate_config(cfg)
        return cfg

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
    except (IOError, OSError) as e:
        raise ValueError(f"Cannot read configuration file {config_path}: {e}")

    if config_data is None:
        logger.warning(f"Configuration file {config_path} is empty, using defaults")
        config_data = {}
    elif not isinstance(config_data, dict):
        raise ValueError(
            f"Configuration file must contain a dictionary, got {type(config_data).__name__}"
        )

    try:
        cfg = SongFinderConfig(
            providers=ProviderConfig(
                **_filter_fields(config_data.get("providers") or {}, ProviderConfig)
            ),
            cache=CacheConfig(**_filter_fields(config_data.get("cache") or {}, CacheConfig)),
            matching=MatchingConfig(
                **_filter_fields(config_data.get("matching") or {}, MatchingConfig)
            ),
            logging=LoggingConfig(
                **_filter_fields(config_data.get("logging") or {}, LoggingConfig)
            ),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration values in {config_path}: {e}")

    validate_config(cfg)
    return cfg


def save_config_template(output_path: str = "songfinder.yaml"):
    """Save a template configuration file."""
    config_dict = asdict(SongFinderConfig())

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    logger.info(f"Configuration template saved to: {output_path}")
