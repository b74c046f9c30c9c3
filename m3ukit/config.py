"""Configuration management for m3ukit."""
import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get config directory path."""
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", Path.home()))
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / "m3ukit"


@dataclass
class ParserConfig:
    """Fetching, decoding and streaming settings for the parser."""

    timeout: float = 120.0  # large playlists can take minutes
    connect_timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 2.0
    chunk_size: int = 65536
    stream_buffer_size: int = 100  # streamed records kept when the consumer lags
    fallback_encodings: List[str] = field(default_factory=lambda: ["cp1252", "latin-1"])
    user_agent: str = "m3ukit/1.0"
    follow_redirects: bool = True


# Environment variable -> (field name, converter)
ENV_OVERRIDES = {
    "M3UKIT_TIMEOUT": ("timeout", float),
    "M3UKIT_MAX_RETRIES": ("max_retries", int),
    "M3UKIT_STREAM_BUFFER_SIZE": ("stream_buffer_size", int),
}

_config: Optional[ParserConfig] = None


def _apply_env(config: ParserConfig) -> ParserConfig:
    for var, (name, convert) in ENV_OVERRIDES.items():
        raw = os.environ.get(var)
        if raw is None:
            continue
        try:
            setattr(config, name, convert(raw))
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", var, raw, convert.__name__)
    return config


def load_config(path: Optional[Path] = None) -> ParserConfig:
    """Load configuration from file, then apply environment overrides.

    With no path the cached config from the default location is returned.
    """
    global _config
    if path is None and _config is not None:
        return _config

    config_file = Path(path) if path else get_config_dir() / "config.json"
    known = {f.name for f in fields(ParserConfig)}

    config = ParserConfig()
    if config_file.exists():
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
            config = ParserConfig(**{k: v for k, v in data.items() if k in known})
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to load config %s: %s", config_file, e)
            config = ParserConfig()

    config = _apply_env(config)
    if path is None:
        _config = config
    return config


def save_config(config: ParserConfig, path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    global _config
    config_file = Path(path) if path else get_config_dir() / "config.json"
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, "w", encoding="utf-8") as f:
        json.dump(asdict(config), f, indent=2)

    if path is None:
        _config = config


def get_config() -> ParserConfig:
    """Get current configuration."""
    return load_config()
