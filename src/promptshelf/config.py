"""Configuration loading from environment variables and promptshelf.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "promptshelf.toml"
_TRUTHY = {"1", "true", "yes", "on"}


class ConfigurationError(Exception):
    """Raised when required configuration is missing or unusable."""


@dataclass
class WatchConfig:
    """Change watcher settings."""

    enabled: bool = True
    poll_interval: float = 0.1
    stabilization_delay: float = 0.2


@dataclass
class SearchConfig:
    """Fuzzy search and ranking settings."""

    limit: int = 50
    threshold: float = 0.4
    min_match_length: int = 2
    recency_window_days: float = 30.0
    recency_weight: float = 0.25


@dataclass
class ContextConfig:
    """Which ambient context values are captured by default."""

    clipboard: bool = True
    selection: bool = False
    application: bool = False
    date: bool = True


@dataclass
class PromptshelfConfig:
    """Top-level promptshelf configuration."""

    prompts_path: Path | None = None
    watch: WatchConfig = field(default_factory=WatchConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    context: ContextConfig = field(default_factory=ContextConfig)
    log_level: str = "INFO"
    debug_log: bool = False

    def require_prompts_path(self) -> Path:
        """Return the prompts root or raise if none is configured."""
        if self.prompts_path is None or not str(self.prompts_path).strip():
            raise ConfigurationError("No prompts root configured")
        return self.prompts_path


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return bool(default)
    return value.strip().lower() in _TRUTHY


def load_config(config_path: Path | None = None) -> PromptshelfConfig:
    """Load configuration from environment variables and optional promptshelf.toml.

    Priority: environment variables > promptshelf.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.promptshelf/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".promptshelf" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    watch_data = file_data.get("watch", {})
    search_data = file_data.get("search", {})
    context_data = file_data.get("context", {})

    prompts_path = os.getenv("PROMPTSHELF_PROMPTS_PATH", file_data.get("prompts_path"))

    config = PromptshelfConfig(
        prompts_path=Path(prompts_path).expanduser() if prompts_path else None,
        watch=WatchConfig(
            enabled=_env_bool("PROMPTSHELF_WATCH", watch_data.get("enabled", True)),
            poll_interval=float(
                os.getenv("PROMPTSHELF_POLL_INTERVAL", watch_data.get("poll_interval", 0.1))
            ),
            stabilization_delay=float(
                os.getenv(
                    "PROMPTSHELF_STABILIZATION_DELAY",
                    watch_data.get("stabilization_delay", 0.2),
                )
            ),
        ),
        search=SearchConfig(
            limit=int(os.getenv("PROMPTSHELF_SEARCH_LIMIT", search_data.get("limit", 50))),
            threshold=float(search_data.get("threshold", 0.4)),
            min_match_length=int(search_data.get("min_match_length", 2)),
            recency_window_days=float(search_data.get("recency_window_days", 30.0)),
            recency_weight=float(search_data.get("recency_weight", 0.25)),
        ),
        context=ContextConfig(
            clipboard=bool(context_data.get("clipboard", True)),
            selection=bool(context_data.get("selection", False)),
            application=bool(context_data.get("application", False)),
            date=bool(context_data.get("date", True)),
        ),
        log_level=os.getenv("PROMPTSHELF_LOG_LEVEL", file_data.get("log_level", "INFO")),
        debug_log=_env_bool("PROMPTSHELF_DEBUG_LOG", file_data.get("debug_log", False)),
    )
    return config
