#!/usr/bin/env python3
"""
config - Configuration management for ciact.

Settings come from three layers, highest first:
  1. process environment (CI_ACT_POLL_INTERVAL, GITHUB_TOKEN / GH_TOKEN,
     GITHUB_API_URL, CI, DEBUG)
  2. ~/.ciact/config.json
  3. built-in defaults
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_STARTUP_DELAY = 0.12
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_GRACE_PERIOD = 2.0
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_RUNNER = "act"

# Maintenance workflows that never show up in the menu.
DEFAULT_EXCLUSIONS = frozenset({
    "auto-assign.yml",
    "codeql-analysis.yml",
    "danger.yml",
    "dependency-review.yml",
    "discord-notifier.yml",
    "opencollective.yml",
})


@dataclass(frozen=True)
class Settings:
    poll_interval: float = DEFAULT_POLL_INTERVAL
    startup_delay: float = DEFAULT_STARTUP_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    grace_period: float = DEFAULT_GRACE_PERIOD
    token: Optional[str] = None
    api_url: str = DEFAULT_API_URL
    runner: str = DEFAULT_RUNNER
    exclusions: FrozenSet[str] = field(default_factory=lambda: DEFAULT_EXCLUSIONS)
    is_ci: bool = False
    debug: bool = False


def get_config_dir() -> Path:
    """Get the ciact configuration directory."""
    return Path.home() / ".ciact"


def get_config_file() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / "config.json"


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from file; an absent or broken file means defaults."""
    config_file = config_file or get_config_file()

    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_file, e)
        return {}

    if not isinstance(config, dict):
        logger.warning("Ignoring config %s: top level is not an object", config_file)
        return {}
    return config


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "false").strip().lower() == "true"


def _positive_float(raw: Any, default: float, source: str) -> float:
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r, using %ss", source, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s=%r, using %ss", source, raw, default)
        return default
    return value


def _nonempty_str(raw: Any, default: str, source: str) -> str:
    if raw is None or raw == "":
        return default
    if not isinstance(raw, str) or not raw.strip():
        logger.warning("Invalid %s=%r, using %r", source, raw, default)
        return default
    return raw.strip()


def load_settings(env: Optional[Mapping[str, str]] = None,
                  config: Optional[Dict[str, Any]] = None) -> Settings:
    """Merge environment, config file and defaults into Settings."""
    if env is None:
        env = os.environ
    if config is None:
        config = load_config()

    interval = _positive_float(config.get("poll_interval"), DEFAULT_POLL_INTERVAL,
                               "poll_interval")
    interval = _positive_float(env.get("CI_ACT_POLL_INTERVAL"), interval,
                               "CI_ACT_POLL_INTERVAL")

    token = env.get("GITHUB_TOKEN") or env.get("GH_TOKEN") or None

    extra = config.get("exclusions") or []
    if not isinstance(extra, list):
        logger.warning("Ignoring config exclusions: expected a list")
        extra = []

    is_ci = _env_flag(env, "CI")

    return Settings(
        poll_interval=interval,
        startup_delay=0.0 if is_ci else DEFAULT_STARTUP_DELAY,
        request_timeout=_positive_float(config.get("request_timeout"),
                                        DEFAULT_REQUEST_TIMEOUT, "request_timeout"),
        token=token,
        api_url=(env.get("GITHUB_API_URL")
                 or _nonempty_str(config.get("api_url"), DEFAULT_API_URL, "api_url")).rstrip("/"),
        runner=_nonempty_str(config.get("runner"), DEFAULT_RUNNER, "runner"),
        exclusions=DEFAULT_EXCLUSIONS | frozenset(str(x) for x in extra),
        is_ci=is_ci,
        debug=_env_flag(env, "DEBUG"),
    )


def show_config(settings: Settings) -> None:
    """Display the effective configuration."""
    print("\n" + "=" * 60)
    print("CIACT CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {get_config_file()}")
    print()
    print("Settings:")
    print(f"  Poll interval:      {settings.poll_interval:g}s")
    print(f"  Request timeout:    {settings.request_timeout:g}s")
    print(f"  API URL:            {settings.api_url}")
    print(f"  Runner:             {settings.runner}")
    print(f"  Token:              {'set' if settings.token else '(none, anonymous)'}")
    print(f"  CI mode:            {settings.is_ci}")
    print(f"  Excluded workflows: {', '.join(sorted(settings.exclusions))}")
    print()
    print("To modify settings:")
    print("  export CI_ACT_POLL_INTERVAL=10")
    print(f"  Or edit: {get_config_file()}")
    print()
