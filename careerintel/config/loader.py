"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Layers, later ones win:
#
#   1. config/config.yaml  - scheduler job table and static defaults
#   2. .env file           - local developer overrides (not committed)
#   3. Environment vars    - set at deploy time
#
# load_config() reads the YAML first, then deep-merges the values that
# Settings resolved from the environment on top:
#
#   base      = {"scheduler": {"jobs": {...}}}
#   overrides = {"scheduler": {"enabled": False}}
#   result    = {"scheduler": {"jobs": {...}, "enabled": False}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from careerintel.config.settings import Settings

# Used when config/config.yaml is missing (e.g. running from an sdist).
DEFAULT_SCHEDULER_JOBS: dict[str, dict] = {
    "profiles:process-unprocessed": {"interval_seconds": 600, "batch_size": 5},
    "profiles:refresh-stale": {"interval_seconds": 86400, "batch_size": 3},
    "jobs:process-unprocessed": {"interval_seconds": 600, "batch_size": 50},
    "jobs:refresh-stale": {"interval_seconds": 86400, "batch_size": 50},
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Resolved settings; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    yaml_config.setdefault("scheduler", {}).setdefault(
        "jobs", {name: dict(job) for name, job in DEFAULT_SCHEDULER_JOBS.items()}
    )

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "providers": {
            "available": settings.get_available_providers(),
        },
        "store": {
            "backend": settings.store_backend,
            "path": settings.store_db_path,
        },
        "scheduler": {
            "enabled": settings.scheduler_enabled,
            "concurrency": settings.scheduler_concurrency,
            "record_stale_after_days": settings.record_stale_after_days,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
