"""Configuration module - exports Settings, load_config, and the localization table."""

from careerintel.config.loader import load_config
from careerintel.config.localization import LOCALIZATIONS, Localization, get_localization
from careerintel.config.settings import Settings

__all__ = ["LOCALIZATIONS", "Localization", "Settings", "get_localization", "load_config"]
