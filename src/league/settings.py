"""
Per-format tournament settings.

Defaults can be overridden from a YAML file with a ``tournament_settings``
mapping keyed by format, for example::

    tournament_settings:
      ladder:
        max_rungs: 2
      killer:
        starting_lives: 5
"""
import copy
import os
from typing import Dict, Optional

import yaml

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

DEFAULT_SETTINGS = {
    'single_elimination': {'seeded': False},
    'double_elimination': {'seeded': False},
    'round_robin': {},
    'swiss': {'num_rounds': None},
    'ladder': {'randomize': True, 'max_rungs': 3},
    'killer': {'starting_lives': 3},
}

BOOLEAN_KEYS = {'seeded', 'randomize'}
POSITIVE_INT_KEYS = {'max_rungs', 'starting_lives'}
OPTIONAL_POSITIVE_INT_KEYS = {'num_rounds'}


class SettingsError(ValueError):
    """Raised when a tournament setting has an invalid value."""


def load_settings(path: Optional[str] = None) -> Dict[str, Dict]:
    """
    Load settings from YAML, layered over DEFAULT_SETTINGS.
    A missing or empty file gives the defaults.
    """
    settings = copy.deepcopy(DEFAULT_SETTINGS)
    if not path or not os.path.exists(path):
        return settings

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise SettingsError(f"{path} must contain a mapping")

    overrides = data.get('tournament_settings') or {}
    if not isinstance(overrides, dict):
        raise SettingsError(f"tournament_settings in {path} must be a mapping")

    for format_type, values in overrides.items():
        if format_type not in settings:
            raise SettingsError(f"Unknown format '{format_type}' in {path}")
        settings[format_type] = resolve_config(format_type, values, settings)
    return settings


def _check(key: str, value) -> None:
    if key in BOOLEAN_KEYS and not isinstance(value, bool):
        raise SettingsError(f"'{key}' must be true or false")
    if key in POSITIVE_INT_KEYS or key in OPTIONAL_POSITIVE_INT_KEYS:
        if value is None and key in OPTIONAL_POSITIVE_INT_KEYS:
            return
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise SettingsError(f"'{key}' must be an integer >= 1")


def resolve_config(format_type: str, overrides: Optional[Dict] = None,
                   settings: Optional[Dict[str, Dict]] = None) -> Dict:
    """Merge caller overrides into a format's defaults and validate them."""
    settings = settings or DEFAULT_SETTINGS
    if format_type not in settings:
        raise SettingsError(f"Unknown format '{format_type}'")
    if overrides is not None and not isinstance(overrides, dict):
        raise SettingsError(f"Settings for {format_type} must be a mapping")

    config = dict(settings[format_type])
    for key, value in (overrides or {}).items():
        if key not in DEFAULT_SETTINGS[format_type]:
            raise SettingsError(f"Unknown setting '{key}' for {format_type}")
        _check(key, value)
        config[key] = value
    return config
