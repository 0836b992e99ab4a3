"""
Engine settings: defaults, YAML loading and per-tournament overlay.
"""
import logging
import os
from typing import Dict, Optional

import yaml

from .errors import SettingsError

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    'match_duration_minutes': 45,
    'scoring_mode': 'official-only',
    'court_assignment_mode': 'automatic',
    'bracket_reset': True,
    'swiss_rounds': None,
    'qualifiers': 1,
    'recent_results_window': 5,
    'tie_breakers': None,
}

TIE_BREAKER_NAMES = (
    'head_to_head',
    'points_differential',
    'points_against',
    'points_for',
    'buchholz',
    'sonneborn_berger',
    'strength_of_schedule',
)


def _overlay(base: Dict, overrides: Optional[Dict], source: str) -> Dict:
    merged = dict(base)
    if not overrides:
        return merged
    for key, value in overrides.items():
        if key not in DEFAULT_SETTINGS:
            logger.warning(f'Ignoring unknown setting {key!r} from {source}')
            continue
        merged[key] = value
    return merged


def load_settings(path: str) -> Dict:
    """
    Load engine settings from a YAML file and overlay them on the defaults.

    A missing or empty file yields the defaults. Unreadable YAML, or a
    document that is not a mapping, raises SettingsError.
    """
    if not os.path.exists(path):
        logger.debug(f'No settings file at {path}, using defaults')
        return dict(DEFAULT_SETTINGS)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f'Failed to parse {path}: {e}') from e
    if data is None:
        return dict(DEFAULT_SETTINGS)
    if not isinstance(data, dict):
        raise SettingsError(f'Settings file {path} must contain a mapping')
    return _overlay(DEFAULT_SETTINGS, data, path)


def resolve_settings(tournament, defaults: Optional[Dict] = None) -> Dict:
    """Effective settings for a tournament: defaults overlaid by its own settings."""
    base = defaults if defaults is not None else DEFAULT_SETTINGS
    return _overlay(base, getattr(tournament, 'settings', None),
                    f'tournament {getattr(tournament, "id", "?")}')
