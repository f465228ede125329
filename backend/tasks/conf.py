"""
Settings access for the tasks app.

Values are read from the ``TASK_ANALYZER`` dict in Django settings and fall
back to the defaults below.
"""

import logging

from django.conf import settings

from .scoring import (
    DEFAULT_STRATEGY,
    HIGH_PRIORITY_THRESHOLD,
    MEDIUM_PRIORITY_THRESHOLD,
    STRATEGY_DESCRIPTIONS
)


logger = logging.getLogger(__name__)

DEFAULTS = {
    'DEFAULT_STRATEGY': DEFAULT_STRATEGY,
    'SUGGEST_COUNT': 3,
    'HIGH_PRIORITY_THRESHOLD': HIGH_PRIORITY_THRESHOLD,
    'MEDIUM_PRIORITY_THRESHOLD': MEDIUM_PRIORITY_THRESHOLD,
}


def get_setting(name: str):
    """
    Return a TASK_ANALYZER setting, or its default.

    An unknown DEFAULT_STRATEGY falls back to the built-in default.
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown TASK_ANALYZER setting: {name}")
    user_settings = getattr(settings, 'TASK_ANALYZER', None) or {}
    value = user_settings.get(name, DEFAULTS[name])

    if name == 'DEFAULT_STRATEGY' and value not in STRATEGY_DESCRIPTIONS:
        logger.warning(
            "Ignoring unknown TASK_ANALYZER DEFAULT_STRATEGY %r, using %r",
            value, DEFAULT_STRATEGY
        )
        return DEFAULT_STRATEGY
    return value
