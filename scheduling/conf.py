"""
Engine defaults, overridable through ``settings.SCHEDULING``.
"""

from django.conf import settings

from .types import (
    DEFAULT_GRACE_MINUTES,
    DEFAULT_HORIZON_WEEKS,
    DEFAULT_JOIN_LEAD_MINUTES,
    DEFAULT_MAX_ADVANCE_DAYS,
    DEFAULT_SLOT_GRANULARITY_MINUTES,
)

DEFAULTS = {
    'HORIZON_WEEKS': DEFAULT_HORIZON_WEEKS,
    'SLOT_GRANULARITY_MINUTES': DEFAULT_SLOT_GRANULARITY_MINUTES,
    'GRACE_MINUTES': DEFAULT_GRACE_MINUTES,
    'JOIN_LEAD_MINUTES': DEFAULT_JOIN_LEAD_MINUTES,
    'DEFAULT_MAX_ADVANCE_DAYS': DEFAULT_MAX_ADVANCE_DAYS,
}


def get_setting(name):
    """
    Look up a scheduling setting.

    Raises:
        KeyError: If the name is not a known scheduling setting
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown scheduling setting: {name}")
    overrides = getattr(settings, 'SCHEDULING', {})
    return overrides.get(name, DEFAULTS[name])
