"""
Environment-driven settings for the PHI policy service.

All values are read lazily so tests can override them with monkeypatch.
Malformed values fall back to their defaults rather than failing startup.
"""

import os

# Upper bound on a single break-glass session, in minutes
DEFAULT_BREAK_GLASS_MAX_MINUTES = 60

DEFAULT_DATABASE_URL = 'sqlite:///phi_policy.db'


def _env_bool(name, default=False):
    raw = (os.environ.get(name) or '').strip().lower()
    if not raw:
        return default
    return raw in ('1', 'true', 'yes', 'y', 'on')


def _env_int(name, default):
    raw = (os.environ.get(name) or '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_log_level():
    return (os.environ.get('LOG_LEVEL') or 'INFO').strip().upper()


def get_database_url():
    return os.environ.get('DATABASE_URL') or DEFAULT_DATABASE_URL


def audit_enabled():
    """Whether access decisions are written to the audit table."""
    return _env_bool('AUDIT_ENABLED', True)


def get_break_glass_max_minutes():
    """
    Ceiling for break-glass sessions minted by the approval workflow.

    Clamped to [1, 24h] so a typo cannot grant an open-ended session.
    """
    value = _env_int('BREAK_GLASS_MAX_MINUTES', DEFAULT_BREAK_GLASS_MAX_MINUTES)
    return max(1, min(value, 24 * 60))
