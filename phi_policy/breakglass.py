"""
Break-glass sessions and purpose-of-use prompting.

A break-glass session is an emergency, time-boxed elevation carried in the
claims as ``break_glass_until`` (epoch milliseconds). The approval workflow
that mints it lives upstream; this module only computes expiry timestamps
and answers whether a session is active at a given instant.

Every time-dependent helper takes an optional ``clock`` callable returning
epoch milliseconds so tests can simulate expiry deterministically.
"""

import logging
import math
import time

import config
from phi_policy.roles import Role, parse_role

logger = logging.getLogger(__name__)

MS_PER_MINUTE = 60 * 1000

# UI contexts that trigger a just-in-time purpose-of-use prompt
PURPOSE_PROMPT_ROLES = frozenset({Role.DOCTOR, Role.PHARMACIST, Role.LAB_TECH})
PURPOSE_PROMPT_CONTEXTS = frozenset({'patient_details', 'rx_script', 'lab_result_details'})


def current_time_ms():
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _now(clock):
    return (clock or current_time_ms)()


def break_glass_until(minutes, clock=None):
    """
    Compute the expiry timestamp for a break-glass session.

    Args:
        minutes: Session length in minutes
        clock: Optional time source returning epoch milliseconds

    Returns:
        int: epoch milliseconds at which the session ends
    """
    return int(_now(clock) + minutes * MS_PER_MINUTE)


def is_break_glass_active(claims, clock=None):
    """True when the claims carry a finite break-glass expiry strictly in the future."""
    until = getattr(claims, 'break_glass_until', None)
    if isinstance(until, bool) or not isinstance(until, (int, float)):
        return False
    if not math.isfinite(until):
        return False
    return until > _now(clock)


def requires_purpose_of_use(role, resource_context):
    """
    Whether the UI should prompt for a purpose of use before a read.

    Advisory only: the access decision engine is the authorization
    boundary, this just drives the prompt.

    Args:
        role: Role enum member or role string
        resource_context: UI context name (e.g. ``patient_details``)

    Returns:
        bool
    """
    return (parse_role(role) in PURPOSE_PROMPT_ROLES
            and resource_context in PURPOSE_PROMPT_CONTEXTS)


def check_break_glass_duration(minutes, max_minutes=None):
    """
    Validate a requested session length before minting.

    Used by the upstream approval workflow; the decision engine never
    calls this.

    Args:
        minutes: Requested session length
        max_minutes: Ceiling override (defaults to BREAK_GLASS_MAX_MINUTES)

    Returns:
        int: the accepted duration in minutes

    Raises:
        ValueError: If the duration is not positive or exceeds the ceiling
    """
    ceiling = max_minutes if max_minutes is not None else config.get_break_glass_max_minutes()
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        raise ValueError('Break-glass duration must be a number of minutes')
    if minutes <= 0:
        raise ValueError('Break-glass duration must be positive')
    if minutes > ceiling:
        logger.warning(f'Rejected break-glass request for {minutes} minutes (ceiling {ceiling})')
        raise ValueError(f'Break-glass duration exceeds {ceiling} minute ceiling')
    return minutes
