"""
Closed vocabularies shared by the decision engine and the redaction
transform: roles, organization types, resources and actions.

Also holds the role hierarchy used for relative-permission comparisons
(e.g. whether one user may administer another). The hierarchy is never
consulted by the access decision engine.
"""

from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = 'SUPER_ADMIN'
    ADMIN = 'ADMIN'
    ORG_ADMIN = 'ORG_ADMIN'
    MARKETER_ADMIN = 'MARKETER_ADMIN'
    DOCTOR = 'DOCTOR'
    PHARMACIST = 'PHARMACIST'
    LAB_TECH = 'LAB_TECH'
    MARKETER = 'MARKETER'
    SUPPORT = 'SUPPORT'
    AUDITOR = 'AUDITOR'


class OrgType(str, Enum):
    PROVIDER = 'PROVIDER'
    LAB = 'LAB'
    PHARMACY = 'PHARMACY'
    MARKETER = 'MARKETER'


class Resource(str, Enum):
    PATIENT = 'Patient'
    CONSULT = 'Consult'
    RX = 'Rx'
    LAB_ORDER = 'LabOrder'
    LAB_RESULT = 'LabResult'
    SHIPMENT = 'Shipment'
    REQUISITION = 'Requisition'
    CLIENT = 'Client'
    USER = 'User'
    WEBHOOK = 'Webhook'
    AUDIT_LOG = 'AuditLog'


class Action(str, Enum):
    READ = 'read'
    WRITE = 'write'
    LIST = 'list'


# SUPPORT and AUDITOR are intentionally tied at the lowest non-zero level
ROLE_LEVELS = {
    Role.SUPER_ADMIN: 100,
    Role.ADMIN: 90,
    Role.ORG_ADMIN: 80,
    Role.MARKETER_ADMIN: 70,
    Role.DOCTOR: 60,
    Role.PHARMACIST: 50,
    Role.LAB_TECH: 40,
    Role.MARKETER: 30,
    Role.SUPPORT: 10,
    Role.AUDITOR: 10,
}


def _coerce(enum_cls, value, normalize=None):
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if normalize:
        raw = normalize(raw)
    try:
        return enum_cls(raw)
    except ValueError:
        return None


def parse_role(value):
    """Return the Role for a claim value, or None if unrecognized."""
    return _coerce(Role, value, str.upper)


def parse_org_type(value):
    return _coerce(OrgType, value, str.upper)


def parse_resource(value):
    """Resource tags are case-sensitive (``LabResult``, not ``labresult``)."""
    return _coerce(Resource, value)


def parse_action(value):
    return _coerce(Action, value, str.lower)


def get_role_level(role):
    """
    Position of a role in the platform hierarchy.

    Args:
        role: Role enum member or role string (case-insensitive)

    Returns:
        int: level, 0 for an absent or unknown role
    """
    parsed = parse_role(role)
    if parsed is None:
        return 0
    return ROLE_LEVELS.get(parsed, 0)


def can_administer(actor_role, target_role):
    """True when the actor outranks the target in the hierarchy."""
    actor_level = get_role_level(actor_role)
    return actor_level > 0 and actor_level > get_role_level(target_role)
