"""
Access Decision Engine.

Decides whether a caller's claims permit an action on a resource type.
The role x resource matrix is expressed as data: every role has a default
rule plus explicit per-resource overrides, and a single evaluator applies
the rule. Roles without a row deny.

Decisions are pure functions of their inputs plus the clock used to test
break-glass expiry. Nothing is cached: a grant that relied on break-glass
must be recomputed on every request.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from phi_policy.breakglass import is_break_glass_active
from phi_policy.claims import load_claims
from phi_policy.roles import Action, Resource, Role, parse_action, parse_resource, parse_role


class Rule(Enum):
    ALLOW = 'allow'
    DENY = 'deny'
    READ_ONLY = 'read-only'
    PURPOSE_OR_BREAK_GLASS = 'purpose-or-break-glass'
    BREAK_GLASS_ONLY = 'break-glass-only'


@dataclass(frozen=True)
class RolePolicy:
    default: Rule
    overrides: dict = field(default_factory=dict)

    def rule_for(self, resource):
        return self.overrides.get(resource, self.default)


@dataclass(frozen=True)
class AccessDecision:
    """
    Outcome of one evaluation.

    ``reason`` is for audit and logs only; callers must never echo it to
    clients. ``break_glass`` is set when the grant exists only because of an
    active break-glass session.
    """

    allowed: bool
    reason: str
    break_glass: bool = False


# Protected clinical resources gated on purpose of use / break-glass
CLINICAL_RESOURCES = frozenset({
    Resource.PATIENT, Resource.CONSULT, Resource.RX,
    Resource.LAB_ORDER, Resource.LAB_RESULT,
})

# Doctors additionally need a purpose for shipment details
DOCTOR_PROTECTED_RESOURCES = CLINICAL_RESOURCES | {Resource.SHIPMENT}

# Support and auditors see metadata only
METADATA_DENIED_RESOURCES = frozenset({Resource.RX, Resource.LAB_RESULT, Resource.PATIENT})

_METADATA_ONLY = RolePolicy(
    default=Rule.ALLOW,
    overrides={r: Rule.DENY for r in METADATA_DENIED_RESOURCES},
)

POLICY_MATRIX = {
    Role.MARKETER: RolePolicy(
        default=Rule.DENY,
        overrides={
            # status-only consult view; the caller strips everything else
            Resource.CONSULT: Rule.READ_ONLY,
            Resource.SHIPMENT: Rule.READ_ONLY,
        },
    ),
    Role.PHARMACIST: RolePolicy(
        default=Rule.READ_ONLY,
        overrides={
            Resource.RX: Rule.ALLOW,
            Resource.SHIPMENT: Rule.READ_ONLY,
            Resource.LAB_RESULT: Rule.DENY,
        },
    ),
    Role.LAB_TECH: RolePolicy(
        default=Rule.READ_ONLY,
        overrides={
            Resource.LAB_ORDER: Rule.ALLOW,
            Resource.LAB_RESULT: Rule.ALLOW,
            Resource.SHIPMENT: Rule.ALLOW,
            Resource.RX: Rule.DENY,
        },
    ),
    Role.DOCTOR: RolePolicy(
        default=Rule.ALLOW,
        overrides={r: Rule.PURPOSE_OR_BREAK_GLASS for r in DOCTOR_PROTECTED_RESOURCES},
    ),
    # Admin tier is never PHI-entitled by default
    Role.MARKETER_ADMIN: RolePolicy(
        default=Rule.ALLOW,
        overrides={r: Rule.PURPOSE_OR_BREAK_GLASS for r in CLINICAL_RESOURCES},
    ),
    Role.SUPER_ADMIN: RolePolicy(
        default=Rule.ALLOW,
        overrides={r: Rule.BREAK_GLASS_ONLY for r in CLINICAL_RESOURCES},
    ),
    Role.SUPPORT: _METADATA_ONLY,
    Role.AUDITOR: _METADATA_ONLY,
}


def _apply_rule(rule, action, has_purpose, break_glass):
    """Return an AccessDecision for a single matrix cell."""
    if rule is Rule.ALLOW:
        return AccessDecision(True, 'allowed by role')
    if rule is Rule.DENY:
        return AccessDecision(False, 'denied by role')
    if rule is Rule.READ_ONLY:
        if action is Action.WRITE:
            return AccessDecision(False, 'role is read-only for resource')
        return AccessDecision(True, 'read allowed by role')
    if rule is Rule.PURPOSE_OR_BREAK_GLASS:
        if has_purpose:
            return AccessDecision(True, 'purpose of use supplied')
        if break_glass:
            return AccessDecision(True, 'break-glass session active', break_glass=True)
        return AccessDecision(False, 'purpose of use required')
    if rule is Rule.BREAK_GLASS_ONLY:
        if break_glass:
            return AccessDecision(True, 'break-glass session active', break_glass=True)
        return AccessDecision(False, 'break-glass required')
    return AccessDecision(False, 'unknown rule')


def evaluate_access(resource, action, claims, resource_org_id=None, clock=None):
    """
    Evaluate the policy matrix for one request.

    Args:
        resource: Resource enum member or tag string (e.g. ``LabResult``)
        action: Action enum member or ``read``/``write``/``list``
        claims: Claims value or raw claims mapping
        resource_org_id: Owning organization of the target, if known;
            a mismatch with the caller's org denies
        clock: Optional time source returning epoch milliseconds

    Returns:
        AccessDecision
    """
    if isinstance(claims, Mapping):
        claims = load_claims(claims)
    if claims is None:
        return AccessDecision(False, 'no claims')

    role = parse_role(getattr(claims, 'role', None))
    if role is None:
        return AccessDecision(False, 'role not recognized')

    policy = POLICY_MATRIX.get(role)
    if policy is None:
        return AccessDecision(False, 'role has no access policy')

    parsed_resource = parse_resource(resource)
    parsed_action = parse_action(action)
    if parsed_resource is None or parsed_action is None:
        return AccessDecision(False, 'unknown resource or action')

    if resource_org_id is not None and resource_org_id != getattr(claims, 'org_id', None):
        return AccessDecision(False, 'cross-tenant access denied')

    has_purpose = bool(getattr(claims, 'has_purpose', False))
    break_glass = is_break_glass_active(claims, clock=clock)
    return _apply_rule(policy.rule_for(parsed_resource), parsed_action, has_purpose, break_glass)


def can_access(resource, action, claims, clock=None):
    """
    Decide whether ``claims`` may perform ``action`` on ``resource``.

    Total and side-effect free: unknown roles, resources or actions deny,
    nothing raises.

    Returns:
        bool
    """
    return evaluate_access(resource, action, claims, clock=clock).allowed
