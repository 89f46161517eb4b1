"""
Audit collaborator for access decisions.

Every decision made at the request boundary is recorded, allowed or not.
Break-glass grants are also logged at WARNING so they surface in alerting
without a database query.
"""

import logging

import config
from models import db
from phi_policy.models import AccessAuditRecord
from phi_policy.redaction import scrub_for_log

logger = logging.getLogger(__name__)


def _enum_value(value):
    return getattr(value, 'value', value)


def record_access_decision(claims, resource, action, decision, request_path=None):
    """
    Record an access decision.

    Uses a nested transaction (SAVEPOINT) so that audit failures
    do not roll back the caller's work.

    Args:
        claims: Claims of the caller (may be None for anonymous requests)
        resource: Resource tag that was evaluated
        action: Action that was evaluated
        decision: AccessDecision returned by the engine
        request_path: Optional request path for correlation

    Returns:
        AccessAuditRecord, or None when auditing is disabled or failed
    """
    org_id = getattr(claims, 'org_id', None)
    role = _enum_value(getattr(claims, 'role', None))
    resource_type = str(_enum_value(resource))
    action_name = str(_enum_value(action))

    details = scrub_for_log({
        'org_id': org_id,
        'role': role,
        'resource': resource_type,
        'action': action_name,
        'path': request_path,
    })

    if decision.break_glass:
        logger.warning(
            f"Break-glass access: {details['role']} of org {details['org_id']} "
            f"{details['action']} {details['resource']} at {details['path']}"
        )

    if not config.audit_enabled():
        return None

    try:
        nested = db.session.begin_nested()
        record = AccessAuditRecord(
            org_id=org_id,
            role=role,
            resource_type=resource_type,
            action=action_name,
            allowed=decision.allowed,
            reason=decision.reason,
            break_glass=decision.break_glass,
            purpose_supplied=bool(getattr(claims, 'has_purpose', False)),
            request_path=details['path'],
        )
        db.session.add(record)
        nested.commit()
        db.session.commit()
        logger.debug(
            f'Access decision recorded: {action_name} on {resource_type} '
            f'by {role or "anonymous"} allowed={decision.allowed}'
        )
        return record
    except Exception as e:
        logger.error(f'Failed to record access decision: {e}')
        try:
            db.session.rollback()
        except Exception:
            logger.exception('Rollback after audit failure also failed')
        return None
