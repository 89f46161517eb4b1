"""
Flask integration for the access decision engine.

- ``load_request_claims`` assembles claims from identity headers onto
  ``flask.g``. ``g`` outlives a single request when an app context spans
  several, so claims are re-read per request and never cached
- ``require_access`` gates a view on (resource, action); 401 without an
  identity, a generic 403 on denial, and every decision goes to the audit
  collaborator
- ``masked_response`` applies PHI redaction with the caller's role

Denials never disclose which rule fired; the reason is only audited.
"""

import logging
from functools import wraps
from flask import current_app, g, jsonify, request

from phi_policy.audit import record_access_decision
from phi_policy.claims import claims_from_headers
from phi_policy.engine import evaluate_access
from phi_policy.redaction import mask_phi, mask_phi_many, scrub_text

logger = logging.getLogger(__name__)

# Owning organization of the target record, set by the data layer proxy
RESOURCE_ORG_HEADER = 'X-Resource-Org-Id'


def load_request_claims():
    """Populate ``g.claims`` from the request headers (None if no identity)."""
    g.claims = claims_from_headers(request.headers)


def current_claims():
    """Claims of the current request, re-read from its headers on every call."""
    load_request_claims()
    return g.claims


def _policy_clock():
    # Tests inject a fixed time source through app config
    return current_app.config.get('PHI_POLICY_CLOCK')


def error_response(status_code, message):
    return jsonify({'error': message}), status_code


def require_access(resource, action):
    """
    Decorator gating a view on the access decision engine.

    Args:
        resource: Resource tag the view exposes
        action: Action the view performs
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            claims = current_claims()
            if claims is None:
                return error_response(401, 'unauthorized')

            decision = evaluate_access(
                resource, action, claims,
                resource_org_id=request.headers.get(RESOURCE_ORG_HEADER),
                clock=_policy_clock(),
            )
            record_access_decision(claims, resource, action, decision,
                                   request_path=request.path)
            if not decision.allowed:
                logger.info(f'Access denied on {scrub_text(request.path)}: {decision.reason}')
                return error_response(403, 'forbidden')

            g.access_decision = decision
            return view(*args, **kwargs)
        return wrapped
    return decorator


def masked_response(data, context=None, status_code=200):
    """
    Mask a record (or list of records) for the current caller and jsonify it.

    Must only be called from a view already gated by ``require_access``.
    """
    claims = current_claims()
    role = claims.role if claims is not None else None
    if isinstance(data, list):
        body = mask_phi_many(data, role, context)
    else:
        body = mask_phi(data, role, context)
    return jsonify(body), status_code
