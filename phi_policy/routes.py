"""
Policy Blueprint.

Read-only endpoints that let clients ask the policy questions ahead of a
real request: UI affordance checks and the purpose-of-use prompt. These
answers are advisory; every data route still goes through require_access.
"""

import logging
from flask import Blueprint, current_app, request, jsonify
from marshmallow import EXCLUDE, Schema, ValidationError, fields

from phi_policy.breakglass import requires_purpose_of_use
from phi_policy.engine import can_access
from phi_policy.guard import current_claims, error_response, load_request_claims

logger = logging.getLogger(__name__)

policy_blueprint = Blueprint('policy', __name__, url_prefix='/policy')

policy_blueprint.before_request(load_request_claims)

# Upper bound on checks in a single affordance request
MAX_CHECKS = 100


class AccessCheckRequestSchema(Schema):
    """Schema for validating a batch of affordance checks."""

    class Meta:
        unknown = EXCLUDE

    checks = fields.List(fields.Raw(), required=True,
                         error_messages={'required': 'checks is required'})


@policy_blueprint.route('/health', methods=['GET'])
def health_check():
    return jsonify({'status': 'ok'})


@policy_blueprint.route('/can-access', methods=['POST'])
def check_access():
    """
    Evaluate a batch of (resource, action) pairs for the caller.

    Returns one boolean per check, in order. Not audited: nothing is
    returned besides the booleans.
    """
    claims = current_claims()
    if claims is None:
        return error_response(401, 'unauthorized')

    try:
        body = AccessCheckRequestSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({'error': 'invalid request', 'messages': e.messages}), 400

    checks = body['checks']
    if len(checks) > MAX_CHECKS:
        return error_response(400, f'at most {MAX_CHECKS} checks per request')

    clock = current_app.config.get('PHI_POLICY_CLOCK')
    results = [
        isinstance(check, dict)
        and can_access(check.get('resource'), check.get('action'), claims, clock=clock)
        for check in checks
    ]
    logger.debug(f'Evaluated {len(results)} affordance checks for {claims.org_id}')
    return jsonify({'results': results})


@policy_blueprint.route('/purpose-of-use', methods=['GET'])
def purpose_of_use_prompt():
    """Whether the UI should ask for a purpose of use before opening a view."""
    claims = current_claims()
    if claims is None:
        return error_response(401, 'unauthorized')

    resource_context = request.args.get('context', '')
    return jsonify({
        'context': resource_context,
        'required': requires_purpose_of_use(claims.role, resource_context),
    })
