"""
Request claims: the verified identity attributes a caller presents.

Claims arrive either as a decoded token payload or as trusted headers set
by the identity proxy. Signature/issuer verification happens upstream;
this module only validates shape and normalizes values.

Loading never raises. Anything the policy cannot make sense of degrades to
the most conservative value (no role, no break-glass) so that every
downstream decision denies.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate

from phi_policy.roles import OrgType, Role, parse_org_type, parse_role

logger = logging.getLogger(__name__)

# camelCase claim names emitted by the identity provider
_CAMEL_TO_SNAKE = {
    'orgId': 'org_id',
    'orgType': 'org_type',
    'purposeOfUse': 'purpose_of_use',
    'breakGlassUntil': 'break_glass_until',
}
_SNAKE_TO_CAMEL = {v: k for k, v in _CAMEL_TO_SNAKE.items()}

# Header names understood by claims_from_headers
HEADER_ORG_ID = 'X-Org-Id'
HEADER_ORG_TYPE = 'X-Org-Type'
HEADER_ROLE = 'X-Role'
HEADER_PURPOSE = 'X-Purpose-Of-Use'
HEADER_BREAK_GLASS = 'X-Break-Glass-Until'
HEADER_SCOPES = 'X-Scopes'


@dataclass(frozen=True)
class Claims:
    """Immutable claims value. ``break_glass_until`` is epoch milliseconds."""

    org_id: str
    role: Optional[Role] = None
    org_type: Optional[OrgType] = None
    purpose_of_use: Optional[str] = None
    scopes: FrozenSet[str] = field(default_factory=frozenset)
    break_glass_until: Optional[int] = None

    @property
    def has_purpose(self):
        # Presence is the gate; the text itself is never interpreted
        return isinstance(self.purpose_of_use, str) and len(self.purpose_of_use) > 0


class ClaimsSchema(Schema):
    """Schema for validating raw claims from a token payload or headers."""

    class Meta:
        unknown = EXCLUDE

    org_id = fields.String(required=True, validate=validate.Length(min=1))
    org_type = fields.String(allow_none=True, load_default=None)
    role = fields.String(allow_none=True, load_default=None)
    purpose_of_use = fields.String(allow_none=True, load_default=None)
    scopes = fields.List(fields.String(), allow_none=True, load_default=None)
    break_glass_until = fields.Integer(allow_none=True, load_default=None)

    @pre_load
    def normalize_keys(self, data, **kwargs):
        """Accept camelCase keys and comma-separated scope strings."""
        normalized = {}
        for key, value in data.items():
            normalized[_CAMEL_TO_SNAKE.get(key, key)] = value
        scopes = normalized.get('scopes')
        if isinstance(scopes, str):
            normalized['scopes'] = [s.strip() for s in scopes.split(',') if s.strip()]
        return normalized


_schema = ClaimsSchema()


def load_claims(data):
    """
    Build a Claims value from a raw mapping.

    Malformed optional claims are dropped rather than rejected, so a bad
    ``break_glass_until`` simply means no break-glass session.

    Args:
        data: Mapping of claim names to values (camelCase or snake_case)

    Returns:
        Claims, or None when there is no usable identity (not a mapping,
        or no org id)
    """
    if not isinstance(data, Mapping):
        return None

    raw = dict(data)
    try:
        loaded = _schema.load(raw)
    except ValidationError as err:
        invalid = set(err.messages) if isinstance(err.messages, dict) else set()
        if 'org_id' in invalid or 'orgId' in invalid or not invalid:
            return None
        logger.debug(f'Dropping malformed claims: {sorted(invalid)}')
        for key in invalid:
            raw.pop(key, None)
            raw.pop(_SNAKE_TO_CAMEL.get(key), None)
        try:
            loaded = _schema.load(raw)
        except ValidationError:
            return None

    return Claims(
        org_id=loaded['org_id'],
        role=parse_role(loaded.get('role')),
        org_type=parse_org_type(loaded.get('org_type')),
        purpose_of_use=loaded.get('purpose_of_use'),
        scopes=frozenset(loaded.get('scopes') or ()),
        break_glass_until=loaded.get('break_glass_until'),
    )


def claims_from_headers(headers):
    """
    Assemble claims from trusted identity headers.

    Args:
        headers: Request headers (any mapping with ``.get``)

    Returns:
        Claims, or None when ``X-Org-Id`` is absent
    """
    raw = {
        'org_id': headers.get(HEADER_ORG_ID),
        'org_type': headers.get(HEADER_ORG_TYPE),
        'role': headers.get(HEADER_ROLE),
        'purpose_of_use': headers.get(HEADER_PURPOSE),
        'scopes': headers.get(HEADER_SCOPES),
        'break_glass_until': headers.get(HEADER_BREAK_GLASS),
    }
    if not raw['org_id']:
        return None
    return load_claims({k: v for k, v in raw.items() if v is not None})
