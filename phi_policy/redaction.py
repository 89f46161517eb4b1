"""
PHI Redaction.

Role-aware masking applied to every record before it leaves the trust
boundary. Runs after the access decision, never instead of it.

Per-field transforms (whenever the field is present):
- ssn: keep last 4 characters, ``***-**-1234``
- dob: normalized to ``M/D/YYYY``; fixed placeholder for marketers
- phone: ``(AAA) ***-LLLL``; fixed placeholder for marketers
- email: first character of the local part plus the domain; fixed
  placeholder for marketers
- address: street line blanked for marketers, city/state/zip kept

Bulk removal by role (after the per-field transforms):
- MARKETER: clinical payloads removed entirely
- PHARMACIST outside the ``rx`` context: lab results removed
- LAB_TECH outside the ``lab`` context: script and medication fields removed

Unknown or missing roles are masked as strictly as marketers.
"""

import copy
import re
from collections.abc import Mapping
from datetime import date

from phi_policy.roles import Role, parse_role

SSN_PLACEHOLDER = '***-**-****'
DOB_PLACEHOLDER = '**/**/****'
PHONE_PLACEHOLDER = '(***) ***-****'
EMAIL_PLACEHOLDER = '***@***.***'

MARKETER_REMOVED_FIELDS = (
    'script_blob_encrypted', 'signed_script', 'result_blob_encrypted',
    'diagnosis', 'medications', 'allergies', 'medical_history',
)
PHARMACIST_REMOVED_FIELDS = ('result_blob_encrypted', 'lab_values')
LAB_TECH_REMOVED_FIELDS = ('script_blob_encrypted', 'medication', 'medications', 'refills')

# Keys holding the street portion of a structured address
STREET_KEYS = (
    'street', 'street1', 'street2', 'street_address', 'line', 'line1', 'line2',
    'address1', 'address2',
)

_MASKED_PHONE = re.compile(r'^\(\d{3}\) \*\*\*-\d{4}$')
_SLASH_DATE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')


def mask_phi(record, role, context=None):
    """
    Return a masked deep copy of ``record`` for a caller with ``role``.

    Args:
        record: Mapping of field names to values; anything else is
            returned unchanged
        role: Role enum member or role string
        context: Optional view context (``rx``, ``lab``)

    Returns:
        A new mapping; the input is never mutated
    """
    if not isinstance(record, Mapping):
        return record

    masked = copy.deepcopy(dict(record))
    parsed = parse_role(role)
    strict = parsed is None or parsed is Role.MARKETER

    _mask_fields(masked, strict)

    if strict:
        _drop(masked, MARKETER_REMOVED_FIELDS)
    elif parsed is Role.PHARMACIST and context != 'rx':
        _drop(masked, PHARMACIST_REMOVED_FIELDS)
    elif parsed is Role.LAB_TECH and context != 'lab':
        _drop(masked, LAB_TECH_REMOVED_FIELDS)

    return masked


def mask_phi_many(records, role, context=None):
    """Mask each record of a list response."""
    if records is None:
        return None
    return [mask_phi(record, role, context) for record in records]


def _drop(record, names):
    for name in names:
        record.pop(name, None)


def _mask_fields(record, strict):
    """Apply the per-field transforms in place."""
    if record.get('ssn') is not None:
        record['ssn'] = mask_ssn(record['ssn'])
    if record.get('dob') is not None:
        record['dob'] = DOB_PLACEHOLDER if strict else format_dob(record['dob'])
    if record.get('phone') is not None:
        record['phone'] = PHONE_PLACEHOLDER if strict else mask_phone(record['phone'])
    if record.get('email') is not None:
        record['email'] = EMAIL_PLACEHOLDER if strict else mask_email(record['email'])
    if strict and record.get('address') is not None:
        record['address'] = blank_street(record['address'])


def mask_ssn(value):
    text = str(value)
    if len(text) < 4:
        return SSN_PLACEHOLDER
    return '***-**-' + text[-4:]


def format_dob(value):
    """Normalize a date of birth to ``M/D/YYYY``; unparseable values pass through."""
    if isinstance(value, date):
        return f'{value.month}/{value.day}/{value.year}'
    if not isinstance(value, str):
        return value
    text = value.strip()
    try:
        parsed = date.fromisoformat(text[:10])
        return f'{parsed.month}/{parsed.day}/{parsed.year}'
    except ValueError:
        pass
    match = _SLASH_DATE.match(text)
    if match:
        month, day, year = match.groups()
        return f'{int(month)}/{int(day)}/{year}'
    return value


def mask_phone(value):
    text = str(value).strip()
    if _MASKED_PHONE.match(text):
        return text
    digits = re.sub(r'\D', '', text)
    if len(digits) == 11 and digits.startswith('1'):
        digits = digits[1:]
    if len(digits) != 10:
        return PHONE_PLACEHOLDER
    return f'({digits[:3]}) ***-{digits[-4:]}'


def mask_email(value):
    if not isinstance(value, str) or value.count('@') != 1:
        return EMAIL_PLACEHOLDER
    local, domain = value.split('@')
    if not local or not domain:
        return EMAIL_PLACEHOLDER
    return local[0] + '*' * (len(local) - 1) + '@' + domain


def blank_street(address):
    """Blank the street line, keeping city/state/zip for shipping."""
    if isinstance(address, Mapping):
        blanked = dict(address)
        for key in STREET_KEYS:
            if key in blanked:
                blanked[key] = [] if isinstance(blanked[key], list) else ''
        return blanked
    if isinstance(address, str):
        parts = [p.strip() for p in address.split(',')]
        return ', '.join(parts[1:]) if len(parts) > 1 else ''
    return ''


# --- Log scrubbing ---

_SENSITIVE_KEYS = ('password', 'token', 'secret', 'ssn', 'credit_card', 'card_number', 'cvv')

_LOG_PATTERNS = [
    (re.compile(r'\b\d{3}-\d{2}-\d{4}\b'), '[REDACTED_SSN]'),
    (re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}'), '[REDACTED_EMAIL]'),
    (re.compile(r'(?<!\d)(\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}(?!\d)'), '[REDACTED_PHONE]'),
]


def scrub_text(value):
    """Replace SSNs, emails and phone numbers embedded in free text."""
    if not isinstance(value, str) or not value:
        return value
    for pattern, replacement in _LOG_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def scrub_for_log(data):
    """Recursively scrub a structure before it is logged or audited."""
    if isinstance(data, Mapping):
        scrubbed = {}
        for key, value in data.items():
            if any(s in str(key).lower() for s in _SENSITIVE_KEYS):
                scrubbed[key] = '[REDACTED]'
            else:
                scrubbed[key] = scrub_for_log(value)
        return scrubbed
    if isinstance(data, (list, tuple)):
        return [scrub_for_log(item) for item in data]
    return scrub_text(data)
