"""
Audit storage for access decisions.

One row per decision evaluated at the request boundary, including denials
and break-glass grants. PHI never lands here: only the claims-derived
booleans, the resource tag and the internal decision reason.
"""

from datetime import datetime, timezone
from models import db


class AccessAuditRecord(db.Model):
    """Audit trail entry for an access decision."""
    __tablename__ = 'access_audit_records'

    id = db.Column(db.Integer, primary_key=True)
    recorded_at = db.Column(db.DateTime, nullable=False,
                            default=lambda: datetime.now(timezone.utc), index=True)
    org_id = db.Column(db.String(64), nullable=True, index=True)
    role = db.Column(db.String(32), nullable=True)
    resource_type = db.Column(db.String(32), nullable=False)
    action = db.Column(db.String(16), nullable=False)
    allowed = db.Column(db.Boolean, nullable=False)
    reason = db.Column(db.String(128), nullable=True)
    break_glass = db.Column(db.Boolean, default=False)
    purpose_supplied = db.Column(db.Boolean, default=False)
    request_path = db.Column(db.String(256), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'recorded_at': self.recorded_at.isoformat() if self.recorded_at else None,
            'org_id': self.org_id,
            'role': self.role,
            'resource_type': self.resource_type,
            'action': self.action,
            'allowed': self.allowed,
            'reason': self.reason,
            'break_glass': self.break_glass,
            'purpose_supplied': self.purpose_supplied,
            'request_path': self.request_path,
        }
