"""
Test fixtures for the PHI policy engine.
"""

import os
import pytest

# Set test environment before importing app; prevents file-based DB creation
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['AUDIT_ENABLED'] = '1'
os.environ.pop('BREAK_GLASS_MAX_MINUTES', None)

# Fixed evaluation instant (epoch ms) used by every clock-dependent test
FIXED_NOW = 1_700_000_000_000

TEST_ORG_ID = 'org-test'


def fixed_clock():
    return FIXED_NOW


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    """Deterministic time source for break-glass evaluation."""
    return fixed_clock


@pytest.fixture
def make_claims():
    """Factory for Claims values with sensible defaults."""
    from phi_policy.claims import Claims
    from phi_policy.roles import parse_role

    def _make(role, purpose_of_use=None, break_glass_until=None, org_id=TEST_ORG_ID):
        return Claims(
            org_id=org_id,
            role=parse_role(role),
            purpose_of_use=purpose_of_use,
            break_glass_until=break_glass_until,
        )
    return _make


@pytest.fixture
def app():
    """Create a test Flask application with a fixed policy clock."""
    from main import create_app
    flask_app = create_app({'TESTING': True, 'PHI_POLICY_CLOCK': fixed_clock})

    from models import db
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def doctor_headers():
    """Headers for a doctor with a documented purpose of use."""
    return {
        'X-Org-Id': TEST_ORG_ID,
        'X-Org-Type': 'PROVIDER',
        'X-Role': 'DOCTOR',
        'X-Purpose-Of-Use': 'TREATMENT',
    }


@pytest.fixture
def marketer_headers():
    return {
        'X-Org-Id': TEST_ORG_ID,
        'X-Org-Type': 'MARKETER',
        'X-Role': 'MARKETER',
    }


@pytest.fixture
def sample_patient():
    """Patient-shaped record as returned by the data layer."""
    return {
        'id': 'patient-1',
        'first_name': 'Jane',
        'ssn': '123-45-6789',
        'dob': '1985-03-07',
        'phone': '5551234567',
        'email': 'jane@acme.com',
        'address': {
            'street': '123 Main St',
            'city': 'Springfield',
            'state': 'IL',
            'zip': '62701',
        },
        'diagnosis': 'E11.9',
        'medications': ['metformin'],
        'allergies': ['penicillin'],
        'medical_history': 'Type 2 diabetes',
    }


@pytest.fixture
def sample_rx():
    """Prescription-shaped record."""
    return {
        'id': 'rx-1',
        'status': 'SIGNED',
        'script_blob_encrypted': 'ZW5jcnlwdGVk',
        'medication': 'metformin 500mg',
        'refills': 3,
        'result_blob_encrypted': 'cmVzdWx0',
        'lab_values': {'a1c': 7.1},
    }
