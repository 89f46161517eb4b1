"""
Tests for the role vocabulary and hierarchy.
"""

import pytest

from phi_policy.roles import (
    Action, Resource, Role, can_administer, get_role_level,
    parse_action, parse_resource, parse_role,
)


class TestRoleHierarchy:
    """Test get_role_level ordering."""

    def test_documented_ordering(self):
        assert (get_role_level('SUPER_ADMIN') > get_role_level('DOCTOR')
                > get_role_level('MARKETER') > get_role_level('SUPPORT')
                == get_role_level('AUDITOR') > get_role_level(None) == 0)

    def test_full_total_order(self):
        ordered = [
            Role.SUPER_ADMIN, Role.ADMIN, Role.ORG_ADMIN, Role.MARKETER_ADMIN,
            Role.DOCTOR, Role.PHARMACIST, Role.LAB_TECH, Role.MARKETER,
        ]
        levels = [get_role_level(r) for r in ordered]
        assert levels == sorted(levels, reverse=True)
        assert len(set(levels)) == len(levels)
        assert levels[-1] > get_role_level(Role.SUPPORT) > 0

    def test_every_role_has_a_level(self):
        for role in Role:
            assert get_role_level(role) > 0

    @pytest.mark.parametrize('role', ['', 'NURSE', 'root', 42, None])
    def test_unknown_roles_are_level_zero(self, role):
        assert get_role_level(role) == 0

    def test_role_strings_are_case_insensitive(self):
        assert get_role_level('doctor') == get_role_level(Role.DOCTOR)

    def test_level_is_stable(self):
        assert get_role_level('PHARMACIST') == get_role_level('PHARMACIST')


class TestCanAdminister:
    """Test relative-permission comparisons."""

    def test_super_admin_administers_doctor(self):
        assert can_administer(Role.SUPER_ADMIN, Role.DOCTOR) is True

    def test_peers_cannot_administer_each_other(self):
        assert can_administer(Role.SUPPORT, Role.AUDITOR) is False
        assert can_administer(Role.DOCTOR, Role.DOCTOR) is False

    def test_lower_cannot_administer_higher(self):
        assert can_administer(Role.MARKETER, Role.ORG_ADMIN) is False

    def test_unknown_actor_administers_nobody(self):
        assert can_administer(None, None) is False
        assert can_administer('NURSE', 'NOBODY') is False


class TestParsing:
    """Test coercion of claim strings to the closed vocabularies."""

    def test_parse_role(self):
        assert parse_role(' lab_tech ') is Role.LAB_TECH
        assert parse_role('NURSE') is None
        assert parse_role(None) is None

    def test_parse_resource_is_case_sensitive(self):
        assert parse_resource('LabResult') is Resource.LAB_RESULT
        assert parse_resource('labresult') is None

    def test_parse_action(self):
        assert parse_action('READ') is Action.READ
        assert parse_action('delete') is None
