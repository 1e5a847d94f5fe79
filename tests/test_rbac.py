"""
Tests for role checks and deal visibility.
"""

from types import SimpleNamespace

import pytest

from src.models import GlobalRole, TeamRole
from src.services import rbac


def _user(id=1, role="agent", team_id=None, team_role=None, is_active=True):
    return SimpleNamespace(
        id=id,
        global_role=role,
        team_id=team_id,
        team_role=team_role,
        is_active=is_active,
    )


class TestRoleChecks:
    def test_enum_and_string_roles_agree(self):
        assert rbac.is_admin(_user(role=GlobalRole.ADMIN))
        assert rbac.is_admin(_user(role="admin"))

    @pytest.mark.parametrize(
        "role, expected",
        [("admin", True), ("sales_manager", True), ("team_lead", False), ("agent", False)],
    )
    def test_view_all_teams(self, role, expected):
        assert rbac.can_view_all_teams(_user(role=role)) is expected

    def test_team_lead_by_team_role(self):
        user = _user(role="agent", team_id=5, team_role=TeamRole.TEAM_LEAD)
        assert rbac.is_team_lead(user)
        assert rbac.can_view_team_analytics(user)

    def test_agent_cannot_view_team_analytics(self):
        assert not rbac.can_view_team_analytics(_user())

    def test_invites(self):
        assert rbac.can_invite_agents(_user(role="team_lead"))
        assert not rbac.can_invite_agents(_user(role="agent"))
        assert not rbac.can_invite_elevated_roles(_user(role="sales_manager"))
        assert rbac.can_invite_elevated_roles(_user(role="admin"))

    def test_can_assign_role(self):
        manager = _user(role="sales_manager")
        assert rbac.can_assign_role(manager, GlobalRole.AGENT)
        assert not rbac.can_assign_role(manager, GlobalRole.TEAM_LEAD)
        assert rbac.can_assign_role(_user(role="admin"), "sales_manager")

    def test_none_user_has_no_access(self):
        assert not rbac.is_admin(None)
        assert not rbac.can_view_team_analytics(None)
        assert not rbac.can_invite_agents(None)

    def test_role_label(self):
        assert rbac.role_label(GlobalRole.SALES_MANAGER) == "Sales Manager"


class TestVisibleUserIds:
    MEMBERS = [
        _user(id=1, role="admin"),
        _user(id=2, role="team_lead", team_id=10),
        _user(id=3, team_id=10),
        _user(id=4, team_id=20),
        _user(id=5, team_id=10, is_active=False),
    ]

    def test_admin_sees_active_members(self):
        assert rbac.visible_user_ids(self.MEMBERS[0], self.MEMBERS) == [1, 2, 3, 4]

    def test_team_lead_sees_team(self):
        assert rbac.visible_user_ids(self.MEMBERS[1], self.MEMBERS) == [2, 3]

    def test_agent_sees_self(self):
        assert rbac.visible_user_ids(self.MEMBERS[3], self.MEMBERS) == [4]

    def test_inactive_user_still_sees_self(self):
        assert rbac.visible_user_ids(self.MEMBERS[4], self.MEMBERS) == [5]
