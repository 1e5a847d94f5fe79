"""
Role checks for workspace members.

Global roles: agent < team_lead < sales_manager < admin.
Team roles: agent, team_lead (a team lead can also hold the global agent role).

Functions accept any object with global_role / team_role / team_id
attributes (ORM User or SimpleNamespace) and treat None as "no access".
"""

from typing import Any, Iterable, Optional

ADMIN = "admin"
SALES_MANAGER = "sales_manager"
TEAM_LEAD = "team_lead"
AGENT = "agent"

ROLE_LABELS = {
    ADMIN: "Admin",
    SALES_MANAGER: "Sales Manager",
    TEAM_LEAD: "Team Lead",
    AGENT: "Agent",
}


def _value(role: Any) -> Optional[str]:
    return getattr(role, "value", role)


def global_role(user: Any) -> Optional[str]:
    if user is None:
        return None
    return _value(getattr(user, "global_role", None))


def team_role(user: Any) -> Optional[str]:
    if user is None:
        return None
    return _value(getattr(user, "team_role", None))


def is_admin(user: Any) -> bool:
    return global_role(user) == ADMIN


def is_sales_manager_or_admin(user: Any) -> bool:
    return global_role(user) in (SALES_MANAGER, ADMIN)


def is_team_lead(user: Any) -> bool:
    return team_role(user) == TEAM_LEAD or global_role(user) == TEAM_LEAD


def can_manage_teams(user: Any) -> bool:
    return is_admin(user)


def can_view_all_teams(user: Any) -> bool:
    return is_sales_manager_or_admin(user)


def can_view_team_analytics(user: Any) -> bool:
    if user is None:
        return False
    return global_role(user) != AGENT or team_role(user) == TEAM_LEAD


def can_invite_agents(user: Any) -> bool:
    return global_role(user) in (ADMIN, SALES_MANAGER, TEAM_LEAD)


def can_invite_elevated_roles(user: Any) -> bool:
    return is_admin(user)


def can_manage_workspace_members(user: Any) -> bool:
    return is_admin(user)


def can_assign_role(user: Any, role: Any) -> bool:
    """Whether user may create or update a member with the given role."""
    if _value(role) == AGENT:
        return can_invite_agents(user)
    return can_invite_elevated_roles(user)


def role_label(role: Any) -> str:
    return ROLE_LABELS.get(_value(role), "—")


def visible_user_ids(user: Any, members: Iterable[Any]) -> list[int]:
    """IDs whose deals the user may see.

    - admin / sales manager: every active member of the workspace
    - team lead: active members of their own team
    - agent: only themselves
    """
    if is_sales_manager_or_admin(user):
        ids = [m.id for m in members if getattr(m, "is_active", True)]
    elif is_team_lead(user) and getattr(user, "team_id", None) is not None:
        ids = [
            m.id
            for m in members
            if getattr(m, "is_active", True) and getattr(m, "team_id", None) == user.team_id
        ]
    else:
        ids = []

    if user.id not in ids:
        ids.append(user.id)
    return ids
