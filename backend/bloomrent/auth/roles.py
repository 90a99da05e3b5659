"""Role -> landing route table.

``UserRole`` is closed; anything that does not parse as one of its values
lands on the site root instead of a dashboard.
"""

from bloomrent.models.enums import UserRole

DASHBOARD_ROUTES: dict[UserRole, str] = {
    UserRole.ADMIN: "/admin/dashboard",
    UserRole.USER: "/owners/dashboard",
    UserRole.OWNER: "/owners/dashboard",
    UserRole.TENANT: "/tenants/dashboard",
}

FALLBACK_ROUTE = "/"

# Roles a freshly registered account may pick for itself
SELF_SELECTABLE_ROLES = frozenset({UserRole.OWNER, UserRole.TENANT})


def parse_role(value: str | UserRole | None) -> UserRole | None:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def dashboard_for(role: str | UserRole | None) -> str:
    parsed = parse_role(role)
    if parsed is None:
        return FALLBACK_ROUTE
    return DASHBOARD_ROUTES.get(parsed, FALLBACK_ROUTE)
