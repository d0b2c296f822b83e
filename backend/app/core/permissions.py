"""
Role-gated access control.

Roles are a closed enum. Capabilities are enumerated per role in
ROLE_CAPABILITIES (no inheritance between roles), and every admin route
declares its allowed role set (see app.api.deps.require_roles), derived from
that table.
Anything not explicitly granted is denied.
"""

import enum
from typing import Iterable

from app.core.errors import AuthorizationError
from app.core.logging import get_logger
from app.services.interfaces.identity import Identity

logger = get_logger(__name__)


class Role(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    FINANCE = "finance_person"
    EVENT_MANAGER = "event_manager"
    ORDINARY = "ordinary_user"


class Capability(str, enum.Enum):
    MANAGE_USERS = "manage_users"
    MANAGE_EVENTS = "manage_events"
    MANAGE_FINANCE = "manage_finance"
    REGISTER_OTHERS = "register_others"
    VIEW_ADMIN_DATA = "view_admin_data"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.SUPER_ADMIN: frozenset(Capability),
    Role.FINANCE: frozenset({Capability.MANAGE_FINANCE, Capability.VIEW_ADMIN_DATA}),
    Role.EVENT_MANAGER: frozenset({
        Capability.MANAGE_EVENTS,
        Capability.REGISTER_OTHERS,
        Capability.VIEW_ADMIN_DATA,
    }),
    Role.ORDINARY: frozenset(),
}


def roles_with(capability: Capability) -> frozenset[Role]:
    return frozenset(role for role, caps in ROLE_CAPABILITIES.items() if capability in caps)


USER_ADMIN_ROLES = roles_with(Capability.MANAGE_USERS)
EVENT_ADMIN_ROLES = roles_with(Capability.MANAGE_EVENTS)
FINANCE_ROLES = roles_with(Capability.MANAGE_FINANCE)
REGISTRAR_ROLES = roles_with(Capability.REGISTER_OTHERS)
ADMIN_ROLES = roles_with(Capability.VIEW_ADMIN_DATA)

# Roles that review sponsorship and exhibition applications
PARTNER_ADMIN_ROLES = FINANCE_ROLES | EVENT_ADMIN_ROLES


def parse_role(value) -> Role | None:
    """Map a raw role claim to a Role. Unknown claims map to None (deny)."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def has_capability(role, capability: Capability) -> bool:
    parsed = parse_role(role)
    return parsed is not None and capability in ROLE_CAPABILITIES[parsed]


def can_cancel_for_others(role) -> bool:
    """Finance and event staff may cancel registrations they do not own."""
    return has_capability(role, Capability.MANAGE_FINANCE) or has_capability(role, Capability.MANAGE_EVENTS)


def authorize(principal_role, required_roles: Iterable[Role]) -> None:
    """Raise AuthorizationError unless principal_role is one of required_roles."""
    parsed = parse_role(principal_role)
    allowed = frozenset(required_roles)
    if parsed is None or parsed not in allowed:
        logger.warning(
            "authorization_denied",
            role=str(principal_role),
            required=sorted(r.value for r in allowed),
        )
        raise AuthorizationError("Insufficient permissions")


def ensure_owner_or_admin(identity: Identity, user_id: int, admin_roles: Iterable[Role] = ADMIN_ROLES) -> None:
    if identity.id == user_id:
        return
    if parse_role(identity.role) in frozenset(admin_roles):
        return
    raise AuthorizationError("Access denied. You can only access your own resources.")

