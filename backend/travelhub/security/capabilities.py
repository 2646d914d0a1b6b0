"""
Capabilities derived from Role

Every check recomputes the answer from the role; nothing is cached alongside it.
"""
from enum import Enum
from typing import Callable, Dict, Optional

from travelhub.errors import Forbidden
from travelhub.models.ontology import Role
from travelhub.security.context import RequestContext


class Capability(str, Enum):
    BROWSE = "browse"
    RESERVE = "reserve"
    MANAGE = "manage_catalog_and_decide_reservations"


def can_browse(role: Optional[Role]) -> bool:
    """Everyone may browse, including anonymous visitors"""
    return True


def can_reserve(role: Optional[Role]) -> bool:
    return role in (Role.USER, Role.SUB_ADMIN, Role.ADMIN)


def can_manage_catalog_and_decide_reservations(role: Optional[Role]) -> bool:
    return role in (Role.SUB_ADMIN, Role.ADMIN)


_CHECKS: Dict[Capability, Callable[[Optional[Role]], bool]] = {
    Capability.BROWSE: can_browse,
    Capability.RESERVE: can_reserve,
    Capability.MANAGE: can_manage_catalog_and_decide_reservations,
}


def has_capability(ctx: RequestContext, capability: Capability) -> bool:
    return _CHECKS[capability](ctx.role)


def ensure_capability(ctx: RequestContext, capability: Capability) -> None:
    """Raise Forbidden unless the caller's role grants the capability"""
    if not has_capability(ctx, capability):
        who = f"role {ctx.role.value}" if ctx.role else "anonymous caller"
        raise Forbidden(f"Operation requires '{capability.value}' ({who})")
