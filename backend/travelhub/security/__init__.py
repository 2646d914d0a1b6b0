# Security module
from travelhub.security.auth import (
    SessionAuthority, create_access_token, decode_token,
    get_request_context, get_current_user, require_capability
)
from travelhub.security.capabilities import (
    Capability, can_browse, can_reserve, can_manage_catalog_and_decide_reservations,
    has_capability, ensure_capability
)
from travelhub.security.context import RequestContext

__all__ = [
    'SessionAuthority', 'create_access_token', 'decode_token',
    'get_request_context', 'get_current_user', 'require_capability',
    'Capability', 'can_browse', 'can_reserve', 'can_manage_catalog_and_decide_reservations',
    'has_capability', 'ensure_capability', 'RequestContext'
]
