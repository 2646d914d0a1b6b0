"""
travelhub/security/context.py

Per-request security context
Built by the session authority for each request and passed explicitly into
every service call; there is no process-wide "current user"
"""
from dataclasses import dataclass
from typing import Optional

from travelhub.models.ontology import Role


@dataclass(frozen=True)
class RequestContext:
    """
    Identity of the caller for one request

    Attributes:
        user_id: authenticated user id, None for anonymous visitors
        role: role taken from the session, None for anonymous visitors
    """

    user_id: Optional[int] = None
    role: Optional[Role] = None

    @classmethod
    def anonymous(cls) -> "RequestContext":
        return cls()

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    def is_user(self, user_id: int) -> bool:
        return self.user_id is not None and self.user_id == user_id

    def __repr__(self) -> str:
        role = self.role.value if self.role else None
        return f"RequestContext(user_id={self.user_id}, role={role!r})"
