"""
Domain error taxonomy

Services raise these; the HTTP layer maps each one to a status code in a
single exception handler (see travelhub.main).
"""
from typing import List, Optional


class TravelHubError(Exception):
    """Base class for all domain errors"""

    code = "error"
    status_code = 400
    retryable = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class InvalidRequest(TravelHubError):
    """Malformed or out-of-policy input"""

    code = "invalid_request"
    status_code = 400


class Unauthenticated(TravelHubError):
    """Credential missing, invalid, expired or stale"""

    code = "unauthenticated"
    status_code = 401


class Forbidden(TravelHubError):
    """Role or ownership check failed"""

    code = "forbidden"
    status_code = 403


class NotFound(TravelHubError):
    """Unknown id"""

    code = "not_found"
    status_code = 404

    def __init__(self, kind: str, entity_id=None):
        self.kind = kind
        self.entity_id = entity_id
        if entity_id is None:
            super().__init__(f"{kind} not found")
        else:
            super().__init__(f"{kind} {entity_id} not found")


class RoomUnavailable(TravelHubError):
    """No free room for the requested dates"""

    code = "room_unavailable"
    status_code = 409


class InvalidTransition(TravelHubError):
    """Status change not legal from the current state"""

    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, target: str, allowed: Optional[List[str]] = None):
        self.current = current
        self.target = target
        self.allowed = list(allowed or [])
        message = f"Cannot move reservation from {current} to {target}"
        if self.allowed:
            message += f" (allowed actions: {', '.join(self.allowed)})"
        else:
            message += f" ({current} is final)"
        super().__init__(message)


class Busy(TravelHubError):
    """Capacity lock not acquired in time; safe to retry"""

    code = "busy"
    status_code = 503
    retryable = True


__all__ = [
    "TravelHubError",
    "InvalidRequest",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "RoomUnavailable",
    "InvalidTransition",
    "Busy",
]
