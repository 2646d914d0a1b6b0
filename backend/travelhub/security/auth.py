"""
Session authority
Resolves a bearer credential to a per-request (user_id, role) context and
provides the FastAPI dependencies built on it
"""
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from travelhub.config import settings
from travelhub.database import get_db
from travelhub.errors import Unauthenticated
from travelhub.models.ontology import User, Role
from travelhub.security.capabilities import Capability, ensure_capability
from travelhub.security.context import RequestContext

logger = logging.getLogger(__name__)

# Missing credentials mean "anonymous", not an error
security = HTTPBearer(auto_error=False)


def create_access_token(user_id: int, role: Role,
                        expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a session token

    Issuing tokens to end users happens outside this service; this helper
    exists for deployment tooling and tests.
    """
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "role": role.value if isinstance(role, Role) else str(role),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and verify a session token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise Unauthenticated("Invalid or expired credential")


class SessionAuthority:
    """Turns an opaque credential into a RequestContext"""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, credential: Optional[str]) -> RequestContext:
        """
        Resolve a credential

        Args:
            credential: bearer token, or None for an anonymous visitor

        Returns:
            RequestContext for the caller

        Raises:
            Unauthenticated: the token is invalid, expired, names an unknown
                user, or carries a role that no longer matches the account
        """
        if not credential:
            return RequestContext.anonymous()

        payload = decode_token(credential)

        try:
            user_id = int(payload.get("sub"))
            role = Role(payload.get("role"))
        except (TypeError, ValueError):
            raise Unauthenticated("Credential is missing a valid subject or role")

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise Unauthenticated("User not found")

        # A role change requires a new session
        if user.role != role:
            logger.info(f"Stale session for user {user_id}: token role {role.value}, account role {user.role.value}")
            raise Unauthenticated("Session role is out of date, sign in again")

        return RequestContext(user_id=user.id, role=role)


def get_request_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> RequestContext:
    """Dependency: context of the caller (anonymous when no credential is sent)"""
    token = credentials.credentials if credentials else None
    return SessionAuthority(db).resolve(token)


def get_current_user(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db)
) -> User:
    """Dependency: the authenticated user"""
    if ctx.is_anonymous:
        raise Unauthenticated("Authentication required")
    return db.query(User).filter(User.id == ctx.user_id).first()


def require_capability(capability: Capability):
    """Dependency factory: context of a caller holding the capability"""
    def capability_checker(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        ensure_capability(ctx, capability)
        return ctx
    return capability_checker


require_manager = require_capability(Capability.MANAGE)
require_reserver = require_capability(Capability.RESERVE)
