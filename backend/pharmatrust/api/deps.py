"""FastAPI dependencies: DB session, current session from JWT, role gates.

The bearer token is read from:
1. Authorization header (API clients, the SPA)
2. httpOnly cookie set at login (browser fallback)
"""
from dataclasses import dataclass
from typing import Callable, Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from pharmatrust.core.audit import AuditLog
from pharmatrust.core.config import settings
from pharmatrust.core.exceptions import BusinessError, Unauthorized
from pharmatrust.core.permissions import role_allowed
from pharmatrust.core.security import decode_access_token
from pharmatrust.db.session import SessionLocal
from pharmatrust.models.user import User

security = HTTPBearer(auto_error=False)


@dataclass
class AuthSession:
    """The authenticated caller for one request."""
    user: User
    token: str

    @property
    def role(self) -> str:
        return self.user.role


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    if credentials:
        return credentials.credentials
    token = request.cookies.get(settings.TOKEN_COOKIE_NAME)
    if not token:
        raise BusinessError.unauthorized("no token", message="Not authorized, no token provided")
    return token


def get_session(
    db: Session = Depends(get_db),
    token: str = Depends(get_token),
) -> AuthSession:
    sub = decode_access_token(token)
    if not sub:
        raise BusinessError.unauthorized("invalid token", message="Invalid or expired token")

    try:
        user_id = int(sub)
    except ValueError:
        raise BusinessError.unauthorized("malformed subject", message="Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise BusinessError.unauthorized(f"user {user_id} no longer exists", message="User not found")
    if not user.is_active:
        raise BusinessError.unauthorized(f"user {user_id} deactivated", message="Account is deactivated")
    return AuthSession(user=user, token=token)


def get_optional_session(
    request: Request,
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[AuthSession]:
    """The caller's session on public routes, or None for anonymous or stale credentials."""
    token = credentials.credentials if credentials else request.cookies.get(settings.TOKEN_COOKIE_NAME)
    if not token:
        return None
    try:
        return get_session(db, token)
    except Unauthorized:
        return None


def get_current_user(session: AuthSession = Depends(get_session)) -> User:
    """Load current user from DB."""
    return session.user


def require_roles(*roles: str) -> Callable[..., User]:
    """
    Dependency factory gating a route to the given roles.

    Usage:
        current_user: User = Depends(require_roles(ADMIN, PHARMACIST))
    """
    def checker(request: Request, session: AuthSession = Depends(get_session)) -> User:
        if not role_allowed(session.role, roles):
            AuditLog.log_access_denied(
                request.method, request.url.path, session.user.id,
                reason=f"role {session.role} not in {list(roles)}",
            )
            raise BusinessError.forbidden(f"user {session.user.id} role {session.role}")
        return session.user

    return checker
