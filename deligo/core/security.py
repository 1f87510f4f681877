"""Password hashing, access tokens and the role-aware auth dependencies."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from deligo.core.config import settings
from deligo.db.session import get_db
from deligo.models.user import User
from deligo.services.user_service import get_user_by_id

logger = logging.getLogger(__name__)

pwd_context: CryptContext = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme: HTTPBearer = HTTPBearer(auto_error=True)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _session_rejected(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(user: User) -> str:
    """Issue a bearer token carrying the user id and role.

    The role claim must still match the stored role when the token is used,
    so changing a user's role ends their existing sessions.
    """
    issued_at = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "role": user.role,
        "iss": settings.jwt_issuer,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> tuple[int, str]:
    """Return ``(user_id, role)`` from a token issued by ``create_access_token``."""
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except JWTError as exc:
        raise _session_rejected("Session expired or token invalid") from exc

    subject, role = claims.get("sub"), claims.get("role")
    if not isinstance(subject, str) or not subject.isdigit() or not isinstance(role, str):
        raise _session_rejected("Token is missing the user or role claim")
    return int(subject), role


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the signed-in user; blocked accounts get 403."""
    user_id, role = decode_access_token(credentials.credentials)
    user: User | None = get_user_by_id(db=db, user_id=user_id)
    if user is None:
        raise _session_rejected("Account no longer exists")
    if user.role != role:
        logger.info("[AUTH] Rejected token for user_id=%s issued as %s, now %s", user.id, role, user.role)
        raise _session_rejected("Role changed since sign-in; sign in again")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is blocked")
    return user


def require_role(*roles: str):
    """Dependency factory limiting an endpoint to ``roles``."""

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role {' or '.join(roles)}; signed in as {current_user.role}",
            )
        return current_user

    return dependency
