"""Authentication endpoints (API JWT)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from deligo.core.config import settings
from deligo.core.security import create_access_token, get_current_user, get_password_hash, verify_password
from deligo.db.session import get_db
from deligo.models import Restaurant
from deligo.models.user import User, normalize_user_role
from deligo.schemas.auth import AuthUserResponse, LoginRequest, RegisterRequest, TokenResponse
from deligo.services.user_service import create_user, get_user_by_email, get_user_by_username

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)
SELF_SERVICE_ROLES: set[str] = {"CUSTOMER", "RESTAURANT", "DRIVER"}


def _username_for(db: Session, email: str) -> str:
    base = email.split("@")[0] or "user"
    candidate = base
    suffix = 1
    while get_user_by_username(db=db, username=candidate) is not None:
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate


@router.post("/register", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthUserResponse:
    try:
        role = normalize_user_role(payload.role)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    # Admin accounts can only be self-registered in development.
    if role not in SELF_SERVICE_ROLES and settings.app_env != "dev":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid role")
    if get_user_by_email(db=db, email=payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    if role == "RESTAURANT":
        if payload.restaurant_id is None or db.get(Restaurant, payload.restaurant_id) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A valid restaurant_id is required")

    user = create_user(
        db=db,
        username=_username_for(db, payload.email),
        hashed_password=get_password_hash(payload.password),
        role=role,
        email=payload.email,
        display_name=payload.display_name,
        restaurant_id=payload.restaurant_id,
        phone=payload.phone,
    )
    logger.info("[AUTH] Registered user_id=%s role=%s", user.id, user.role)
    return AuthUserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    # Seeded accounts may only have a username.
    user: User | None = get_user_by_email(db=db, email=payload.email) or get_user_by_username(
        db=db, username=payload.email
    )
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Incorrect email or password")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is blocked")
    return TokenResponse(access_token=create_access_token(user))


@router.get("/me", response_model=AuthUserResponse)
def me(current_user: User = Depends(get_current_user)) -> AuthUserResponse:
    return AuthUserResponse.model_validate(current_user)
