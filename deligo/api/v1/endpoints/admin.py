"""Admin endpoints: restaurants, account blocking and legacy order import."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from deligo.core.security import require_role
from deligo.db.session import get_db
from deligo.models import Restaurant
from deligo.models.user import User
from deligo.schemas.auth import AuthUserResponse, UserActiveUpdate
from deligo.schemas.order import LegacyImportResponse
from deligo.schemas.restaurant import RestaurantCreate, RestaurantResponse
from deligo.services.audit_service import log_action
from deligo.services.status_translation import import_legacy_orders
from deligo.services.user_service import set_user_active

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)
require_admin = require_role("ADMIN")


@router.get("/restaurants", response_model=list[RestaurantResponse])
def list_restaurants(db: Session = Depends(get_db), current_user: User = Depends(require_admin)) -> list[RestaurantResponse]:
    restaurants = db.scalars(select(Restaurant).order_by(Restaurant.id.asc())).all()
    return [RestaurantResponse.model_validate(restaurant) for restaurant in restaurants]


@router.post("/restaurants", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    payload: RestaurantCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> RestaurantResponse:
    restaurant = Restaurant(
        name=payload.name,
        owner_user_id=payload.owner_user_id,
        legacy_uid=payload.legacy_uid,
        is_active=True,
    )
    db.add(restaurant)
    db.flush()
    log_action(
        db,
        actor=current_user,
        action_type="restaurant.created",
        after_snapshot={"id": restaurant.id, "name": restaurant.name},
    )
    db.commit()
    db.refresh(restaurant)
    logger.info("[ADMIN] Created restaurant id=%s name=%s", restaurant.id, restaurant.name)
    return RestaurantResponse.model_validate(restaurant)


@router.put("/users/{user_id}/active", response_model=AuthUserResponse)
def update_user_active(
    user_id: int,
    payload: UserActiveUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> AuthUserResponse:
    user = set_user_active(db, user_id=user_id, is_active=payload.is_active, actor=current_user)
    return AuthUserResponse.model_validate(user)


@router.post("/orders/import-legacy", response_model=LegacyImportResponse)
def import_legacy(
    documents: list[dict[str, Any]] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> LegacyImportResponse:
    return import_legacy_orders(db, documents, actor=current_user)
