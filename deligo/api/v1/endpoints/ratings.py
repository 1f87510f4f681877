"""Rating endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from deligo.core.security import get_current_user
from deligo.db.session import get_db
from deligo.models.enums import RatingTarget
from deligo.models.user import User
from deligo.schemas.rating import RatingCreate, RatingResponse, RatingSummary
from deligo.services.order_service import get_order_for
from deligo.services.rating_service import ensure_rating_target_exists, rating_summary, submit_rating

router: APIRouter = APIRouter()


@router.post("/orders/{order_id}/ratings", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
def create_rating(
    order_id: str,
    payload: RatingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RatingResponse:
    get_order_for(db, order_id, current_user)
    rating = submit_rating(
        db,
        order_id=order_id,
        author=current_user,
        target=payload.target,
        score=payload.score,
        comment=payload.comment,
    )
    return RatingResponse.model_validate(rating)


@router.get("/ratings/restaurants/{restaurant_id}/summary", response_model=RatingSummary)
def restaurant_summary(
    restaurant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RatingSummary:
    ensure_rating_target_exists(db, RatingTarget.RESTAURANT, restaurant_id)
    return RatingSummary(**rating_summary(db, RatingTarget.RESTAURANT, restaurant_id))


@router.get("/ratings/drivers/{driver_id}/summary", response_model=RatingSummary)
def driver_summary(
    driver_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> RatingSummary:
    ensure_rating_target_exists(db, RatingTarget.DRIVER, driver_id)
    return RatingSummary(**rating_summary(db, RatingTarget.DRIVER, driver_id))
