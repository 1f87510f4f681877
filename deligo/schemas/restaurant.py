"""Restaurant schemas."""

from pydantic import BaseModel, ConfigDict


class RestaurantCreate(BaseModel):
    name: str
    owner_user_id: int | None = None
    legacy_uid: str | None = None


class RestaurantResponse(BaseModel):
    id: int
    name: str
    owner_user_id: int | None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
