"""API v1 router composition."""

from fastapi import APIRouter

from deligo.api.v1.endpoints import admin, auth, chat, drivers, orders, ratings

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(drivers.router, prefix="/drivers", tags=["drivers"])
api_router.include_router(ratings.router, tags=["ratings"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
