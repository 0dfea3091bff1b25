from fastapi import APIRouter
from app.api.v1.endpoints import admin, history, notifications, topics

api_router = APIRouter()

api_router.include_router(notifications.router, tags=["notifications"])
api_router.include_router(history.router, prefix="/history", tags=["history"])
api_router.include_router(topics.router, prefix="/topics", tags=["topics"])
api_router.include_router(admin.router, prefix="/api/admin", tags=["admin"])
