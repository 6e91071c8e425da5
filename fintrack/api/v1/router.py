"""API v1 router."""

from fastapi import APIRouter

from fintrack.api.v1.endpoints import sessions, system, users, webhooks

api_router = APIRouter()

api_router.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(system.router, prefix="/system", tags=["System"])
