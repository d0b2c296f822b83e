"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import admin, auth, events, newsletter, partners, registrations, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(registrations.router)
api_router.include_router(events.router)
api_router.include_router(users.router)
api_router.include_router(admin.router)
api_router.include_router(newsletter.router)
api_router.include_router(partners.router)
