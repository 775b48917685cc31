"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (no auth required); /auth/me does its own check.
"""

from fastapi import APIRouter, Depends

from notekeeper.api.admin import router as admin_router
from notekeeper.api.auth import router as auth_router
from notekeeper.api.health import router as health_router
from notekeeper.api.notes import router as notes_router
from notekeeper.auth.dependencies import get_current_user, require_admin

api_router = APIRouter()

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid session cookie
api_router.include_router(notes_router, tags=["notes"], dependencies=[Depends(get_current_user)])
api_router.include_router(admin_router, tags=["admin"], dependencies=[Depends(require_admin)])
