"""API v1 router aggregator.

All v1 endpoint routers are included here under the /api/v1 prefix.
"""

from fastapi import APIRouter

from signup_api.api.v1 import auth

router = APIRouter()

# =============================================================================
# Authentication
# =============================================================================

router.include_router(auth.router, prefix="/auth", tags=["auth"])
