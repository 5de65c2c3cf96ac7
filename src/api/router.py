from fastapi import APIRouter

from src.api.account.router import router as account_router
from src.api.admin.router import router as admin_router
from src.api.health.router import router as health_router
from src.api.pricing.router import router as pricing_router
from src.api.stripe.router import router as stripe_router
from src.api.usage.router import router as usage_router

# V1 API router
v1_router = APIRouter(prefix="/v1")

# Include domain routers
v1_router.include_router(account_router)
v1_router.include_router(admin_router)
v1_router.include_router(pricing_router)
v1_router.include_router(usage_router)

# Main API router
api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(stripe_router)
api_router.include_router(v1_router)
