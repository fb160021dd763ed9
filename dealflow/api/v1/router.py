"""API v1 router aggregation.

Health, deal events, the manual workflow trigger and the email cron.
Services come from dealflow.api.v1.dependencies.
"""

from fastapi import APIRouter

from dealflow.api.v1.endpoints import cron, deals, health, system

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(deals.router, prefix="/deals", tags=["deals"])
api_router.include_router(system.router, prefix="/system", tags=["system"])
api_router.include_router(cron.router, prefix="/cron", tags=["cron"])
