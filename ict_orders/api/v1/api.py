"""API v1 router composition."""

from fastapi import APIRouter

from ict_orders.api.v1.endpoints import audit, auth, orders, users

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["audit"])
