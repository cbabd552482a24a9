# marketplace/api/__init__.py
from fastapi import APIRouter

from marketplace.api.routers import carts, checkout, orders, health

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(carts.router)
api_router.include_router(checkout.router)
api_router.include_router(orders.router)
