"""API routers."""
from agora.routers.health import router as health_router
from agora.routers.auth import router as auth_router
from agora.routers.users import router as users_router
from agora.routers.tenants import router as tenants_router
from agora.routers.products import router as products_router
from agora.routers.orders import router as orders_router
from agora.routers.forum import router as forum_router
from agora.routers.campaigns import router as campaigns_router
from agora.routers.admin import router as admin_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "tenants_router",
    "products_router",
    "orders_router",
    "forum_router",
    "campaigns_router",
    "admin_router",
]
