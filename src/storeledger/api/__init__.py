from storeledger.api.errors import register_exception_handlers
from storeledger.api.routes import auth_router, batch_router, member_router, store_router, tenant_router

__all__ = [
    "auth_router",
    "batch_router",
    "member_router",
    "store_router",
    "tenant_router",
    "register_exception_handlers",
]
