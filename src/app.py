"""Store ledger FastAPI application.

Web server that processes commands synchronously via HTTP. Every request
is wrapped in the storeledger domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied. Events are processed
# synchronously in every environment, so projectors fire inside the UoW.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storeledger.domain import storeledger  # noqa: E402
from storeledger.utils.logging import add_context, clear_context

storeledger.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Store Ledger API",
    description="Multi-tenant stores, staff and per-batch stock allocation",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storeledger domain context and bind request details for logging."""
    add_context(method=request.method, path=request.url.path)
    try:
        with storeledger.domain_context():
            response = await call_next(request)
        return response
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storeledger.api import (  # noqa: E402
    auth_router,
    batch_router,
    member_router,
    register_exception_handlers,
    store_router,
    tenant_router,
)

app.include_router(tenant_router)
app.include_router(store_router)
app.include_router(member_router)
app.include_router(batch_router)
app.include_router(auth_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "storeledger": {"name": storeledger.name},
            },
        }
    )
