"""Storefront FastAPI application.

Serves the cart, checkout, wallet and order endpoints. Every request runs
inside the ordering domain context; commands are processed synchronously.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.domain import ordering
from ordering.utils.logging import bind_request_context, clear_request_context, configure_logging

configure_logging()

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the config overlay in ordering/domain.toml:
#   - "production" → PostgreSQL via DATABASE_URL
#   - anything else → in-memory stores
ordering.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Supermarket storefront — cart, checkout settlement, wallet and orders",
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
    """Push the ordering domain context and a request id for each request."""
    clear_request_context()
    bind_request_context(request_id=request.headers.get("x-request-id") or uuid4().hex)
    with ordering.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import (  # noqa: E402
    cart_router,
    checkout_router,
    order_router,
    product_router,
    reconciliation_router,
    wallet_router,
)
from ordering.api.errors import register_storefront_handlers  # noqa: E402

app.include_router(product_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(wallet_router)
app.include_router(order_router)
app.include_router(reconciliation_router)

register_exception_handlers(app)
register_storefront_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": ordering.name})
