"""Checkout FastAPI application.

Processes commands synchronously over HTTP. Each request is wrapped in the
checkout domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay (e.g. "production" for PostgreSQL).
from checkout.domain import checkout
from checkout.utils.logging import configure_logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

configure_logging()
checkout.init()

_UNSCOPED_PATHS = ("/health", "/docs", "/openapi.json", "/redoc")

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Bookstore Checkout API",
    description="Order checkout and payment settlement",
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
    """Push the checkout domain context for each API request."""
    if request.url.path.startswith(_UNSCOPED_PATHS):
        return await call_next(request)
    with checkout.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import (  # noqa: E402
    cart_router,
    discount_router,
    order_router,
    payment_router,
    register_error_handlers,
)

app.include_router(cart_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(discount_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": checkout.name})
