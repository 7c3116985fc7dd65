"""Vendora procurement FastAPI application.

Processes commands synchronously via HTTP; order delivery runs out of band
in the fulfillment worker (src/server.py). Every request under an API
prefix runs inside the procurement domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the configuration overlay.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from procurement.domain import procurement
from procurement.utils.logging import configure_logging

configure_logging()
procurement.init()

_DOMAIN_PREFIXES = ("/orders", "/deliveries", "/catalog")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Vendora Procurement API",
    description="B2B orders from buyer organizations to factories",
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
    """Push the procurement domain context for API requests."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with procurement.domain_context():
            response = await call_next(request)
        return response
    # Health check, docs, etc.
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from procurement.api import catalog_router, delivery_router, order_router  # noqa: E402
from protean.integrations.fastapi import register_exception_handlers  # noqa: E402

app.include_router(order_router)
app.include_router(delivery_router)
app.include_router(catalog_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": procurement.name})
