"""Storefront FastAPI application.

Serves the cart and order endpoints of the checkout core synchronously over
HTTP. Authentication happens upstream; the gateway forwards the caller as
``X-User-Id`` / ``X-User-Role`` headers.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker

from ordering.api import cart_router, order_router, register_exception_handlers
from shared.config import get_settings
from shared.utils.db import get_session_factory
from shared.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
# STOREFRONT_ENV controls rendering:
#   - "production"/"staging" → JSON lines
#   - anything else          → console renderer with rich tracebacks
_settings = get_settings()
configure_logging(
    level=_settings.log_level,
    log_dir=None if _settings.env == "test" else "logs",
)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Checkout core: carts, stock reservations and orders",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(cart_router)
app.include_router(order_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health(session_factory: sessionmaker = Depends(get_session_factory)):
    engine = session_factory.kw["bind"]
    return JSONResponse(
        content={
            "status": "ok",
            "env": get_settings().env,
            "database": {"dialect": engine.dialect.name},
        }
    )
