"""FastAPI application entry point.

Run with:
    aida-bot
or:
    uvicorn aida_bot.main:app --host 0.0.0.0 --port 3000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from aida_bot.api.admin import health
from aida_bot.api.webhooks import whatsapp
from aida_bot.config import get_settings
from aida_bot.context import build_context

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.app_debug else logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

# Rate limiter - uses client IP address, applied to every route
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown events."""
    context = build_context(settings)

    # Refuse to start without a reachable history store
    try:
        await context.history.ping()
    except Exception as e:
        logger.error(f"Database connection error: {e}")
        await context.close()
        raise

    logger.info("Successfully connected to the history store")
    app.state.context = context

    yield

    app.state.context = None
    await context.close()


app = FastAPI(
    title="Aida WhatsApp Bot",
    description="WhatsApp assistant for MoneyMatch business onboarding",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(whatsapp.router, tags=["WhatsApp"])


def run() -> None:
    """Console entry point."""
    logger.info(f"Starting Aida server on {settings.app_host}:{settings.app_port}")
    uvicorn.run(
        "aida_bot.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.is_development,
    )
