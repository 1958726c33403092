"""FastAPI application for the da-hi Marketplace service."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.marketplace_service.routers import (
    admin_router,
    auth_router,
    cart_router,
    orders_router,
    products_router,
    promotions_router,
    reviews_router,
    subscriptions_router,
)
from slowapi.errors import RateLimitExceeded


def create_app() -> FastAPI:
    """Create and configure the marketplace FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="da-hi Marketplace API",
        version="0.1.0",
        description="Multi-seller marketplace: catalog, cart, orders, promotions and admin.",
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Structured logging + request tracing
    add_observability_middleware(app)

    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "marketplace"}

    app.include_router(auth_router, prefix="/api/auth")
    app.include_router(products_router, prefix="/api/products")
    app.include_router(reviews_router, prefix="/api/products")
    app.include_router(cart_router, prefix="/api/cart")
    app.include_router(orders_router, prefix="/api/orders")
    app.include_router(promotions_router, prefix="/api/promotions")
    app.include_router(subscriptions_router, prefix="/api/subscriptions")

    # Admin routes (top-sellers is public, the rest require an administrator)
    app.include_router(admin_router, prefix="/api/admin")

    return app


app = create_app()
