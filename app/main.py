"""PayBridge payment platform integration service - Main Application."""

from fastapi import FastAPI

from app.api.errors import register_exception_handlers
from app.api.routes import platforms, transactions, webhooks
from app.core.config import settings
from app.core.database import Base, engine
from app.core.logging import setup_logging

logger = setup_logging(settings.log_level)

# Create all tables on startup
logger.info("Creating database tables...")
Base.metadata.create_all(bind=engine)
logger.info("Database tables ready")

# -- OpenAPI tag metadata for Swagger grouping --
tags_metadata = [
    {
        "name": "Health",
        "description": "Service health and readiness checks.",
    },
    {
        "name": "Platforms",
        "description": (
            "Supported payment platforms, per-user credentials and flags, "
            "on-demand order sync and vendor webhook registration."
        ),
    },
    {
        "name": "Webhooks",
        "description": (
            "Inbound vendor events. Order lifecycle events are normalized and "
            "upserted; other events are acknowledged and ignored."
        ),
    },
    {
        "name": "Transactions",
        "description": (
            "Canonical transactions (completed / pending / failed) with "
            "filtering by platform, status, order number and date range."
        ),
    },
]


app = FastAPI(
    title="PayBridge Payment Platform Integration",
    description=(
        "## Multi-Vendor Payment Integration API\n\n"
        "This service connects to Brazilian and international checkout and "
        "payment platforms, normalizes their orders into one canonical "
        "transaction shape, and keeps them up to date through polling and "
        "webhooks.\n\n"
        "### Canonical Statuses\n"
        "- `completed` - Money received (approved, paid, captured...)\n"
        "- `pending` - Still payable (waiting payment, processing, analysis...)\n"
        "- `failed` - Everything else, including statuses never seen before\n\n"
        "### Quick Start\n"
        "```bash\n"
        "# 1. Save credentials and enable a platform\n"
        "curl -X PUT /api/v1/platforms/doppus/config -H 'X-User-Id: u1' "
        "-H 'Content-Type: application/json' "
        '-d \'{"api_key":"...","secret_key":"...","enabled":true}\'\n\n'
        "# 2. Pull existing orders\n"
        "curl -X POST /api/v1/platforms/doppus/sync -H 'X-User-Id: u1'\n\n"
        "# 3. Query transactions\n"
        "curl '/api/v1/transactions?status=completed' -H 'X-User-Id: u1'\n"
        "```\n"
    ),
    version="1.0.0",
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
)

register_exception_handlers(app)

app.include_router(platforms.router, prefix="/api/v1/platforms", tags=["Platforms"])
app.include_router(webhooks.router, prefix="/api/v1/webhooks", tags=["Webhooks"])
app.include_router(
    transactions.router, prefix="/api/v1/transactions", tags=["Transactions"]
)

logger.info("PayBridge API ready - routes registered")


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint.

    Returns a simple JSON object confirming the service is running.
    """
    return {"status": "healthy", "service": "paybridge"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.app_port)
