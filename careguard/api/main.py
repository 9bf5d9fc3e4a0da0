"""
FastAPI application - Main entry point
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from careguard.api import admin_router, auth_router, catalog_router
from careguard.api.dependencies import build_services, get_services, get_store, set_services
from careguard.integrations.policy.reconciliation import CatalogStore
from careguard.utils.config_loader import load_settings

settings = load_settings()

# Setup logging
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="CareGuard Catalog API",
    description="Medical apparel catalog, quote inquiries and admin console backend",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================

set_services(build_services(settings))

app.include_router(catalog_router.api, prefix="/api/v1")
app.include_router(auth_router.api, prefix="/api/v1")
app.include_router(admin_router.api, prefix="/api/v1")


@app.get("/", tags=["Health"])
async def root():
    return {"service": "CareGuard Catalog API", "status": "ok", "backend": get_services().settings.backend}


@app.get("/health", tags=["Health"])
async def health_check(store: CatalogStore = Depends(get_store)):
    """Cache reachability plus the catalog sync state."""
    await store.ensure_loaded()
    snapshot = store.status_snapshot()
    return {
        "status": "degraded" if snapshot["offline"] or snapshot["last_error"] else "healthy",
        "cache": get_services().cache.ping(),
        "store": snapshot,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
