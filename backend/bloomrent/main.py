import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bloomrent.config import settings
from bloomrent.middleware.exceptions import register_exception_handlers
from bloomrent.routers import (
    address,
    auth,
    email,
    health,
    invites,
    properties,
    property_wizard,
    tenant_wizard,
    tenants,
)
from bloomrent.services.scheduler import lifespan

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Bloom Rent",
    description="Rental property management: property and tenant onboarding",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
# Public
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(invites.router, prefix="/api/invite", tags=["invites"])

# Owner-scoped. Wizard routers go first so "add-property" / "add-tenant"
# are not captured by the "/{id}" routes.
app.include_router(
    property_wizard.router,
    prefix="/api/owners/properties/add-property",
    tags=["property-wizard"],
)
app.include_router(
    tenant_wizard.router,
    prefix="/api/owners/tenants/add-tenant",
    tags=["tenant-wizard"],
)
app.include_router(properties.router, prefix="/api/owners/properties", tags=["properties"])
app.include_router(tenants.router, prefix="/api/owners/tenants", tags=["tenants"])
app.include_router(invites.owner_router, prefix="/api/owners/invites", tags=["invites"])
app.include_router(address.router, prefix="/api/address", tags=["address"])
app.include_router(email.router, prefix="/api", tags=["email"])
