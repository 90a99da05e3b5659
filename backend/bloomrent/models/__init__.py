"""Aggregate model imports for Alembic auto-detection."""

from bloomrent.models.user import User  # noqa: F401
from bloomrent.models.property import Property, Unit  # noqa: F401
from bloomrent.models.tenant import Tenant  # noqa: F401
from bloomrent.models.invite import Invite  # noqa: F401
from bloomrent.models.enums import (  # noqa: F401
    InviteStatus,
    PropertyStatus,
    PropertyType,
    TenantStatus,
    UnitType,
    UserRole,
)
