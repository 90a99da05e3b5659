"""Lease holders managed by an owner.

A tenant is created as a draft by the first tenant-wizard step, gains
lease dates on the second and is activated (bound to a unit) on the
third. ``user_id`` is only set once the tenant accepts an invitation.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from bloomrent.database import Base
from bloomrent.models.enums import TenantStatus, db_enum
from bloomrent.utils.timeutil import utcnow


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    unit_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("units.id", ondelete="SET NULL"), index=True
    )
    user_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(20))

    # Stored as midnight UTC of the chosen calendar day
    lease_start_date: Mapped[datetime | None] = mapped_column(DateTime)
    lease_end_date: Mapped[datetime | None] = mapped_column(DateTime)

    tenant_status: Mapped[TenantStatus] = mapped_column(
        db_enum(TenantStatus), default=TenantStatus.DRAFT, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
