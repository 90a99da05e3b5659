"""Properties and their rentable units.

A property row is created by the first wizard step with
``property_status = draft`` and only becomes ``active`` once the unit step
has created at least one unit. Until then it is reachable through its
draft id alone.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bloomrent.database import Base
from bloomrent.models.enums import PropertyStatus, PropertyType, UnitType, db_enum
from bloomrent.utils.timeutil import utcnow


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )

    # Optional while drafting; filled in by the details page
    name: Mapped[str | None] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text)
    property_type: Mapped[PropertyType | None] = mapped_column(db_enum(PropertyType))
    unit_type: Mapped[UnitType | None] = mapped_column(db_enum(UnitType))

    # Address
    address_line1: Mapped[str] = mapped_column(String(255), nullable=False)
    address_line2: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(80), default="United States")

    # Contact + building facts
    contact_email: Mapped[str | None] = mapped_column(String(255))
    contact_phone: Mapped[str | None] = mapped_column(String(20))
    year_built: Mapped[int | None] = mapped_column(Integer)
    building_sq_ft: Mapped[int | None] = mapped_column(Integer)
    lot_sq_ft: Mapped[int | None] = mapped_column(Integer)

    property_status: Mapped[PropertyStatus] = mapped_column(
        db_enum(PropertyStatus), default=PropertyStatus.DRAFT, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    units = relationship(
        "Unit",
        back_populates="property",
        cascade="all, delete-orphan",
        order_by="Unit.created_at",
    )


class Unit(Base):
    __tablename__ = "units"
    __table_args__ = (
        UniqueConstraint("property_id", "unit_number", name="uq_units_property_unit_number"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    property_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    unit_number: Mapped[str] = mapped_column(String(50), nullable=False)
    # 0 = studio, 12 = "12+"
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False)
    bathrooms: Mapped[Decimal] = mapped_column(Numeric(3, 1), nullable=False)
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    security_deposit_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    property = relationship("Property", back_populates="units")
