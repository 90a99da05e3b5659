"""Owner-scoped data access for properties and units.

Every lookup filters on ``owner_id``; a property that exists but belongs
to someone else is reported exactly like a missing one.
"""

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bloomrent.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from bloomrent.models.enums import PropertyStatus, PropertyType, TenantStatus, UnitType
from bloomrent.models.invite import Invite
from bloomrent.models.property import Property, Unit
from bloomrent.models.tenant import Tenant
from bloomrent.schemas.property import (
    AddressForm,
    PropertyDetailsForm,
    PropertySummary,
    UnitForm,
)
from bloomrent.utils.cache import cached
from bloomrent.wizard.resolver import DraftSnapshot

logger = logging.getLogger(__name__)


# ── Reads ───────────────────────────────────────────────────

async def count_units(db: AsyncSession, property_id: str) -> int:
    return await db.scalar(
        select(func.count(Unit.id)).where(Unit.property_id == property_id)
    ) or 0


async def get_draft_property_by_owner(db: AsyncSession, owner_id: str) -> DraftSnapshot | None:
    """Most recently touched draft of this owner, or None."""
    result = await db.execute(
        select(Property)
        .where(
            Property.owner_id == owner_id,
            Property.property_status == PropertyStatus.DRAFT,
        )
        .order_by(Property.updated_at.desc(), Property.created_at.desc())
        .limit(1)
    )
    draft = result.scalar_one_or_none()
    if draft is None:
        return None
    return DraftSnapshot(
        property_id=draft.id,
        unit_type=draft.unit_type,
        units_count=await count_units(db, draft.id),
    )


async def get_owned_property(
    db: AsyncSession,
    owner_id: str,
    property_id: str,
    with_units: bool = False,
) -> Property:
    stmt = select(Property).where(
        Property.id == property_id, Property.owner_id == owner_id
    )
    if with_units:
        stmt = stmt.options(selectinload(Property.units))
    result = await db.execute(stmt)
    prop = result.scalar_one_or_none()
    if prop is None:
        raise ResourceNotFoundError("Property", property_id, "Property not found.")
    return prop


async def list_units(db: AsyncSession, property_id: str) -> list[Unit]:
    result = await db.execute(
        select(Unit).where(Unit.property_id == property_id).order_by(Unit.created_at, Unit.unit_number)
    )
    return list(result.scalars().all())


async def get_owned_unit(db: AsyncSession, owner_id: str, unit_id: str) -> tuple[Unit, Property]:
    result = await db.execute(
        select(Unit, Property)
        .join(Property, Unit.property_id == Property.id)
        .where(Unit.id == unit_id, Property.owner_id == owner_id)
    )
    row = result.first()
    if row is None:
        raise ResourceNotFoundError("Unit", unit_id, "Unit not found.")
    return row[0], row[1]


async def get_property_unit(db: AsyncSession, owner_id: str, property_id: str, unit_id: str) -> Unit:
    unit, prop = await get_owned_unit(db, owner_id, unit_id)
    if prop.id != property_id:
        raise ResourceNotFoundError("Unit", unit_id, "Unit not found.")
    return unit


async def list_properties_with_units(db: AsyncSession, owner_id: str) -> list[Property]:
    """Active properties with their units loaded, for the unit picker."""
    result = await db.execute(
        select(Property)
        .where(
            Property.owner_id == owner_id,
            Property.property_status == PropertyStatus.ACTIVE,
        )
        .options(selectinload(Property.units))
        .order_by(Property.name, Property.address_line1)
    )
    return list(result.scalars().all())


@cached(ttl=120, prefix="properties")
async def list_owner_properties(db: AsyncSession, *, owner_id: str) -> list[PropertySummary]:
    """Owner's properties (drafts included), newest first, with unit counts."""
    units_count = (
        select(func.count(Unit.id))
        .where(Unit.property_id == Property.id)
        .correlate(Property)
        .scalar_subquery()
    )
    result = await db.execute(
        select(Property, units_count)
        .where(Property.owner_id == owner_id)
        .order_by(Property.created_at.desc())
    )
    summaries = []
    for prop, count in result.all():
        summary = PropertySummary.model_validate(prop)
        summary.units_count = count or 0
        summaries.append(summary)
    return summaries


# ── Writes ──────────────────────────────────────────────────

def _apply_address(prop: Property, form: AddressForm) -> None:
    prop.address_line1 = form.address_line1
    prop.address_line2 = form.address_line2
    prop.city = form.city
    prop.state = form.state
    prop.zip_code = form.zip_code
    prop.country = form.country


async def create_property_draft(db: AsyncSession, owner_id: str, form: AddressForm) -> Property:
    prop = Property(owner_id=owner_id, property_status=PropertyStatus.DRAFT)
    _apply_address(prop, form)
    db.add(prop)
    await db.flush()
    logger.info(f"Created draft property {prop.id} for owner {owner_id}")
    return prop


async def update_property_address(db: AsyncSession, prop: Property, form: AddressForm) -> Property:
    _apply_address(prop, form)
    await db.flush()
    return prop


async def update_property_details(
    db: AsyncSession, prop: Property, form: PropertyDetailsForm
) -> Property:
    prop.name = form.name
    prop.property_type = PropertyType(form.property_type)
    prop.description = form.description
    prop.contact_email = form.contact_email
    prop.contact_phone = form.contact_phone
    prop.year_built = form.year_built
    prop.building_sq_ft = form.building_sq_ft
    prop.lot_sq_ft = form.lot_sq_ft
    await db.flush()
    return prop


async def set_unit_type(db: AsyncSession, prop: Property, unit_type: UnitType) -> Property:
    if prop.unit_type is not None and prop.unit_type != unit_type:
        if await count_units(db, prop.id):
            raise BusinessLogicError(
                "Unit type cannot be changed once units have been added.",
                error_code="UNIT_TYPE_LOCKED",
            )
    prop.unit_type = unit_type
    await db.flush()
    return prop


def _apply_unit(unit: Unit, form: UnitForm) -> None:
    unit.unit_number = form.unit_number
    unit.bedrooms = form.bedrooms_value
    unit.bathrooms = form.bathrooms_value
    unit.rent_amount = form.rent_value
    unit.security_deposit_amount = form.deposit_value


async def occupied_unit_ids(db: AsyncSession, unit_ids: list[str]) -> set[str]:
    """Ids among ``unit_ids`` that an active tenant lives in."""
    if not unit_ids:
        return set()
    result = await db.execute(
        select(Tenant.unit_id).where(
            Tenant.unit_id.in_(unit_ids),
            Tenant.tenant_status == TenantStatus.ACTIVE,
        )
    )
    return set(result.scalars().all())


async def save_units(
    db: AsyncSession,
    prop: Property,
    forms: list[UnitForm],
    remove_missing: bool = True,
) -> list[Unit]:
    """Make the property's units match ``forms``.

    Forms carrying the id of an existing unit update it, forms without an
    id create a unit. With ``remove_missing`` the existing units not listed
    are removed, except that a unit with an active tenant is never removed.
    """
    existing = {unit.id: unit for unit in await list_units(db, prop.id)}
    keep_ids = {form.id for form in forms if form.id in existing}

    stale = [unit_id for unit_id in existing if unit_id not in keep_ids] if remove_missing else []
    occupied = await occupied_unit_ids(db, stale)
    if occupied:
        names = ", ".join(sorted(existing[unit_id].unit_number for unit_id in occupied))
        raise BusinessLogicError(
            f"Unit {names} has an active tenant and cannot be removed.",
            error_code="UNIT_OCCUPIED",
        )
    if stale:
        await db.execute(delete(Unit).where(Unit.id.in_(stale)))
        await db.flush()

    saved = []
    for form in forms:
        unit = existing.get(form.id) if form.id else None
        if unit is None:
            unit = Unit(property_id=prop.id)
            db.add(unit)
        _apply_unit(unit, form)
        saved.append(unit)
    await db.flush()
    return saved


async def complete_property(db: AsyncSession, prop: Property) -> Property:
    """Draft -> active once it has units."""
    if prop.property_status == PropertyStatus.DRAFT:
        prop.property_status = PropertyStatus.ACTIVE
        await db.flush()
        logger.info(f"Property {prop.id} is now active")
    return prop


async def update_unit(db: AsyncSession, unit: Unit, form: UnitForm) -> Unit:
    _apply_unit(unit, form)
    await db.flush()
    return unit


async def delete_property(db: AsyncSession, prop: Property) -> None:
    """Remove a property along with its units and invites.

    ``prop`` must be loaded with its units. Refused while any unit has an
    active tenant; other tenants of those units are left without a unit.
    """
    unit_ids = [unit.id for unit in prop.units]
    if await occupied_unit_ids(db, unit_ids):
        raise BusinessLogicError(
            "This property has active tenants and cannot be deleted.",
            error_code="PROPERTY_OCCUPIED",
        )

    await db.execute(delete(Invite).where(Invite.property_id == prop.id))
    if unit_ids:
        await db.execute(
            update(Tenant).where(Tenant.unit_id.in_(unit_ids)).values(unit_id=None)
        )
    await db.delete(prop)
    await db.flush()
    logger.info(f"Deleted property {prop.id} with {len(unit_ids)} unit(s)")
