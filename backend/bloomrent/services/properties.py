"""Editing and deleting an owner's existing properties.

Saves follow the wizard's contract: a problem the owner can fix comes back
as an ``ActionResult`` failure carrying the submitted values, and every
successful write commits before the owner's cached property list is
dropped.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.dal import properties as dal
from bloomrent.middleware.exceptions import BloomRentException, ResourceNotFoundError
from bloomrent.models.enums import UnitType
from bloomrent.schemas.common import ActionResult, EditView, ResultKind
from bloomrent.schemas.property import (
    AddressForm,
    MultiUnitForm,
    MultiUnitItem,
    PropertyDetailsForm,
)
from bloomrent.schemas.validators import validate_form
from bloomrent.services.property_wizard import (
    address_defaults,
    commit_property_writes,
    details_defaults,
    unit_defaults,
)
from bloomrent.wizard.progress import PROPERTIES_LIST_ROUTE, PROPERTY_DETAILS_ROUTE, build_href

logger = logging.getLogger(__name__)

INVALID_FORM = "Please correct the highlighted fields."
SINGLE_UNIT_LIMIT = "A single-unit property can only have one unit."


def details_href(property_id: str) -> str:
    return build_href(PROPERTY_DETAILS_ROUTE, [("id", property_id)])


def _invalid(errors: dict[str, str], data: dict) -> ActionResult:
    return ActionResult.fail(INVALID_FORM, ResultKind.VALIDATION, errors=errors, values=data)


async def _persistence_failed(
    db: AsyncSession, exc: Exception, data: dict | None, fallback: str
) -> ActionResult:
    if isinstance(exc, BloomRentException):
        message = exc.message
    else:
        logger.error(f"Property edit failed: {exc}", exc_info=True)
        await db.rollback()
        message = fallback
    return ActionResult.fail(message, ResultKind.PERSISTENCE, values=data)


def _plural(count: int) -> str:
    return "" if count == 1 else "s"


def _unit_names_problem(unit_type: UnitType | None, names: list[str]) -> str | None:
    """Message for a unit list the property cannot end up with, else None."""
    seen: set[str] = set()
    for name in names:
        if name.lower() in seen:
            return f"Unit {name} already exists."
        seen.add(name.lower())
    if unit_type == UnitType.SINGLE_UNIT and len(names) > 1:
        return SINGLE_UNIT_LIMIT
    return None


# ── Edit page ────────────────────────────────────────────────

async def edit_view(db: AsyncSession, owner_id: str, property_id: str) -> EditView:
    prop = await dal.get_owned_property(db, owner_id, property_id)
    units = await dal.list_units(db, prop.id)
    defaults = {
        **address_defaults(prop),
        **details_defaults(prop),
        "unit_type": prop.unit_type.value if prop.unit_type else "",
        "units": [unit_defaults(unit) for unit in units],
    }
    return EditView(defaults=defaults, back_href=details_href(prop.id))


async def update_property(
    db: AsyncSession, owner_id: str, property_id: str, data: dict
) -> ActionResult:
    """Address and details in one submit; errors of both forms are reported together."""
    address, address_errors = validate_form(AddressForm, data)
    details, details_errors = validate_form(PropertyDetailsForm, data)
    if address_errors or details_errors:
        return _invalid({**address_errors, **details_errors}, data)

    try:
        prop = await dal.get_owned_property(db, owner_id, property_id)
        await dal.update_property_address(db, prop, address)
        await dal.update_property_details(db, prop, details)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to update the property.")

    await commit_property_writes(db, owner_id)
    logger.info(f"Owner {owner_id} updated property {prop.id}")
    return ActionResult.ok(
        "Property updated successfully!",
        redirect_to=details_href(prop.id),
        property_id=prop.id,
    )


# ── Units ────────────────────────────────────────────────────

async def update_unit(
    db: AsyncSession, owner_id: str, property_id: str, unit_id: str, data: dict
) -> ActionResult:
    form, errors = validate_form(MultiUnitItem, data)
    if errors:
        return _invalid(errors, data)

    try:
        unit = await dal.get_property_unit(db, owner_id, property_id, unit_id)
        taken = any(
            other.id != unit.id and other.unit_number.lower() == form.unit_number.lower()
            for other in await dal.list_units(db, property_id)
        )
        if taken:
            return _invalid({"unit_number": f"Unit {form.unit_number} already exists."}, data)
        await dal.update_unit(db, unit, form)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to update unit. Please try again.")

    await commit_property_writes(db, owner_id)
    return ActionResult.ok(
        "Unit updated successfully",
        redirect_to=details_href(property_id),
        property_id=property_id,
    )


async def update_units(
    db: AsyncSession, owner_id: str, property_id: str, data: dict
) -> ActionResult:
    """Update the listed units by id and add the ones without an id.

    Units left out of the submit are kept as they are.
    """
    form, errors = validate_form(MultiUnitForm, data)
    if errors:
        return _invalid(errors, data)

    try:
        prop = await dal.get_owned_property(db, owner_id, property_id)
        existing = {unit.id: unit for unit in await dal.list_units(db, prop.id)}
        for item in form.units:
            if item.id and item.id not in existing:
                raise ResourceNotFoundError("Unit", item.id, "Unit not found.")

        listed = {item.id for item in form.units if item.id}
        names = [item.unit_number for item in form.units] + [
            unit.unit_number for unit_id, unit in existing.items() if unit_id not in listed
        ]
        problem = _unit_names_problem(prop.unit_type, names)
        if problem:
            return _invalid({"units": problem}, data)

        await dal.save_units(db, prop, list(form.units), remove_missing=False)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to update units. Please try again.")

    await commit_property_writes(db, owner_id)
    created = len(form.units) - len(listed)
    updated = len(listed)
    return ActionResult.ok(
        f"Updated {updated} unit{_plural(updated)} and created {created} new unit{_plural(created)}",
        redirect_to=details_href(prop.id),
        property_id=prop.id,
    )


# ── Delete ───────────────────────────────────────────────────

async def delete_property(db: AsyncSession, owner_id: str, property_id: str) -> ActionResult:
    try:
        prop = await dal.get_owned_property(db, owner_id, property_id, with_units=True)
        await dal.delete_property(db, prop)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, None, "Failed to delete the property.")

    await commit_property_writes(db, owner_id)
    return ActionResult.ok(
        "Property deleted successfully",
        redirect_to=PROPERTIES_LIST_ROUTE,
        property_id=property_id,
    )
