"""Add-property wizard: step views and step submits.

Each step has a ``*_view`` (what the page renders on GET) and a ``save_*``
(what a POST does). Saves never raise for user-correctable problems; they
return an ``ActionResult`` that either carries the next href or the
message and the submitted values so the form can be shown again.

Step order::

    address -> [property-name-and-description] -> property-type
            -> single-unit-option | multi-unit-option -> /owners/properties
"""

import logging
from dataclasses import replace

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.dal import properties as dal
from bloomrent.middleware.exceptions import BloomRentException
from bloomrent.models.enums import UnitType
from bloomrent.models.property import Property
from bloomrent.schemas.common import ActionResult, ProgressStepOut, ResultKind, StepView
from bloomrent.schemas.property import (
    DEFAULT_COUNTRY,
    DEFAULT_UNIT_NUMBER,
    AddressForm,
    MultiUnitForm,
    PropertyDetailsForm,
    PropertyTypeForm,
    SingleUnitForm,
    bathrooms_to_option,
    bedrooms_to_option,
)
from bloomrent.schemas.validators import validate_form
from bloomrent.utils.cache import invalidate_cache
from bloomrent.wizard.progress import (
    PROPERTIES_LIST_ROUTE,
    PropertyStep,
    WizardProgress,
    build_property_progress,
    displayed_completed_steps,
    unit_step_for,
)
from bloomrent.wizard.resolver import resolve_property_step

logger = logging.getLogger(__name__)

MISSING_PROPERTY_ID = "Property ID is missing. Please start from step 1."
INVALID_FORM = "Please correct the highlighted fields."


# ── Helpers ──────────────────────────────────────────────────

def _view(
    step: PropertyStep,
    progress: WizardProgress,
    back_href: str | None,
    defaults: dict | None = None,
    message: str | None = None,
    kind: ResultKind | None = None,
) -> StepView:
    return StepView(
        step=step.value,
        progress=[
            ProgressStepOut.model_validate(link)
            for link in build_property_progress(step, progress)
        ],
        completed_steps=displayed_completed_steps(progress.completed_steps, step.number),
        back_href=back_href,
        defaults=defaults or {},
        message=message,
        kind=kind,
    )


def _invalid(errors: dict[str, str], data: dict) -> ActionResult:
    return ActionResult.fail(INVALID_FORM, ResultKind.VALIDATION, errors=errors, values=data)


def _missing_property(data: dict) -> ActionResult:
    return ActionResult.fail(MISSING_PROPERTY_ID, ResultKind.MISSING_PREREQUISITE, values=data)


async def _persistence_failed(
    db: AsyncSession, exc: Exception, data: dict, fallback: str
) -> ActionResult:
    """Turn a failed write into a result that keeps the user's input."""
    if isinstance(exc, BloomRentException):
        message = exc.message
    else:
        logger.error(f"Property wizard write failed: {exc}", exc_info=True)
        await db.rollback()
        message = fallback
    return ActionResult.fail(message, ResultKind.PERSISTENCE, values=data)


async def commit_property_writes(db: AsyncSession, owner_id: str) -> None:
    """Commit, then drop the owner's cached property list, in that order."""
    await db.commit()
    await invalidate_cache("properties:*", owner_id=owner_id)


def address_defaults(prop: Property | None) -> dict:
    if prop is None:
        return {"country": DEFAULT_COUNTRY}
    return {
        "address_line1": prop.address_line1,
        "address_line2": prop.address_line2 or "",
        "city": prop.city,
        "state": prop.state,
        "zip_code": prop.zip_code,
        "country": prop.country or DEFAULT_COUNTRY,
    }


def details_defaults(prop: Property) -> dict:
    return {
        "name": prop.name or "",
        "property_type": prop.property_type.value if prop.property_type else "",
        "description": prop.description or "",
        "contact_email": prop.contact_email or "",
        "contact_phone": prop.contact_phone or "",
        "year_built": prop.year_built,
        "building_sq_ft": prop.building_sq_ft,
        "lot_sq_ft": prop.lot_sq_ft,
    }


def unit_defaults(unit) -> dict:
    return {
        "id": unit.id,
        "unit_number": unit.unit_number,
        "bedrooms": bedrooms_to_option(unit.bedrooms),
        "bathrooms": bathrooms_to_option(unit.bathrooms),
        "rent_amount": str(unit.rent_amount),
        "security_deposit_amount": (
            str(unit.security_deposit_amount)
            if unit.security_deposit_amount is not None
            else ""
        ),
    }


# ── Entry ────────────────────────────────────────────────────

async def resolve_entry(db: AsyncSession, owner_id: str) -> str:
    """Where ``/owners/properties/add-property`` should send this owner."""
    draft = await dal.get_draft_property_by_owner(db, owner_id)
    href = resolve_property_step(draft)
    logger.debug(f"Owner {owner_id} resumes add-property at {href}")
    return href


# ── Step 1: address ──────────────────────────────────────────

async def address_view(db: AsyncSession, owner_id: str, progress: WizardProgress) -> StepView:
    prop = None
    if progress.property_id:
        prop = await dal.get_owned_property(db, owner_id, progress.property_id)
    return _view(
        PropertyStep.ADDRESS,
        progress,
        back_href=PROPERTIES_LIST_ROUTE,
        defaults=address_defaults(prop),
    )


async def save_address(
    db: AsyncSession, owner_id: str, progress: WizardProgress, data: dict
) -> ActionResult:
    """Create the draft (no ``propertyId``) or update its address."""
    form, errors = validate_form(AddressForm, data)
    if errors:
        return _invalid(errors, data)

    try:
        if progress.property_id:
            prop = await dal.get_owned_property(db, owner_id, progress.property_id)
            await dal.update_property_address(db, prop, form)
        else:
            prop = await dal.create_property_draft(db, owner_id, form)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to save the property address.")

    await commit_property_writes(db, owner_id)
    next_progress = progress.advanced_to(
        1,
        property_id=prop.id,
        unit_type=progress.unit_type or prop.unit_type,
    )
    return ActionResult.ok(
        redirect_to=next_progress.href(PropertyStep.PROPERTY_TYPE),
        property_id=prop.id,
    )


# ── Step 1 (details page) ────────────────────────────────────

async def details_view(db: AsyncSession, owner_id: str, progress: WizardProgress) -> StepView:
    back = progress.href(PropertyStep.ADDRESS)
    if not progress.property_id:
        return _view(
            PropertyStep.DETAILS, progress, back,
            message=MISSING_PROPERTY_ID, kind=ResultKind.MISSING_PREREQUISITE,
        )

    prop = await dal.get_owned_property(db, owner_id, progress.property_id)
    return _view(PropertyStep.DETAILS, progress, back, defaults=details_defaults(prop))


async def save_details(
    db: AsyncSession, owner_id: str, progress: WizardProgress, data: dict
) -> ActionResult:
    if not progress.property_id:
        return _missing_property(data)

    form, errors = validate_form(PropertyDetailsForm, data)
    if errors:
        return _invalid(errors, data)

    try:
        prop = await dal.get_owned_property(db, owner_id, progress.property_id)
        await dal.update_property_details(db, prop, form)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to save the property details.")

    await commit_property_writes(db, owner_id)
    next_progress = progress.advanced_to(1, unit_type=progress.unit_type or prop.unit_type)
    return ActionResult.ok(
        redirect_to=next_progress.href(PropertyStep.PROPERTY_TYPE),
        property_id=prop.id,
    )


# ── Step 2: property type (single or multi unit) ─────────────

async def property_type_view(
    db: AsyncSession, owner_id: str, progress: WizardProgress
) -> StepView:
    back = progress.href(PropertyStep.ADDRESS)
    if not progress.property_id:
        return _view(
            PropertyStep.PROPERTY_TYPE, progress, back,
            message=MISSING_PROPERTY_ID, kind=ResultKind.MISSING_PREREQUISITE,
        )

    prop = await dal.get_owned_property(db, owner_id, progress.property_id)
    unit_type = progress.unit_type or prop.unit_type
    return _view(
        PropertyStep.PROPERTY_TYPE,
        replace(progress, unit_type=unit_type),
        back,
        defaults={"unit_type": unit_type.value if unit_type else ""},
    )


async def save_property_type(
    db: AsyncSession, owner_id: str, progress: WizardProgress, data: dict
) -> ActionResult:
    if not progress.property_id:
        return _missing_property(data)

    form, errors = validate_form(PropertyTypeForm, data)
    if errors:
        return _invalid(errors, data)

    unit_type = UnitType(form.unit_type)
    try:
        prop = await dal.get_owned_property(db, owner_id, progress.property_id)
        await dal.set_unit_type(db, prop, unit_type)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to save the property type.")

    await commit_property_writes(db, owner_id)
    next_progress = progress.advanced_to(2, unit_type=unit_type)
    return ActionResult.ok(
        redirect_to=next_progress.href(unit_step_for(unit_type)),
        property_id=prop.id,
    )


# ── Step 3: units ────────────────────────────────────────────

async def unit_view(
    db: AsyncSession, owner_id: str, progress: WizardProgress, step: PropertyStep
) -> StepView:
    """View for either unit branch; ``step`` picks which."""
    unit_type = UnitType.SINGLE_UNIT if step is PropertyStep.SINGLE_UNIT else UnitType.MULTI_UNIT
    shown = replace(progress, unit_type=unit_type)
    back = shown.href(PropertyStep.PROPERTY_TYPE)
    if not progress.property_id:
        return _view(
            step, shown, back,
            message=MISSING_PROPERTY_ID, kind=ResultKind.MISSING_PREREQUISITE,
        )

    await dal.get_owned_property(db, owner_id, progress.property_id)
    units = [unit_defaults(u) for u in await dal.list_units(db, progress.property_id)]
    if step is PropertyStep.SINGLE_UNIT:
        defaults = units[0] if units else {"unit_number": DEFAULT_UNIT_NUMBER}
    else:
        defaults = {"units": units}
    return _view(step, shown, back, defaults=defaults)


async def _save_units(
    db: AsyncSession,
    owner_id: str,
    property_id: str,
    unit_type: UnitType,
    forms: list,
    data: dict,
) -> ActionResult:
    try:
        prop = await dal.get_owned_property(db, owner_id, property_id)
        await dal.set_unit_type(db, prop, unit_type)
        if unit_type is UnitType.SINGLE_UNIT and forms[0].id is None:
            # Re-submitting the single-unit page edits the unit it created
            existing = await dal.list_units(db, prop.id)
            if existing:
                forms = [forms[0].model_copy(update={"id": existing[0].id})]
        await dal.save_units(db, prop, forms)
        await dal.complete_property(db, prop)
    except (BloomRentException, SQLAlchemyError) as e:
        return await _persistence_failed(db, e, data, "Failed to save the unit details.")

    await commit_property_writes(db, owner_id)
    return ActionResult.ok(
        "Property saved successfully.",
        redirect_to=PROPERTIES_LIST_ROUTE,
        property_id=prop.id,
    )


async def save_single_unit(
    db: AsyncSession, owner_id: str, progress: WizardProgress, data: dict
) -> ActionResult:
    if not progress.property_id:
        return _missing_property(data)

    form, errors = validate_form(SingleUnitForm, data)
    if errors:
        return _invalid(errors, data)
    return await _save_units(
        db, owner_id, progress.property_id, UnitType.SINGLE_UNIT, [form], data
    )


async def save_multi_unit(
    db: AsyncSession, owner_id: str, progress: WizardProgress, data: dict
) -> ActionResult:
    if not progress.property_id:
        return _missing_property(data)

    form, errors = validate_form(MultiUnitForm, data)
    if errors:
        return _invalid(errors, data)
    return await _save_units(
        db, owner_id, progress.property_id, UnitType.MULTI_UNIT, list(form.units), data
    )
