"""Add-property wizard routes.

Endpoints (under /api/owners/properties/add-property):
  GET  /                                → resolver redirect for the owner's draft
  GET  /{step}                          → step view (progress, back link, defaults)
  POST /{step}                          → validate + persist, next href on success

Wizard progress travels in the query string (``propertyId``,
``completedSteps``, ``unitType``); POST bodies carry the form fields only.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.deps import require_owner
from bloomrent.database import get_db
from bloomrent.models.user import User
from bloomrent.schemas.common import ActionResult, RedirectOut, StepView
from bloomrent.services import property_wizard as wizard
from bloomrent.wizard.progress import PropertyStep, WizardProgress

router = APIRouter()


def get_progress(request: Request) -> WizardProgress:
    return WizardProgress.from_query(request.query_params)


# ── Entry ────────────────────────────────────────────────────

@router.get("", response_model=RedirectOut)
async def entry(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    """Resume at the first incomplete step of the owner's latest draft."""
    return RedirectOut(redirect_to=await wizard.resolve_entry(db, user.id))


# ── Step 1: address ──────────────────────────────────────────

@router.get("/address", response_model=StepView)
async def address_view(
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.address_view(db, user.id, progress)


@router.post("/address", response_model=ActionResult)
async def save_address(
    data: dict[str, Any] = Body(default={}),
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_address(db, user.id, progress, data)


# ── Step 1: name and description ─────────────────────────────

@router.get("/property-name-and-description", response_model=StepView)
async def details_view(
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.details_view(db, user.id, progress)


@router.post("/property-name-and-description", response_model=ActionResult)
async def save_details(
    data: dict[str, Any] = Body(default={}),
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_details(db, user.id, progress, data)


# ── Step 2: property type ────────────────────────────────────

@router.get("/property-type", response_model=StepView)
async def property_type_view(
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.property_type_view(db, user.id, progress)


@router.post("/property-type", response_model=ActionResult)
async def save_property_type(
    data: dict[str, Any] = Body(default={}),
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_property_type(db, user.id, progress, data)


# ── Step 3: units ────────────────────────────────────────────

@router.get("/single-unit-option", response_model=StepView)
async def single_unit_view(
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.unit_view(db, user.id, progress, PropertyStep.SINGLE_UNIT)


@router.post("/single-unit-option", response_model=ActionResult)
async def save_single_unit(
    data: dict[str, Any] = Body(default={}),
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_single_unit(db, user.id, progress, data)


@router.get("/multi-unit-option", response_model=StepView)
async def multi_unit_view(
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.unit_view(db, user.id, progress, PropertyStep.MULTI_UNIT)


@router.post("/multi-unit-option", response_model=ActionResult)
async def save_multi_unit(
    data: dict[str, Any] = Body(default={}),
    progress: WizardProgress = Depends(get_progress),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await wizard.save_multi_unit(db, user.id, progress, data)
