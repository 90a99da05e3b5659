"""Owner property views and edits.

  GET    /api/owners/properties                               → list (cached per owner)
  GET    /api/owners/properties/{property_id}                 → detail with units
  GET    /api/owners/properties/{property_id}/units           → units only
  GET    /api/owners/properties/{property_id}/edit            → edit page prefill
  PATCH  /api/owners/properties/{property_id}                 → address and details
  PUT    /api/owners/properties/{property_id}/units           → update and add units
  PUT    /api/owners/properties/{property_id}/units/{unit_id} → one unit
  DELETE /api/owners/properties/{property_id}                 → refused while tenants live there
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.deps import require_owner
from bloomrent.dal import properties as dal
from bloomrent.database import get_db
from bloomrent.models.user import User
from bloomrent.schemas.common import ActionResult, EditView
from bloomrent.schemas.property import PropertyOut, PropertySummary, UnitOut
from bloomrent.services import properties as service

router = APIRouter()


@router.get("", response_model=list[PropertySummary])
async def list_properties(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await dal.list_owner_properties(db, owner_id=user.id)


@router.get("/{property_id}", response_model=PropertyOut)
async def get_property(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    prop = await dal.get_owned_property(db, user.id, property_id, with_units=True)
    out = PropertyOut.model_validate(prop)
    out.units_count = len(out.units)
    return out


@router.get("/{property_id}/units", response_model=list[UnitOut])
async def list_units(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    await dal.get_owned_property(db, user.id, property_id)
    return await dal.list_units(db, property_id)


# ── Edits ────────────────────────────────────────────────────

@router.get("/{property_id}/edit", response_model=EditView)
async def edit_view(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await service.edit_view(db, user.id, property_id)


@router.patch("/{property_id}", response_model=ActionResult)
async def update_property(
    property_id: str,
    data: dict[str, Any] = Body(default={}),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await service.update_property(db, user.id, property_id, data)


@router.put("/{property_id}/units", response_model=ActionResult)
async def update_units(
    property_id: str,
    data: dict[str, Any] = Body(default={}),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await service.update_units(db, user.id, property_id, data)


@router.put("/{property_id}/units/{unit_id}", response_model=ActionResult)
async def update_unit(
    property_id: str,
    unit_id: str,
    data: dict[str, Any] = Body(default={}),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await service.update_unit(db, user.id, property_id, unit_id, data)


@router.delete("/{property_id}", response_model=ActionResult)
async def delete_property(
    property_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await service.delete_property(db, user.id, property_id)
