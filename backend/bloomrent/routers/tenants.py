"""Owner tenant views and edits. Draft tenants are not listed.

  GET   /api/owners/tenants                  → active tenants
  GET   /api/owners/tenants/{tenant_id}      → one tenant
  GET   /api/owners/tenants/{tenant_id}/edit → edit page prefill
  PATCH /api/owners/tenants/{tenant_id}      → contact details and lease dates
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.deps import require_owner
from bloomrent.dal import tenants as dal
from bloomrent.database import get_db
from bloomrent.models.user import User
from bloomrent.schemas.common import ActionResult, EditView
from bloomrent.schemas.tenant import TenantOut
from bloomrent.services import tenants as service

router = APIRouter()


@router.get("", response_model=list[TenantOut])
async def list_tenants(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await dal.list_active_tenants(db, user.id)


@router.get("/{tenant_id}", response_model=TenantOut)
async def get_tenant(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await dal.get_owned_tenant(db, user.id, tenant_id)


@router.get("/{tenant_id}/edit", response_model=EditView)
async def edit_view(
    tenant_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await service.edit_view(db, user.id, tenant_id)


@router.patch("/{tenant_id}", response_model=ActionResult)
async def update_tenant(
    tenant_id: str,
    data: dict[str, Any] = Body(default={}),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_owner),
):
    return await service.update_tenant(db, user.id, tenant_id, data)
