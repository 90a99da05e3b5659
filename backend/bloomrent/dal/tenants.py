"""Owner-scoped data access for tenants.

Draft tenants are only visible through their id; listings show active
tenants only.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.dal.properties import get_owned_unit
from bloomrent.middleware.exceptions import BusinessLogicError, ResourceNotFoundError
from bloomrent.models.enums import TenantStatus
from bloomrent.models.tenant import Tenant
from bloomrent.schemas.tenant import LeaseDatesForm, TenantBasicInfoForm
from bloomrent.utils.timeutil import utc_midnight

logger = logging.getLogger(__name__)


async def get_owned_tenant(db: AsyncSession, owner_id: str, tenant_id: str) -> Tenant:
    result = await db.execute(
        select(Tenant).where(Tenant.id == tenant_id, Tenant.owner_id == owner_id)
    )
    tenant = result.scalar_one_or_none()
    if tenant is None:
        raise ResourceNotFoundError("Tenant", tenant_id, "Tenant not found.")
    return tenant


async def get_tenant(db: AsyncSession, tenant_id: str) -> Tenant | None:
    result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    return result.scalar_one_or_none()


async def list_active_tenants(db: AsyncSession, owner_id: str) -> list[Tenant]:
    result = await db.execute(
        select(Tenant)
        .where(
            Tenant.owner_id == owner_id,
            Tenant.tenant_status == TenantStatus.ACTIVE,
        )
        .order_by(Tenant.name)
    )
    return list(result.scalars().all())


def _require_draft(tenant: Tenant) -> None:
    if tenant.tenant_status != TenantStatus.DRAFT:
        raise BusinessLogicError(
            "Cannot update tenant where status is not draft.",
            error_code="TENANT_NOT_DRAFT",
        )


async def create_tenant_draft(
    db: AsyncSession, owner_id: str, form: TenantBasicInfoForm
) -> Tenant:
    tenant = Tenant(
        owner_id=owner_id,
        name=form.full_name,
        email=form.email,
        phone=form.phone,
        tenant_status=TenantStatus.DRAFT,
    )
    db.add(tenant)
    await db.flush()
    logger.info(f"Created draft tenant {tenant.id} for owner {owner_id}")
    return tenant


async def update_tenant_basic_info(
    db: AsyncSession, tenant: Tenant, form: TenantBasicInfoForm
) -> Tenant:
    _require_draft(tenant)
    tenant.name = form.full_name
    tenant.email = form.email
    tenant.phone = form.phone
    await db.flush()
    return tenant


async def update_lease_dates(db: AsyncSession, tenant: Tenant, form: LeaseDatesForm) -> Tenant:
    _require_draft(tenant)
    tenant.lease_start_date = utc_midnight(form.start_date)
    tenant.lease_end_date = utc_midnight(form.end_date) if form.end_date else None
    await db.flush()
    return tenant


async def update_tenant(
    db: AsyncSession, tenant: Tenant, basic: TenantBasicInfoForm, lease: LeaseDatesForm
) -> Tenant:
    """Edit contact details and lease dates of a tenant in any status."""
    tenant.name = basic.full_name
    tenant.email = basic.email
    tenant.phone = basic.phone
    tenant.lease_start_date = utc_midnight(lease.start_date)
    tenant.lease_end_date = utc_midnight(lease.end_date) if lease.end_date else None
    await db.flush()
    logger.info(f"Updated tenant {tenant.id}")
    return tenant


async def activate_tenant(
    db: AsyncSession, owner_id: str, tenant_id: str, unit_id: str
) -> Tenant:
    """Bind a draft tenant to a unit of the same owner and make it active."""
    unit, _prop = await get_owned_unit(db, owner_id, unit_id)
    tenant = await get_owned_tenant(db, owner_id, tenant_id)

    if tenant.tenant_status != TenantStatus.DRAFT:
        raise BusinessLogicError(
            "Cannot activate a tenant that is not in draft status.",
            error_code="TENANT_NOT_DRAFT",
        )

    occupied = await db.scalar(
        select(Tenant.id).where(
            Tenant.unit_id == unit.id,
            Tenant.tenant_status == TenantStatus.ACTIVE,
        ).limit(1)
    )
    if occupied:
        raise BusinessLogicError(
            "This unit already has an active tenant.",
            error_code="UNIT_OCCUPIED",
        )

    tenant.unit_id = unit.id
    tenant.tenant_status = TenantStatus.ACTIVE
    await db.flush()
    logger.info(f"Activated tenant {tenant.id} on unit {unit.id}")
    return tenant
