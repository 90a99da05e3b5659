"""Editing an existing tenant's contact details and lease dates."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.dal import tenants as tenant_dal
from bloomrent.middleware.exceptions import BloomRentException
from bloomrent.schemas.common import ActionResult, EditView, ResultKind
from bloomrent.schemas.tenant import LeaseDatesForm, TenantBasicInfoForm
from bloomrent.schemas.validators import validate_form
from bloomrent.services.tenant_wizard import split_name
from bloomrent.wizard.progress import TENANTS_LIST_ROUTE

logger = logging.getLogger(__name__)

INVALID_FORM = "Please correct the highlighted fields."


async def edit_view(db: AsyncSession, owner_id: str, tenant_id: str) -> EditView:
    tenant = await tenant_dal.get_owned_tenant(db, owner_id, tenant_id)
    first, last = split_name(tenant.name)
    defaults = {
        "first_name": first,
        "last_name": last,
        "email": tenant.email or "",
        "phone": tenant.phone or "",
        "lease_start_date": (
            tenant.lease_start_date.date().isoformat() if tenant.lease_start_date else ""
        ),
        "lease_end_date": (
            tenant.lease_end_date.date().isoformat() if tenant.lease_end_date else ""
        ),
    }
    return EditView(defaults=defaults, back_href=TENANTS_LIST_ROUTE)


async def update_tenant(
    db: AsyncSession, owner_id: str, tenant_id: str, data: dict
) -> ActionResult:
    basic, basic_errors = validate_form(TenantBasicInfoForm, data)
    lease, lease_errors = validate_form(LeaseDatesForm, data)
    if basic_errors or lease_errors:
        return ActionResult.fail(
            INVALID_FORM, ResultKind.VALIDATION,
            errors={**basic_errors, **lease_errors}, values=data,
        )

    try:
        tenant = await tenant_dal.get_owned_tenant(db, owner_id, tenant_id)
        await tenant_dal.update_tenant(db, tenant, basic, lease)
    except (BloomRentException, SQLAlchemyError) as e:
        if isinstance(e, BloomRentException):
            message = e.message
        else:
            logger.error(f"Tenant edit failed: {e}", exc_info=True)
            await db.rollback()
            message = "Failed to update tenant."
        return ActionResult.fail(message, ResultKind.PERSISTENCE, values=data)

    return ActionResult.ok(
        "Tenant updated successfully!",
        redirect_to=TENANTS_LIST_ROUTE,
        tenant_id=tenant.id,
    )
