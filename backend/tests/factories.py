"""Test data builders shared by the test modules."""

from sqlalchemy.ext.asyncio import AsyncSession

from bloomrent.auth.jwt import create_access_token
from bloomrent.auth.password import hash_password
from bloomrent.models.enums import UserRole
from bloomrent.models.user import User

TEST_PASSWORD = "testpassword123"

PROPERTY_WIZARD = "/api/owners/properties/add-property"
TENANT_WIZARD = "/api/owners/tenants/add-tenant"

ADDRESS = {
    "address_line1": "123 Main St",
    "address_line2": "",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "United States",
}

UNIT = {
    "unit_number": "",
    "bedrooms": "2",
    "bathrooms": "1.5",
    "rent_amount": "1500.00",
    "security_deposit_amount": "1500",
}

BASIC_INFO = {
    "first_name": "Tina",
    "last_name": "Tenant",
    "email": "Tina@Example.com",
    "phone": "",
}


async def make_user(
    db: AsyncSession, email: str, role: UserRole, name: str = "Test User"
) -> User:
    user = User(
        email=email,
        name=name,
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


def headers_for(user: User) -> dict:
    token = create_access_token(user_id=user.id, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


# ── Wizard walkers ───────────────────────────────────────────

async def create_rental(client, headers, unit_numbers: tuple[str, ...] = ()) -> tuple[str, list[str]]:
    """Run the property wizard to completion; return (property_id, unit_ids).

    No unit numbers gives a single-unit property.
    """
    response = await client.post(f"{PROPERTY_WIZARD}/address", json=ADDRESS, headers=headers)
    property_id = response.json()["property_id"]
    params = {"propertyId": property_id, "completedSteps": 2}

    if unit_numbers:
        await client.post(
            f"{PROPERTY_WIZARD}/property-type", params=params,
            json={"unit_type": "multi_unit"}, headers=headers,
        )
        units = [{**UNIT, "unit_number": number} for number in unit_numbers]
        await client.post(
            f"{PROPERTY_WIZARD}/multi-unit-option", params=params,
            json={"units": units}, headers=headers,
        )
    else:
        await client.post(
            f"{PROPERTY_WIZARD}/property-type", params=params,
            json={"unit_type": "single_unit"}, headers=headers,
        )
        await client.post(
            f"{PROPERTY_WIZARD}/single-unit-option", params=params, json=UNIT, headers=headers,
        )

    response = await client.get(f"/api/owners/properties/{property_id}/units", headers=headers)
    return property_id, [unit["id"] for unit in response.json()]


async def add_tenant(client, headers, property_id: str, unit_id: str, basic_info: dict = BASIC_INFO) -> str:
    """Run the tenant wizard up to the invitation step; return the tenant id."""
    response = await client.post(f"{TENANT_WIZARD}/tenant-basic-info", json=basic_info, headers=headers)
    tenant_id = response.json()["tenant_id"]

    await client.post(
        f"{TENANT_WIZARD}/lease-dates",
        params={"tenantId": tenant_id, "completedSteps": 1},
        json={"lease_start_date": "2026-11-01", "lease_end_date": "2027-10-31"},
        headers=headers,
    )
    await client.post(
        f"{TENANT_WIZARD}/unit-selection",
        params={"tenantId": tenant_id, "completedSteps": 2},
        json={"property_id": property_id, "unit_id": unit_id},
        headers=headers,
    )
    return tenant_id


def sending_params(tenant_id: str, property_id: str, unit_id: str) -> dict:
    return {"tenantId": tenant_id, "unitId": unit_id, "propertyId": property_id}
