"""Add-property wizard end to end: resume, step submits, owner isolation."""

from decimal import Decimal
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from bloomrent.dal import properties as property_dal
from bloomrent.models.enums import PropertyStatus, TenantStatus, UnitType, UserRole
from bloomrent.models.property import Property, Unit
from bloomrent.models.tenant import Tenant
from factories import (
    ADDRESS,
    PROPERTY_WIZARD,
    UNIT,
    add_tenant,
    create_rental,
    headers_for,
    make_user,
)


def query_of(href: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlsplit(href).query).items()}


async def start_property(client, headers) -> str:
    response = await client.post(f"{PROPERTY_WIZARD}/address", json=ADDRESS, headers=headers)
    assert response.json()["success"] is True
    return response.json()["property_id"]


async def choose_unit_type(client, headers, property_id: str, unit_type: str) -> dict:
    response = await client.post(
        f"{PROPERTY_WIZARD}/property-type",
        params={"propertyId": property_id, "completedSteps": 1},
        json={"unit_type": unit_type},
        headers=headers,
    )
    return response.json()


@pytest.mark.api
class TestWizardEntry:

    @pytest.mark.asyncio
    async def test_new_owner_starts_at_address(self, client, auth_headers):
        response = await client.get(PROPERTY_WIZARD, headers=auth_headers)
        assert response.status_code == 200
        assert response.json() == {"redirect_to": "/owners/properties/add-property/address"}

    @pytest.mark.asyncio
    async def test_draft_without_unit_type_resumes_at_property_type(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)

        response = await client.get(PROPERTY_WIZARD, headers=auth_headers)
        assert response.json()["redirect_to"] == (
            f"/owners/properties/add-property/property-type?propertyId={property_id}&completedSteps=1"
        )

    @pytest.mark.asyncio
    async def test_abandoned_multi_unit_draft_resumes_at_units(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)
        await choose_unit_type(client, auth_headers, property_id, "multi_unit")

        response = await client.get(PROPERTY_WIZARD, headers=auth_headers)
        assert response.json()["redirect_to"] == (
            "/owners/properties/add-property/multi-unit-option"
            f"?propertyId={property_id}&completedSteps=2&unitType=multi_unit"
        )

    @pytest.mark.asyncio
    async def test_completed_property_is_not_a_draft(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)
        await choose_unit_type(client, auth_headers, property_id, "single_unit")
        await client.post(
            f"{PROPERTY_WIZARD}/single-unit-option",
            params={"propertyId": property_id, "completedSteps": 2, "unitType": "single_unit"},
            json=UNIT,
            headers=auth_headers,
        )

        response = await client.get(PROPERTY_WIZARD, headers=auth_headers)
        assert response.json()["redirect_to"] == "/owners/properties/add-property/address"

    @pytest.mark.asyncio
    async def test_drafts_of_other_owners_are_ignored(self, client, auth_headers, other_headers):
        await start_property(client, other_headers)

        response = await client.get(PROPERTY_WIZARD, headers=auth_headers)
        assert response.json()["redirect_to"] == "/owners/properties/add-property/address"

    @pytest.mark.asyncio
    async def test_tenant_cannot_use_wizard(self, client, db_session):
        tenant = await make_user(db_session, "t@example.com", UserRole.TENANT)
        response = await client.get(PROPERTY_WIZARD, headers=headers_for(tenant))
        assert response.status_code == 403


@pytest.mark.api
class TestAddressStep:

    @pytest.mark.asyncio
    async def test_creates_draft_and_moves_to_property_type(self, client, auth_headers, session_factory):
        response = await client.post(f"{PROPERTY_WIZARD}/address", json=ADDRESS, headers=auth_headers)
        body = response.json()

        assert body["success"] is True
        property_id = body["property_id"]
        assert body["redirect_to"] == (
            f"/owners/properties/add-property/property-type?propertyId={property_id}&completedSteps=1"
        )

        async with session_factory() as session:
            prop = await session.get(Property, property_id)
        assert prop.property_status == PropertyStatus.DRAFT
        assert prop.city == "Springfield"
        assert prop.address_line2 is None

    @pytest.mark.asyncio
    async def test_update_keeps_the_same_draft(self, client, auth_headers, session_factory):
        property_id = await start_property(client, auth_headers)

        response = await client.post(
            f"{PROPERTY_WIZARD}/address",
            params={"propertyId": property_id, "completedSteps": 2, "unitType": "single_unit"},
            json={**ADDRESS, "address_line1": "500 Oak Ave"},
            headers=auth_headers,
        )
        body = response.json()
        assert body["property_id"] == property_id
        # Progress already past step 1 is kept
        assert query_of(body["redirect_to"]) == {
            "propertyId": property_id,
            "completedSteps": "2",
            "unitType": "single_unit",
        }

        async with session_factory() as session:
            count = len((await session.execute(select(Property))).scalars().all())
            prop = await session.get(Property, property_id)
        assert count == 1
        assert prop.address_line1 == "500 Oak Ave"

    @pytest.mark.asyncio
    async def test_validation_failure_echoes_values(self, client, auth_headers):
        data = {**ADDRESS, "city": "", "state": "XX"}
        response = await client.post(f"{PROPERTY_WIZARD}/address", json=data, headers=auth_headers)
        body = response.json()

        assert response.status_code == 200
        assert body["success"] is False
        assert body["kind"] == "validation"
        assert body["message"] == "Please correct the highlighted fields."
        assert set(body["errors"]) == {"city", "state"}
        assert body["values"] == data

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_input(self, client, auth_headers, monkeypatch):
        async def broken(*args, **kwargs):
            raise OperationalError("INSERT INTO properties", {}, Exception("database is locked"))

        monkeypatch.setattr(property_dal, "create_property_draft", broken)

        response = await client.post(f"{PROPERTY_WIZARD}/address", json=ADDRESS, headers=auth_headers)
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "persistence"
        assert body["message"] == "Failed to save the property address."
        assert body["values"] == ADDRESS

    @pytest.mark.asyncio
    async def test_view_prefills_draft(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)

        response = await client.get(
            f"{PROPERTY_WIZARD}/address",
            params={"propertyId": property_id, "completedSteps": 1},
            headers=auth_headers,
        )
        body = response.json()
        assert body["step"] == "address"
        assert body["back_href"] == "/owners/properties"
        assert body["defaults"]["address_line1"] == "123 Main St"
        assert body["progress"][1]["href"] is not None
        assert body["progress"][2]["href"] is None


@pytest.mark.api
class TestDetailsStep:

    @pytest.mark.asyncio
    async def test_saves_details(self, client, auth_headers, session_factory):
        property_id = await start_property(client, auth_headers)

        response = await client.post(
            f"{PROPERTY_WIZARD}/property-name-and-description",
            params={"propertyId": property_id, "completedSteps": 1},
            json={
                "name": "Maple House",
                "property_type": "townhouse",
                "description": "Two storey townhouse",
                "year_built": "1998",
            },
            headers=auth_headers,
        )
        body = response.json()
        assert body["success"] is True
        assert body["redirect_to"].startswith("/owners/properties/add-property/property-type?")

        async with session_factory() as session:
            prop = await session.get(Property, property_id)
        assert prop.name == "Maple House"
        assert prop.year_built == 1998

    @pytest.mark.asyncio
    async def test_missing_property_id(self, client, auth_headers):
        response = await client.post(
            f"{PROPERTY_WIZARD}/property-name-and-description",
            json={"name": "Maple House"},
            headers=auth_headers,
        )
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "missing_prerequisite"
        assert body["message"] == "Property ID is missing. Please start from step 1."


@pytest.mark.api
class TestPropertyTypeStep:

    @pytest.mark.asyncio
    async def test_branches_by_unit_type(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)

        body = await choose_unit_type(client, auth_headers, property_id, "single_unit")
        assert body["redirect_to"] == (
            "/owners/properties/add-property/single-unit-option"
            f"?propertyId={property_id}&completedSteps=2&unitType=single_unit"
        )

    @pytest.mark.asyncio
    async def test_view_without_property_id(self, client, auth_headers):
        response = await client.get(f"{PROPERTY_WIZARD}/property-type", headers=auth_headers)
        body = response.json()
        assert response.status_code == 200
        assert body["kind"] == "missing_prerequisite"
        assert body["message"] == "Property ID is missing. Please start from step 1."
        assert [step["href"] is None for step in body["progress"]] == [False, True, True]

    @pytest.mark.asyncio
    async def test_view_shows_implied_progress(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)
        response = await client.get(
            f"{PROPERTY_WIZARD}/property-type",
            params={"propertyId": property_id, "completedSteps": "junk"},
            headers=auth_headers,
        )
        body = response.json()
        assert body["completed_steps"] == 1
        assert body["progress"][0]["status"] == "complete"

    @pytest.mark.asyncio
    async def test_requires_a_choice(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)
        body = await choose_unit_type(client, auth_headers, property_id, "")
        assert body["errors"] == {"unit_type": "Please select a unit type."}


@pytest.mark.api
class TestUnitSteps:

    @pytest.mark.asyncio
    async def test_single_unit_completes_property(self, client, auth_headers, session_factory):
        property_id = await start_property(client, auth_headers)
        await choose_unit_type(client, auth_headers, property_id, "single_unit")

        response = await client.post(
            f"{PROPERTY_WIZARD}/single-unit-option",
            params={"propertyId": property_id, "completedSteps": 2, "unitType": "single_unit"},
            json=UNIT,
            headers=auth_headers,
        )
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Property saved successfully."
        assert body["redirect_to"] == "/owners/properties"

        async with session_factory() as session:
            prop = await session.get(Property, property_id)
            units = (await session.execute(select(Unit))).scalars().all()
        assert prop.property_status == PropertyStatus.ACTIVE
        assert prop.unit_type == UnitType.SINGLE_UNIT
        assert len(units) == 1
        assert units[0].unit_number == "Main Unit"
        assert units[0].bathrooms == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_single_unit_resubmit_edits_same_unit(self, client, auth_headers, session_factory):
        property_id = await start_property(client, auth_headers)
        await choose_unit_type(client, auth_headers, property_id, "single_unit")
        params = {"propertyId": property_id, "completedSteps": 2, "unitType": "single_unit"}

        await client.post(f"{PROPERTY_WIZARD}/single-unit-option", params=params, json=UNIT, headers=auth_headers)
        await client.post(
            f"{PROPERTY_WIZARD}/single-unit-option",
            params=params,
            json={**UNIT, "rent_amount": "1650"},
            headers=auth_headers,
        )

        async with session_factory() as session:
            units = (await session.execute(select(Unit))).scalars().all()
        assert len(units) == 1
        assert units[0].rent_amount == Decimal("1650.00")

    @pytest.mark.asyncio
    async def test_multi_unit_creates_units(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)
        await choose_unit_type(client, auth_headers, property_id, "multi_unit")
        units = [
            {**UNIT, "unit_number": "1A"},
            {**UNIT, "unit_number": "1B", "bedrooms": "studio"},
        ]

        response = await client.post(
            f"{PROPERTY_WIZARD}/multi-unit-option",
            params={"propertyId": property_id, "completedSteps": 2, "unitType": "multi_unit"},
            json={"units": units},
            headers=auth_headers,
        )
        assert response.json()["success"] is True

        detail = await client.get(f"/api/owners/properties/{property_id}", headers=auth_headers)
        body = detail.json()
        assert body["property_status"] == "active"
        assert body["units_count"] == 2
        assert sorted(u["unit_number"] for u in body["units"]) == ["1A", "1B"]

        view = await client.get(
            f"{PROPERTY_WIZARD}/multi-unit-option",
            params={"propertyId": property_id},
            headers=auth_headers,
        )
        assert len(view.json()["defaults"]["units"]) == 2

    @pytest.mark.asyncio
    async def test_duplicate_unit_names(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)
        await choose_unit_type(client, auth_headers, property_id, "multi_unit")

        response = await client.post(
            f"{PROPERTY_WIZARD}/multi-unit-option",
            params={"propertyId": property_id},
            json={"units": [{**UNIT, "unit_number": "1A"}, {**UNIT, "unit_number": "1a"}]},
            headers=auth_headers,
        )
        body = response.json()
        assert body["kind"] == "validation"
        assert "units" in body["errors"]

    @pytest.mark.asyncio
    async def test_resubmit_keeps_occupied_units(self, client, auth_headers, session_factory):
        property_id, _unit_ids = await create_rental(client, auth_headers, ("A", "B"))
        async with session_factory() as session:
            unit_a = (await session.execute(select(Unit).where(Unit.unit_number == "A"))).scalar_one()
        tenant_id = await add_tenant(client, auth_headers, property_id, unit_a.id)

        response = await client.post(
            f"{PROPERTY_WIZARD}/multi-unit-option",
            params={"propertyId": property_id, "completedSteps": 2, "unitType": "multi_unit"},
            json={"units": [{**UNIT, "unit_number": "C"}]},
            headers=auth_headers,
        )
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Unit A has an active tenant and cannot be removed."

        async with session_factory() as session:
            tenant = await session.get(Tenant, tenant_id)
            numbers = sorted(
                (await session.execute(select(Unit.unit_number).where(Unit.property_id == property_id))).scalars()
            )
        assert tenant.tenant_status == TenantStatus.ACTIVE
        assert tenant.unit_id == unit_a.id
        assert numbers == ["A", "B"]

    @pytest.mark.asyncio
    async def test_resubmit_removes_vacant_units(self, client, auth_headers, session_factory):
        property_id, _unit_ids = await create_rental(client, auth_headers, ("A", "B"))

        response = await client.post(
            f"{PROPERTY_WIZARD}/multi-unit-option",
            params={"propertyId": property_id, "completedSteps": 2, "unitType": "multi_unit"},
            json={"units": [{**UNIT, "unit_number": "C"}]},
            headers=auth_headers,
        )
        assert response.json()["success"] is True

        async with session_factory() as session:
            numbers = list(
                (await session.execute(select(Unit.unit_number).where(Unit.property_id == property_id))).scalars()
            )
        assert numbers == ["C"]

    @pytest.mark.asyncio
    async def test_single_unit_view_defaults(self, client, auth_headers):
        property_id = await start_property(client, auth_headers)
        response = await client.get(
            f"{PROPERTY_WIZARD}/single-unit-option",
            params={"propertyId": property_id, "completedSteps": 2},
            headers=auth_headers,
        )
        body = response.json()
        assert body["defaults"] == {"unit_number": "Main Unit"}
        assert body["back_href"].startswith("/owners/properties/add-property/property-type?")


@pytest.mark.api
class TestOwnerIsolation:

    @pytest.mark.asyncio
    async def test_other_owner_cannot_view_draft(self, client, auth_headers, other_headers):
        property_id = await start_property(client, auth_headers)

        response = await client.get(
            f"{PROPERTY_WIZARD}/property-type",
            params={"propertyId": property_id},
            headers=other_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

        detail = await client.get(f"/api/owners/properties/{property_id}", headers=other_headers)
        assert detail.status_code == 404

    @pytest.mark.asyncio
    async def test_other_owner_cannot_write_draft(self, client, auth_headers, other_headers, session_factory):
        property_id = await start_property(client, auth_headers)

        body = await choose_unit_type(client, other_headers, property_id, "multi_unit")
        assert body["success"] is False
        assert body["message"] == "Property not found."

        async with session_factory() as session:
            prop = await session.get(Property, property_id)
        assert prop.unit_type is None

    @pytest.mark.asyncio
    async def test_list_is_scoped(self, client, auth_headers, other_headers):
        await start_property(client, auth_headers)

        mine = await client.get("/api/owners/properties", headers=auth_headers)
        theirs = await client.get("/api/owners/properties", headers=other_headers)
        assert len(mine.json()) == 1
        assert mine.json()[0]["property_status"] == "draft"
        assert theirs.json() == []
