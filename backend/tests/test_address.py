"""Google address validation client and the /api/address/validate route."""

import httpx
import pytest

from bloomrent.schemas.property import AddressForm
from bloomrent.services.address_validation import (
    ERROR_INVALID_KEY,
    ERROR_NETWORK,
    ERROR_RATE_LIMIT,
    AddressValidationError,
    AddressValidator,
    NormalizedAddress,
    addresses_identical,
)
from factories import ADDRESS

API_URL = "https://address.test/v1:validateAddress"


def google_payload(action="ACCEPT", line1="123 Main St", zip_code="62701-1234", components=None):
    return {
        "result": {
            "verdict": {"possibleNextAction": action, "addressComplete": True},
            "address": {
                "postalAddress": {
                    "addressLines": [line1],
                    "locality": "Springfield",
                    "administrativeArea": "IL",
                    "postalCode": zip_code,
                },
                "addressComponents": components or [],
            },
            "uspsData": {
                "standardizedAddress": {
                    "firstAddressLine": line1.upper(),
                    "secondAddressLine": "APT 4",
                    "city": "SPRINGFIELD",
                    "state": "IL",
                    "zipCode": "62701",
                }
            },
        }
    }


def make_validator(handler, api_key="maps-key"):
    return AddressValidator(api_key=api_key, api_url=API_URL, transport=httpx.MockTransport(handler))


@pytest.fixture
def address() -> AddressForm:
    return AddressForm(**ADDRESS)


@pytest.mark.unit
class TestAddressValidator:

    @pytest.mark.asyncio
    async def test_accept_verdict(self, address):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.url.params["key"]
            return httpx.Response(200, json=google_payload())

        result = await make_validator(handler).validate(address)

        assert seen["key"] == "maps-key"
        assert result.success is True
        assert result.should_prompt_user is False
        assert result.validation_message is None
        assert result.are_identical is True
        # Unconfirmed subpremise: USPS second line is dropped
        assert result.normalized_address.address_line2 is None
        assert result.normalized_address.zip_code == "62701-1234"

    @pytest.mark.asyncio
    async def test_fix_verdict_prompts(self, address):
        def handler(request):
            return httpx.Response(200, json=google_payload(action="FIX", line1="123 N Main St"))

        result = await make_validator(handler).validate(address)

        assert result.should_prompt_user is True
        assert result.are_identical is False
        assert result.validation_message.startswith("This address does not seem correct")

    @pytest.mark.asyncio
    async def test_confirmed_subpremise_keeps_second_line(self, address):
        components = [{"componentType": "subpremise", "confirmationLevel": "CONFIRMED"}]

        def handler(request):
            return httpx.Response(200, json=google_payload(components=components))

        result = await make_validator(handler).validate(address)
        assert result.normalized_address.address_line2 == "APT 4"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,code",
        [(401, ERROR_INVALID_KEY), (429, ERROR_RATE_LIMIT), (500, ERROR_NETWORK)],
    )
    async def test_provider_errors(self, address, status_code, code):
        def handler(request):
            return httpx.Response(status_code, json={})

        with pytest.raises(AddressValidationError) as exc_info:
            await make_validator(handler).validate(address)
        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_network_error(self, address):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(AddressValidationError) as exc_info:
            await make_validator(handler).validate(address)
        assert exc_info.value.code == ERROR_NETWORK

    @pytest.mark.asyncio
    async def test_malformed_payload(self, address):
        def handler(request):
            return httpx.Response(200, json={"unexpected": True})

        with pytest.raises(AddressValidationError) as exc_info:
            await make_validator(handler).validate(address)
        assert exc_info.value.code == ERROR_NETWORK

    @pytest.mark.asyncio
    async def test_missing_key(self, address):
        def handler(request):
            raise AssertionError("no request without a key")

        with pytest.raises(AddressValidationError) as exc_info:
            await make_validator(handler, api_key="").validate(address)
        assert exc_info.value.code == ERROR_INVALID_KEY


@pytest.mark.unit
def test_addresses_identical_ignores_case_and_punctuation():
    entered = NormalizedAddress(
        address_line1="123 Main St.", city="springfield", state="il", zip_code="62701"
    )
    google = NormalizedAddress(
        address_line1="123 MAIN ST", city="Springfield", state="IL", zip_code="62701-1234"
    )
    assert addresses_identical(entered, google) is True


@pytest.mark.api
class TestValidateRoute:

    @pytest.mark.asyncio
    async def test_valid_address(self, client, auth_headers, address_validator):
        response = await client.post("/api/address/validate", json=ADDRESS, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["normalized_address"]["city"] == "Springfield"
        assert len(address_validator.calls) == 1

    @pytest.mark.asyncio
    async def test_invalid_form(self, client, auth_headers, address_validator):
        response = await client.post(
            "/api/address/validate", json={**ADDRESS, "city": ""}, headers=auth_headers
        )
        body = response.json()
        assert body == {
            "success": False,
            "code": "INVALID_ADDRESS",
            "message": "City is required.",
            "are_identical": False,
            "should_prompt_user": False,
        }
        assert address_validator.calls == []

    @pytest.mark.asyncio
    async def test_provider_failure_is_reported(self, client, auth_headers, address_validator):
        address_validator.error = AddressValidationError(ERROR_RATE_LIMIT, "Too many requests.")
        response = await client.post("/api/address/validate", json=ADDRESS, headers=auth_headers)
        body = response.json()
        assert response.status_code == 200
        assert body["success"] is False
        assert body["code"] == "RATE_LIMIT"

    @pytest.mark.asyncio
    async def test_requires_owner(self, client):
        response = await client.post("/api/address/validate", json=ADDRESS)
        assert response.status_code == 401
