"""Google Address Validation client.

Returns the address as entered next to Google's standardised version,
with a verdict-driven prompt message. ``are_identical`` compares the two
after normalisation; it is informational and never blocks saving.
"""

import logging
import re
from dataclasses import dataclass, field

import httpx
from pydantic import BaseModel

from bloomrent.config import settings
from bloomrent.schemas.property import DEFAULT_COUNTRY, AddressForm

logger = logging.getLogger(__name__)

ERROR_INVALID_KEY = "INVALID_KEY"
ERROR_RATE_LIMIT = "RATE_LIMIT"
ERROR_NETWORK = "NETWORK_ERROR"

NEXT_ACTION_MESSAGES = {
    "FIX": "This address does not seem correct. Please verify the address and correct the information.",
    "CONFIRM_ADD_SUBPREMISES": (
        "This address may be missing a unit number. Please add apartment, suite, "
        "or unit number if applicable."
    ),
    "CONFIRM": "Please confirm this address is correct. We found some minor differences.",
    "ACCEPT": None,
}


class NormalizedAddress(BaseModel):
    address_line1: str
    address_line2: str | None = None
    city: str
    state: str
    zip_code: str
    country: str = DEFAULT_COUNTRY


class AddressValidationOut(BaseModel):
    success: bool
    message: str | None = None
    code: str | None = None
    user_address: NormalizedAddress | None = None
    normalized_address: NormalizedAddress | None = None
    verdict: dict | None = None
    are_identical: bool = False
    should_prompt_user: bool = False
    validation_message: str | None = None


@dataclass(eq=False)
class AddressValidationError(Exception):
    code: str
    message: str
    details: dict = field(default_factory=dict)


def _normalize(value: str | None) -> str:
    value = (value or "").lower()
    value = re.sub(r"[^\w\s]", " ", value)
    return " ".join(value.split())


def addresses_identical(a: NormalizedAddress, b: NormalizedAddress) -> bool:
    keys = ("address_line1", "address_line2", "city", "state")
    if any(_normalize(getattr(a, k)) != _normalize(getattr(b, k)) for k in keys):
        return False
    # ZIP+4 from Google still matches a five-digit ZIP
    return _normalize(a.zip_code)[:5] == _normalize(b.zip_code)[:5]


def _has_confirmed_subpremise(components: list[dict] | None) -> bool:
    return any(
        c.get("componentType") == "subpremise" and c.get("confirmationLevel") == "CONFIRMED"
        for c in components or []
    )


class AddressValidator:
    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = settings.google_maps_api_key if api_key is None else api_key
        self.api_url = api_url or settings.address_validation_url
        self.transport = transport

    async def validate(self, address: AddressForm) -> AddressValidationOut:
        """Validate ``address``; raise ``AddressValidationError`` on provider failure."""
        if not self.api_key:
            logger.error("GOOGLE_MAPS_API_KEY is not configured")
            raise AddressValidationError(
                ERROR_INVALID_KEY,
                "Address validation is temporarily unavailable. Please try again later.",
            )

        lines = [address.address_line1]
        if address.address_line2:
            lines.append(address.address_line2)
        body = {
            "address": {
                "regionCode": "US",
                "locality": address.city,
                "administrativeArea": address.state,
                "postalCode": address.zip_code,
                "addressLines": lines,
            }
        }

        try:
            async with httpx.AsyncClient(
                timeout=settings.http_timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(
                    self.api_url,
                    params={"key": self.api_key},
                    json=body,
                    headers={"referer": settings.app_base_url},
                )
        except httpx.HTTPError as e:
            logger.warning(f"Address validation request failed: {e}")
            raise AddressValidationError(
                ERROR_NETWORK,
                "Unable to validate address at this time. Please check your connection and try again.",
            )

        if response.status_code == 401:
            raise AddressValidationError(
                ERROR_INVALID_KEY, "Address validation is temporarily unavailable."
            )
        if response.status_code == 429:
            raise AddressValidationError(
                ERROR_RATE_LIMIT, "Too many requests. Please try again in a moment."
            )
        if response.status_code >= 400:
            logger.warning(f"Address validation returned status {response.status_code}")
            raise AddressValidationError(
                ERROR_NETWORK,
                "Unable to validate address at this time. Please check your connection and try again.",
            )

        try:
            return self._parse(address, response.json())
        except (ValueError, KeyError, TypeError, IndexError) as e:
            logger.warning(f"Unexpected address validation payload: {e}")
            raise AddressValidationError(
                ERROR_NETWORK,
                "Unable to validate address at this time. Please check your connection and try again.",
            )

    def _parse(self, address: AddressForm, data: dict) -> AddressValidationOut:
        result = data["result"]
        verdict = result.get("verdict", {})
        postal = result["address"].get("postalAddress", {})
        components = result["address"].get("addressComponents")
        usps = (result.get("uspsData") or {}).get("standardizedAddress") or {}

        postal_lines = postal.get("addressLines") or []
        google = NormalizedAddress(
            address_line1=(postal_lines[0] if postal_lines else None)
            or usps.get("firstAddressLine")
            or address.address_line1,
            # USPS echoes any second line back, so only trust it when Google
            # confirmed a subpremise
            address_line2=usps.get("secondAddressLine")
            if _has_confirmed_subpremise(components)
            else None,
            city=postal.get("locality") or usps.get("city") or address.city,
            state=postal.get("administrativeArea") or usps.get("state") or address.state,
            zip_code=postal.get("postalCode") or usps.get("zipCode") or address.zip_code,
        )
        user = NormalizedAddress(**address.model_dump())

        action = verdict.get("possibleNextAction")
        message = NEXT_ACTION_MESSAGES.get(action, "Please verify this address.")
        return AddressValidationOut(
            success=True,
            user_address=user,
            normalized_address=google,
            verdict=verdict,
            are_identical=addresses_identical(user, google),
            should_prompt_user=action != "ACCEPT",
            validation_message=message,
        )


def get_address_validator() -> AddressValidator:
    """FastAPI dependency; tests override it."""
    return AddressValidator()
