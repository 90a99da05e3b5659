"""Address validation for the address step.

  POST /api/address/validate → entered vs. standardised address + verdict

Provider failures come back as ``success: false`` with a ``code``
(``INVALID_KEY``, ``RATE_LIMIT``, ``NETWORK_ERROR``) so the page can let
the owner continue with the address as typed.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from bloomrent.auth.deps import require_owner
from bloomrent.models.user import User
from bloomrent.schemas.property import AddressForm
from bloomrent.schemas.validators import validate_form
from bloomrent.services.address_validation import (
    AddressValidationError,
    AddressValidationOut,
    AddressValidator,
    get_address_validator,
)

router = APIRouter()


@router.post("/validate", response_model=AddressValidationOut, response_model_exclude_none=True)
async def validate_address(
    data: dict[str, Any] = Body(default={}),
    user: User = Depends(require_owner),
    validator: AddressValidator = Depends(get_address_validator),
):
    form, errors = validate_form(AddressForm, data)
    if errors:
        first = next(iter(errors.values()))
        return AddressValidationOut(success=False, code="INVALID_ADDRESS", message=first)

    try:
        return await validator.validate(form)
    except AddressValidationError as e:
        return AddressValidationOut(success=False, code=e.code, message=e.message)
