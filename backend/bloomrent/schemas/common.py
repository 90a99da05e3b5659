"""Common schemas used across the application."""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ResultKind(str, Enum):
    """Why a wizard or invitation action did not simply succeed."""
    VALIDATION = "validation"
    MISSING_PREREQUISITE = "missing_prerequisite"
    PERSISTENCE = "persistence"
    PARTIAL_SUCCESS = "partial_success"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    ALREADY_ACCEPTED = "already_accepted"


class ActionResult(BaseModel):
    """Outcome of a wizard step submit or invitation action.

    Failures keep the submitted ``values`` so the form can be re-rendered
    without losing input; ``errors`` maps field names to messages.
    """
    success: bool
    message: str | None = None
    kind: ResultKind | None = None
    redirect_to: str | None = None
    errors: dict[str, str] = {}
    values: dict[str, Any] | None = None

    # Ids produced by the action
    property_id: str | None = None
    tenant_id: str | None = None
    invite_id: str | None = None

    @classmethod
    def ok(cls, message: str | None = None, **kwargs) -> "ActionResult":
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, message: str, kind: ResultKind, **kwargs) -> "ActionResult":
        return cls(success=False, message=message, kind=kind, **kwargs)


class ProgressStepOut(BaseModel):
    number: int
    label: str
    status: str
    href: str | None

    model_config = {"from_attributes": True}


class StepView(BaseModel):
    """What a wizard page renders on GET: indicator, back link, form defaults."""
    step: str
    progress: list[ProgressStepOut]
    completed_steps: int
    back_href: str | None = None
    defaults: dict[str, Any] = {}
    # Set when the page cannot be used as-is (e.g. draft id missing)
    message: str | None = None
    kind: ResultKind | None = None


class EditView(BaseModel):
    """Prefill for an edit page of an existing property or tenant."""
    defaults: dict[str, Any] = {}
    back_href: str | None = None


class RedirectOut(BaseModel):
    """Where a wizard entry route sends the browser."""
    redirect_to: str
