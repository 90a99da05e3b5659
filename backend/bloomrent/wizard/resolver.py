"""Step Resolver for the add-property wizard.

Maps an owner's persisted draft to the route the wizard should resume at.
This is the single authority on wizard position; query-string progress is
only ever a hint.
"""

from dataclasses import dataclass

from bloomrent.models.enums import UnitType
from bloomrent.wizard.progress import (
    PROPERTIES_LIST_ROUTE,
    PropertyStep,
    WizardProgress,
    unit_step_for,
)


@dataclass(frozen=True)
class DraftSnapshot:
    """Read-only view of a draft property and how many units it has."""

    property_id: str
    unit_type: UnitType | None
    units_count: int


def resolve_property_step(draft: DraftSnapshot | None) -> str:
    """Return the href of the first incomplete step for ``draft``.

    - no draft            -> address, no query string
    - no unit type        -> property type, completedSteps=1
    - unit type, no units -> unit branch matching the unit type, completedSteps=2
    - one or more units   -> the properties list
    """
    if draft is None:
        return PropertyStep.ADDRESS.path

    if draft.unit_type is None:
        progress = WizardProgress(property_id=draft.property_id, completed_steps=1)
        return progress.href(PropertyStep.PROPERTY_TYPE)

    if draft.units_count == 0:
        progress = WizardProgress(
            property_id=draft.property_id,
            completed_steps=2,
            unit_type=UnitType(draft.unit_type),
        )
        return progress.href(unit_step_for(draft.unit_type))

    return PROPERTIES_LIST_ROUTE
