"""Step definition registry: the ordered catalog of onboarding steps.

Built once at import time by `build_default_registry()` and handed to
the orchestrator; it never changes afterwards.  Every definition names
its payload model, which doubles as the step's validation contract.

Invariants (checked on construction, `RegistryConfigurationError`):
  - step names are unique
  - step orders are unique
  - a required step is never skippable
"""

from dataclasses import dataclass
from typing import Iterable

from pydantic import BaseModel

from legalhub.schemas.onboarding import (
    AvailabilityPayload,
    DocumentsPayload,
    PersonalInfoPayload,
    ProfessionalInfoPayload,
)
from legalhub.services.onboarding.errors import RegistryConfigurationError, UnknownStepError


@dataclass(frozen=True)
class StepDefinition:
    name: str
    order: int
    title: str
    description: str
    required: bool
    skippable: bool
    icon: str
    payload_model: type[BaseModel]

    @property
    def required_fields(self) -> tuple[str, ...]:
        return tuple(
            name for name, field in self.payload_model.model_fields.items()
            if field.is_required()
        )

    @property
    def optional_fields(self) -> tuple[str, ...]:
        return tuple(
            name for name, field in self.payload_model.model_fields.items()
            if not field.is_required()
        )

    @property
    def validation_contract(self) -> dict:
        """Field rules as JSON schema, plus the documented field lists."""
        return {
            "required_fields": list(self.required_fields),
            "optional_fields": list(self.optional_fields),
            "schema": self.payload_model.model_json_schema(),
        }


class StepRegistry:
    def __init__(self, definitions: Iterable[StepDefinition]):
        steps = sorted(definitions, key=lambda d: d.order)
        if not steps:
            raise RegistryConfigurationError("Registry needs at least one step")

        names = [d.name for d in steps]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise RegistryConfigurationError(
                f"Duplicate step names: {', '.join(sorted(duplicates))}"
            )

        orders = [d.order for d in steps]
        if len(orders) != len(set(orders)):
            raise RegistryConfigurationError(f"Duplicate step orders: {orders}")

        for d in steps:
            if d.required and d.skippable:
                raise RegistryConfigurationError(
                    f"Step '{d.name}' is required and therefore cannot be skippable"
                )

        self._steps: tuple[StepDefinition, ...] = tuple(steps)
        self._by_name = {d.name: d for d in steps}

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def list_steps(self) -> tuple[StepDefinition, ...]:
        return self._steps

    def get_step(self, name: str) -> StepDefinition:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownStepError(name) from None

    def required_steps(self) -> tuple[StepDefinition, ...]:
        return tuple(d for d in self._steps if d.required)


# ── Default catalog ─────────────────────────────────────────

DEFAULT_STEPS = (
    StepDefinition(
        name="personal_info",
        order=1,
        title="Personal Information",
        description="Your contact details and office location",
        required=True,
        skippable=False,
        icon="user",
        payload_model=PersonalInfoPayload,
    ),
    StepDefinition(
        name="professional_info",
        order=2,
        title="Professional Credentials",
        description="Your legal qualifications and areas of practice",
        required=True,
        skippable=False,
        icon="briefcase",
        payload_model=ProfessionalInfoPayload,
    ),
    StepDefinition(
        name="documents",
        order=3,
        title="Document Upload",
        description="Upload your NBA certificate and CV",
        required=True,
        skippable=False,
        icon="file",
        payload_model=DocumentsPayload,
    ),
    StepDefinition(
        name="availability",
        order=4,
        title="Availability & Fees",
        description="Set your consultation hours and pricing",
        required=False,
        skippable=True,
        icon="calendar",
        payload_model=AvailabilityPayload,
    ),
)


def build_default_registry() -> StepRegistry:
    return StepRegistry(DEFAULT_STEPS)
