"""Step definition registry tests."""

import pytest
from pydantic import BaseModel

from legalhub.services.onboarding.errors import RegistryConfigurationError, UnknownStepError
from legalhub.services.onboarding.registry import DEFAULT_STEPS, StepDefinition, StepRegistry


class _Payload(BaseModel):
    value: str
    note: str | None = None


def _step(name: str, order: int, required: bool = True, skippable: bool = False) -> StepDefinition:
    return StepDefinition(
        name=name,
        order=order,
        title=name.title(),
        description="",
        required=required,
        skippable=skippable,
        icon="dot",
        payload_model=_Payload,
    )


@pytest.mark.unit
class TestStepRegistry:

    def test_default_catalog_order(self, registry):
        assert [d.name for d in registry.list_steps()] == [
            "personal_info", "professional_info", "documents", "availability",
        ]
        assert [d.order for d in registry.list_steps()] == [1, 2, 3, 4]

    def test_required_steps(self, registry):
        assert [d.name for d in registry.required_steps()] == [
            "personal_info", "professional_info", "documents",
        ]

    def test_only_availability_is_skippable(self, registry):
        assert [d.name for d in registry.list_steps() if d.skippable] == ["availability"]

    def test_steps_sorted_by_order_not_insertion(self):
        registry = StepRegistry([_step("b", 2), _step("a", 1)])
        assert [d.name for d in registry.list_steps()] == ["a", "b"]

    def test_get_unknown_step(self, registry):
        with pytest.raises(UnknownStepError) as exc_info:
            registry.get_step("practice_areas")
        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "UNKNOWN_STEP"

    def test_duplicate_order_rejected(self):
        with pytest.raises(RegistryConfigurationError):
            StepRegistry([_step("a", 1), _step("b", 1)])

    def test_duplicate_name_rejected(self):
        with pytest.raises(RegistryConfigurationError):
            StepRegistry([_step("a", 1), _step("a", 2)])

    def test_required_and_skippable_rejected(self):
        with pytest.raises(RegistryConfigurationError):
            StepRegistry([_step("a", 1, required=True, skippable=True)])

    def test_empty_registry_rejected(self):
        with pytest.raises(RegistryConfigurationError):
            StepRegistry([])

    def test_field_lists_follow_payload_model(self):
        step = _step("a", 1)
        assert step.required_fields == ("value",)
        assert step.optional_fields == ("note",)

    def test_validation_contract_has_schema(self, registry):
        contract = registry.get_step("personal_info").validation_contract
        assert "phone_number" in contract["required_fields"]
        assert contract["optional_fields"] == ["bio"]
        assert contract["schema"]["properties"]["country"]["maxLength"] == 100

    def test_default_steps_are_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_STEPS[0].required = False  # type: ignore[misc]
