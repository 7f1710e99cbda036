"""Progress tracker: read-only aggregation over registry + step records.

Works on already-loaded data (step records keyed by step name, the
profile and the account); it never touches the database, so every
figure can be recomputed at any time without side effects.
"""

from typing import Mapping

from legalhub.models.lawyer_profile import LawyerProfile, ProfileStatus
from legalhub.models.onboarding_step import OnboardingStep
from legalhub.models.user import User
from legalhub.schemas.onboarding import OnboardingStatus, StepStatusOut
from legalhub.services.onboarding.handlers import StepHandler, percentage
from legalhub.services.onboarding.registry import StepRegistry

MINUTES_PER_STEP = 5

Records = Mapping[str, OnboardingStep]


class ProgressTracker:
    def __init__(self, registry: StepRegistry, handlers: Mapping[str, StepHandler]):
        self.registry = registry
        self.handlers = handlers

    @staticmethod
    def _completed(records: Records, name: str) -> bool:
        record = records.get(name)
        return bool(record and record.is_completed)

    @staticmethod
    def _skipped(records: Records, name: str) -> bool:
        record = records.get(name)
        return bool(record and record.is_skipped)

    def _resolved_count(self, records: Records) -> int:
        return sum(
            1 for d in self.registry.list_steps()
            if self._completed(records, d.name) or self._skipped(records, d.name)
        )

    def status_for(
        self,
        records: Records,
        profile: LawyerProfile | None,
        account: User,
    ) -> list[StepStatusOut]:
        steps = []
        for d in self.registry.list_steps():
            record = records.get(d.name)
            steps.append(StepStatusOut(
                name=d.name,
                order=d.order,
                title=d.title,
                description=d.description,
                required=d.required,
                skippable=d.skippable,
                icon=d.icon,
                is_completed=self._completed(records, d.name),
                is_skipped=self._skipped(records, d.name),
                completed_at=record.completed_at if record else None,
                completion_percentage=self.handlers[d.name].completion_percentage(profile, account),
            ))
        return steps

    def overall_progress(self, records: Records) -> int:
        return percentage(self._resolved_count(records), len(self.registry))

    def current_step(self, records: Records) -> str | None:
        """First step in order that is neither completed nor skipped."""
        for d in self.registry.list_steps():
            if not (self._completed(records, d.name) or self._skipped(records, d.name)):
                return d.name
        return None

    def can_submit(self, records: Records) -> bool:
        # Skipping never satisfies a required step
        return all(self._completed(records, d.name) for d in self.registry.required_steps())

    def missing_required_steps(self, records: Records) -> list[str]:
        return [
            d.title for d in self.registry.required_steps()
            if not self._completed(records, d.name)
        ]

    def estimated_completion_time(self, records: Records) -> str:
        remaining = len(self.registry) - self._resolved_count(records)
        if remaining == 0:
            return "Ready for submission"

        minutes = remaining * MINUTES_PER_STEP
        if minutes < 60:
            return f"{minutes} minutes"

        hours = round(minutes / 60, 1)
        if hours == int(hours):
            hours = int(hours)
        return f"{hours} {'hour' if hours == 1 else 'hours'}"

    def snapshot(
        self,
        records: Records,
        profile: LawyerProfile | None,
        account: User,
    ) -> OnboardingStatus:
        status = profile.status if profile is not None else ProfileStatus.NOT_STARTED
        steps = self.status_for(records, profile, account)
        return OnboardingStatus(
            overall_progress=self.overall_progress(records),
            completed_steps=sum(1 for s in steps if s.is_completed),
            skipped_steps=sum(1 for s in steps if s.is_skipped),
            total_steps=len(steps),
            current_step=self.current_step(records),
            steps=steps,
            can_submit=self.can_submit(records),
            missing_required_steps=self.missing_required_steps(records),
            profile_status=status.value,
            estimated_completion_time=self.estimated_completion_time(records),
        )
