"""Onboarding orchestrator.

Coordinates the step registry, the per-step handlers and the progress
tracker for one lawyer account:

  - role and step-name checks run before anything is written
  - save / skip / submit each run inside a SAVEPOINT of the request
    session, so a failure leaves no partial profile or step record
  - audit rows are written inside that savepoint; events are published
    only after it has been released
  - submit uses a conditional UPDATE on the expected prior status, so
    of two concurrent submissions exactly one wins
  - stored documents of a failed save are deleted again; the files a
    successful save replaced are deleted once its savepoint is released

A rolled-back savepoint expires the ORM objects it touched.  The service
therefore works from the account id and re-loads account, profile and
step records with `populate_existing` instead of touching stale objects.
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping

from fastapi import Depends
from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from legalhub.database import get_db
from legalhub.middleware.exceptions import LegalHubException
from legalhub.models.lawyer_profile import EDITABLE_STATUSES, LawyerProfile, ProfileStatus
from legalhub.models.onboarding_step import OnboardingStep
from legalhub.models.user import User
from legalhub.schemas.onboarding import (
    BulkSaveResult,
    BulkSaveSummary,
    BulkStepEntry,
    BulkStepResult,
    OnboardingStatus,
    SaveStepResult,
    SkipStepResult,
    StepDataOut,
    StepDefinitionOut,
    SubmitResult,
)
from legalhub.services.onboarding.errors import (
    AlreadySubmittedError,
    IncompleteProfileError,
    NonSkippableStepError,
    NotLawyerError,
    ProfileNotEditableError,
    StepValidationError,
)
from legalhub.services.onboarding.handlers import (
    DocumentChanges,
    StepHandler,
    build_default_handlers,
)
from legalhub.services.onboarding.registry import (
    StepDefinition,
    StepRegistry,
    build_default_registry,
)
from legalhub.services.onboarding.tracker import ProgressTracker
from legalhub.utils import events as event_names
from legalhub.utils.audit import record_audit
from legalhub.utils.events import EventBus, get_event_bus
from legalhub.utils.storage import DocumentStorage, get_document_storage, remove_documents

logger = logging.getLogger(__name__)


def definition_out(definition: StepDefinition) -> StepDefinitionOut:
    return StepDefinitionOut(
        name=definition.name,
        order=definition.order,
        title=definition.title,
        description=definition.description,
        required=definition.required,
        skippable=definition.skippable,
        icon=definition.icon,
        required_fields=list(definition.required_fields),
        optional_fields=list(definition.optional_fields),
        validation_rules=definition.validation_contract,
    )


class OnboardingService:
    def __init__(
        self,
        db: AsyncSession,
        registry: StepRegistry,
        handlers: Mapping[str, StepHandler],
        events: EventBus,
        storage: DocumentStorage,
    ):
        self.db = db
        self.registry = registry
        self.handlers = handlers
        self.events = events
        self.storage = storage
        self.tracker = ProgressTracker(registry, handlers)

    # ── Loading helpers ──────────────────────────────────────

    @staticmethod
    def _ensure_lawyer(account: User) -> None:
        if not account.is_lawyer:
            raise NotLawyerError()

    def _handler(self, step_name: str) -> StepHandler:
        return self.handlers[self.registry.get_step(step_name).name]

    async def _load_account(self, user_id: str) -> User:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _load_profile(self, user_id: str) -> LawyerProfile | None:
        result = await self.db.execute(
            select(LawyerProfile)
            .where(LawyerProfile.user_id == user_id)
            .options(
                selectinload(LawyerProfile.practice_areas),
                selectinload(LawyerProfile.specializations),
                selectinload(LawyerProfile.languages),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _get_or_create_profile(self, user_id: str) -> LawyerProfile:
        profile = await self._load_profile(user_id)
        if profile is None:
            self.db.add(LawyerProfile(user_id=user_id, status=ProfileStatus.NOT_STARTED))
            await self.db.flush()
            profile = await self._load_profile(user_id)
        return profile

    async def _load_records(self, user_id: str) -> dict[str, OnboardingStep]:
        result = await self.db.execute(
            select(OnboardingStep)
            .where(OnboardingStep.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return {r.step_name: r for r in result.scalars().all()}

    async def _lock_record(self, user_id: str, step_name: str) -> OnboardingStep:
        """Fetch the step record FOR UPDATE, creating it when absent."""
        result = await self.db.execute(
            select(OnboardingStep)
            .where(OnboardingStep.user_id == user_id, OnboardingStep.step_name == step_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            record = OnboardingStep(user_id=user_id, step_name=step_name, step_data={})
            self.db.add(record)
        return record

    async def _ensure_editable(self, user_id: str) -> None:
        profile = await self._load_profile(user_id)
        if profile is not None and not profile.can_edit:
            raise ProfileNotEditableError(profile.status.value)

    @staticmethod
    def _mark_in_progress(profile: LawyerProfile) -> None:
        if profile.status in (ProfileStatus.NOT_STARTED, ProfileStatus.REJECTED):
            profile.status = ProfileStatus.IN_PROGRESS

    # ── Read operations ──────────────────────────────────────

    async def get_status(self, account: User) -> OnboardingStatus:
        self._ensure_lawyer(account)
        records = await self._load_records(account.id)
        profile = await self._load_profile(account.id)
        return self.tracker.snapshot(records, profile, account)

    def list_step_definitions(self) -> list[StepDefinitionOut]:
        return [definition_out(d) for d in self.registry.list_steps()]

    def get_step_definition(self, step_name: str) -> StepDefinitionOut:
        return definition_out(self.registry.get_step(step_name))

    def get_validation_rules(self, step_name: str) -> dict:
        return self._handler(step_name).validation_contract()

    async def get_step_data(self, account: User, step_name: str) -> StepDataOut:
        self._ensure_lawyer(account)
        handler = self._handler(step_name)
        records = await self._load_records(account.id)
        profile = await self._load_profile(account.id)
        record = records.get(step_name)
        return StepDataOut(
            step=step_name,
            saved_data=(record.step_data or {}) if record else {},
            profile_data=handler.data(profile, account) if profile is not None else {},
            is_completed=bool(record and record.is_completed),
            is_skipped=bool(record and record.is_skipped),
            is_complete=handler.is_complete(profile, account),
            completion_percentage=handler.completion_percentage(profile, account),
        )

    # ── Save ─────────────────────────────────────────────────

    async def save_step(
        self, account: User, step_name: str, payload: dict | BaseModel
    ) -> SaveStepResult:
        self._ensure_lawyer(account)
        return await self._save_step(account.id, step_name, payload)

    async def _save_step(
        self, user_id: str, step_name: str, payload: dict | BaseModel
    ) -> SaveStepResult:
        handler = self._handler(step_name)
        await self._ensure_editable(user_id)
        data = handler.parse(payload)

        changes: DocumentChanges | None = None
        try:
            async with self.db.begin_nested():
                account = await self._load_account(user_id)
                profile = await self._get_or_create_profile(user_id)
                changes = await handler.persist(self.db, account, profile, data, self.storage)

                record = await self._lock_record(user_id, step_name)
                record.mark_completed(handler.snapshot(data, profile))
                self._mark_in_progress(profile)
                await self.db.flush()

                record_audit(
                    self.db, user_id,
                    action="onboarding_step_completed",
                    entity_type="onboarding_step",
                    entity_id=record.id,
                    summary=f"Completed onboarding step {step_name}",
                    details={"step": step_name},
                )
        except Exception as e:
            if not isinstance(e, LegalHubException):
                logger.exception("Failed to save step %s for user %s", step_name, user_id)
            # Files written by the rolled-back save are referenced by nothing
            if changes is not None:
                await remove_documents(self.storage, changes.stored)
            raise

        if changes is not None:
            await remove_documents(self.storage, changes.superseded)

        records = await self._load_records(user_id)
        progress = self.tracker.overall_progress(records)
        logger.info(
            "User %s completed onboarding step %s (progress %d%%)",
            user_id, step_name, progress,
        )
        await self.events.publish(
            event_names.STEP_COMPLETED,
            {"user_id": user_id, "step": step_name, "overall_progress": progress},
        )
        return SaveStepResult(
            completed_step=step_name,
            next_step=self.tracker.current_step(records),
            overall_progress=progress,
            can_submit=self.tracker.can_submit(records),
        )

    # ── Skip ─────────────────────────────────────────────────

    async def skip_step(
        self, account: User, step_name: str, reason: str | None = None
    ) -> SkipStepResult:
        self._ensure_lawyer(account)
        user_id = account.id
        definition = self.registry.get_step(step_name)
        if not definition.skippable:
            raise NonSkippableStepError(step_name)
        await self._ensure_editable(user_id)

        try:
            async with self.db.begin_nested():
                profile = await self._get_or_create_profile(user_id)
                record = await self._lock_record(user_id, step_name)
                record.mark_skipped(reason)
                self._mark_in_progress(profile)
                await self.db.flush()

                record_audit(
                    self.db, user_id,
                    action="onboarding_step_skipped",
                    entity_type="onboarding_step",
                    entity_id=record.id,
                    summary=f"Skipped onboarding step {step_name}",
                    details={"step": step_name, "reason": reason},
                )
        except LegalHubException:
            raise
        except Exception:
            logger.exception("Failed to skip step %s for user %s", step_name, user_id)
            raise

        records = await self._load_records(user_id)
        logger.info("User %s skipped onboarding step %s", user_id, step_name)
        return SkipStepResult(
            skipped_step=step_name,
            next_step=self.tracker.current_step(records),
            overall_progress=self.tracker.overall_progress(records),
        )

    # ── Bulk save ────────────────────────────────────────────

    async def bulk_save(
        self, account: User, entries: Iterable[BulkStepEntry]
    ) -> BulkSaveResult:
        """Save several steps; each entry succeeds or fails on its own."""
        self._ensure_lawyer(account)
        user_id = account.id
        entries = list(entries)

        names = [e.step for e in entries]
        if len(names) != len(set(names)):
            raise StepValidationError.for_field(
                "steps", "Each step may appear only once per bulk save"
            )

        results: dict[str, BulkStepResult] = {}
        for entry in entries:
            try:
                await self._save_step(user_id, entry.step, entry.data)
            except LegalHubException as e:
                logger.info("Bulk save of %s failed for user %s: %s", entry.step, user_id, e.error_code)
                results[entry.step] = BulkStepResult(success=False, error=e.to_dict())
            else:
                results[entry.step] = BulkStepResult(success=True)

        succeeded = sum(1 for r in results.values() if r.success)
        return BulkSaveResult(
            results=results,
            summary=BulkSaveSummary(
                total_steps=len(entries),
                successful_steps=succeeded,
                failed_steps=len(entries) - succeeded,
            ),
        )

    # ── Submit ───────────────────────────────────────────────

    async def submit_for_review(self, account: User) -> SubmitResult:
        self._ensure_lawyer(account)
        user_id = account.id

        profile = await self._load_profile(user_id)
        if profile is not None and not profile.can_edit:
            raise AlreadySubmittedError(profile.status.value)

        records = await self._load_records(user_id)
        if not self.tracker.can_submit(records):
            raise IncompleteProfileError(self.tracker.missing_required_steps(records))

        submitted_at = datetime.utcnow()
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(
                    update(LawyerProfile)
                    .where(
                        LawyerProfile.user_id == user_id,
                        LawyerProfile.status.in_(list(EDITABLE_STATUSES)),
                    )
                    .values(
                        status=ProfileStatus.PENDING_REVIEW,
                        submitted_for_review_at=submitted_at,
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    current = await self.db.scalar(
                        select(LawyerProfile.status).where(LawyerProfile.user_id == user_id)
                    )
                    raise AlreadySubmittedError(current.value if current else "unknown")

                record_audit(
                    self.db, user_id,
                    action="onboarding_submitted",
                    entity_type="lawyer_profile",
                    entity_id=profile.id if profile is not None else None,
                    summary="Submitted profile for review",
                )
        except LegalHubException:
            raise
        except Exception:
            logger.exception("Failed to submit profile for user %s", user_id)
            raise

        logger.info("User %s submitted onboarding for review", user_id)
        await self.events.publish(
            event_names.ONBOARDING_COMPLETED,
            {"user_id": user_id, "submitted_at": submitted_at.isoformat()},
        )
        return SubmitResult(
            status=ProfileStatus.PENDING_REVIEW.value,
            submitted_at=submitted_at,
        )


# ── FastAPI dependency ──────────────────────────────────────

step_registry = build_default_registry()
step_handlers = build_default_handlers(step_registry)


def get_onboarding_service(
    db: AsyncSession = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
    storage: DocumentStorage = Depends(get_document_storage),
) -> OnboardingService:
    return OnboardingService(db, step_registry, step_handlers, events, storage)
