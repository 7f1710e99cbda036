"""Step handlers: one per onboarding step.

A handler knows how to validate a step's payload, write it into the
lawyer profile (and, for personal info, the account), and judge how
complete that part of the profile is from persisted data alone.

Handlers only mutate the profile/account passed in.  Transactions,
step records, audit rows and events belong to the orchestrator.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from pydantic import BaseModel, ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from legalhub.middleware.exceptions import format_validation_errors
from legalhub.models.lawyer_profile import LawyerProfile
from legalhub.models.reference import Language, PracticeArea, Specialization
from legalhub.models.user import User
from legalhub.schemas.onboarding import (
    AvailabilityPayload,
    DocumentsPayload,
    PersonalInfoPayload,
    ProfessionalInfoPayload,
)
from legalhub.services.onboarding.errors import (
    DocumentUploadError,
    RegistryConfigurationError,
    StepValidationError,
)
from legalhub.services.onboarding.registry import StepDefinition, StepRegistry
from legalhub.utils.storage import DocumentStorage, StorageError, remove_documents

logger = logging.getLogger(__name__)


def percentage(part: int, total: int) -> int:
    """100 * part / total, rounded half up, in integer arithmetic."""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


@dataclass
class DocumentChanges:
    """Document references a save wrote and the ones it replaced."""
    stored: list[str] = field(default_factory=list)
    superseded: list[str] = field(default_factory=list)


def _filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) > 0
    return True


class StepHandler(ABC):
    def __init__(self, definition: StepDefinition):
        self.definition = definition

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def payload_model(self) -> type[BaseModel]:
        return self.definition.payload_model

    def validation_contract(self) -> dict:
        return self.definition.validation_contract

    def parse(self, payload: dict | BaseModel) -> BaseModel:
        """Validate a raw payload against the step's model."""
        if isinstance(payload, self.payload_model):
            return payload
        try:
            return self.payload_model.model_validate(payload)
        except ValidationError as e:
            raise StepValidationError(format_validation_errors(e.errors())) from e

    @abstractmethod
    def required_values(self, profile: LawyerProfile, account: User) -> list:
        """Current values of the step's required fields."""

    def is_complete(self, profile: LawyerProfile | None, account: User) -> bool:
        if profile is None:
            return False
        return all(_filled(v) for v in self.required_values(profile, account))

    def completion_percentage(self, profile: LawyerProfile | None, account: User) -> int:
        if profile is None:
            return 0
        values = self.required_values(profile, account)
        return percentage(sum(1 for v in values if _filled(v)), len(values))

    @abstractmethod
    async def persist(
        self,
        db: AsyncSession,
        account: User,
        profile: LawyerProfile,
        payload: BaseModel,
        storage: DocumentStorage,
    ) -> DocumentChanges | None:
        """Write the payload into profile/account.

        Handlers that store files return the references involved so the
        caller can drop new files on rollback and old ones after commit.
        """

    def snapshot(self, payload: BaseModel, profile: LawyerProfile) -> dict:
        """JSON-safe copy of the accepted payload for the step record."""
        return payload.model_dump(mode="json", exclude_unset=True)

    @abstractmethod
    def data(self, profile: LawyerProfile, account: User) -> dict:
        """The step's fields as currently stored on the profile/account."""


# ── personal_info ───────────────────────────────────────────

class PersonalInfoHandler(StepHandler):
    def required_values(self, profile, account):
        return [
            account.phone_number,
            account.country,
            account.state,
            account.city,
            profile.office_address,
        ]

    async def persist(self, db, account, profile, payload: PersonalInfoPayload, storage):
        account.phone_number = payload.phone_number
        account.country = payload.country
        account.state = payload.state
        account.city = payload.city
        profile.office_address = payload.office_address
        if "bio" in payload.model_fields_set:
            profile.bio = payload.bio

    def data(self, profile, account):
        return {
            "phone_number": account.phone_number,
            "country": account.country,
            "state": account.state,
            "city": account.city,
            "office_address": profile.office_address,
            "bio": profile.bio,
        }


# ── professional_info ───────────────────────────────────────

class ProfessionalInfoHandler(StepHandler):
    def required_values(self, profile, account):
        return [
            profile.enrollment_number,
            profile.year_of_call,
            profile.law_school,
            profile.graduation_year,
            profile.practice_areas,
            profile.languages,
        ]

    async def _resolve(self, db: AsyncSession, model, ids: list[int], field: str, errors: list):
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        rows = (await db.execute(select(model).where(model.id.in_(wanted)))).scalars().all()
        found = {row.id: row for row in rows}
        missing = [i for i in wanted if i not in found]
        if missing:
            errors.append({
                "field": field,
                "message": f"The selected {field} are invalid: {', '.join(map(str, missing))}",
                "type": "exists",
            })
        return [found[i] for i in wanted if i in found]

    async def persist(self, db, account, profile, payload: ProfessionalInfoPayload, storage):
        taken = await db.scalar(
            select(LawyerProfile.id).where(
                LawyerProfile.enrollment_number == payload.enrollment_number,
                LawyerProfile.id != profile.id,
            )
        )
        errors: list[dict] = []
        if taken:
            errors.append({
                "field": "enrollment_number",
                "message": "The enrollment number has already been taken",
                "type": "unique",
            })

        practice_areas = await self._resolve(
            db, PracticeArea, payload.practice_areas, "practice_areas", errors
        )
        specializations = await self._resolve(
            db, Specialization, payload.specializations or [], "specializations", errors
        )
        languages = await self._resolve(db, Language, payload.languages, "languages", errors)
        if errors:
            raise StepValidationError(errors)

        profile.enrollment_number = payload.enrollment_number
        profile.year_of_call = payload.year_of_call
        profile.law_school = payload.law_school
        profile.graduation_year = payload.graduation_year
        # Full replace: anything not in the submitted sets is dropped
        profile.practice_areas = practice_areas
        profile.specializations = specializations
        profile.languages = languages

    def snapshot(self, payload, profile):
        data = super().snapshot(payload, profile)
        # Omitted specializations clear the association, so the record must say so too
        data["specializations"] = list(payload.specializations or [])
        return data

    def data(self, profile, account):
        return {
            "enrollment_number": profile.enrollment_number,
            "year_of_call": profile.year_of_call,
            "law_school": profile.law_school,
            "graduation_year": profile.graduation_year,
            "practice_areas": [pa.id for pa in profile.practice_areas],
            "specializations": [s.id for s in profile.specializations],
            "languages": [lang.id for lang in profile.languages],
        }


# ── documents ───────────────────────────────────────────────

class DocumentsHandler(StepHandler):
    # payload field → profile column
    DOCUMENT_FIELDS = {
        "nba_certificate": "bar_certificate_path",
        "cv": "cv_path",
    }

    def required_values(self, profile, account):
        return [getattr(profile, column) for column in self.DOCUMENT_FIELDS.values()]

    async def persist(self, db, account, profile, payload: DocumentsPayload, storage):
        scope = f"lawyers/{account.id}/documents"
        stored: dict[str, str] = {}
        for name in self.DOCUMENT_FIELDS:
            try:
                stored[name] = await asyncio.to_thread(
                    storage.store, getattr(payload, name), scope
                )
            except StorageError as e:
                logger.warning("Upload of %s failed for user %s: %s", name, account.id, e)
                await remove_documents(storage, stored.values())
                raise DocumentUploadError(name) from e

        previous = [getattr(profile, column) for column in self.DOCUMENT_FIELDS.values()]
        for name, column in self.DOCUMENT_FIELDS.items():
            setattr(profile, column, stored[name])

        return DocumentChanges(
            stored=list(stored.values()),
            superseded=[ref for ref in previous if ref and ref not in stored.values()],
        )

    def snapshot(self, payload, profile):
        return {
            name: {
                "filename": getattr(payload, name).filename,
                "path": getattr(profile, column),
            }
            for name, column in self.DOCUMENT_FIELDS.items()
        }

    def data(self, profile, account):
        return {name: getattr(profile, column) for name, column in self.DOCUMENT_FIELDS.items()}


# ── availability ────────────────────────────────────────────

class AvailabilityHandler(StepHandler):
    def required_values(self, profile, account):
        return [profile.consultation_fee, profile.availability]

    async def persist(self, db, account, profile, payload: AvailabilityPayload, storage):
        profile.consultation_fee = payload.consultation_fee
        if "hourly_rate" in payload.model_fields_set:
            profile.hourly_rate = payload.hourly_rate
        profile.availability = payload.availability.model_dump(exclude_none=True)

    def data(self, profile, account):
        return {
            "consultation_fee": profile.consultation_fee,
            "hourly_rate": profile.hourly_rate,
            "availability": profile.availability or {},
        }


HANDLER_CLASSES: dict[str, type[StepHandler]] = {
    "personal_info": PersonalInfoHandler,
    "professional_info": ProfessionalInfoHandler,
    "documents": DocumentsHandler,
    "availability": AvailabilityHandler,
}


def build_default_handlers(registry: StepRegistry) -> dict[str, StepHandler]:
    """Instantiate one handler per registered step."""
    handlers = {}
    for definition in registry.list_steps():
        handler_cls = HANDLER_CLASSES.get(definition.name)
        if handler_cls is None:
            raise RegistryConfigurationError(f"No handler for step '{definition.name}'")
        handlers[definition.name] = handler_cls(definition)
    return handlers
