"""Pydantic schemas for lawyer onboarding.

Each step has one payload model; the registry publishes its JSON schema
as the step's validation contract, and the orchestrator validates every
incoming payload against it before anything is written.  Response models
follow below the step payloads.
"""

import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from legalhub.config import settings
from legalhub.utils.storage import DocumentUpload


PHONE_REGEX = re.compile(r"^\+?[1-9]\d{6,14}$")
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"  # HH:MM, 24h


def _check_year(value: int) -> int:
    current_year = date.today().year
    if not settings.onboarding_minimum_year <= value <= current_year:
        raise ValueError(
            f"Year must be between {settings.onboarding_minimum_year} and {current_year}"
        )
    return value


# ── Step: personal_info ─────────────────────────────────────

class PersonalInfoPayload(BaseModel):
    phone_number: str
    country: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    city: str = Field(min_length=1, max_length=100)
    office_address: str = Field(min_length=1, max_length=500)
    bio: str | None = Field(default=None, max_length=1000)

    @field_validator("phone_number")
    @classmethod
    def valid_phone(cls, v: str) -> str:
        v = v.strip()
        if not PHONE_REGEX.match(v):
            raise ValueError("Invalid phone number format")
        return v


# ── Step: professional_info ─────────────────────────────────

class ProfessionalInfoPayload(BaseModel):
    enrollment_number: str = Field(min_length=1, max_length=50)
    year_of_call: int
    law_school: str = Field(min_length=1, max_length=255)
    graduation_year: int
    practice_areas: list[int] = Field(min_length=1, max_length=5)
    specializations: list[int] | None = Field(default=None, max_length=3)
    languages: list[int] = Field(min_length=1)

    @field_validator("year_of_call", "graduation_year")
    @classmethod
    def year_in_range(cls, v: int) -> int:
        return _check_year(v)


# ── Step: documents ─────────────────────────────────────────

CERTIFICATE_EXTENSIONS = ("pdf", "jpg", "jpeg", "png")
CV_EXTENSIONS = ("pdf", "doc", "docx")


def _check_document(upload: DocumentUpload, allowed: tuple[str, ...]) -> DocumentUpload:
    if upload.extension not in allowed:
        raise ValueError(f"File must be one of: {', '.join(allowed)}")
    if upload.size > settings.document_max_bytes:
        raise ValueError(
            f"File may not be larger than {settings.document_max_bytes // 1024} KB"
        )
    return upload


class DocumentsPayload(BaseModel):
    nba_certificate: DocumentUpload = Field(
        json_schema_extra={"accept": list(CERTIFICATE_EXTENSIONS)}
    )
    cv: DocumentUpload = Field(json_schema_extra={"accept": list(CV_EXTENSIONS)})

    @field_validator("nba_certificate")
    @classmethod
    def valid_certificate(cls, v: DocumentUpload) -> DocumentUpload:
        return _check_document(v, CERTIFICATE_EXTENSIONS)

    @field_validator("cv")
    @classmethod
    def valid_cv(cls, v: DocumentUpload) -> DocumentUpload:
        return _check_document(v, CV_EXTENSIONS)


# ── Step: availability ──────────────────────────────────────

class TimeRange(BaseModel):
    start: str = Field(pattern=TIME_PATTERN)
    end: str = Field(pattern=TIME_PATTERN)

    @model_validator(mode="after")
    def end_after_start(self):
        # Zero-padded HH:MM strings compare chronologically
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class WeeklyAvailability(BaseModel):
    monday: TimeRange | None = None
    tuesday: TimeRange | None = None
    wednesday: TimeRange | None = None
    thursday: TimeRange | None = None
    friday: TimeRange | None = None
    saturday: TimeRange | None = None
    sunday: TimeRange | None = None

    @model_validator(mode="after")
    def at_least_one_day(self):
        if not self.model_dump(exclude_none=True):
            raise ValueError("At least one available day is required")
        return self


class AvailabilityPayload(BaseModel):
    consultation_fee: int = Field(ge=1000, le=100000)
    hourly_rate: int | None = Field(default=None, ge=1000, le=1000000)
    availability: WeeklyAvailability


# ── Step metadata / status ──────────────────────────────────

class StepDefinitionOut(BaseModel):
    name: str
    order: int
    title: str
    description: str
    required: bool
    skippable: bool
    icon: str
    required_fields: list[str]
    optional_fields: list[str]
    validation_rules: dict


class StepStatusOut(BaseModel):
    name: str
    order: int
    title: str
    description: str
    required: bool
    skippable: bool
    icon: str
    is_completed: bool
    is_skipped: bool
    completed_at: datetime | None = None
    completion_percentage: int


class OnboardingStatus(BaseModel):
    overall_progress: int
    completed_steps: int
    skipped_steps: int
    total_steps: int
    current_step: str | None
    steps: list[StepStatusOut]
    can_submit: bool
    missing_required_steps: list[str]
    profile_status: str
    estimated_completion_time: str


class StepDataOut(BaseModel):
    step: str
    saved_data: dict
    profile_data: dict
    is_completed: bool
    is_skipped: bool
    is_complete: bool
    completion_percentage: int


# ── Step actions ────────────────────────────────────────────

class SaveStepResult(BaseModel):
    completed_step: str
    next_step: str | None
    overall_progress: int
    can_submit: bool


class SkipStepRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=255)


class SkipStepResult(BaseModel):
    skipped_step: str
    next_step: str | None
    overall_progress: int


class BulkStepEntry(BaseModel):
    step: str
    data: dict


class BulkSaveRequest(BaseModel):
    steps: list[BulkStepEntry] = Field(min_length=1)

    @model_validator(mode="after")
    def unique_steps(self):
        names = [entry.step for entry in self.steps]
        if len(names) != len(set(names)):
            raise ValueError("Each step may appear only once per bulk save")
        return self


class BulkStepResult(BaseModel):
    success: bool
    error: dict | None = None


class BulkSaveSummary(BaseModel):
    total_steps: int
    successful_steps: int
    failed_steps: int


class BulkSaveResult(BaseModel):
    results: dict[str, BulkStepResult]
    summary: BulkSaveSummary


class SubmitResult(BaseModel):
    status: str
    submitted_at: datetime
    estimated_review_time: str = "24-48 hours"
    notification: str = "You will receive an email once your profile is reviewed"
