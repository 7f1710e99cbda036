"""Onboarding error taxonomy.

Precondition errors (NotLawyerError, UnknownStepError) are raised before
any write.  Business-rule errors carry structured details the client can
render.  Upload and field-validation errors point at the offending field.
"""

from legalhub.middleware.exceptions import (
    BusinessLogicError,
    ConflictError,
    HTTP_422,
    LegalHubException,
    PermissionDeniedError,
    ResourceNotFoundError,
)


class RegistryConfigurationError(Exception):
    """Step definitions violate a registry invariant (raised at startup)."""


# ── Preconditions ───────────────────────────────────────────

class NotLawyerError(PermissionDeniedError):
    def __init__(self):
        super().__init__(
            message="Onboarding is only available for lawyers",
            error_code="NOT_LAWYER",
        )


class UnknownStepError(ResourceNotFoundError):
    def __init__(self, step_name: str):
        self.step_name = step_name
        super().__init__("Onboarding step", step_name, error_code="UNKNOWN_STEP")


# ── Business rules ──────────────────────────────────────────

class NonSkippableStepError(BusinessLogicError):
    def __init__(self, step_name: str):
        self.step_name = step_name
        super().__init__(
            message=f"Step '{step_name}' cannot be skipped as it is required",
            error_code="STEP_NOT_SKIPPABLE",
        )


class IncompleteProfileError(BusinessLogicError):
    def __init__(self, missing_steps: list[str]):
        self.missing_steps = missing_steps
        super().__init__(
            message=(
                "Please complete all required steps before submitting. "
                f"Missing steps: {', '.join(missing_steps)}"
            ),
            error_code="INCOMPLETE_PROFILE",
            details={"missing_steps": missing_steps},
        )


class AlreadySubmittedError(ConflictError):
    def __init__(self, current_status: str):
        self.current_status = current_status
        super().__init__(
            message=f"Profile has already been submitted (status: {current_status})",
            error_code="ALREADY_SUBMITTED",
        )


class ProfileNotEditableError(ConflictError):
    def __init__(self, current_status: str):
        self.current_status = current_status
        super().__init__(
            message=f"Profile cannot be edited while {current_status}",
            error_code="PROFILE_NOT_EDITABLE",
        )


class InvalidStatusTransitionError(ConflictError):
    def __init__(self, current_status: str, target_status: str):
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(
            message=f"Cannot move profile from {current_status} to {target_status}",
            error_code="INVALID_STATUS_TRANSITION",
        )


# ── Validation / upload ─────────────────────────────────────

class StepValidationError(LegalHubException):
    """Payload failed field validation or a referential check."""

    def __init__(self, errors: list[dict]):
        self.errors = errors
        super().__init__(
            message="Validation error",
            status_code=HTTP_422,
            error_code="VALIDATION_ERROR",
            details={"errors": errors},
        )

    @classmethod
    def for_field(cls, field: str, message: str, error_type: str = "value_error"):
        return cls([{"field": field, "message": message, "type": error_type}])


class DocumentUploadError(LegalHubException):
    def __init__(self, field: str, message: str = "The document failed to upload. Please try again."):
        self.field = field
        super().__init__(
            message=message,
            status_code=HTTP_422,
            error_code="DOCUMENT_UPLOAD_FAILED",
            details={"field": field},
        )
