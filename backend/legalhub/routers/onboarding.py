"""Lawyer onboarding routes.

Endpoints:
  GET  /api/lawyer/onboarding/status                      → progress snapshot
  GET  /api/lawyer/onboarding/steps                       → step catalog
  GET  /api/lawyer/onboarding/steps/{step}                → one definition
  GET  /api/lawyer/onboarding/steps/{step}/validation-rules
  GET  /api/lawyer/onboarding/steps/{step}/data           → saved + profile data
  POST /api/lawyer/onboarding/steps/documents             → multipart upload
  POST /api/lawyer/onboarding/steps/{step}                → save JSON payload
  POST /api/lawyer/onboarding/steps/{step}/skip
  POST /api/lawyer/onboarding/bulk
  POST /api/lawyer/onboarding/submit
"""

from fastapi import APIRouter, Body, Depends, File, UploadFile

from legalhub.auth.deps import get_current_user
from legalhub.models.user import User
from legalhub.schemas.onboarding import (
    BulkSaveRequest,
    BulkSaveResult,
    OnboardingStatus,
    SaveStepResult,
    SkipStepRequest,
    SkipStepResult,
    StepDataOut,
    StepDefinitionOut,
    SubmitResult,
)
from legalhub.services.onboarding.service import OnboardingService, get_onboarding_service
from legalhub.utils.storage import DocumentUpload

router = APIRouter()


async def _read_upload(upload: UploadFile) -> DocumentUpload:
    return DocumentUpload(
        filename=upload.filename or "",
        content_type=upload.content_type,
        content=await upload.read(),
    )


# ── Read ─────────────────────────────────────────────────────

@router.get("/status", response_model=OnboardingStatus)
async def get_status(
    user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return await service.get_status(user)


@router.get("/steps", response_model=list[StepDefinitionOut])
async def list_steps(
    _user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return service.list_step_definitions()


@router.get("/steps/{step}", response_model=StepDefinitionOut)
async def get_step(
    step: str,
    _user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return service.get_step_definition(step)


@router.get("/steps/{step}/validation-rules")
async def get_validation_rules(
    step: str,
    _user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return {"step": step, "rules": service.get_validation_rules(step)}


@router.get("/steps/{step}/data", response_model=StepDataOut)
async def get_step_data(
    step: str,
    user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return await service.get_step_data(user, step)


# ── Write ────────────────────────────────────────────────────

# Declared before the generic route so multipart uploads land here
@router.post("/steps/documents", response_model=SaveStepResult)
async def save_documents(
    nba_certificate: UploadFile = File(...),
    cv: UploadFile = File(...),
    user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    payload = {
        "nba_certificate": await _read_upload(nba_certificate),
        "cv": await _read_upload(cv),
    }
    return await service.save_step(user, "documents", payload)


@router.post("/steps/{step}", response_model=SaveStepResult)
async def save_step(
    step: str,
    payload: dict = Body(...),
    user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return await service.save_step(user, step, payload)


@router.post("/steps/{step}/skip", response_model=SkipStepResult)
async def skip_step(
    step: str,
    body: SkipStepRequest | None = None,
    user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    reason = body.reason if body else None
    return await service.skip_step(user, step, reason)


@router.post("/bulk", response_model=BulkSaveResult)
async def bulk_save(
    body: BulkSaveRequest,
    user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return await service.bulk_save(user, body.steps)


@router.post("/submit", response_model=SubmitResult)
async def submit_for_review(
    user: User = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    return await service.submit_for_review(user)
