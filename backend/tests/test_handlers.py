"""Step handler tests: payload validation, persistence, completion."""

import threading
from datetime import date

import pytest

from legalhub.models.lawyer_profile import LawyerProfile, ProfileStatus
from legalhub.models.user import User, UserRole
from legalhub.services.onboarding.errors import DocumentUploadError, StepValidationError
from legalhub.utils.storage import DocumentUpload, StorageError


@pytest.fixture
def account():
    return User(id="acc-1", email="t@example.com", full_name="T", role=UserRole.LAWYER)


@pytest.fixture
def profile():
    return LawyerProfile(id="prof-1", user_id="acc-1", status=ProfileStatus.IN_PROGRESS)


def _fields(exc_info) -> set[str]:
    return {e["field"] for e in exc_info.value.errors}


@pytest.mark.unit
class TestPayloadValidation:

    def test_personal_info_rejects_bad_phone(self, handlers, personal_info_payload):
        personal_info_payload["phone_number"] = "0123"
        with pytest.raises(StepValidationError) as exc_info:
            handlers["personal_info"].parse(personal_info_payload)
        assert _fields(exc_info) == {"phone_number"}

    def test_personal_info_missing_fields(self, handlers):
        with pytest.raises(StepValidationError) as exc_info:
            handlers["personal_info"].parse({"phone_number": "+2348012345678"})
        assert _fields(exc_info) == {"country", "state", "city", "office_address"}

    def test_professional_year_bounds(self, handlers):
        payload = {
            "enrollment_number": "X",
            "year_of_call": date.today().year + 1,
            "law_school": "School",
            "graduation_year": 1959,
            "practice_areas": [1],
            "languages": [1],
        }
        with pytest.raises(StepValidationError) as exc_info:
            handlers["professional_info"].parse(payload)
        assert _fields(exc_info) == {"year_of_call", "graduation_year"}

    def test_professional_list_sizes(self, handlers):
        payload = {
            "enrollment_number": "X",
            "year_of_call": 2015,
            "law_school": "School",
            "graduation_year": 2014,
            "practice_areas": [1, 2, 3, 4, 5, 6],
            "specializations": [1, 2, 3, 4],
            "languages": [],
        }
        with pytest.raises(StepValidationError) as exc_info:
            handlers["professional_info"].parse(payload)
        assert _fields(exc_info) == {"practice_areas", "specializations", "languages"}

    def test_documents_extension_and_size(self, handlers, documents_payload, monkeypatch):
        documents_payload["cv"] = DocumentUpload(filename="cv.png", content=b"img")
        with pytest.raises(StepValidationError) as exc_info:
            handlers["documents"].parse(documents_payload)
        assert _fields(exc_info) == {"cv"}

    def test_documents_too_large(self, handlers, documents_payload):
        documents_payload["nba_certificate"] = DocumentUpload(
            filename="cert.pdf", content=b"x" * (5 * 1024 * 1024 + 1)
        )
        with pytest.raises(StepValidationError) as exc_info:
            handlers["documents"].parse(documents_payload)
        assert _fields(exc_info) == {"nba_certificate"}

    def test_availability_end_before_start(self, handlers, availability_payload):
        availability_payload["availability"]["monday"] = {"start": "17:00", "end": "09:00"}
        with pytest.raises(StepValidationError) as exc_info:
            handlers["availability"].parse(availability_payload)
        assert _fields(exc_info) == {"availability -> monday"}

    def test_availability_needs_one_day(self, handlers, availability_payload):
        availability_payload["availability"] = {"monday": None}
        with pytest.raises(StepValidationError):
            handlers["availability"].parse(availability_payload)

    def test_availability_fee_bounds(self, handlers, availability_payload):
        availability_payload["consultation_fee"] = 999
        availability_payload["hourly_rate"] = 1000001
        with pytest.raises(StepValidationError) as exc_info:
            handlers["availability"].parse(availability_payload)
        assert _fields(exc_info) == {"consultation_fee", "hourly_rate"}

    def test_availability_bad_time_format(self, handlers, availability_payload):
        availability_payload["availability"]["monday"] = {"start": "9am", "end": "17:00"}
        with pytest.raises(StepValidationError):
            handlers["availability"].parse(availability_payload)


@pytest.mark.unit
@pytest.mark.asyncio
class TestInMemoryPersistence:

    async def test_personal_info_writes_account_and_profile(
        self, handlers, account, profile, personal_info_payload, storage
    ):
        handler = handlers["personal_info"]
        assert handler.completion_percentage(profile, account) == 0

        await handler.persist(None, account, profile, handler.parse(personal_info_payload), storage)

        assert account.city == "Ikeja"
        assert profile.office_address == "12 Allen Avenue, Ikeja"
        assert profile.bio == "Commercial litigator."
        assert handler.is_complete(profile, account) is True
        assert handler.completion_percentage(profile, account) == 100

    async def test_personal_info_keeps_bio_when_omitted(
        self, handlers, account, profile, personal_info_payload, storage
    ):
        profile.bio = "Existing bio"
        del personal_info_payload["bio"]
        handler = handlers["personal_info"]
        await handler.persist(None, account, profile, handler.parse(personal_info_payload), storage)
        assert profile.bio == "Existing bio"

    async def test_availability_drops_empty_days(
        self, handlers, account, profile, availability_payload, storage
    ):
        availability_payload["availability"]["friday"] = None
        handler = handlers["availability"]
        await handler.persist(None, account, profile, handler.parse(availability_payload), storage)

        assert profile.consultation_fee == 15000
        assert set(profile.availability) == {"monday", "wednesday"}
        assert profile.availability["monday"] == {"start": "09:00", "end": "17:00"}
        assert handler.is_complete(profile, account) is True

    async def test_documents_stored_under_account_scope(
        self, handlers, account, profile, documents_payload, storage
    ):
        handler = handlers["documents"]
        data = handler.parse(documents_payload)
        await handler.persist(None, account, profile, data, storage)

        assert profile.bar_certificate_path.startswith("lawyers/acc-1/documents/")
        assert profile.cv_path.endswith(".docx")
        assert (storage.root / profile.cv_path).read_bytes() == b"PK cv"
        assert handler.snapshot(data, profile) == {
            "nba_certificate": {"filename": "certificate.pdf", "path": profile.bar_certificate_path},
            "cv": {"filename": "cv.docx", "path": profile.cv_path},
        }

    async def test_failed_upload_removes_stored_files(
        self, handlers, account, profile, documents_payload, storage
    ):
        documents_payload["cv"] = DocumentUpload(filename="cv.pdf", content=b"")
        handler = handlers["documents"]

        with pytest.raises(DocumentUploadError) as exc_info:
            await handler.persist(None, account, profile, handler.parse(documents_payload), storage)

        assert exc_info.value.details == {"field": "cv"}
        assert profile.bar_certificate_path is None
        assert profile.cv_path is None
        assert not any(p.is_file() for p in storage.root.rglob("*"))

    async def test_storage_failure_surfaces_as_upload_error(
        self, handlers, account, profile, documents_payload
    ):
        class BrokenStorage:
            def store(self, upload, scope_path):
                raise StorageError("disk full")

            def delete(self, reference):
                pass

        handler = handlers["documents"]
        with pytest.raises(DocumentUploadError) as exc_info:
            await handler.persist(
                None, account, profile, handler.parse(documents_payload), BrokenStorage()
            )
        assert exc_info.value.field == "nba_certificate"

    async def test_documents_report_replaced_files(
        self, handlers, account, profile, documents_payload, storage
    ):
        handler = handlers["documents"]
        data = handler.parse(documents_payload)

        first = await handler.persist(None, account, profile, data, storage)
        assert first.superseded == []
        second = await handler.persist(None, account, profile, data, storage)

        assert second.superseded == first.stored
        assert second.stored == [profile.bar_certificate_path, profile.cv_path]

    async def test_documents_written_off_the_event_loop(
        self, handlers, account, profile, documents_payload, storage
    ):
        loop_thread = threading.get_ident()
        writers = []

        class ThreadRecordingStorage:
            def store(self, upload, scope_path):
                writers.append(threading.get_ident())
                return storage.store(upload, scope_path)

            def delete(self, reference):
                storage.delete(reference)

        handler = handlers["documents"]
        await handler.persist(
            None, account, profile, handler.parse(documents_payload), ThreadRecordingStorage()
        )

        assert len(writers) == 2
        assert loop_thread not in writers

    async def test_professional_snapshot_lists_omitted_specializations(
        self, handlers, profile, professional_info_payload
    ):
        del professional_info_payload["specializations"]
        handler = handlers["professional_info"]
        snapshot = handler.snapshot(handler.parse(professional_info_payload), profile)
        assert snapshot["specializations"] == []
