"""Progress tracker tests: pure computations over step records."""

from datetime import datetime

import pytest

from legalhub.models.lawyer_profile import LawyerProfile, ProfileStatus
from legalhub.models.onboarding_step import OnboardingStep
from legalhub.models.user import User, UserRole
from legalhub.services.onboarding.handlers import percentage
from legalhub.services.onboarding.tracker import ProgressTracker


def _completed(name: str) -> OnboardingStep:
    return OnboardingStep(
        step_name=name, is_completed=True, is_skipped=False, completed_at=datetime.utcnow()
    )


def _skipped(name: str) -> OnboardingStep:
    return OnboardingStep(step_name=name, is_completed=False, is_skipped=True)


@pytest.fixture
def tracker(registry, handlers):
    return ProgressTracker(registry, handlers)


@pytest.fixture
def account():
    return User(email="t@example.com", full_name="T", role=UserRole.LAWYER)


@pytest.mark.unit
class TestPercentage:

    @pytest.mark.parametrize("part,total,expected", [
        (0, 4, 0), (1, 4, 25), (2, 4, 50), (3, 4, 75), (4, 4, 100),
        (1, 3, 33), (2, 3, 67), (1, 8, 13), (1, 200, 1), (0, 0, 0),
    ])
    def test_round_half_up(self, part, total, expected):
        assert percentage(part, total) == expected


@pytest.mark.unit
class TestProgressTracker:

    def test_nothing_done(self, tracker):
        assert tracker.overall_progress({}) == 0
        assert tracker.current_step({}) == "personal_info"
        assert tracker.can_submit({}) is False
        assert tracker.missing_required_steps({}) == [
            "Personal Information", "Professional Credentials", "Document Upload",
        ]

    def test_four_step_scenario(self, tracker):
        records = {"personal_info": _completed("personal_info")}
        assert tracker.overall_progress(records) == 25
        assert tracker.current_step(records) == "professional_info"

        records["professional_info"] = _completed("professional_info")
        assert tracker.overall_progress(records) == 50

        records["availability"] = _skipped("availability")
        assert tracker.overall_progress(records) == 75
        assert tracker.can_submit(records) is False
        assert tracker.current_step(records) == "documents"

        records["documents"] = _completed("documents")
        assert tracker.overall_progress(records) == 100
        assert tracker.can_submit(records) is True
        assert tracker.current_step(records) is None
        assert tracker.missing_required_steps(records) == []

    def test_skipped_never_satisfies_required(self, tracker):
        records = {
            "personal_info": _completed("personal_info"),
            "professional_info": _completed("professional_info"),
            "documents": _skipped("documents"),
        }
        assert tracker.can_submit(records) is False
        assert tracker.missing_required_steps(records) == ["Document Upload"]

    def test_unknown_records_are_ignored(self, tracker):
        records = {"practice_areas": _completed("practice_areas")}
        assert tracker.overall_progress(records) == 0

    @pytest.mark.parametrize("resolved,expected", [
        (0, "20 minutes"), (2, "10 minutes"), (4, "Ready for submission"),
    ])
    def test_estimated_completion_time(self, tracker, registry, resolved, expected):
        names = [d.name for d in registry.list_steps()][:resolved]
        records = {name: _completed(name) for name in names}
        assert tracker.estimated_completion_time(records) == expected

    def test_status_for_lists_every_step(self, tracker, account):
        profile = LawyerProfile(status=ProfileStatus.IN_PROGRESS, office_address="x")
        account.phone_number = "+2348012345678"
        steps = tracker.status_for({"personal_info": _completed("personal_info")}, profile, account)

        assert [s.name for s in steps] == [
            "personal_info", "professional_info", "documents", "availability",
        ]
        assert steps[0].is_completed is True
        assert steps[0].completed_at is not None
        # phone + office address out of five required fields
        assert steps[0].completion_percentage == 40
        assert steps[1].completion_percentage == 0

    def test_snapshot_without_profile(self, tracker, account):
        snapshot = tracker.snapshot({}, None, account)
        assert snapshot.profile_status == "not_started"
        assert snapshot.total_steps == 4
        assert snapshot.completed_steps == 0
        assert snapshot.estimated_completion_time == "20 minutes"
        assert all(s.completion_percentage == 0 for s in snapshot.steps)
