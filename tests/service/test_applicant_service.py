from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from hrpipeline.core import implied_status
from hrpipeline.errors import (
    AuthorizationError,
    CandidateNotFoundError,
    ConcurrentModificationError,
    PersistenceError,
    ValidationError,
)
from hrpipeline.repository import InMemoryCandidateRepository
from hrpipeline.schemas import (
    Actor,
    ApplicationStatus,
    AuditEventKind,
    Candidate,
    PipelineStage,
    UserRole,
)
from hrpipeline.service import ApplicantService

HR = Actor(name="Aparna", role=UserRole.HR, emp_id="EMP-7")
SCHEDULER = Actor(name="Sanjay", role=UserRole.SCHEDULER)
DEPARTMENT_HEAD = Actor(name="Capt. Iyer", role=UserRole.DEPARTMENT_HEAD)
SURVEILLANCE = Actor(name="Officer Das", role=UserRole.SURVEILLANCE)
ADMIN = Actor(name="Admin Desk", role=UserRole.ADMIN)


class FixedClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


class FlakyRepository(InMemoryCandidateRepository):
    def __init__(self) -> None:
        super().__init__()
        self.fail_writes = False

    def _flush(self) -> bool:
        return not self.fail_writes


def build_draft(**kwargs: Any) -> dict[str, Any]:
    defaults: dict[str, Any] = {
        "full_name": "Rahul Menon",
        "dob": "1994-03-12",
        "contact": {"phone": "+91 98470 00000", "email": "rahul@example.com"},
        "vacancy": "Deck Cadet",
    }
    defaults.update(kwargs)
    return defaults


def dump_history(candidate: Candidate) -> list[dict[str, Any]]:
    return [entry.model_dump(mode="json") for entry in candidate.history]


def build_service(repository: InMemoryCandidateRepository | None = None) -> tuple[ApplicantService, FixedClock]:
    clock = FixedClock(datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc))
    service = ApplicantService(
        repository=repository or InMemoryCandidateRepository(),
        now_provider=clock,
    )
    return service, clock


def test_full_hiring_flow():
    service, clock = build_service()
    candidate = service.create_candidate(build_draft(), HR)
    candidate_id = candidate.id

    assert candidate.status is ApplicationStatus.NEW
    assert len(candidate.history) == 1
    assert candidate.history[0].kind is AuditEventKind.CREATED
    assert implied_status(candidate.history) is candidate.status

    clock.advance(hours=1)
    scheduled = service.apply_transition(
        candidate_id, "schedule_interview", SCHEDULER, {"date": "2024-05-10", "time": "14:30"}
    )
    assert scheduled.status is ApplicationStatus.INTERVIEW_SCHEDULED
    assert len(scheduled.history) == 2
    assert scheduled.interview.date == "2024-05-10"
    assert implied_status(scheduled.history) is scheduled.status

    clock.advance(days=9)
    selected = service.apply_transition(candidate_id, "select", DEPARTMENT_HEAD)
    assert selected.status is ApplicationStatus.PENDING_SURVEILLANCE
    assert len(selected.history) == 4
    assert selected.history[3].timestamp > selected.history[2].timestamp
    assert implied_status(selected.history) is selected.status

    cleared = service.apply_transition(candidate_id, "clear", SURVEILLANCE)
    assert cleared.status is ApplicationStatus.SURVEILLANCE_CLEARED
    assert len(cleared.history) == 5
    assert cleared.surveillance_report.status == "Clear"
    assert implied_status(cleared.history) is cleared.status

    for name in ("accept_offer", "schedule_joining", "mark_joined"):
        step = service.apply_transition(candidate_id, name, ADMIN)
        assert implied_status(step.history) is step.status

    joined = service.get(candidate_id)
    assert joined.status is ApplicationStatus.JOINED
    assert len(joined.history) == 8
    assert implied_status(joined.history) is ApplicationStatus.JOINED
    assert joined.version == 7

    resolution = service.resolve_stage(joined)
    assert resolution.stage is PipelineStage.HIRED
    assert resolution.stage_index == 7

    timestamps = [entry.timestamp for entry in joined.history]
    assert timestamps == sorted(timestamps)


def test_candidate_self_application_is_attributed_to_candidate():
    service, _ = build_service()
    actor = Actor(name="self-service", role=UserRole.CANDIDATE)

    candidate = service.create_candidate(build_draft(), actor)

    assert candidate.history[0].user == "Rahul Menon"
    assert candidate.history[0].role is UserRole.CANDIDATE


def test_create_requires_core_fields_and_creator_role():
    service, _ = build_service()

    with pytest.raises(ValidationError) as exc_info:
        service.create_candidate(build_draft(contact={"phone": " "}), HR)
    assert exc_info.value.errors == ["contact.phone: required"]

    with pytest.raises(ValidationError):
        service.create_candidate(build_draft(vacancy=""), HR)

    with pytest.raises(AuthorizationError):
        service.create_candidate(build_draft(), SCHEDULER)

    assert service.list_candidates() == []


def test_unauthorized_transition_leaves_candidate_untouched():
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)

    with pytest.raises(AuthorizationError):
        service.apply_transition(candidate.id, "select", DEPARTMENT_HEAD)
    with pytest.raises(ValidationError):
        service.apply_transition(candidate.id, "schedule_interview", SCHEDULER, {"date": "2024-05-10"})

    stored = service.get(candidate.id)
    assert stored.status is ApplicationStatus.NEW
    assert dump_history(stored) == dump_history(candidate)
    assert stored.version == 1


def test_failed_write_raises_and_keeps_stored_snapshot():
    repository = FlakyRepository()
    service, _ = build_service(repository)
    candidate = service.create_candidate(build_draft(), HR)
    repository.fail_writes = True

    with pytest.raises(PersistenceError):
        service.apply_transition(
            candidate.id, "schedule_interview", SCHEDULER, {"date": "2024-05-10", "time": "14:30"}
        )

    stored = service.get(candidate.id)
    assert stored.status is ApplicationStatus.NEW
    assert len(stored.history) == 1

    repository.fail_writes = False
    retried = service.apply_transition(
        candidate.id, "schedule_interview", SCHEDULER, {"date": "2024-05-10", "time": "14:30"}
    )
    assert retried.status is ApplicationStatus.INTERVIEW_SCHEDULED


def test_stale_snapshot_is_rejected():
    repository = InMemoryCandidateRepository()
    service, _ = build_service(repository)
    stale = service.create_candidate(build_draft(), HR)
    service.apply_transition(stale.id, "schedule_interview", SCHEDULER, {"date": "2024-05-10", "time": "14:30"})

    with pytest.raises(ConcurrentModificationError):
        repository.put(stale.id, stale.model_copy(update={"version": stale.version + 1}))

    assert service.get(stale.id).status is ApplicationStatus.INTERVIEW_SCHEDULED


def test_unknown_candidate():
    service, _ = build_service()

    with pytest.raises(CandidateNotFoundError):
        service.apply_transition("missing", "select", DEPARTMENT_HEAD)


def test_hr_edit_recomputes_composite_and_logs_changes():
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)

    updated = service.apply_field_edits(
        candidate.id,
        HR,
        {
            "address": "Kochi",
            "ratings": {
                "hr": {
                    "personality": 4,
                    "attitude": 3,
                    "presentable": 5,
                    "communication": 4,
                    "confidence": 4,
                    "score": 1.0,
                }
            },
        },
    )

    assert updated.ratings.hr.score == 4.0
    new_entries = updated.history[1:]
    assert new_entries[0].action == 'Address changed from "empty" to "Kochi".'
    assert new_entries[0].kind is AuditEventKind.FIELD_UPDATED
    assert {entry.field for entry in new_entries[1:]} == {
        "ratings.hr.personality",
        "ratings.hr.attitude",
        "ratings.hr.presentable",
        "ratings.hr.communication",
        "ratings.hr.confidence",
        "ratings.hr.score",
    }
    assert all(entry.kind is AuditEventKind.RATING_UPDATED for entry in new_entries[1:])
    assert all(entry.status is None for entry in new_entries)
    assert updated.status is ApplicationStatus.NEW
    assert service.resolve_stage(updated).stage is PipelineStage.HR_SCREENING


def test_department_head_cannot_touch_hr_rating():
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)
    service.apply_field_edits(candidate.id, HR, {"ratings": {"hr": {"personality": 2}}})
    before = service.get(candidate.id)

    after = service.apply_field_edits(
        candidate.id,
        DEPARTMENT_HEAD,
        {"ratings": {"hr": {"score": 5.0, "personality": 5}, "manager": {"score": 4}}},
    )

    assert after.ratings.hr == before.ratings.hr
    assert after.ratings.manager.score == 4.0
    assert after.history[-1].action == 'Ratings Manager Score changed from "empty" to "4".'
    assert len(after.history) == len(before.history) + 1


def test_edits_outside_whitelist_are_ignored():
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)

    unchanged = service.apply_field_edits(
        candidate.id, DEPARTMENT_HEAD, {"full_name": "Someone Else", "status": "Joined"}
    )

    assert unchanged.full_name == "Rahul Menon"
    assert unchanged.status is ApplicationStatus.NEW
    assert service.get(candidate.id).version == 1

    with pytest.raises(AuthorizationError):
        service.apply_field_edits(candidate.id, SCHEDULER, {"department": "Deck"})


def test_comments_do_not_touch_history():
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)

    updated = service.add_comment(candidate.id, HR, "  Strong sea-time record.  ")

    assert updated.comments[-1].comment == "Strong sea-time record."
    assert updated.comments[-1].emp_id == "EMP-7"
    assert dump_history(updated) == dump_history(candidate)
    with pytest.raises(ValidationError):
        service.add_comment(candidate.id, HR, "   ")


def test_test_result_recorded_once():
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)
    actor = Actor(name="self-service", role=UserRole.CANDIDATE)

    updated = service.record_test_result(candidate.id, actor, 31, {"q1": "b"})

    assert updated.pre_employment_test.score == 31
    assert updated.history[-1].kind is AuditEventKind.TEST_COMPLETED
    assert updated.history[-1].action == "Pre-Employment Test Completed (Score: 31)"
    assert updated.history[-1].user == "Rahul Menon"
    assert updated.status is ApplicationStatus.NEW

    with pytest.raises(ValidationError):
        service.record_test_result(candidate.id, actor, 12)
    with pytest.raises(AuthorizationError):
        service.record_test_result(candidate.id, ADMIN, 12)


def test_subscribers_see_every_write():
    service, _ = build_service()
    seen: list[list[Candidate]] = []
    unsubscribe = service.subscribe(seen.append)

    candidate = service.create_candidate(build_draft(), HR)
    service.add_comment(candidate.id, HR, "Called candidate")
    unsubscribe()
    service.add_comment(candidate.id, HR, "Second call")

    assert len(seen) == 2
    assert seen[-1][0].comments[0].comment == "Called candidate"


def test_available_actions_follow_status():
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)

    assert [a.value for a in service.available_actions(candidate, UserRole.SCHEDULER)] == ["schedule_interview"]
    assert service.available_actions(candidate, UserRole.ADMIN) == []


@pytest.mark.parametrize(
    "ratings",
    [{"hr": {"score": 4}}, {"hr": {"interviewer": ""}}, {"hr": {}}],
)
def test_hr_edit_without_sub_scores_writes_nothing(ratings: dict[str, Any]):
    service, _ = build_service()
    candidate = service.create_candidate(build_draft(), HR)

    result = service.apply_field_edits(candidate.id, HR, {"ratings": ratings})

    stored = service.get(candidate.id)
    assert result.ratings.hr is None
    assert stored.version == 1
    assert len(stored.history) == 1
    assert service.resolve_stage(stored).stage is PipelineStage.APPLIED


class CountingRepository(InMemoryCandidateRepository):
    def __init__(self) -> None:
        super().__init__()
        self.full_scans = 0

    def get_all(self) -> list[Candidate]:
        self.full_scans += 1
        return super().get_all()


def test_single_candidate_lookups_do_not_scan_the_store():
    repository = CountingRepository()
    service, _ = build_service(repository)
    candidate = service.create_candidate(build_draft(), HR)

    service.apply_transition(candidate.id, "schedule_interview", SCHEDULER, {"date": "2024-05-10", "time": "14:30"})
    service.add_comment(candidate.id, HR, "Confirmed slot")

    assert repository.full_scans == 0
    with pytest.raises(CandidateNotFoundError, match="Unknown candidate: 'missing'"):
        service.get("missing")
