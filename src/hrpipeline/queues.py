"""Role work queues and pipeline counts derived from candidate snapshots."""

from __future__ import annotations

from collections import Counter
from typing import Callable, Iterable

from .schemas import ApplicationStatus, Candidate, UserRole

QueueFilter = Callable[[Candidate], bool]


def _status(*statuses: ApplicationStatus) -> QueueFilter:
    return lambda candidate: candidate.status in statuses


def _report(outcome: str) -> QueueFilter:
    return lambda candidate: (
        candidate.surveillance_report is not None
        and candidate.surveillance_report.status == outcome
    )


ROLE_QUEUES: dict[UserRole, dict[str, QueueFilter]] = {
    UserRole.HR: {
        "new": _status(ApplicationStatus.NEW),
        "offer_ready": _status(ApplicationStatus.SURVEILLANCE_CLEARED),
    },
    UserRole.SCHEDULER: {
        "awaiting_schedule": _status(ApplicationStatus.NEW),
        "interviews": _status(ApplicationStatus.INTERVIEW_SCHEDULED),
    },
    UserRole.DEPARTMENT_HEAD: {
        "to_decide": _status(
            ApplicationStatus.INTERVIEW_SCHEDULED,
            ApplicationStatus.INTERVIEW_COMPLETED,
        ),
    },
    UserRole.SURVEILLANCE: {
        "pending": _status(ApplicationStatus.PENDING_SURVEILLANCE),
        "cleared": _report("Clear"),
        "flagged": _report("Flagged"),
    },
    UserRole.ADMIN: {
        "ready": _status(ApplicationStatus.SURVEILLANCE_CLEARED),
        "accepted": _status(ApplicationStatus.OFFER_ACCEPTED),
        "scheduled": _status(ApplicationStatus.JOINING_SCHEDULED),
    },
}


def work_queues(candidates: Iterable[Candidate], role: UserRole) -> dict[str, list[Candidate]]:
    """Group candidates into the queues a role works from."""
    filters = ROLE_QUEUES.get(role, {})
    pool = list(candidates)
    return {
        name: [candidate for candidate in pool if predicate(candidate)]
        for name, predicate in filters.items()
    }


def status_counts(candidates: Iterable[Candidate]) -> dict[ApplicationStatus, int]:
    counts = Counter(candidate.status for candidate in candidates)
    return {status: counts.get(status, 0) for status in ApplicationStatus}


def rate_test_score(score: int) -> str:
    """Band a pre-employment test score."""
    if score >= 35:
        return "Excellent"
    if score >= 28:
        return "Good"
    if score >= 20:
        return "Average"
    return "Below Average"
