"""Enumerations shared by the lifecycle engine."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Operator roles plus the self-service candidate."""

    HR = "HR"
    SCHEDULER = "Scheduler"
    DEPARTMENT_HEAD = "Department Head"
    SURVEILLANCE = "Surveillance"
    ADMIN = "Admin"
    CANDIDATE = "Candidate"


class ApplicationStatus(str, Enum):
    """Lifecycle status of an application."""

    NEW = "New"
    INTERVIEW_SCHEDULED = "Interview Scheduled"
    INTERVIEW_COMPLETED = "Interview Completed"
    PENDING_SURVEILLANCE = "Pending Surveillance"
    SURVEILLANCE_CLEARED = "Surveillance Cleared"
    SURVEILLANCE_FLAGGED = "Surveillance Flagged"
    OFFER_ACCEPTED = "Offer Accepted"
    JOINING_SCHEDULED = "Joining Scheduled"
    JOINED = "Joined"
    REJECTED = "Rejected"


TERMINAL_STATUSES = frozenset(
    {
        ApplicationStatus.JOINED,
        ApplicationStatus.REJECTED,
        # no transition out is defined; awaiting product clarification
        ApplicationStatus.SURVEILLANCE_FLAGGED,
    }
)


class AuditEventKind(str, Enum):
    """Machine-readable tag carried by every audit entry."""

    CREATED = "created"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETED = "interview_completed"
    INTERVIEW_PENDING = "interview_pending"
    SELECTED = "selected"
    REJECTED = "rejected"
    SURVEILLANCE_CLEARED = "surveillance_cleared"
    SURVEILLANCE_FLAGGED = "surveillance_flagged"
    OFFER_ACCEPTED = "offer_accepted"
    JOINING_SCHEDULED = "joining_scheduled"
    JOINED = "joined"
    FIELD_UPDATED = "field_updated"
    RATING_UPDATED = "rating_updated"
    TEST_COMPLETED = "test_completed"


class PipelineStage(str, Enum):
    """Fixed, ordered stages of the visual hiring pipeline."""

    APPLIED = "Applied"
    HR_SCREENING = "HR Screening"
    INTERVIEW_SCHEDULED = "Interview Scheduled"
    DEPARTMENT_HEAD_INTERVIEW = "Department Head Interview"
    SURVEILLANCE_CHECK = "Surveillance Check"
    HR_OFFER = "HR Offer"
    JOINING_SCHEDULED = "Joining Scheduled"
    HIRED = "Hired"

    @property
    def position(self) -> int:
        return PIPELINE_STAGES.index(self)


PIPELINE_STAGES: tuple[PipelineStage, ...] = tuple(PipelineStage)
