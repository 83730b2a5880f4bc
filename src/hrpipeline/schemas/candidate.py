"""Pydantic documents for candidates and their audit history."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .enums import ApplicationStatus, AuditEventKind, UserRole

MaritalStatus = Literal["Single", "Married", "Divorced", "Widowed", "Other"]
InterviewType = Literal["In-Person", "Onboard"]
Recommendation = Literal["Pass", "Fail"]
SurveillanceOutcome = Literal["Clear", "Flagged"]


class ContactInfo(BaseModel):
    """Contact channels for a candidate."""

    phone: str = ""
    email: str = ""

    model_config = ConfigDict(extra="forbid")


class EmergencyContact(BaseModel):
    name: str = ""
    phone: str = ""

    model_config = ConfigDict(extra="forbid")


class Qualification(BaseModel):
    name: str = ""
    institute: str = ""
    year: str = ""

    model_config = ConfigDict(extra="forbid")


class WorkExperience(BaseModel):
    """Previous employment entry."""

    company: str = ""
    role: str = ""
    start: str = ""
    end: str = ""
    responsibilities: str = ""

    model_config = ConfigDict(extra="forbid")


class Reference(BaseModel):
    name: str = ""
    relation: str = ""
    company: str = ""
    contact: str = ""
    email: str = ""

    model_config = ConfigDict(extra="forbid")


class HRRating(BaseModel):
    """HR screening ratings; ``score`` is derived from the five sub-scores."""

    score: float = 0.0
    interviewer: str = ""
    personality: int | None = None
    attitude: int | None = None
    presentable: int | None = None
    communication: int | None = None
    confidence: int | None = None
    evaluation: str | None = None

    model_config = ConfigDict(extra="forbid")


class ScoreRating(BaseModel):
    score: float | None = None

    model_config = ConfigDict(extra="forbid")


class DepartmentRating(BaseModel):
    interviewer: str = ""

    model_config = ConfigDict(extra="forbid")


class Ratings(BaseModel):
    """Per-rater-role ratings."""

    hr: HRRating | None = None
    manager: ScoreRating | None = None
    cm: ScoreRating | None = None
    department: DepartmentRating | None = None

    model_config = ConfigDict(extra="forbid")


class Interview(BaseModel):
    """Interview sub-record, created when the interview is scheduled."""

    id: str
    interviewer: str
    date: str
    time: str
    type: InterviewType = "In-Person"
    feedback: str = ""
    score: float = 0.0
    recommendation: Recommendation = "Pass"

    model_config = ConfigDict(extra="forbid")


class SurveillanceReport(BaseModel):
    status: SurveillanceOutcome
    report_url: str = ""
    notes: str = ""

    model_config = ConfigDict(extra="forbid")


class Offer(BaseModel):
    salary: float | None = None
    joining_date: str | None = None
    accommodation_details: str = ""

    model_config = ConfigDict(extra="forbid")


class Rejection(BaseModel):
    """Who rejected the application, why and when."""

    actor: UserRole
    reason: str
    timestamp: datetime
    evidence: str | None = None

    model_config = ConfigDict(extra="forbid")


class PreEmploymentTest(BaseModel):
    score: int
    answers: dict[str, str] = Field(default_factory=dict)
    completed_at: datetime

    model_config = ConfigDict(extra="forbid")


class Comment(BaseModel):
    """Free-form note attributable to any role; not part of the lifecycle."""

    id: str
    timestamp: datetime
    user: str
    emp_id: str | None = None
    comment: str
    role: UserRole

    model_config = ConfigDict(extra="forbid", frozen=True)


class AuditLog(BaseModel):
    """Immutable record of who did what to a candidate.

    ``status`` is set only on entries that moved the candidate into a new
    status; ``field`` is set only on field-change entries.
    """

    id: str
    timestamp: datetime
    user: str
    role: UserRole
    kind: AuditEventKind
    action: str
    field: str | None = None
    status: ApplicationStatus | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class Candidate(BaseModel):
    """Aggregate root of the hiring pipeline."""

    id: str | None = None
    version: int = 0
    photo_url: str | None = None

    # personal details
    full_name: str
    dob: str
    age: int | None = None
    contact: ContactInfo = Field(default_factory=ContactInfo)
    emergency_contact: EmergencyContact = Field(default_factory=EmergencyContact)
    address: str = ""
    medical_conditions: str | None = None
    religion: str | None = None
    marital_status: MaritalStatus | None = None

    # job & compensation
    vacancy: str
    position_offered: str | None = None
    department: str | None = None
    expected_salary: float = 0.0
    accommodation_required: bool = False
    transport_required: bool = False

    # qualifications & experience
    total_work_experience: float | None = None
    qualifications: list[Qualification] = Field(default_factory=list)
    work_experience: list[WorkExperience] = Field(default_factory=list)
    languages_known: str | None = None
    references: list[Reference] = Field(default_factory=list)

    ratings: Ratings = Field(default_factory=Ratings)
    pre_employment_test: PreEmploymentTest | None = None

    # system fields
    status: ApplicationStatus = ApplicationStatus.NEW
    history: list[AuditLog] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    rejection: Rejection | None = None
    interview: Interview | None = None
    surveillance_report: SurveillanceReport | None = None
    offer: Offer | None = None
    employee_id: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")


class CandidateDraft(BaseModel):
    """Explicit creation input.

    Required: ``full_name``, ``dob``, ``contact.phone`` and ``vacancy``.
    Everything else is optional and keeps the defaults declared on
    :class:`Candidate`.
    """

    full_name: str = Field(min_length=1)
    dob: str = Field(min_length=1)
    contact: ContactInfo
    vacancy: str = Field(min_length=1)

    photo_url: str | None = None
    age: int | None = None
    emergency_contact: EmergencyContact | None = None
    address: str | None = None
    medical_conditions: str | None = None
    religion: str | None = None
    marital_status: MaritalStatus | None = None
    position_offered: str | None = None
    department: str | None = None
    expected_salary: float | None = None
    accommodation_required: bool | None = None
    transport_required: bool | None = None
    total_work_experience: float | None = None
    qualifications: list[Qualification] | None = None
    work_experience: list[WorkExperience] | None = None
    languages_known: str | None = None
    references: list[Reference] | None = None

    model_config = ConfigDict(extra="forbid")

    def missing_required(self) -> list[str]:
        missing: list[str] = []
        if not self.contact.phone.strip():
            missing.append("contact.phone")
        for name in ("full_name", "dob", "vacancy"):
            if not getattr(self, name).strip():
                missing.append(name)
        return missing

    def candidate_fields(self) -> dict:
        """Return the provided fields in :class:`Candidate` shape."""
        return self.model_dump(mode="python", exclude_none=True)


class Actor(BaseModel):
    """Identity of the operator performing an action."""

    name: str = Field(min_length=1)
    role: UserRole
    emp_id: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)
