"""Pydantic schema definitions for candidates, audit entries and config."""

from __future__ import annotations

from .candidate import (
    Actor,
    AuditLog,
    Candidate,
    CandidateDraft,
    Comment,
    ContactInfo,
    DepartmentRating,
    EmergencyContact,
    HRRating,
    Interview,
    Offer,
    PreEmploymentTest,
    Qualification,
    Ratings,
    Reference,
    Rejection,
    ScoreRating,
    SurveillanceReport,
    WorkExperience,
)
from .enums import (
    PIPELINE_STAGES,
    TERMINAL_STATUSES,
    ApplicationStatus,
    AuditEventKind,
    PipelineStage,
    UserRole,
)

__all__ = [
    "Actor",
    "ApplicationStatus",
    "AuditEventKind",
    "AuditLog",
    "Candidate",
    "CandidateDraft",
    "Comment",
    "ContactInfo",
    "DepartmentRating",
    "EmergencyContact",
    "HRRating",
    "Interview",
    "Offer",
    "PIPELINE_STAGES",
    "PipelineStage",
    "PreEmploymentTest",
    "Qualification",
    "Ratings",
    "Reference",
    "Rejection",
    "ScoreRating",
    "SurveillanceReport",
    "TERMINAL_STATUSES",
    "UserRole",
    "WorkExperience",
]
