"""Projection of a candidate onto the fixed visual hiring pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Sequence

from ..schemas import (
    PIPELINE_STAGES,
    ApplicationStatus,
    AuditEventKind,
    AuditLog,
    Candidate,
    PipelineStage,
    UserRole,
)

StageState = Literal["completed", "active", "failed", "pending"]

STAGE_OWNERS: dict[PipelineStage, tuple[UserRole, ...]] = {
    PipelineStage.APPLIED: (UserRole.HR,),
    PipelineStage.HR_SCREENING: (UserRole.HR,),
    PipelineStage.INTERVIEW_SCHEDULED: (UserRole.SCHEDULER,),
    PipelineStage.DEPARTMENT_HEAD_INTERVIEW: (UserRole.DEPARTMENT_HEAD,),
    PipelineStage.SURVEILLANCE_CHECK: (UserRole.SURVEILLANCE,),
    PipelineStage.HR_OFFER: (UserRole.HR, UserRole.ADMIN),
    PipelineStage.JOINING_SCHEDULED: (UserRole.SCHEDULER, UserRole.ADMIN),
    PipelineStage.HIRED: (UserRole.HR, UserRole.ADMIN),
}

_HAPPY_PATH: dict[ApplicationStatus, PipelineStage] = {
    ApplicationStatus.NEW: PipelineStage.APPLIED,
    ApplicationStatus.INTERVIEW_SCHEDULED: PipelineStage.INTERVIEW_SCHEDULED,
    ApplicationStatus.INTERVIEW_COMPLETED: PipelineStage.DEPARTMENT_HEAD_INTERVIEW,
    ApplicationStatus.PENDING_SURVEILLANCE: PipelineStage.SURVEILLANCE_CHECK,
    ApplicationStatus.SURVEILLANCE_CLEARED: PipelineStage.HR_OFFER,
    ApplicationStatus.OFFER_ACCEPTED: PipelineStage.HR_OFFER,
    ApplicationStatus.JOINING_SCHEDULED: PipelineStage.JOINING_SCHEDULED,
    ApplicationStatus.JOINED: PipelineStage.HIRED,
}

_REJECTION_STAGE: dict[UserRole, PipelineStage] = {
    UserRole.DEPARTMENT_HEAD: PipelineStage.DEPARTMENT_HEAD_INTERVIEW,
    UserRole.SURVEILLANCE: PipelineStage.SURVEILLANCE_CHECK,
}

_FAILED_STATUSES = frozenset(
    {ApplicationStatus.REJECTED, ApplicationStatus.SURVEILLANCE_FLAGGED}
)

EntryPredicate = Callable[[AuditLog], bool]


@dataclass(frozen=True, slots=True)
class StageView:
    stage: PipelineStage
    state: StageState
    entry: AuditLog | None
    owners: tuple[UserRole, ...]


@dataclass(frozen=True, slots=True)
class StageResolution:
    """Where a candidate sits in the pipeline and which entry explains each stage."""

    stage_index: int
    stage: PipelineStage
    failed: bool
    per_stage_entry: dict[PipelineStage, AuditLog | None]
    stages: tuple[StageView, ...]

    def awaiting(self, role: UserRole) -> bool:
        """True when the active stage is owned by ``role``."""
        return any(view.state == "active" and role in view.owners for view in self.stages)


def _kind(*kinds: AuditEventKind) -> EntryPredicate:
    return lambda entry: entry.kind in kinds


def _kind_by(kind: AuditEventKind, role: UserRole) -> EntryPredicate:
    return lambda entry: entry.kind is kind and entry.role is role


def _is_hr_screening(entry: AuditLog) -> bool:
    return entry.kind is AuditEventKind.RATING_UPDATED and entry.role is UserRole.HR


def _latest(history: Sequence[AuditLog], predicate: EntryPredicate) -> AuditLog | None:
    for entry in reversed(history):
        if predicate(entry):
            return entry
    return None


class StageResolver:
    """Read-only projection of status and history onto pipeline stages."""

    def resolve(self, candidate: Candidate) -> StageResolution:
        status = candidate.status
        history = candidate.history
        stage = self.current_stage(candidate)
        index = stage.position
        failed = status in _FAILED_STATUSES

        entries: dict[PipelineStage, AuditLog | None] = {}
        views: list[StageView] = []
        for position, pipeline_stage in enumerate(PIPELINE_STAGES):
            state = self._state(position, index, failed, status)
            entry = None
            if position <= index:
                entry = _latest(history, self._predicate(pipeline_stage, candidate))
                entries[pipeline_stage] = entry
            views.append(
                StageView(
                    stage=pipeline_stage,
                    state=state,
                    entry=entry,
                    owners=STAGE_OWNERS[pipeline_stage],
                )
            )

        return StageResolution(
            stage_index=index,
            stage=stage,
            failed=failed,
            per_stage_entry=entries,
            stages=tuple(views),
        )

    def current_stage(self, candidate: Candidate) -> PipelineStage:
        status = candidate.status
        if status is ApplicationStatus.REJECTED:
            return self._rejection_stage(candidate)
        if status is ApplicationStatus.SURVEILLANCE_FLAGGED:
            return PipelineStage.SURVEILLANCE_CHECK
        if status is ApplicationStatus.NEW and _latest(candidate.history, _is_hr_screening):
            return PipelineStage.HR_SCREENING
        return _HAPPY_PATH[status]

    @staticmethod
    def _rejection_stage(candidate: Candidate) -> PipelineStage:
        rejected = _latest(candidate.history, _kind(AuditEventKind.REJECTED))
        if rejected is not None and rejected.role in _REJECTION_STAGE:
            return _REJECTION_STAGE[rejected.role]
        if candidate.rejection is not None and candidate.rejection.actor in _REJECTION_STAGE:
            return _REJECTION_STAGE[candidate.rejection.actor]
        return PipelineStage.DEPARTMENT_HEAD_INTERVIEW

    @staticmethod
    def _state(position: int, index: int, failed: bool, status: ApplicationStatus) -> StageState:
        if status is ApplicationStatus.JOINED:
            return "completed"
        if position < index:
            return "completed"
        if position == index:
            return "failed" if failed else "active"
        return "pending"

    @staticmethod
    def _predicate(stage: PipelineStage, candidate: Candidate) -> EntryPredicate:
        status = candidate.status
        history = candidate.history

        if stage is PipelineStage.APPLIED:
            return _kind(AuditEventKind.CREATED)
        if stage is PipelineStage.HR_SCREENING:
            return _is_hr_screening
        if stage is PipelineStage.INTERVIEW_SCHEDULED:
            return _kind(AuditEventKind.INTERVIEW_SCHEDULED)
        if stage is PipelineStage.DEPARTMENT_HEAD_INTERVIEW:
            if status is ApplicationStatus.REJECTED:
                surveillance_rejected = _latest(
                    history, _kind_by(AuditEventKind.REJECTED, UserRole.SURVEILLANCE)
                )
                if surveillance_rejected is None:
                    return _kind_by(AuditEventKind.REJECTED, UserRole.DEPARTMENT_HEAD)
            return _kind(AuditEventKind.INTERVIEW_COMPLETED, AuditEventKind.INTERVIEW_PENDING)
        if stage is PipelineStage.SURVEILLANCE_CHECK:
            if status is ApplicationStatus.SURVEILLANCE_FLAGGED:
                return _kind(AuditEventKind.SURVEILLANCE_FLAGGED)
            if status is ApplicationStatus.REJECTED:
                return _kind_by(AuditEventKind.REJECTED, UserRole.SURVEILLANCE)
            return _kind(AuditEventKind.SURVEILLANCE_CLEARED, AuditEventKind.SURVEILLANCE_FLAGGED)
        if stage is PipelineStage.HR_OFFER:
            return _kind(AuditEventKind.OFFER_ACCEPTED)
        if stage is PipelineStage.JOINING_SCHEDULED:
            return _kind(AuditEventKind.JOINING_SCHEDULED)
        return _kind(AuditEventKind.JOINED)
