"""Role-gated status transitions for the applicant lifecycle."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Mapping

import pendulum
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..errors import AuthorizationError, ValidationError
from ..schemas import (
    Actor,
    ApplicationStatus,
    AuditEventKind,
    AuditLog,
    Candidate,
    Interview,
    Rejection,
    SurveillanceReport,
    UserRole,
)
from ..schemas.candidate import InterviewType
from .timeline import NowProvider, issue_timestamps, new_entry_id, utc_now


class TransitionName(str, Enum):
    SCHEDULE_INTERVIEW = "schedule_interview"
    SELECT = "select"
    HOLD = "hold"
    REJECT = "reject"
    CLEAR = "clear"
    FLAG = "flag"
    ACCEPT_OFFER = "accept_offer"
    SCHEDULE_JOINING = "schedule_joining"
    MARK_JOINED = "mark_joined"


class EmptyPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ScheduleInterviewPayload(BaseModel):
    """Interview slot; both ``date`` (YYYY-MM-DD) and ``time`` (HH:MM) are required."""

    date: str = Field(min_length=1)
    time: str = Field(min_length=1)
    interviewer: str = "Department Head"
    type: InterviewType = "In-Person"

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("date")
    @classmethod
    def _valid_date(cls, value: str) -> str:
        try:
            pendulum.from_format(value, "YYYY-MM-DD")
        except ValueError as exc:
            raise ValueError(f"Invalid interview date {value!r}, expected YYYY-MM-DD") from exc
        return value

    @field_validator("time")
    @classmethod
    def _valid_time(cls, value: str) -> str:
        try:
            pendulum.from_format(value, "HH:mm")
        except ValueError as exc:
            raise ValueError(f"Invalid interview time {value!r}, expected HH:MM") from exc
        return value


class RejectPayload(BaseModel):
    reason: str | None = None
    evidence: str | None = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class SurveillancePayload(BaseModel):
    report_url: str = ""
    notes: str = ""

    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True, slots=True)
class AuditStep:
    """An audit entry a transition will append, before it gets id and timestamp."""

    kind: AuditEventKind
    action: str
    status: ApplicationStatus


Effect = Callable[[Candidate, Any, Actor, list[datetime]], dict[str, Any]]
Steps = Callable[[Any, Actor], list[AuditStep]]


@dataclass(frozen=True)
class TransitionRule:
    name: TransitionName
    sources: frozenset[ApplicationStatus]
    role: UserRole
    target: ApplicationStatus
    payload_model: type[BaseModel]
    steps: Steps
    effect: Effect | None = None


@dataclass(frozen=True, slots=True)
class TransitionResult:
    candidate: Candidate
    entries: list[AuditLog]
    rule: TransitionRule


def _no_effect(candidate: Candidate, payload: Any, actor: Actor, stamps: list[datetime]) -> dict[str, Any]:
    return {}


def _single(kind: AuditEventKind, action: str, status: ApplicationStatus) -> Steps:
    return lambda payload, actor: [AuditStep(kind, action, status)]


def _schedule_steps(payload: ScheduleInterviewPayload, actor: Actor) -> list[AuditStep]:
    return [
        AuditStep(
            AuditEventKind.INTERVIEW_SCHEDULED,
            f"Interview Scheduled for {payload.date} at {payload.time}",
            ApplicationStatus.INTERVIEW_SCHEDULED,
        )
    ]


def _schedule_effect(
    candidate: Candidate,
    payload: ScheduleInterviewPayload,
    actor: Actor,
    stamps: list[datetime],
) -> dict[str, Any]:
    interview = Interview(
        id=f"int_{uuid.uuid4().hex[:12]}",
        interviewer=payload.interviewer,
        date=payload.date,
        time=payload.time,
        type=payload.type,
    )
    return {"interview": interview}


def _outcome_steps(kind: AuditEventKind, action: str, status: ApplicationStatus) -> Steps:
    def steps(payload: Any, actor: Actor) -> list[AuditStep]:
        return [
            AuditStep(
                AuditEventKind.INTERVIEW_COMPLETED,
                "Interview Completed",
                ApplicationStatus.INTERVIEW_COMPLETED,
            ),
            AuditStep(kind, action.format(role=actor.role.value), status),
        ]

    return steps


def _rejection_effect(default_reason: str) -> Effect:
    def effect(
        candidate: Candidate,
        payload: RejectPayload,
        actor: Actor,
        stamps: list[datetime],
    ) -> dict[str, Any]:
        rejection = Rejection(
            actor=actor.role,
            reason=payload.reason or default_reason,
            timestamp=stamps[-1],
            evidence=payload.evidence,
        )
        return {"rejection": rejection}

    return effect


def _surveillance_effect(outcome: str) -> Effect:
    def effect(
        candidate: Candidate,
        payload: SurveillancePayload,
        actor: Actor,
        stamps: list[datetime],
    ) -> dict[str, Any]:
        previous = candidate.surveillance_report
        report = SurveillanceReport(
            status=outcome,
            report_url=payload.report_url or (previous.report_url if previous else ""),
            notes=payload.notes or (previous.notes if previous else ""),
        )
        return {"surveillance_report": report}

    return effect


_INTERVIEW_STATUSES = frozenset(
    {ApplicationStatus.INTERVIEW_SCHEDULED, ApplicationStatus.INTERVIEW_COMPLETED}
)

DEFAULT_RULES: tuple[TransitionRule, ...] = (
    TransitionRule(
        name=TransitionName.SCHEDULE_INTERVIEW,
        sources=frozenset({ApplicationStatus.NEW}),
        role=UserRole.SCHEDULER,
        target=ApplicationStatus.INTERVIEW_SCHEDULED,
        payload_model=ScheduleInterviewPayload,
        steps=_schedule_steps,
        effect=_schedule_effect,
    ),
    TransitionRule(
        name=TransitionName.SELECT,
        sources=_INTERVIEW_STATUSES,
        role=UserRole.DEPARTMENT_HEAD,
        target=ApplicationStatus.PENDING_SURVEILLANCE,
        payload_model=EmptyPayload,
        steps=_outcome_steps(
            AuditEventKind.SELECTED,
            "Selected by {role}",
            ApplicationStatus.PENDING_SURVEILLANCE,
        ),
    ),
    TransitionRule(
        name=TransitionName.HOLD,
        sources=_INTERVIEW_STATUSES,
        role=UserRole.DEPARTMENT_HEAD,
        target=ApplicationStatus.INTERVIEW_COMPLETED,
        payload_model=EmptyPayload,
        steps=_single(
            AuditEventKind.INTERVIEW_PENDING,
            "Interview outcome is pending",
            ApplicationStatus.INTERVIEW_COMPLETED,
        ),
    ),
    TransitionRule(
        name=TransitionName.REJECT,
        sources=_INTERVIEW_STATUSES,
        role=UserRole.DEPARTMENT_HEAD,
        target=ApplicationStatus.REJECTED,
        payload_model=RejectPayload,
        steps=_outcome_steps(
            AuditEventKind.REJECTED,
            "Rejected by {role}",
            ApplicationStatus.REJECTED,
        ),
        effect=_rejection_effect("Rejected after interview"),
    ),
    TransitionRule(
        name=TransitionName.CLEAR,
        sources=frozenset({ApplicationStatus.PENDING_SURVEILLANCE}),
        role=UserRole.SURVEILLANCE,
        target=ApplicationStatus.SURVEILLANCE_CLEARED,
        payload_model=SurveillancePayload,
        steps=_single(
            AuditEventKind.SURVEILLANCE_CLEARED,
            "Background Check Cleared",
            ApplicationStatus.SURVEILLANCE_CLEARED,
        ),
        effect=_surveillance_effect("Clear"),
    ),
    TransitionRule(
        name=TransitionName.FLAG,
        sources=frozenset({ApplicationStatus.PENDING_SURVEILLANCE}),
        role=UserRole.SURVEILLANCE,
        target=ApplicationStatus.SURVEILLANCE_FLAGGED,
        payload_model=SurveillancePayload,
        steps=_single(
            AuditEventKind.SURVEILLANCE_FLAGGED,
            "Background Check Flagged",
            ApplicationStatus.SURVEILLANCE_FLAGGED,
        ),
        effect=_surveillance_effect("Flagged"),
    ),
    TransitionRule(
        name=TransitionName.REJECT,
        sources=frozenset({ApplicationStatus.PENDING_SURVEILLANCE}),
        role=UserRole.SURVEILLANCE,
        target=ApplicationStatus.REJECTED,
        payload_model=RejectPayload,
        steps=lambda payload, actor: [
            AuditStep(
                AuditEventKind.REJECTED,
                f"Rejected by {actor.role.value}",
                ApplicationStatus.REJECTED,
            )
        ],
        effect=_rejection_effect("Rejected after background check"),
    ),
    TransitionRule(
        name=TransitionName.ACCEPT_OFFER,
        sources=frozenset({ApplicationStatus.SURVEILLANCE_CLEARED}),
        role=UserRole.ADMIN,
        target=ApplicationStatus.OFFER_ACCEPTED,
        payload_model=EmptyPayload,
        steps=_single(
            AuditEventKind.OFFER_ACCEPTED,
            "Offer Accepted",
            ApplicationStatus.OFFER_ACCEPTED,
        ),
    ),
    TransitionRule(
        name=TransitionName.SCHEDULE_JOINING,
        sources=frozenset({ApplicationStatus.OFFER_ACCEPTED}),
        role=UserRole.ADMIN,
        target=ApplicationStatus.JOINING_SCHEDULED,
        payload_model=EmptyPayload,
        steps=_single(
            AuditEventKind.JOINING_SCHEDULED,
            "Joining Scheduled",
            ApplicationStatus.JOINING_SCHEDULED,
        ),
    ),
    TransitionRule(
        name=TransitionName.MARK_JOINED,
        sources=frozenset({ApplicationStatus.JOINING_SCHEDULED}),
        role=UserRole.ADMIN,
        target=ApplicationStatus.JOINED,
        payload_model=EmptyPayload,
        steps=_single(
            AuditEventKind.JOINED,
            "Marked as Joined",
            ApplicationStatus.JOINED,
        ),
    ),
)


def format_validation_errors(exc: PydanticValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "payload"
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return messages


class LifecycleStateMachine:
    """Validate and apply role-gated transitions.

    ``apply`` never mutates its input: it returns a new snapshot with the
    status, sub-record and appended audit entries, or raises before any of
    them is produced.
    """

    def __init__(
        self,
        rules: tuple[TransitionRule, ...] = DEFAULT_RULES,
        *,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._rules = rules
        self._now_provider = now_provider or utc_now

    def find_rule(
        self,
        name: TransitionName,
        status: ApplicationStatus,
        role: UserRole,
    ) -> TransitionRule | None:
        for rule in self._rules:
            if rule.name is name and status in rule.sources and rule.role is role:
                return rule
        return None

    def available_actions(
        self,
        status: ApplicationStatus,
        role: UserRole,
    ) -> list[TransitionName]:
        actions: list[TransitionName] = []
        for rule in self._rules:
            if status in rule.sources and rule.role is role and rule.name not in actions:
                actions.append(rule.name)
        return actions

    def authorize(
        self,
        candidate: Candidate,
        transition: str | TransitionName,
        role: UserRole,
    ) -> TransitionRule:
        name = self.parse_name(transition)
        rule = self.find_rule(name, candidate.status, role)
        if rule is None:
            raise AuthorizationError(role.value, name.value, candidate.status.value)
        return rule

    @staticmethod
    def parse_name(transition: str | TransitionName) -> TransitionName:
        try:
            return TransitionName(transition)
        except ValueError as exc:
            raise ValidationError(f"Unknown transition: {transition!r}") from exc

    @staticmethod
    def parse_payload(rule: TransitionRule, payload: Mapping[str, Any] | BaseModel | None) -> BaseModel:
        if isinstance(payload, rule.payload_model):
            return payload
        if isinstance(payload, BaseModel):
            payload = payload.model_dump()
        try:
            return rule.payload_model.model_validate(dict(payload or {}))
        except PydanticValidationError as exc:
            raise ValidationError(format_validation_errors(exc)) from exc

    def apply(
        self,
        candidate: Candidate,
        transition: str | TransitionName,
        actor: Actor,
        payload: Mapping[str, Any] | BaseModel | None = None,
    ) -> TransitionResult:
        rule = self.authorize(candidate, transition, actor.role)
        parsed = self.parse_payload(rule, payload)

        steps = rule.steps(parsed, actor)
        stamps = issue_timestamps(candidate.history, len(steps), self._now_provider())
        entries = [
            AuditLog(
                id=new_entry_id(),
                timestamp=stamp,
                user=actor.name,
                role=actor.role,
                kind=step.kind,
                action=step.action,
                status=step.status,
            )
            for step, stamp in zip(steps, stamps)
        ]

        effect = rule.effect or _no_effect
        updates = effect(candidate, parsed, actor, stamps)
        updates["status"] = rule.target
        updates["history"] = [*candidate.history, *entries]
        return TransitionResult(
            candidate=candidate.model_copy(update=updates),
            entries=entries,
            rule=rule,
        )
