"""Applicant lifecycle service: the operations exposed to UI and CLI consumers."""

from __future__ import annotations

import uuid
from typing import Any, Mapping

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .core import (
    ROLE_WHITELISTS,
    ChangeLogGenerator,
    LifecycleStateMachine,
    RatingAggregator,
    StageResolution,
    StageResolver,
    TransitionName,
    editable_fields,
    issue_timestamps,
    utc_now,
)
from .core.lifecycle import format_validation_errors
from .core.timeline import NowProvider, new_entry_id
from .errors import (
    AuthorizationError,
    PersistenceError,
    ValidationError,
)
from .repository import CandidateRepository, Listener, Unsubscribe
from .schemas import (
    Actor,
    ApplicationStatus,
    AuditEventKind,
    AuditLog,
    Candidate,
    CandidateDraft,
    Comment,
    PreEmploymentTest,
    UserRole,
)

CREATOR_ROLES = frozenset({UserRole.HR, UserRole.CANDIDATE})
TEST_RECORDER_ROLES = frozenset({UserRole.HR, UserRole.CANDIDATE})


def deep_merge(base: dict[str, Any], changes: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``changes`` into a copy of ``base``; nested mappings merge, everything else replaces."""
    merged = dict(base)
    for key, value in changes.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class ApplicantService:
    """Compose the lifecycle engine with a candidate repository.

    Every write computes a complete new snapshot first and only then hands
    it to the repository; when the repository fails, the stored candidate is
    unchanged and the caller may retry.
    """

    def __init__(
        self,
        *,
        repository: CandidateRepository,
        state_machine: LifecycleStateMachine | None = None,
        changelog: ChangeLogGenerator | None = None,
        aggregator: RatingAggregator | None = None,
        stage_resolver: StageResolver | None = None,
        now_provider: NowProvider | None = None,
    ) -> None:
        self._repository = repository
        self._now_provider = now_provider or utc_now
        self._machine = state_machine or LifecycleStateMachine(now_provider=self._now_provider)
        self._changelog = changelog or ChangeLogGenerator()
        self._aggregator = aggregator or RatingAggregator()
        self._stages = stage_resolver or StageResolver()
        self._logger = structlog.get_logger(__name__)

    # queries

    def list_candidates(self) -> list[Candidate]:
        return self._repository.get_all()

    def get(self, candidate_id: str) -> Candidate:
        return self._repository.get(candidate_id)

    def subscribe(self, on_change: Listener) -> Unsubscribe:
        return self._repository.subscribe(on_change)

    def resolve_stage(self, candidate: Candidate) -> StageResolution:
        return self._stages.resolve(candidate)

    def available_actions(self, candidate: Candidate, role: UserRole) -> list[TransitionName]:
        return self._machine.available_actions(candidate.status, role)

    # commands

    def create_candidate(
        self,
        draft: CandidateDraft | Mapping[str, Any],
        actor: Actor,
    ) -> Candidate:
        if actor.role not in CREATOR_ROLES:
            self._logger.warning("candidate.create_denied", role=actor.role.value)
            raise AuthorizationError(actor.role.value, "create_candidate")

        draft = self._parse_draft(draft)
        missing = draft.missing_required()
        if missing:
            raise ValidationError([f"{name}: required" for name in missing])

        now = self._now_provider()
        user = draft.full_name if actor.role is UserRole.CANDIDATE else actor.name
        created = AuditLog(
            id=new_entry_id(),
            timestamp=now,
            user=user,
            role=actor.role,
            kind=AuditEventKind.CREATED,
            action="Application Created",
            status=ApplicationStatus.NEW,
        )
        snapshot = Candidate(
            **draft.candidate_fields(),
            status=ApplicationStatus.NEW,
            history=[created],
            created_at=now,
            version=1,
        )
        candidate_id = self._repository.create(snapshot)
        self._logger.info(
            "candidate.created",
            candidate_id=candidate_id,
            role=actor.role.value,
            vacancy=snapshot.vacancy,
        )
        return snapshot.model_copy(update={"id": candidate_id})

    def apply_transition(
        self,
        candidate_id: str,
        transition: str | TransitionName,
        actor: Actor,
        payload: Mapping[str, Any] | BaseModel | None = None,
    ) -> Candidate:
        current = self.get(candidate_id)
        try:
            result = self._machine.apply(current, transition, actor, payload)
        except AuthorizationError:
            self._logger.warning(
                "transition.denied",
                candidate_id=candidate_id,
                transition=str(transition),
                role=actor.role.value,
                status=current.status.value,
            )
            raise
        except ValidationError as exc:
            self._logger.warning(
                "transition.invalid",
                candidate_id=candidate_id,
                transition=str(transition),
                errors=exc.errors,
            )
            raise

        committed = self._commit(current, result.candidate)
        self._logger.info(
            "transition.applied",
            candidate_id=candidate_id,
            transition=result.rule.name.value,
            role=actor.role.value,
            from_status=current.status.value,
            to_status=committed.status.value,
            entries=len(result.entries),
        )
        return committed

    def apply_field_edits(
        self,
        candidate_id: str,
        actor: Actor,
        edited: Candidate | Mapping[str, Any],
    ) -> Candidate:
        current = self.get(candidate_id)
        whitelist = ROLE_WHITELISTS.get(actor.role)
        if not whitelist:
            raise AuthorizationError(actor.role.value, "edit_fields", current.status.value)

        edited_snapshot = self._parse_edit(current, edited)
        merged = current
        for descriptor in editable_fields(actor.role):
            merged = descriptor.set(merged, descriptor.get(edited_snapshot))
        merged = self._aggregator.apply(current, merged, actor.role)

        changes = self._changelog.diff(current, merged, whitelist)
        if not changes:
            self._logger.debug("fields.unchanged", candidate_id=candidate_id)
            return current

        stamps = issue_timestamps(current.history, len(changes), self._now_provider())
        entries = self._changelog.to_entries(changes, actor, stamps)
        updated = merged.model_copy(update={"history": [*current.history, *entries]})
        committed = self._commit(current, updated)
        self._logger.info(
            "fields.updated",
            candidate_id=candidate_id,
            role=actor.role.value,
            fields=[change.field for change in changes],
        )
        return committed

    def add_comment(
        self,
        candidate_id: str,
        actor: Actor,
        text: str,
        *,
        emp_id: str | None = None,
    ) -> Candidate:
        text = (text or "").strip()
        if not text:
            raise ValidationError("comment: required")
        current = self.get(candidate_id)
        comment = Comment(
            id=f"cmt_{uuid.uuid4().hex}",
            timestamp=self._now_provider(),
            user=actor.name,
            emp_id=emp_id or actor.emp_id,
            comment=text,
            role=actor.role,
        )
        updated = current.model_copy(update={"comments": [*current.comments, comment]})
        committed = self._commit(current, updated)
        self._logger.info("comment.added", candidate_id=candidate_id, role=actor.role.value)
        return committed

    def record_test_result(
        self,
        candidate_id: str,
        actor: Actor,
        score: int,
        answers: Mapping[str, str] | None = None,
    ) -> Candidate:
        current = self.get(candidate_id)
        if actor.role not in TEST_RECORDER_ROLES:
            raise AuthorizationError(actor.role.value, "record_test_result", current.status.value)
        if current.pre_employment_test is not None:
            raise ValidationError("pre_employment_test: already recorded")
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise ValidationError("score: must be a non-negative integer")

        (stamp,) = issue_timestamps(current.history, 1, self._now_provider())
        user = current.full_name if actor.role is UserRole.CANDIDATE else actor.name
        entry = AuditLog(
            id=new_entry_id(),
            timestamp=stamp,
            user=user,
            role=actor.role,
            kind=AuditEventKind.TEST_COMPLETED,
            action=f"Pre-Employment Test Completed (Score: {score})",
        )
        result = PreEmploymentTest(score=score, answers=dict(answers or {}), completed_at=stamp)
        updated = current.model_copy(
            update={
                "pre_employment_test": result,
                "history": [*current.history, entry],
            }
        )
        committed = self._commit(current, updated)
        self._logger.info("test.recorded", candidate_id=candidate_id, score=score)
        return committed

    # helpers

    def _commit(self, current: Candidate, updated: Candidate) -> Candidate:
        snapshot = updated.model_copy(update={"version": current.version + 1})
        if not self._repository.put(current.id, snapshot):
            self._logger.error("candidate.persist_failed", candidate_id=current.id)
            raise PersistenceError(f"Could not persist candidate {current.id!r}")
        return snapshot

    @staticmethod
    def _parse_draft(draft: CandidateDraft | Mapping[str, Any]) -> CandidateDraft:
        if isinstance(draft, CandidateDraft):
            return draft
        try:
            return CandidateDraft.model_validate(dict(draft))
        except PydanticValidationError as exc:
            raise ValidationError(format_validation_errors(exc)) from exc

    @staticmethod
    def _parse_edit(current: Candidate, edited: Candidate | Mapping[str, Any]) -> Candidate:
        if isinstance(edited, Candidate):
            return edited
        merged = deep_merge(current.model_dump(mode="python"), edited)
        try:
            return Candidate.model_validate(merged)
        except PydanticValidationError as exc:
            raise ValidationError(format_validation_errors(exc)) from exc
