"""Field descriptors and the audit change-log generator."""

from __future__ import annotations

import re
import types
import typing
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Sequence

from pydantic import BaseModel

from ..schemas import Actor, AuditEventKind, AuditLog, Candidate, UserRole
from .timeline import new_entry_id

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_WORD_SPLIT_RE = re.compile(r"[._\s]+")


def format_path(path: str) -> str:
    """Turn ``ratings.hr.interviewer`` into ``Ratings Hr Interviewer``."""
    words: list[str] = []
    for chunk in _WORD_SPLIT_RE.split(path):
        words.extend(part for part in _CAMEL_BOUNDARY_RE.split(chunk) if part)
    return " ".join(word.capitalize() for word in words)


def _nested_model(annotation: Any) -> type[BaseModel] | None:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    if isinstance(annotation, types.UnionType) or typing.get_origin(annotation) is typing.Union:
        for arg in typing.get_args(annotation):
            model = _nested_model(arg)
            if model is not None:
                return model
    return None


def _resolve_models(root: type[BaseModel], segments: Sequence[str]) -> tuple[type[BaseModel], ...]:
    """Return the model owning each segment; raise if the path does not exist."""
    owners: list[type[BaseModel]] = []
    model: type[BaseModel] | None = root
    for position, segment in enumerate(segments):
        if model is None or segment not in model.model_fields:
            raise ValueError(f"Unknown field path: {'.'.join(segments)!r}")
        owners.append(model)
        if position < len(segments) - 1:
            model = _nested_model(model.model_fields[segment].annotation)
    return tuple(owners)


@dataclass(frozen=True)
class FieldDescriptor:
    """Typed accessor/mutator pair for one editable candidate field."""

    path: str
    kind: AuditEventKind = AuditEventKind.FIELD_UPDATED
    derived: bool = False
    label: str = ""
    segments: tuple[str, ...] = field(init=False)
    owners: tuple[type[BaseModel], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        segments = tuple(self.path.split("."))
        object.__setattr__(self, "segments", segments)
        object.__setattr__(self, "owners", _resolve_models(Candidate, segments))
        if not self.label:
            object.__setattr__(self, "label", format_path(self.path))

    def get(self, candidate: Candidate) -> Any:
        value: Any = candidate
        for segment in self.segments:
            if value is None:
                return None
            value = getattr(value, segment)
        return value

    def set(self, candidate: Candidate, value: Any) -> Candidate:
        """Return a copy of ``candidate`` with ``value`` written at this path."""
        return self._set(candidate, 0, value)

    def _set(self, obj: BaseModel, depth: int, value: Any) -> BaseModel:
        segment = self.segments[depth]
        if depth == len(self.segments) - 1:
            if getattr(obj, segment) == value:
                return obj
            return obj.model_copy(update={segment: value})
        child = getattr(obj, segment)
        if child is None:
            if _is_blank(value):
                return obj
            child = self.owners[depth + 1]()
        return obj.model_copy(update={segment: self._set(child, depth + 1, value)})


def _descriptors(kind: AuditEventKind, *paths: str) -> tuple[FieldDescriptor, ...]:
    return tuple(FieldDescriptor(path, kind=kind) for path in paths)


PERSONAL_FIELDS = _descriptors(
    AuditEventKind.FIELD_UPDATED,
    "full_name",
    "dob",
    "age",
    "contact.phone",
    "contact.email",
    "emergency_contact.name",
    "emergency_contact.phone",
    "address",
    "medical_conditions",
    "religion",
    "marital_status",
    "employee_id",
)

QUALIFICATION_FIELDS = _descriptors(
    AuditEventKind.FIELD_UPDATED,
    "total_work_experience",
    "qualifications",
    "work_experience",
    "languages_known",
    "references",
)

JOB_FIELDS = _descriptors(
    AuditEventKind.FIELD_UPDATED,
    "vacancy",
    "position_offered",
    "department",
    "expected_salary",
    "accommodation_required",
    "transport_required",
)

OFFER_FIELDS = _descriptors(
    AuditEventKind.FIELD_UPDATED,
    "offer.salary",
    "offer.joining_date",
    "offer.accommodation_details",
)

HR_RATING_FIELDS = _descriptors(
    AuditEventKind.RATING_UPDATED,
    "ratings.hr.interviewer",
    "ratings.hr.personality",
    "ratings.hr.attitude",
    "ratings.hr.presentable",
    "ratings.hr.communication",
    "ratings.hr.confidence",
    "ratings.hr.evaluation",
) + (FieldDescriptor("ratings.hr.score", kind=AuditEventKind.RATING_UPDATED, derived=True),)

MANAGER_RATING_FIELDS = _descriptors(
    AuditEventKind.RATING_UPDATED,
    "ratings.manager.score",
    "ratings.cm.score",
    "ratings.department.interviewer",
)

ROLE_WHITELISTS: dict[UserRole, tuple[FieldDescriptor, ...]] = {
    UserRole.HR: PERSONAL_FIELDS + QUALIFICATION_FIELDS + JOB_FIELDS + OFFER_FIELDS + HR_RATING_FIELDS,
    UserRole.DEPARTMENT_HEAD: JOB_FIELDS + MANAGER_RATING_FIELDS,
}


@dataclass(frozen=True, slots=True)
class FieldChange:
    """One detected difference between two snapshots."""

    field: str
    kind: AuditEventKind
    message: str
    old: Any = None
    new: Any = None


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="python")
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    return value


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _display(value: Any) -> str:
    if _is_blank(value):
        return "empty"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value
    return str(value)


def describe_change(label: str, old: Any, new: Any) -> str:
    if isinstance(old, bool) and isinstance(new, bool):
        return f'{label} set to "{"Yes" if new else "No"}".'
    if isinstance(old, (list, tuple)) or isinstance(new, (list, tuple)):
        return f"{label} was updated."
    return f'{label} changed from "{_display(old)}" to "{_display(new)}".'


class ChangeLogGenerator:
    """Diff two candidate snapshots over a whitelist of field descriptors.

    The diff is pure; only whitelisted fields are inspected, so system
    fields such as ``id``, ``status`` or ``history`` never produce entries.
    """

    def diff(
        self,
        original: Candidate,
        updated: Candidate,
        whitelist: Iterable[FieldDescriptor],
    ) -> list[FieldChange]:
        changes: list[FieldChange] = []
        for descriptor in whitelist:
            old = _normalize(descriptor.get(original))
            new = _normalize(descriptor.get(updated))
            if old == new or (_is_blank(old) and _is_blank(new)):
                continue
            changes.append(
                FieldChange(
                    field=descriptor.path,
                    kind=descriptor.kind,
                    message=describe_change(descriptor.label, old, new),
                    old=old,
                    new=new,
                )
            )
        return changes

    @staticmethod
    def to_entries(
        changes: Sequence[FieldChange],
        actor: Actor,
        timestamps: Sequence[datetime],
    ) -> list[AuditLog]:
        if len(timestamps) != len(changes):
            raise ValueError("One timestamp is required per change.")
        return [
            AuditLog(
                id=new_entry_id(),
                timestamp=timestamp,
                user=actor.name,
                role=actor.role,
                kind=change.kind,
                action=change.message,
                field=change.field,
            )
            for change, timestamp in zip(changes, timestamps)
        ]


def editable_fields(role: UserRole) -> tuple[FieldDescriptor, ...]:
    return tuple(d for d in ROLE_WHITELISTS.get(role, ()) if not d.derived)
