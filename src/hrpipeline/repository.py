"""Candidate document stores."""

from __future__ import annotations

import json
import os
import uuid
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol, runtime_checkable

import structlog

from .errors import CandidateNotFoundError, ConcurrentModificationError, PersistenceError
from .schemas import Candidate

Listener = Callable[[list[Candidate]], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class CandidateRepository(Protocol):
    """Durable store for candidate snapshots, keyed by candidate id."""

    def get_all(self) -> list[Candidate]:
        """Return every stored candidate."""

    def get(self, candidate_id: str) -> Candidate:
        """Return one candidate; raise CandidateNotFoundError when absent."""

    def subscribe(self, on_change: Listener) -> Unsubscribe:
        """Register a callback receiving all candidates after each write."""

    def put(self, candidate_id: str, snapshot: Candidate) -> bool:
        """Replace a stored snapshot; return False when the write failed."""

    def create(self, snapshot: Candidate) -> str:
        """Store a new snapshot and return its freshly assigned id."""


class _DocumentRepository:
    """Shared bookkeeping: JSON documents, version checks and listeners."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}
        self._listeners: list[Listener] = []
        self._logger = structlog.get_logger(__name__)

    def get_all(self) -> list[Candidate]:
        return [Candidate.model_validate(doc) for doc in self._documents.values()]

    def get(self, candidate_id: str) -> Candidate:
        try:
            document = self._documents[candidate_id]
        except KeyError as exc:
            raise CandidateNotFoundError(candidate_id) from exc
        return Candidate.model_validate(document)

    def subscribe(self, on_change: Listener) -> Unsubscribe:
        self._listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def put(self, candidate_id: str, snapshot: Candidate) -> bool:
        stored = self._documents.get(candidate_id)
        if stored is None:
            raise CandidateNotFoundError(candidate_id)
        stored_version = int(stored.get("version", 0))
        if snapshot.version != stored_version + 1:
            raise ConcurrentModificationError(candidate_id, snapshot.version - 1, stored_version)

        document = snapshot.model_copy(update={"id": candidate_id}).model_dump(mode="json")
        previous = self._documents[candidate_id]
        self._documents[candidate_id] = document
        if not self._flush():
            self._documents[candidate_id] = previous
            return False
        self._notify()
        return True

    def create(self, snapshot: Candidate) -> str:
        candidate_id = uuid.uuid4().hex
        while candidate_id in self._documents:
            candidate_id = uuid.uuid4().hex
        self._documents[candidate_id] = snapshot.model_copy(
            update={"id": candidate_id}
        ).model_dump(mode="json")
        if not self._flush():
            del self._documents[candidate_id]
            raise PersistenceError(f"Could not store new candidate {candidate_id!r}")
        self._notify()
        return candidate_id

    def _flush(self) -> bool:
        return True

    def _notify(self) -> None:
        if not self._listeners:
            return
        candidates = self.get_all()
        for listener in list(self._listeners):
            try:
                listener(candidates)
            except Exception:
                self._logger.exception("repository.listener_failed")


class InMemoryCandidateRepository(_DocumentRepository):
    """Process-local store, mainly for tests and previews."""

    def __init__(self, candidates: Iterable[Candidate] = ()) -> None:
        super().__init__()
        for candidate in candidates:
            if not candidate.id:
                raise ValueError("Seeded candidates must carry an id.")
            self._documents[candidate.id] = candidate.model_dump(mode="json")


class JsonFileCandidateRepository(_DocumentRepository):
    """Single JSON document on disk, keyed by candidate id."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._documents = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise PersistenceError(f"Invalid candidate store {self._path}: {exc}") from exc
        candidates = data.get("candidates", {}) if isinstance(data, dict) else None
        if not isinstance(candidates, dict):
            raise PersistenceError(f"Candidate store {self._path} has no 'candidates' mapping")
        return candidates

    def _flush(self) -> bool:
        payload = {"candidates": self._documents}
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(payload, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp_path, self._path)
        except OSError as exc:
            self._logger.warning("repository.write_failed", path=str(self._path), error=str(exc))
            return False
        return True


__all__ = [
    "CandidateRepository",
    "InMemoryCandidateRepository",
    "JsonFileCandidateRepository",
]
