"""Error taxonomy for lifecycle operations.

Every error here is per-operation and recoverable by the caller; none of them
leave a candidate partially mutated.
"""

from __future__ import annotations


class LifecycleError(Exception):
    """Base class for all applicant lifecycle failures."""


class ValidationError(LifecycleError, ValueError):
    """Raised when required input is missing or out of range."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class AuthorizationError(LifecycleError, PermissionError):
    """Raised when a role may not perform an action from the current status."""

    def __init__(self, role: str, action: str, status: str | None = None):
        detail = f"{role} may not perform {action!r}"
        if status is not None:
            detail += f" while candidate is {status!r}"
        super().__init__(detail)
        self.role = role
        self.action = action
        self.status = status


class PersistenceError(LifecycleError, RuntimeError):
    """Raised when the repository failed to durably write a snapshot."""


class ConcurrentModificationError(PersistenceError):
    """Raised when a snapshot was written against a stale version."""

    def __init__(self, candidate_id: str, expected: int, actual: int):
        super().__init__(
            f"Candidate {candidate_id!r} changed concurrently "
            f"(expected version {expected}, stored version {actual})"
        )
        self.candidate_id = candidate_id
        self.expected = expected
        self.actual = actual


class CandidateNotFoundError(LifecycleError, KeyError):
    """Raised when no candidate exists under the given id."""

    def __init__(self, candidate_id: str):
        super().__init__(candidate_id)
        self.candidate_id = candidate_id

    def __str__(self) -> str:
        return f"Unknown candidate: {self.candidate_id!r}"


__all__ = [
    "LifecycleError",
    "ValidationError",
    "AuthorizationError",
    "PersistenceError",
    "ConcurrentModificationError",
    "CandidateNotFoundError",
]
