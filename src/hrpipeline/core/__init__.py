"""Core lifecycle engine components."""

from __future__ import annotations

from .changelog import (
    ROLE_WHITELISTS,
    ChangeLogGenerator,
    FieldChange,
    FieldDescriptor,
    editable_fields,
    format_path,
)
from .lifecycle import (
    LifecycleStateMachine,
    TransitionName,
    TransitionResult,
    TransitionRule,
)
from .ratings import RatingAggregator, composite_score
from .stages import StageResolution, StageResolver, StageView
from .timeline import implied_status, issue_timestamps, utc_now

__all__ = [
    "ChangeLogGenerator",
    "FieldChange",
    "FieldDescriptor",
    "LifecycleStateMachine",
    "ROLE_WHITELISTS",
    "RatingAggregator",
    "StageResolution",
    "StageResolver",
    "StageView",
    "TransitionName",
    "TransitionResult",
    "TransitionRule",
    "composite_score",
    "editable_fields",
    "format_path",
    "implied_status",
    "issue_timestamps",
    "utc_now",
]
