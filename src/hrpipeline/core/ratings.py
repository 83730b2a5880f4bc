"""HR composite rating derivation."""

from __future__ import annotations

from ..schemas import Candidate, HRRating, UserRole

SUB_SCORE_FIELDS: tuple[str, ...] = (
    "personality",
    "attitude",
    "presentable",
    "communication",
    "confidence",
)
MIN_SUB_SCORE = 1
MAX_SUB_SCORE = 5


def composite_score(rating: HRRating | None) -> float:
    """Mean of the in-range sub-scores, rounded to one decimal; 0 when none."""
    if rating is None:
        return 0.0
    values = [
        value
        for value in (getattr(rating, name) for name in SUB_SCORE_FIELDS)
        if _in_range(value)
    ]
    if not values:
        return 0.0
    return round(sum(values) / len(values), 1)


def _in_range(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_SUB_SCORE <= value <= MAX_SUB_SCORE


def _is_unrated(rating: HRRating) -> bool:
    return all(value is None for value in _sub_scores(rating)) and not (
        rating.interviewer or rating.evaluation
    )


def _sub_scores(rating: HRRating | None) -> tuple[int | None, ...]:
    if rating is None:
        return (None,) * len(SUB_SCORE_FIELDS)
    return tuple(getattr(rating, name) for name in SUB_SCORE_FIELDS)


class RatingAggregator:
    """Recompute HR's composite score whenever HR changes a sub-score.

    The composite is never taken from input: when the sub-scores did not
    change, the previously derived value is kept.
    """

    def apply(
        self,
        original: Candidate,
        updated: Candidate,
        role: UserRole,
    ) -> Candidate:
        original_hr = original.ratings.hr
        updated_hr = updated.ratings.hr

        if role is not UserRole.HR:
            if updated_hr == original_hr:
                return updated
            return _with_hr_rating(updated, original_hr)

        if updated_hr is None:
            return updated
        if original_hr is None and _is_unrated(updated_hr):
            return _with_hr_rating(updated, None)

        if original_hr is None or _sub_scores(updated_hr) != _sub_scores(original_hr):
            score = composite_score(updated_hr)
        else:
            score = original_hr.score

        if updated_hr.score == score:
            return updated
        return _with_hr_rating(updated, updated_hr.model_copy(update={"score": score}))


def _with_hr_rating(candidate: Candidate, rating: HRRating | None) -> Candidate:
    ratings = candidate.ratings.model_copy(update={"hr": rating})
    return candidate.model_copy(update={"ratings": ratings})
