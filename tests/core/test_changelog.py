from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from hrpipeline.core import ROLE_WHITELISTS, ChangeLogGenerator, FieldDescriptor, format_path
from hrpipeline.core.changelog import editable_fields
from hrpipeline.schemas import (
    Actor,
    ApplicationStatus,
    AuditEventKind,
    Candidate,
    HRRating,
    Qualification,
    Ratings,
    UserRole,
)

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def build_candidate(**kwargs: Any) -> Candidate:
    defaults: dict[str, Any] = {
        "id": "cand-1",
        "full_name": "Rahul Menon",
        "dob": "1994-03-12",
        "vacancy": "Deck Cadet",
        "contact": {"phone": "+91 98470 00000"},
    }
    defaults.update(kwargs)
    return Candidate(**defaults)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("ratings.hr.interviewer", "Ratings Hr Interviewer"),
        ("contact.phone", "Contact Phone"),
        ("expected_salary", "Expected Salary"),
        ("workExperience", "Work Experience"),
    ],
)
def test_format_path(path: str, expected: str):
    assert format_path(path) == expected


def test_scalar_change_message_uses_formatted_path():
    original = build_candidate(address="")
    updated = build_candidate(address="Kochi")

    changes = ChangeLogGenerator().diff(original, updated, ROLE_WHITELISTS[UserRole.HR])

    assert [change.message for change in changes] == ['Address changed from "empty" to "Kochi".']
    assert changes[0].field == "address"
    assert changes[0].kind is AuditEventKind.FIELD_UPDATED


def test_boolean_change_message():
    original = build_candidate(accommodation_required=False)
    updated = build_candidate(accommodation_required=True)

    changes = ChangeLogGenerator().diff(original, updated, ROLE_WHITELISTS[UserRole.HR])

    assert changes[0].message == 'Accommodation Required set to "Yes".'


def test_list_change_message_is_generic():
    original = build_candidate()
    updated = build_candidate(qualifications=[Qualification(name="BSc Nautical Science")])

    changes = ChangeLogGenerator().diff(original, updated, ROLE_WHITELISTS[UserRole.HR])

    assert changes[0].message == "Qualifications was updated."


def test_integral_float_displayed_without_decimal():
    original = build_candidate(expected_salary=1200.0)
    updated = build_candidate(expected_salary=1500.0)

    changes = ChangeLogGenerator().diff(original, updated, ROLE_WHITELISTS[UserRole.DEPARTMENT_HEAD])

    assert changes[0].message == 'Expected Salary changed from "1200" to "1500".'


def test_diff_against_itself_is_empty_for_every_whitelist():
    candidate = build_candidate(
        ratings=Ratings(hr=HRRating(score=4.0, personality=4)),
        qualifications=[Qualification(name="Diploma")],
    )
    generator = ChangeLogGenerator()
    for whitelist in ROLE_WHITELISTS.values():
        assert generator.diff(candidate, candidate, whitelist) == []
        assert generator.diff(candidate, candidate.model_copy(deep=True), whitelist) == []


def test_fields_outside_whitelist_never_produce_entries():
    original = build_candidate()
    updated = original.model_copy(
        update={"status": ApplicationStatus.JOINED, "id": "other", "full_name": "Someone Else"}
    )

    changes = ChangeLogGenerator().diff(original, updated, ROLE_WHITELISTS[UserRole.DEPARTMENT_HEAD])

    assert changes == []


def test_missing_and_blank_values_are_not_a_change():
    original = build_candidate()
    updated = build_candidate(ratings=Ratings(hr=HRRating(interviewer="")))

    changes = ChangeLogGenerator().diff(original, updated, ROLE_WHITELISTS[UserRole.HR])

    assert all(change.field != "ratings.hr.interviewer" for change in changes)


def test_diff_is_repeatable():
    original = build_candidate(department="Deck")
    updated = build_candidate(department="Engine")
    generator = ChangeLogGenerator()
    whitelist = ROLE_WHITELISTS[UserRole.HR]

    assert generator.diff(original, updated, whitelist) == generator.diff(original, updated, whitelist)


def test_to_entries_stamps_actor_and_field():
    original = build_candidate(department="Deck", religion=None)
    updated = build_candidate(department="Engine", religion="Hindu")
    actor = Actor(name="Aparna", role=UserRole.HR)
    generator = ChangeLogGenerator()
    changes = generator.diff(original, updated, ROLE_WHITELISTS[UserRole.HR])
    stamps = [NOW + timedelta(microseconds=i) for i in range(len(changes))]

    entries = generator.to_entries(changes, actor, stamps)

    assert [entry.field for entry in entries] == ["religion", "department"]
    assert all(entry.user == "Aparna" and entry.role is UserRole.HR for entry in entries)
    assert all(entry.status is None for entry in entries)
    with pytest.raises(ValueError):
        generator.to_entries(changes, actor, stamps[:1])


def test_descriptor_set_creates_missing_parents():
    descriptor = FieldDescriptor("offer.salary")
    candidate = build_candidate()

    updated = descriptor.set(candidate, 2500.0)

    assert candidate.offer is None
    assert updated.offer is not None and updated.offer.salary == 2500.0
    assert descriptor.get(candidate) is None
    assert descriptor.set(candidate, None) is candidate


def test_unknown_descriptor_path_is_rejected():
    with pytest.raises(ValueError):
        FieldDescriptor("ratings.hr.charisma")


def test_editable_fields_exclude_derived_composite():
    paths = {descriptor.path for descriptor in editable_fields(UserRole.HR)}
    assert "ratings.hr.score" not in paths
    assert "ratings.hr.personality" in paths
    assert editable_fields(UserRole.SCHEDULER) == ()


def test_descriptor_set_blank_value_leaves_missing_parent():
    candidate = build_candidate()

    assert FieldDescriptor("ratings.hr.interviewer").set(candidate, "") is candidate
    assert FieldDescriptor("offer.accommodation_details").set(candidate, "").offer is None
