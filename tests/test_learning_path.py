"""Tests for LearningPath versioning, duration, rating, and feedback."""

from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from learnpath.learning import ActivityType, LearningPath


def _version_tuple(version: str):
    major, minor = version.split(".")
    return int(major), int(minor)


@pytest.mark.parametrize("level", [0, 6, -1])
def test_invalid_difficulty_fails(teacher, level):
    with pytest.raises(ValidationError):
        LearningPath(
            title="Broken",
            description="",
            objectives="",
            difficulty_level=level,
            creator=teacher,
        )


@pytest.mark.parametrize("level", [1, 5])
def test_boundary_difficulty_is_kept(teacher, level):
    path = LearningPath(
        title="Edge", description="", objectives="", difficulty_level=level, creator=teacher
    )
    assert path.difficulty_level == level


def test_new_path_defaults(learning_path):
    assert learning_path.version == "1.0"
    assert learning_path.duration == 0
    assert learning_path.rating == 0.0
    assert learning_path.activities == []
    assert learning_path.feedback == []


def test_add_then_remove_restores_duration_and_bumps_version(learning_path, resource_review, assignment):
    learning_path.add_activity(resource_review)
    before_duration = learning_path.duration
    before_count = len(learning_path.activities)
    versions = [learning_path.version]

    assert learning_path.add_activity(assignment)
    versions.append(learning_path.version)
    assert learning_path.duration == before_duration + assignment.expected_duration

    assert learning_path.remove_activity(assignment)
    versions.append(learning_path.version)

    assert learning_path.duration == before_duration
    assert len(learning_path.activities) == before_count
    parsed = [_version_tuple(v) for v in versions]
    assert parsed == sorted(parsed)
    assert len(set(parsed)) == len(parsed)
    assert versions == ["1.1", "1.2", "1.3"]


def test_duplicate_add_is_rejected_without_mutation(learning_path, resource_review):
    learning_path.add_activity(resource_review)
    version = learning_path.version
    modified = learning_path.modification_date

    twin = resource_review.model_copy(update={"expected_duration": 999, "is_mandatory": False})
    assert not learning_path.add_activity(twin)

    assert len(learning_path.activities) == 1
    assert learning_path.duration == resource_review.expected_duration
    assert learning_path.version == version
    assert learning_path.modification_date == modified


def test_second_activity_with_same_title_is_rejected(learning_path, assignment):
    learning_path.add_activity(assignment)
    variant = assignment.model_copy(update={"title": "FIRST SCRIPT", "description": "Part B"})

    assert not learning_path.add_activity(variant)
    assert learning_path.activities == [assignment]
    assert learning_path.find_activity("first script").description == assignment.description


def test_removing_absent_activity_is_rejected(learning_path, assignment):
    assert not learning_path.remove_activity(assignment)
    assert learning_path.version == "1.0"


def test_duration_tracks_sum_of_activities(full_path):
    expected = sum(a.expected_duration for a in full_path.activities)
    assert full_path.duration == expected == full_path.recalculate_duration()
    assert full_path.model_dump()["duration"] == expected


def test_minor_version_grows_past_nine(learning_path):
    learning_path.version = "2.9"
    assert learning_path.increment_version() == "2.10"
    for _ in range(95):
        learning_path.increment_version()
    assert learning_path.version == "2.105"


def test_rating_uses_half_weight_blend(learning_path):
    assert learning_path.update_rating(4.0)
    assert learning_path.rating == 2.0
    assert learning_path.update_rating(2.0)
    assert learning_path.rating == 2.0


@pytest.mark.parametrize("rating", [-0.1, 5.1, 10, float("nan")])
def test_rating_out_of_range_is_rejected(learning_path, rating):
    assert not learning_path.update_rating(rating)
    assert learning_path.rating == 0.0


def test_rating_does_not_change_version(learning_path):
    learning_path.update_rating(5.0)
    assert learning_path.version == "1.0"


def test_feedback_is_trimmed_and_versioned(learning_path):
    assert learning_path.add_feedback("  Great pacing!  ")
    assert learning_path.feedback == ["Great pacing!"]
    assert learning_path.version == "1.1"


@pytest.mark.parametrize("text", [None, "", "   "])
def test_blank_feedback_is_ignored(learning_path, text):
    assert not learning_path.add_feedback(text)
    assert learning_path.feedback == []
    assert learning_path.version == "1.0"


def test_creation_date_is_immutable(learning_path):
    with pytest.raises(ValidationError):
        learning_path.creation_date = datetime(2000, 1, 1)


def test_title_equality_ignores_case(learning_path, teacher):
    other = LearningPath(
        title="INTRO TO PYTHON",
        description="Different",
        objectives="Different",
        difficulty_level=5,
        creator=teacher,
    )
    assert other == learning_path
    assert hash(other) == hash(learning_path)


def test_lookups(full_path):
    assert full_path.find_activity("basics CHECK").title == "Basics check"
    assert full_path.find_activity("missing") is None
    surveys = full_path.activities_of_type(ActivityType.SURVEY)
    assert [s.title for s in surveys] == ["Course survey"]
    assert all(a.is_mandatory for a in full_path.mandatory_activities())
    assert len(full_path.mandatory_activities()) == 4
