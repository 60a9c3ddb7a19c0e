"""Tests for the activity variants and their completion contracts."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from learnpath.learning import (
    ACTIVITY_ADAPTER,
    ActivityStatus,
    ActivityType,
    Assignment,
    Question,
    Quiz,
    ResourceReview,
)


def test_identity_ignores_everything_but_title_and_description():
    first = Assignment(
        title="Essay",
        description="Write about recursion",
        difficulty_level=1,
        expected_duration=20,
        is_mandatory=True,
        submission_instructions="PDF only",
    )
    second = Assignment(
        title="Essay",
        description="Write about recursion",
        difficulty_level=5,
        expected_duration=90,
        is_mandatory=False,
        submission_instructions="Any format",
    )

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


def test_different_description_is_a_different_activity(assignment):
    other = assignment.model_copy(update={"description": "Something else"})
    assert other != assignment


def test_equality_spans_variants(resource_review):
    assignment = Assignment(
        title=resource_review.title,
        description=resource_review.description,
        difficulty_level=3,
        expected_duration=15,
        submission_instructions="n/a",
    )
    assert assignment == resource_review


@pytest.mark.parametrize("level", [0, 6, -1])
def test_activity_rejects_out_of_range_difficulty(level):
    with pytest.raises(ValidationError):
        ResourceReview(
            title="Video",
            description="Lecture",
            difficulty_level=level,
            expected_duration=10,
            resource_link="https://example.org",
        )


def test_activity_rejects_non_positive_duration():
    with pytest.raises(ValidationError):
        ResourceReview(
            title="Video",
            description="Lecture",
            difficulty_level=2,
            expected_duration=0,
            resource_link="https://example.org",
        )


def test_type_tags(resource_review, assignment, sample_quiz, survey, exam):
    assert resource_review.activity_type is ActivityType.RESOURCE_REVIEW
    assert assignment.activity_type is ActivityType.ASSIGNMENT
    assert sample_quiz.activity_type is ActivityType.QUIZ
    assert survey.activity_type is ActivityType.SURVEY
    assert exam.activity_type is ActivityType.OPEN_ENDED_EXAM
    assert ActivityType.ASSIGNMENT.requires_grading
    assert ActivityType.OPEN_ENDED_EXAM.requires_grading
    assert not ActivityType.QUIZ.requires_grading


def test_resource_review_and_assignment_contracts(resource_review, assignment):
    assert resource_review.acknowledge() is ActivityStatus.COMPLETED
    assert assignment.submit() is ActivityStatus.SUBMITTED
    assert "docs.python.org" in resource_review.describe()
    assert "hello.py" in assignment.describe()


def test_quiz_passing_boundary_is_inclusive(sample_quiz):
    evaluation = sample_quiz.grade([1, 0])

    assert evaluation.correct_count == 1
    assert evaluation.score == 50.0
    assert evaluation.status is ActivityStatus.COMPLETED
    assert evaluation.passed
    assert evaluation.review_topics == ["What type does 3 / 2 return?"]


def test_quiz_below_passing_score_fails(sample_quiz):
    evaluation = sample_quiz.grade([0, 0])

    assert evaluation.score == 0.0
    assert evaluation.status is ActivityStatus.FAILED
    assert [a.explanation for a in evaluation.answers if not a.is_correct] == [
        "Functions are defined with def.",
        "True division always returns a float.",
    ]


def test_quiz_out_of_range_selection_counts_as_wrong(sample_quiz):
    evaluation = sample_quiz.grade([1, 7])

    assert evaluation.answers[1].selected_index is None
    assert evaluation.correct_count == 1


def test_quiz_answer_count_must_match(sample_quiz):
    with pytest.raises(ValueError):
        sample_quiz.grade([1])


def test_empty_quiz_is_rejected():
    with pytest.raises(ValidationError):
        Quiz(
            title="Empty",
            description="No questions",
            difficulty_level=1,
            expected_duration=5,
            passing_score=50,
            questions=[],
        )


def test_question_needs_four_options():
    with pytest.raises(ValidationError):
        Question(text="Pick one", options=["a", "b", "c"], correct_option_index=0)


def test_passing_score_bounds(sample_quiz):
    with pytest.raises(ValidationError):
        Quiz(
            title="Too strict",
            description="Impossible",
            difficulty_level=1,
            expected_duration=5,
            passing_score=101,
            questions=sample_quiz.questions,
        )


def test_survey_response_must_answer_each_question(survey, student):
    response = survey.build_response(student, ["The exercises", "More examples"])
    assert response.answers == ["The exercises", "More examples"]
    assert survey.completion_status() is ActivityStatus.COMPLETED

    with pytest.raises(ValueError):
        survey.build_response(student, ["Only one"])


def test_exam_response_keyed_by_question(exam, student):
    answers = {
        "Explain mutability.": "Objects that can change in place.",
        "When would you use a generator?": "For lazy sequences.",
    }
    response = exam.build_response(student, answers)

    assert response.answers == answers
    assert exam.completion_status() is ActivityStatus.SUBMITTED

    with pytest.raises(ValueError):
        exam.build_response(student, {"Explain mutability.": "..."})


def test_adapter_restores_concrete_variant(sample_quiz):
    restored = ACTIVITY_ADAPTER.validate_python(sample_quiz.model_dump(mode="json"))

    assert isinstance(restored, Quiz)
    assert restored == sample_quiz
    assert restored.questions[1].correct_option_index == 2
