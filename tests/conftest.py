"""Shared fixtures for the learning path tests."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from learnpath.data_models import Student, Teacher
from learnpath.learning import (
    Assignment,
    LearningPath,
    OpenEndedExam,
    OpenEndedQuestion,
    Question,
    Quiz,
    ResourceReview,
    Survey,
    SurveyQuestion,
)


@pytest.fixture
def temp_data_dir():
    """Create a temporary directory for collection storage."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def teacher():
    return Teacher(username="mrivera", password="secret", name="Maria Rivera")


@pytest.fixture
def student():
    return Student(username="jdoe", password="pw123", name="Jane Doe")


@pytest.fixture
def resource_review():
    return ResourceReview(
        title="Read the tutorial",
        description="Official tutorial, chapters 1-3",
        objective="Get familiar with syntax",
        difficulty_level=1,
        expected_duration=30,
        is_mandatory=True,
        resource_link="https://docs.python.org/3/tutorial/",
    )


@pytest.fixture
def assignment():
    return Assignment(
        title="First script",
        description="Write a script that prints a greeting",
        objective="Run Python code",
        difficulty_level=2,
        expected_duration=45,
        is_mandatory=True,
        submission_instructions="Upload hello.py",
    )


@pytest.fixture
def sample_quiz():
    return Quiz(
        title="Basics check",
        description="Syntax and types",
        objective="Confirm understanding",
        difficulty_level=2,
        expected_duration=10,
        is_mandatory=True,
        passing_score=50,
        questions=[
            Question(
                text="Which keyword defines a function?",
                options=["func", "def", "lambda", "fn"],
                correct_option_index=1,
                explanation="Functions are defined with def.",
            ),
            Question(
                text="What type does 3 / 2 return?",
                options=["int", "str", "float", "complex"],
                correct_option_index=2,
                explanation="True division always returns a float.",
            ),
        ],
    )


@pytest.fixture
def survey():
    return Survey(
        title="Course survey",
        description="Tell us how it went",
        objective="Collect feedback",
        difficulty_level=1,
        expected_duration=5,
        is_mandatory=False,
        questions=[
            SurveyQuestion(text="What did you enjoy most?"),
            SurveyQuestion(text="What should we improve?"),
        ],
    )


@pytest.fixture
def exam():
    return OpenEndedExam(
        title="Final exam",
        description="Explain core concepts",
        objective="Demonstrate understanding",
        difficulty_level=3,
        expected_duration=60,
        is_mandatory=True,
        questions=[
            OpenEndedQuestion(text="Explain mutability."),
            OpenEndedQuestion(text="When would you use a generator?"),
        ],
    )


@pytest.fixture
def learning_path(teacher):
    return LearningPath(
        title="Intro to Python",
        description="First steps with Python",
        objectives="Write small scripts",
        difficulty_level=2,
        creator=teacher,
    )


@pytest.fixture
def full_path(learning_path, resource_review, assignment, sample_quiz, survey, exam):
    for activity in (resource_review, assignment, sample_quiz, survey, exam):
        learning_path.add_activity(activity)
    return learning_path
