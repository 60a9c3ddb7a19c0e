from __future__ import annotations

import logging
from abc import abstractmethod
from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Literal, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from learnpath.data_models import Student

logger = logging.getLogger(__name__)


class ActivityType(str, Enum):
    """Stable tag identifying each activity variant."""

    RESOURCE_REVIEW = "resource_review"
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    SURVEY = "survey"
    OPEN_ENDED_EXAM = "open_ended_exam"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def requires_grading(self) -> bool:
        """Variants that stop at SUBMITTED until a teacher grades them."""
        return self in (ActivityType.ASSIGNMENT, ActivityType.OPEN_ENDED_EXAM)


class ActivityStatus(str, Enum):
    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ActivityStatus.COMPLETED, ActivityStatus.FAILED)


class Activity(BaseModel):
    """
    One unit of learner work inside a learning path.

    Identity is the ``(title, description)`` pair. Two activities with the same
    title and description are equal and hash equal even when their difficulty,
    duration, or mandatory flag differ. Progress records key their status maps
    by activity, and those records are reloaded independently of the learning
    paths they point at, so lookups have to work across distinct instances that
    share the same natural key.

    Subclasses fix the ``type`` tag and add their own completion contract.
    """

    type: str
    title: str = Field(min_length=1)
    description: str
    objective: str = ""
    difficulty_level: int = Field(ge=1, le=5)
    expected_duration: int = Field(gt=0, description="Minutes.")
    is_mandatory: bool = True
    deadline: Optional[datetime] = None

    @property
    def activity_type(self) -> ActivityType:
        return ActivityType(self.type)

    @property
    def key(self) -> Tuple[str, str]:
        """Natural key shared by every copy of this activity."""
        return (self.title, self.description)

    @abstractmethod
    def describe(self) -> str:
        """Return the variant-specific detail shown before the learner starts."""

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Activity):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


class ResourceReview(Activity):
    type: Literal["resource_review"] = "resource_review"
    resource_link: str

    def describe(self) -> str:
        return f"Resource: {self.resource_link}"

    def acknowledge(self) -> ActivityStatus:
        """Reviewing a resource completes it immediately."""
        return ActivityStatus.COMPLETED


class Assignment(Activity):
    type: Literal["assignment"] = "assignment"
    submission_instructions: str

    def describe(self) -> str:
        return f"Submission instructions: {self.submission_instructions}"

    def submit(self) -> ActivityStatus:
        """Hand-in moves the assignment to SUBMITTED; a teacher grade finishes it."""
        return ActivityStatus.SUBMITTED


class Question(BaseModel):
    """Multiple-choice item with exactly four options."""

    text: str
    options: List[str]
    correct_option_index: int = Field(ge=0, le=3)
    explanation: str = ""

    @field_validator("options")
    @classmethod
    def validate_options(cls, value: List[str]) -> List[str]:
        if len(value) != 4:
            raise ValueError("options must contain exactly four entries")
        return value


class QuizAnswerResult(BaseModel):
    """Feedback for a single submitted answer."""

    index: int
    is_correct: bool
    correct_index: int
    selected_index: Optional[int] = None
    explanation: str = ""


class QuizEvaluation(BaseModel):
    """Aggregate result of grading a quiz submission."""

    quiz_title: str
    total_questions: int
    correct_count: int
    score: float = Field(description="Percentage in [0, 100].")
    passing_score: float
    status: ActivityStatus
    answers: List[QuizAnswerResult]
    review_topics: List[str] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status is ActivityStatus.COMPLETED


class Quiz(Activity):
    type: Literal["quiz"] = "quiz"
    questions: List[Question]
    passing_score: float = Field(ge=0, le=100)

    @field_validator("questions")
    @classmethod
    def validate_questions(cls, value: List[Question]) -> List[Question]:
        # Grading divides by the question count.
        if not value:
            raise ValueError("quiz must include at least one question")
        return value

    def describe(self) -> str:
        return f"{len(self.questions)} questions, passing score {self.passing_score:.0f}%"

    def grade(self, answers: Sequence[int]) -> QuizEvaluation:
        """
        Self-grade a submission.

        Parameters
        ----------
        answers : Sequence[int]
            Zero-based option index selected for each question, in order.
            Indices outside the option range count as incorrect.

        Returns
        -------
        QuizEvaluation
            Score as a percentage. The status is COMPLETED when the score meets
            or exceeds ``passing_score`` (inclusive), FAILED otherwise.

        Raises
        ------
        ValueError
            If the number of answers does not match the number of questions.
        """
        submitted = list(answers)
        if len(submitted) != len(self.questions):
            raise ValueError("Answer count must match number of quiz questions.")

        results: List[QuizAnswerResult] = []
        review_topics: List[str] = []
        correct = 0
        for idx, (question, selected) in enumerate(zip(self.questions, submitted)):
            selected_index = selected if 0 <= selected < len(question.options) else None
            is_correct = selected_index == question.correct_option_index
            if is_correct:
                correct += 1
            else:
                review_topics.append(question.text)
            results.append(
                QuizAnswerResult(
                    index=idx,
                    is_correct=is_correct,
                    correct_index=question.correct_option_index,
                    selected_index=selected_index,
                    explanation=question.explanation,
                )
            )

        score = correct / len(self.questions) * 100
        status = ActivityStatus.COMPLETED if score >= self.passing_score else ActivityStatus.FAILED
        logger.debug("Graded quiz %s: score=%.2f status=%s", self.title, score, status.value)
        return QuizEvaluation(
            quiz_title=self.title,
            total_questions=len(self.questions),
            correct_count=correct,
            score=score,
            passing_score=self.passing_score,
            status=status,
            answers=results,
            review_topics=review_topics,
        )


class SurveyQuestion(BaseModel):
    text: str


class SurveyResponse(BaseModel):
    """One student's answers to a survey, in question order."""

    student: Student
    answers: List[str] = Field(default_factory=list)
    submitted_at: datetime = Field(default_factory=datetime.now)

    def add_answer(self, answer: str) -> None:
        self.answers.append(answer)


class Survey(Activity):
    type: Literal["survey"] = "survey"
    questions: List[SurveyQuestion] = Field(default_factory=list)
    responses: List[SurveyResponse] = Field(default_factory=list)

    def describe(self) -> str:
        return f"{len(self.questions)} survey questions"

    def add_survey_question(self, question: SurveyQuestion) -> None:
        self.questions.append(question)

    def build_response(self, student: Student, answers: Sequence[str]) -> SurveyResponse:
        if len(answers) != len(self.questions):
            raise ValueError("Answer count must match number of survey questions.")
        return SurveyResponse(student=student, answers=list(answers))

    def add_survey_response(self, response: SurveyResponse) -> None:
        self.responses.append(response)

    def completion_status(self) -> ActivityStatus:
        """Surveys are not graded; a submitted response completes them."""
        return ActivityStatus.COMPLETED


class OpenEndedQuestion(BaseModel):
    text: str


class OpenEndedResponse(BaseModel):
    """One student's answers to an exam, keyed by question text."""

    student: Student
    answers: Dict[str, str] = Field(default_factory=dict)
    submitted_at: datetime = Field(default_factory=datetime.now)

    def add_answer(self, question: str, answer: str) -> None:
        self.answers[question] = answer


class OpenEndedExam(Activity):
    type: Literal["open_ended_exam"] = "open_ended_exam"
    questions: List[OpenEndedQuestion] = Field(default_factory=list)
    responses: List[OpenEndedResponse] = Field(default_factory=list)

    def describe(self) -> str:
        return f"{len(self.questions)} open-ended questions"

    def add_exam_question(self, question: OpenEndedQuestion) -> None:
        self.questions.append(question)

    def build_response(self, student: Student, answers: Mapping[str, str]) -> OpenEndedResponse:
        missing = [q.text for q in self.questions if q.text not in answers]
        if missing:
            raise ValueError(f"Missing answers for: {', '.join(missing)}")
        response = OpenEndedResponse(student=student)
        for question in self.questions:
            response.add_answer(question.text, answers[question.text])
        return response

    def add_exam_response(self, response: OpenEndedResponse) -> None:
        self.responses.append(response)

    def completion_status(self) -> ActivityStatus:
        return ActivityStatus.SUBMITTED


AnyActivity = Annotated[
    Union[ResourceReview, Assignment, Quiz, Survey, OpenEndedExam],
    Field(discriminator="type"),
]

ACTIVITY_ADAPTER: TypeAdapter[Activity] = TypeAdapter(AnyActivity)
