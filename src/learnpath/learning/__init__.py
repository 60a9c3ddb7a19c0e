from .activities import (
    ACTIVITY_ADAPTER,
    Activity,
    ActivityStatus,
    ActivityType,
    AnyActivity,
    Assignment,
    OpenEndedExam,
    OpenEndedQuestion,
    OpenEndedResponse,
    Question,
    Quiz,
    QuizEvaluation,
    ResourceReview,
    Survey,
    SurveyQuestion,
    SurveyResponse,
)
from .path import LearningPath
from .progress import Grade, Progress

__all__ = [
    "ACTIVITY_ADAPTER",
    "Activity",
    "ActivityStatus",
    "ActivityType",
    "AnyActivity",
    "Assignment",
    "Grade",
    "LearningPath",
    "OpenEndedExam",
    "OpenEndedQuestion",
    "OpenEndedResponse",
    "Progress",
    "Question",
    "Quiz",
    "QuizEvaluation",
    "ResourceReview",
    "Survey",
    "SurveyQuestion",
    "SurveyResponse",
]
