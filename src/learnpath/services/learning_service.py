"""Service layer driving learning path operations for an authenticated session.

The CLI (or any other front end) talks to ``LearningPathService`` only. Each
call takes an explicit ``SessionContext`` instead of reading a shared "current
user", checks the caller's role, applies the domain operation, and saves the
affected collections straight away.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from learnpath.data_models import Role, Student, Teacher, User, build_user
from learnpath.learning.activities import (
    Activity,
    ActivityStatus,
    ActivityType,
    Assignment,
    OpenEndedExam,
    OpenEndedResponse,
    Quiz,
    QuizEvaluation,
    ResourceReview,
    Survey,
    SurveyResponse,
)
from learnpath.learning.definitions import LearningPathDefinition
from learnpath.learning.path import LearningPath
from learnpath.learning.progress import Progress
from learnpath.storage import CollectionKind, CollectionStore
from learnpath.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """Authenticated caller, passed to every service operation."""

    user: User

    @property
    def is_teacher(self) -> bool:
        return isinstance(self.user, Teacher)

    @property
    def is_student(self) -> bool:
        return isinstance(self.user, Student)

    def require_teacher(self) -> Teacher:
        if not isinstance(self.user, Teacher):
            raise PermissionError(f"User '{self.user.username}' is not a teacher.")
        return self.user

    def require_student(self) -> Student:
        if not isinstance(self.user, Student):
            raise PermissionError(f"User '{self.user.username}' is not a student.")
        return self.user


class ActivityOutcome(BaseModel):
    """Result of a student attempting an activity."""

    activity_title: str
    accepted: bool
    status: ActivityStatus
    message: str
    evaluation: Optional[QuizEvaluation] = None


class LearningPathService:
    """
    Orchestrate users, learning paths, and progress records over a store.

    All three collections are loaded at construction and every progress record
    is rebound to the canonical user and learning path instances by natural
    key. Mutating calls save the collections they touched immediately; there
    is no batching and no cross-collection transaction.

    Recoverable rejections (duplicate username, duplicate activity, invalid
    rating, repeated survey answer, ...) come back as ``False``, ``None``, or
    a non-accepted ``ActivityOutcome``. Role violations raise
    ``PermissionError`` and unknown titles or usernames raise ``LookupError``.
    """

    def __init__(self, store: CollectionStore):
        self.store = store
        self.users: List[User] = store.load(CollectionKind.USERS)
        self.learning_paths: List[LearningPath] = store.load(CollectionKind.LEARNING_PATHS)
        self.progresses: List[Progress] = store.load(CollectionKind.PROGRESS_RECORDS)
        for progress in self.progresses:
            progress.rebind(self.learning_paths, self.users)
        self._handlers: Dict[ActivityType, Callable[[Progress, Any, Any], ActivityOutcome]] = {
            ActivityType.RESOURCE_REVIEW: self._review_resource,
            ActivityType.ASSIGNMENT: self._submit_assignment,
            ActivityType.QUIZ: self._take_quiz,
            ActivityType.SURVEY: self._answer_survey,
            ActivityType.OPEN_ENDED_EXAM: self._answer_exam,
        }
        logger.info(
            "collections_loaded",
            users=len(self.users),
            learning_paths=len(self.learning_paths),
            progress_records=len(self.progresses),
        )

    # Accounts

    def register(self, username: str, password: str, name: str, role: Role | str) -> bool:
        username = username.strip()
        if self.find_user(username) is not None:
            logger.warning("registration_rejected", username=username, reason="duplicate username")
            return False
        user = build_user(username, password, name, role)
        self.users.append(user)
        self._save(CollectionKind.USERS)
        logger.info("user_registered", username=username, role=user.role)
        return True

    def login(self, username: str, password: str) -> Optional[SessionContext]:
        user = self.find_user(username.strip())
        if user is None or not user.authenticate(password):
            logger.warning("login_failed", username=username)
            return None
        return SessionContext(user=user)

    def find_user(self, username: str) -> Optional[User]:
        return next((user for user in self.users if user.username == username), None)

    # Lookups

    def find_learning_path(self, title: str) -> LearningPath:
        lowered = title.strip().lower()
        for path in self.learning_paths:
            if path.title.lower() == lowered:
                return path
        raise LookupError(f"Learning path '{title}' not found.")

    def _find_activity(self, path: LearningPath, activity_title: str) -> Activity:
        activity = path.find_activity(activity_title)
        if activity is None:
            raise LookupError(f"Activity '{activity_title}' not found in '{path.title}'.")
        return activity

    def _owned_path(self, ctx: SessionContext, title: str) -> LearningPath:
        teacher = ctx.require_teacher()
        path = self.find_learning_path(title)
        if path.creator != teacher:
            raise PermissionError(f"'{path.title}' belongs to another teacher.")
        return path

    # Teacher operations

    def create_learning_path(
        self,
        ctx: SessionContext,
        title: str,
        description: str,
        objectives: str,
        difficulty_level: int,
        activities: Sequence[Activity] = (),
    ) -> Optional[LearningPath]:
        """Create and persist a new path; returns ``None`` if the title is taken."""
        ctx.require_teacher()
        definition = LearningPathDefinition(
            title=title,
            description=description,
            objectives=objectives,
            difficulty_level=difficulty_level,
            activities=list(activities),
        )
        return self.create_from_definition(ctx, definition)

    def create_from_definition(
        self, ctx: SessionContext, definition: LearningPathDefinition
    ) -> Optional[LearningPath]:
        teacher = ctx.require_teacher()
        path = definition.build(teacher)
        if path in self.learning_paths:
            logger.warning("learning_path_rejected", title=path.title, reason="duplicate title")
            return None
        self.learning_paths.append(path)
        self._save(CollectionKind.LEARNING_PATHS)
        logger.info(
            "learning_path_created",
            title=path.title,
            teacher=teacher.username,
            activities=len(path.activities),
        )
        return path

    def add_activity(self, ctx: SessionContext, path_title: str, activity: Activity) -> bool:
        path = self._owned_path(ctx, path_title)
        if not path.add_activity(activity):
            return False
        self._save(CollectionKind.LEARNING_PATHS)
        logger.info("activity_added", path=path.title, activity=activity.title, version=path.version)
        return True

    def remove_activity(self, ctx: SessionContext, path_title: str, activity_title: str) -> bool:
        path = self._owned_path(ctx, path_title)
        activity = path.find_activity(activity_title)
        if activity is None or not path.remove_activity(activity):
            return False
        self._save(CollectionKind.LEARNING_PATHS)
        logger.info("activity_removed", path=path.title, activity=activity.title, version=path.version)
        return True

    def enrolled_students(self, ctx: SessionContext, path_title: str) -> List[Student]:
        path = self._owned_path(ctx, path_title)
        return [p.student for p in self.progresses if p.learning_path == path]

    def survey_responses(
        self, ctx: SessionContext, path_title: str, survey_title: str
    ) -> List[SurveyResponse]:
        path = self._owned_path(ctx, path_title)
        survey = self._find_activity(path, survey_title)
        if not isinstance(survey, Survey):
            raise LookupError(f"'{survey.title}' is not a survey.")
        return list(survey.responses)

    def exam_responses(
        self, ctx: SessionContext, path_title: str, exam_title: str
    ) -> List[OpenEndedResponse]:
        path = self._owned_path(ctx, path_title)
        exam = self._find_activity(path, exam_title)
        if not isinstance(exam, OpenEndedExam):
            raise LookupError(f"'{exam.title}' is not an open-ended exam.")
        return list(exam.responses)

    def grade_activity(
        self,
        ctx: SessionContext,
        path_title: str,
        student_username: str,
        activity_title: str,
        passed: bool,
        comment: str = "",
    ) -> bool:
        path = self._owned_path(ctx, path_title)
        activity = self._find_activity(path, activity_title)
        progress = self._progress_for(student_username, path)
        if progress is None:
            raise LookupError(f"'{student_username}' is not enrolled in '{path.title}'.")
        if not progress.grade_activity(activity, passed, comment):
            logger.warning(
                "grade_rejected",
                path=path.title,
                activity=activity.title,
                student=student_username,
                status=progress.get_activity_status(activity).value,
            )
            return False
        self._save(CollectionKind.PROGRESS_RECORDS)
        logger.info(
            "activity_graded",
            path=path.title,
            activity=activity.title,
            student=student_username,
            passed=passed,
        )
        return True

    # Student operations

    def available_learning_paths(self, ctx: SessionContext) -> List[LearningPath]:
        """Paths the student has not enrolled in yet."""
        student = ctx.require_student()
        enrolled = {p.learning_path for p in self.progresses if p.student == student}
        return [path for path in self.learning_paths if path not in enrolled]

    def enroll(self, ctx: SessionContext, path_title: str) -> Optional[Progress]:
        student = ctx.require_student()
        path = self.find_learning_path(path_title)
        if self._progress_for(student.username, path) is not None:
            logger.warning("enrollment_rejected", student=student.username, path=path.title)
            return None
        progress = Progress(student=student, learning_path=path)
        self.progresses.append(progress)
        self._save(CollectionKind.PROGRESS_RECORDS)
        logger.info("student_enrolled", student=student.username, path=path.title)
        return progress

    def my_progress(self, ctx: SessionContext) -> List[Progress]:
        student = ctx.require_student()
        return [p for p in self.progresses if p.student == student]

    def get_progress(self, ctx: SessionContext, path_title: str) -> Progress:
        student = ctx.require_student()
        path = self.find_learning_path(path_title)
        progress = self._progress_for(student.username, path)
        if progress is None:
            raise LookupError(f"Not enrolled in '{path.title}'.")
        return progress

    def perform_activity(
        self,
        ctx: SessionContext,
        path_title: str,
        activity_title: str,
        submission: Any = None,
    ) -> ActivityOutcome:
        """
        Run the completion contract of one activity for the calling student.

        ``submission`` depends on the activity type: quiz answers as option
        indices, survey answers in question order, exam answers keyed by
        question text; resource reviews and assignments take nothing.
        Activities already COMPLETED or SUBMITTED are not redone; a FAILED
        quiz may be retaken.
        """
        progress = self.get_progress(ctx, path_title)
        activity = self._find_activity(progress.learning_path, activity_title)
        status = progress.get_activity_status(activity)
        if status in (ActivityStatus.COMPLETED, ActivityStatus.SUBMITTED):
            return ActivityOutcome(
                activity_title=activity.title,
                accepted=False,
                status=status,
                message="This activity has already been completed.",
            )
        outcome = self._handlers[activity.activity_type](progress, activity, submission)
        if outcome.accepted:
            logger.info(
                "activity_performed",
                student=progress.student.username,
                path=progress.learning_path.title,
                activity=activity.title,
                status=outcome.status.value,
                completion=progress.calculate_completion_percentage(),
            )
        return outcome

    def rate(self, ctx: SessionContext, path_title: str, rating: float) -> bool:
        self.get_progress(ctx, path_title)
        path = self.find_learning_path(path_title)
        if not path.update_rating(rating):
            return False
        self._save(CollectionKind.LEARNING_PATHS)
        return True

    def leave_feedback(self, ctx: SessionContext, path_title: str, text: str) -> bool:
        self.get_progress(ctx, path_title)
        path = self.find_learning_path(path_title)
        if not path.add_feedback(text):
            return False
        self._save(CollectionKind.LEARNING_PATHS)
        return True

    # Completion contracts, dispatched by activity type

    def _review_resource(
        self, progress: Progress, activity: ResourceReview, submission: Any
    ) -> ActivityOutcome:
        status = activity.acknowledge()
        progress.update_activity_status(activity, status)
        self._save(CollectionKind.PROGRESS_RECORDS)
        return ActivityOutcome(
            activity_title=activity.title,
            accepted=True,
            status=status,
            message="Activity marked as completed.",
        )

    def _submit_assignment(
        self, progress: Progress, activity: Assignment, submission: Any
    ) -> ActivityOutcome:
        status = activity.submit()
        progress.update_activity_status(activity, status)
        self._save(CollectionKind.PROGRESS_RECORDS)
        return ActivityOutcome(
            activity_title=activity.title,
            accepted=True,
            status=status,
            message="Assignment submitted. Awaiting teacher review.",
        )

    def _take_quiz(
        self, progress: Progress, activity: Quiz, submission: Optional[Sequence[int]]
    ) -> ActivityOutcome:
        evaluation = activity.grade(submission or [])
        progress.update_activity_status(activity, evaluation.status)
        self._save(CollectionKind.PROGRESS_RECORDS)
        message = (
            "Quiz passed." if evaluation.passed else "Minimum passing score not reached."
        )
        return ActivityOutcome(
            activity_title=activity.title,
            accepted=True,
            status=evaluation.status,
            message=f"Score {evaluation.score:.2f}%. {message}",
            evaluation=evaluation,
        )

    def _answer_survey(
        self, progress: Progress, activity: Survey, submission: Optional[Sequence[str]]
    ) -> ActivityOutcome:
        if progress.get_survey_response(activity) is not None:
            return ActivityOutcome(
                activity_title=activity.title,
                accepted=False,
                status=progress.get_activity_status(activity),
                message="You have already answered this survey.",
            )
        response = activity.build_response(progress.student, submission or [])
        progress.add_survey_response(activity, response)
        activity.add_survey_response(response)
        status = activity.completion_status()
        progress.update_activity_status(activity, status)
        self._save(CollectionKind.PROGRESS_RECORDS, CollectionKind.LEARNING_PATHS)
        return ActivityOutcome(
            activity_title=activity.title,
            accepted=True,
            status=status,
            message="Thank you for answering the survey.",
        )

    def _answer_exam(
        self, progress: Progress, activity: OpenEndedExam, submission: Optional[Mapping[str, str]]
    ) -> ActivityOutcome:
        if progress.get_exam_response(activity) is not None:
            return ActivityOutcome(
                activity_title=activity.title,
                accepted=False,
                status=progress.get_activity_status(activity),
                message="You have already answered this exam.",
            )
        response = activity.build_response(progress.student, submission or {})
        progress.add_exam_response(activity, response)
        activity.add_exam_response(response)
        status = activity.completion_status()
        progress.update_activity_status(activity, status)
        self._save(CollectionKind.PROGRESS_RECORDS, CollectionKind.LEARNING_PATHS)
        return ActivityOutcome(
            activity_title=activity.title,
            accepted=True,
            status=status,
            message="Exam submitted. Awaiting teacher review.",
        )

    # Persistence

    def _progress_for(self, username: str, path: LearningPath) -> Optional[Progress]:
        return next(
            (
                p for p in self.progresses
                if p.student.username == username and p.learning_path == path
            ),
            None,
        )

    def _save(self, *kinds: CollectionKind) -> bool:
        collections = {
            CollectionKind.USERS: self.users,
            CollectionKind.LEARNING_PATHS: self.learning_paths,
            CollectionKind.PROGRESS_RECORDS: self.progresses,
        }
        ok = True
        for kind in kinds:
            if not self.store.save(kind, collections[kind]):
                logger.error("save_failed", collection=kind.value)
                ok = False
        return ok
