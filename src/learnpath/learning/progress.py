from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

from learnpath.data_models import Student, User
from learnpath.learning.activities import (
    ACTIVITY_ADAPTER,
    Activity,
    ActivityStatus,
    OpenEndedResponse,
    SurveyResponse,
)
from learnpath.learning.path import LearningPath

logger = logging.getLogger(__name__)

_ACTIVITY_MAPS = ("activity_statuses", "survey_responses", "exam_responses", "grades")


class Grade(BaseModel):
    """Teacher verdict on a submitted assignment or open-ended exam."""

    passed: bool
    comment: str = ""
    graded_at: datetime = Field(default_factory=datetime.now)


class Progress(BaseModel):
    """
    A student's record for one learning path.

    Construction seeds a PENDING status for every activity the path holds at
    that moment. Activities added to the path later are not copied in; their
    status reads as PENDING until something is recorded for them.

    ``completion_date`` is stamped once, the first time every mandatory
    activity on the path is COMPLETED, and is never cleared afterwards.

    Persistence Format
    ------------------
    The activity-keyed maps are serialized as lists of ``{"activity", "value"}``
    entries because JSON objects only take string keys. The embedded student
    and learning path are snapshots; call ``rebind`` after loading to point
    them back at the canonical instances from the other collections.
    """

    student: Student
    learning_path: LearningPath
    start_date: datetime = Field(default_factory=datetime.now)
    completion_date: Optional[datetime] = None
    activity_statuses: Dict[Activity, ActivityStatus] = Field(default_factory=dict)
    survey_responses: Dict[Activity, SurveyResponse] = Field(default_factory=dict)
    exam_responses: Dict[Activity, OpenEndedResponse] = Field(default_factory=dict)
    grades: Dict[Activity, Grade] = Field(default_factory=dict)

    @field_validator(*_ACTIVITY_MAPS, mode="before")
    @classmethod
    def _entries_to_mapping(cls, value: Any) -> Any:
        if isinstance(value, list):
            return {
                ACTIVITY_ADAPTER.validate_python(entry["activity"]): entry["value"]
                for entry in value
            }
        return value

    @field_serializer(*_ACTIVITY_MAPS)
    def _mapping_to_entries(self, value: Dict[Activity, Any]) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        for activity, item in value.items():
            if isinstance(item, BaseModel):
                item = item.model_dump(mode="json")
            elif isinstance(item, Enum):
                item = item.value
            entries.append({"activity": activity.model_dump(mode="json"), "value": item})
        return entries

    @model_validator(mode="after")
    def _seed_statuses(self) -> "Progress":
        if "activity_statuses" not in self.model_fields_set:
            for activity in self.learning_path.activities:
                self.activity_statuses[activity] = ActivityStatus.PENDING
        return self

    @property
    def key(self) -> Tuple[str, str]:
        return (self.student.username, self.learning_path.title.lower())

    @property
    def is_complete(self) -> bool:
        return self.completion_date is not None

    def get_activity_status(self, activity: Activity) -> ActivityStatus:
        return self.activity_statuses.get(activity, ActivityStatus.PENDING)

    def is_tracked(self, activity: Activity) -> bool:
        return activity in self.activity_statuses

    def update_activity_status(self, activity: Activity, status: ActivityStatus) -> None:
        """
        Overwrite the stored status for ``activity``.

        Any status is accepted. When the new status is terminal (COMPLETED or
        FAILED) the completion check runs; it stamps ``completion_date`` the
        first time all mandatory activities are COMPLETED and does nothing on
        later runs.
        """
        self.activity_statuses[activity] = status
        if status.is_terminal:
            self._check_completion()

    def _check_completion(self) -> None:
        if self.completion_date is not None:
            return
        mandatory = self.learning_path.mandatory_activities()
        if all(self.get_activity_status(a) is ActivityStatus.COMPLETED for a in mandatory):
            self.completion_date = datetime.now()
            logger.info(
                "Student %s completed learning path '%s'.",
                self.student.username,
                self.learning_path.title,
            )

    def calculate_completion_percentage(self) -> float:
        mandatory = self.learning_path.mandatory_activities()
        if not mandatory:
            return 100.0
        completed = sum(
            1 for activity in mandatory
            if self.get_activity_status(activity) is ActivityStatus.COMPLETED
        )
        return completed / len(mandatory) * 100

    # Single-submission checks belong to the caller.
    def add_survey_response(self, survey: Activity, response: SurveyResponse) -> None:
        self.survey_responses[survey] = response

    def get_survey_response(self, survey: Activity) -> Optional[SurveyResponse]:
        return self.survey_responses.get(survey)

    def add_exam_response(self, exam: Activity, response: OpenEndedResponse) -> None:
        self.exam_responses[exam] = response

    def get_exam_response(self, exam: Activity) -> Optional[OpenEndedResponse]:
        return self.exam_responses.get(exam)

    def grade_activity(self, activity: Activity, passed: bool, comment: str = "") -> bool:
        """
        Record a teacher grade for a SUBMITTED assignment or exam.

        Moves the activity to COMPLETED when ``passed`` is true and to FAILED
        otherwise. Returns ``False`` without changes for variants that
        self-grade or for activities that are not currently SUBMITTED.
        """
        if not activity.activity_type.requires_grading:
            return False
        if self.get_activity_status(activity) is not ActivityStatus.SUBMITTED:
            return False
        self.grades[activity] = Grade(passed=passed, comment=comment.strip())
        self.update_activity_status(
            activity, ActivityStatus.COMPLETED if passed else ActivityStatus.FAILED
        )
        return True

    def get_grade(self, activity: Activity) -> Optional[Grade]:
        return self.grades.get(activity)

    def rebind(self, learning_paths: Iterable[LearningPath], users: Iterable[User]) -> bool:
        """
        Re-resolve the embedded student and learning path by natural key.

        Returns ``True`` when both references were found. Activity-keyed maps
        are re-keyed onto the resolved path's activity instances; entries for
        activities no longer on the path are kept as they are.
        """
        path = next((lp for lp in learning_paths if lp == self.learning_path), None)
        student = next(
            (u for u in users if u == self.student and isinstance(u, Student)), None
        )
        if path is not None:
            self.learning_path = path
            canonical = {activity: activity for activity in path.activities}
            for name in _ACTIVITY_MAPS:
                mapping = getattr(self, name)
                setattr(self, name, {canonical.get(a, a): v for a, v in mapping.items()})
        if student is not None:
            self.student = student
        if path is None or student is None:
            logger.warning(
                "Could not fully resolve progress for %s on '%s'.",
                self.student.username,
                self.learning_path.title,
            )
            return False
        return True

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Progress):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(("progress",) + self.key)
