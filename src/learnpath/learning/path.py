from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from learnpath.data_models import Teacher
from learnpath.learning.activities import Activity, ActivityType, AnyActivity

logger = logging.getLogger(__name__)

INITIAL_VERSION = "1.0"


class LearningPath(BaseModel):
    """
    Teacher-authored, ordered sequence of activities.

    The path derives its total duration from its activities and bumps the
    minor component of its ``"major.minor"`` version on every structural or
    feedback change. Titles are unique ignoring case, and equality and hashing
    follow that rule so a path reloaded from the learning-paths collection
    matches the snapshot embedded in a progress record.

    Rejections (duplicate activity, unknown activity, rating out of range,
    blank feedback) return ``False`` and leave the path untouched.

    Examples
    --------
    >>> path = LearningPath(
    ...     title="Intro to Python",
    ...     description="Basics",
    ...     objectives="Write small scripts",
    ...     difficulty_level=2,
    ...     creator=teacher,
    ... )
    >>> path.add_activity(review)
    True
    >>> path.version
    '1.1'
    >>> path.update_rating(4.0)
    True
    >>> path.rating
    2.0
    """

    title: str = Field(min_length=1)
    description: str
    objectives: str
    difficulty_level: int = Field(ge=1, le=5)
    creator: Teacher
    rating: float = Field(0.0, ge=0.0, le=5.0)
    creation_date: datetime = Field(default_factory=datetime.now, frozen=True)
    modification_date: datetime = Field(default_factory=datetime.now)
    version: str = Field(INITIAL_VERSION, pattern=r"^\d+\.\d+$")
    activities: List[AnyActivity] = Field(default_factory=list)
    feedback: List[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> int:
        """Total expected minutes across the current activities."""
        return self.recalculate_duration()

    def recalculate_duration(self) -> int:
        return sum(activity.expected_duration for activity in self.activities)

    def add_activity(self, activity: Activity) -> bool:
        """Append ``activity``; rejects a duplicate or a second activity with the same title."""
        if activity in self.activities or self.find_activity(activity.title) is not None:
            logger.warning(
                "Activity '%s' already exists in learning path '%s'.", activity.title, self.title
            )
            return False
        self.activities.append(activity)
        self._touch()
        return True

    def remove_activity(self, activity: Activity) -> bool:
        if activity not in self.activities:
            logger.warning(
                "Activity '%s' does not exist in learning path '%s'.", activity.title, self.title
            )
            return False
        self.activities.remove(activity)
        self._touch()
        return True

    def increment_version(self) -> str:
        major, minor = (int(part) for part in self.version.split("."))
        self.version = f"{major}.{minor + 1}"
        return self.version

    def update_rating(self, new_rating: float) -> bool:
        """
        Blend a new student rating into the path rating.

        Applies ``rating = (rating + new_rating) / 2``. Each new sample carries
        half the weight regardless of how many ratings came before, so this is
        an exponential blend rather than a running mean.
        """
        if not 0.0 <= new_rating <= 5.0:
            logger.warning("Invalid rating %s for '%s'; must be within 0.0-5.0.", new_rating, self.title)
            return False
        self.rating = (self.rating + new_rating) / 2
        return True

    def add_feedback(self, text: Optional[str]) -> bool:
        if text is None or not text.strip():
            return False
        self.feedback.append(text.strip())
        self.modification_date = datetime.now()
        self.increment_version()
        return True

    def find_activity(self, title: str) -> Optional[Activity]:
        """Return the first activity whose title matches, ignoring case."""
        lowered = title.strip().lower()
        for activity in self.activities:
            if activity.title.lower() == lowered:
                return activity
        return None

    def activities_of_type(self, activity_type: ActivityType) -> List[Activity]:
        return [activity for activity in self.activities if activity.activity_type is activity_type]

    def mandatory_activities(self) -> List[Activity]:
        return [activity for activity in self.activities if activity.is_mandatory]

    def _touch(self) -> None:
        self.modification_date = datetime.now()
        self.increment_version()

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, LearningPath):
            return NotImplemented
        return self.title.lower() == other.title.lower()

    def __hash__(self) -> int:
        return hash(("learning_path", self.title.lower()))
