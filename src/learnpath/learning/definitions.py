from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field, ValidationError, model_validator

from learnpath.config.loader import read_yaml
from learnpath.data_models import Teacher
from learnpath.learning.activities import AnyActivity
from learnpath.learning.path import LearningPath


class LearningPathDefinition(BaseModel):
    """
    Authoring format for a learning path, as written in YAML.

    Example
    -------
    ```yaml
    title: Intro to Python
    description: First steps
    objectives: Write small scripts
    difficulty_level: 2
    activities:
      - type: resource_review
        title: Read the tutorial
        description: Official tutorial, chapters 1-3
        difficulty_level: 1
        expected_duration: 30
        resource_link: https://docs.python.org/3/tutorial/
      - type: quiz
        title: Basics check
        description: Syntax and types
        difficulty_level: 2
        expected_duration: 10
        passing_score: 60
        questions:
          - text: Which keyword defines a function?
            options: [func, def, lambda, fn]
            correct_option_index: 1
    ```
    """

    title: str
    description: str
    objectives: str = ""
    difficulty_level: int = Field(ge=1, le=5)
    activities: List[AnyActivity] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_activity_titles(self) -> "LearningPathDefinition":
        seen = set()
        for activity in self.activities:
            lowered = activity.title.lower()
            if lowered in seen:
                raise ValueError(f"Duplicate activity title '{activity.title}'.")
            seen.add(lowered)
        return self

    def build(self, creator: Teacher) -> LearningPath:
        """Create the path and add each activity in order."""
        path = LearningPath(
            title=self.title,
            description=self.description,
            objectives=self.objectives,
            difficulty_level=self.difficulty_level,
            creator=creator,
        )
        for activity in self.activities:
            path.add_activity(activity)
        return path


def parse_definition(data: Dict[str, Any]) -> LearningPathDefinition:
    try:
        return LearningPathDefinition.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid learning path definition: {exc}") from exc


def load_definition(path: Path) -> LearningPathDefinition:
    """Read and validate a learning path definition from a YAML file."""
    return parse_definition(read_yaml(path))
