from .learning_service import ActivityOutcome, LearningPathService, SessionContext

__all__ = ["ActivityOutcome", "LearningPathService", "SessionContext"]
