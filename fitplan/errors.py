from typing import Optional


class PlanEngineError(Exception):
    """Base class for every error raised by the plan engine."""


class ConfigurationError(PlanEngineError):
    """A required credential or setting is missing."""


class AIServiceError(PlanEngineError):
    """The completion service answered with a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(f"AI service error: {message}")
        else:
            super().__init__(f"AI service error: {status_code} - {message}")


class ResponseFormatError(PlanEngineError):
    """The completion service answered, but not with the expected JSON plan fragment."""

    def __init__(self, message: str, content: str = ""):
        self.content = content
        super().__init__(message)


class GenerationCancelled(PlanEngineError):
    """The caller asked to stop the generation at a cancellation checkpoint."""


class PlanNotFoundError(PlanEngineError):
    """The store holds no plan with the requested id."""
