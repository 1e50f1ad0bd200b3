"""Domain exceptions raised by the engine and repositories."""


class QuizwiseError(Exception):
    """Base class for all quizwise errors."""


class AuthenticationError(QuizwiseError):
    """Raised when the caller has no valid session token."""


class QuizNotFoundError(QuizwiseError):
    """Raised when a quiz does not exist or has no eligible questions."""

    def __init__(self, quiz_id: str, reason: str = "Quiz not found"):
        super().__init__(f"{reason}: {quiz_id}")
        self.quiz_id = quiz_id
        self.reason = reason


class AnswerValidationError(QuizwiseError):
    """Raised when a recorded answer is missing required fields or is malformed."""


class QuizValidationError(QuizwiseError):
    """Raised when a quiz payload does not match the expected structure."""

    def __init__(self, message: str, issues: list[str] | None = None):
        super().__init__(message)
        self.issues = issues or []


class PersistenceUnavailableError(QuizwiseError):
    """Raised when the answer history or mastery tables are not provisioned."""
