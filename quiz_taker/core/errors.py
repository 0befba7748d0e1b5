"""Exceptions raised by the quiz-taking engine and its collaborators."""

from __future__ import annotations


class QuizTakerError(Exception):
    """Base class for all quiz-taking errors."""


class QuizValidationError(QuizTakerError, ValueError):
    """Raised when an authored quiz breaks the quiz authoring rules."""


class InvalidSelection(QuizTakerError, ValueError):
    """Raised when a selected option index does not address an option."""

    def __init__(self, selected_index: object, option_count: int) -> None:
        super().__init__(
            f"Selected option {selected_index!r} is out of range for {option_count} options."
        )
        self.selected_index = selected_index
        self.option_count = option_count


class InvalidPhaseTransition(QuizTakerError, RuntimeError):
    """Raised when a session operation is invoked in the wrong phase."""

    def __init__(self, operation: str, phase: object) -> None:
        phase_name = getattr(phase, "value", phase)
        super().__init__(f"Cannot {operation} while the session is {phase_name}.")
        self.operation = operation
        self.phase = phase


class QuizNotFound(QuizTakerError, LookupError):
    def __init__(self, quiz_id: str) -> None:
        super().__init__(f"No quiz matches id {quiz_id!r}.")
        self.quiz_id = quiz_id


class SessionNotFound(QuizTakerError, LookupError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"No quiz session matches id {session_id!r}.")
        self.session_id = session_id


class ExplanationRequestFailed(QuizTakerError):
    """Raised when the explanation service cannot produce an explanation."""


class ExplanationBadRequest(ExplanationRequestFailed):
    """Raised before any remote call when the request lacks required fields."""


class PerformancePersistFailed(QuizTakerError):
    """Raised by storage when a performance record could not be saved."""


class StorageUnavailable(QuizTakerError):
    """Raised when the storage service cannot be reached or misbehaves."""
