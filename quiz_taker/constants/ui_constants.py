"""User-facing strings shared by the API and the taker page."""

PAGE_TITLE: str = "QuizTaker"
QUIZ_NOT_FOUND_MESSAGE: str = "Quiz not found"
SESSION_NOT_FOUND_MESSAGE: str = "Quiz session not found"
EXPLANATION_FAILED_MESSAGE: str = "Failed to generate explanation"
CORRECT_FEEDBACK: str = "Correct!"
INCORRECT_FEEDBACK: str = "Incorrect!"
TIMER_WARNING_TEMPLATE: str = (
    "This quiz is timed. You have {minutes} minute(s) to answer all questions; "
    "the quiz finishes automatically when the time runs out."
)
