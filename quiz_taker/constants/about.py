"""Static metadata describing QuizTaker."""

APP_NAME = "QuizTaker"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizTaker runs multiple-choice quizzes in the browser, optionally under a time limit, "
    "with instant feedback and AI explanations for every answered question."
)
