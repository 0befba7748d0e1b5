"""Network configuration constants for the quiz application."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
DEFAULT_EXPLANATION_SERVICE_URL: str = "http://127.0.0.1:5000"
EXPLANATION_PATH: str = "/api/gemini/explain"
REMOTE_REQUEST_TIMEOUT_SECONDS: float = 30.0
