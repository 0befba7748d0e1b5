"""Quiz-related constants shared across core and server layers."""

OPTIONS_PER_QUESTION: int = 4
MIN_TIME_LIMIT_MINUTES: int = 1
MAX_TIME_LIMIT_MINUTES: int = 180
TICK_INTERVAL_SECONDS: float = 1.0
FINISHED_SESSION_RETENTION_SECONDS: float = 300.0
