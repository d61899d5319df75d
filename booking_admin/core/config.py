from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BOOKING_API_BASE_URL: str | None = None
    BOOKING_CANCEL_URL: str | None = None
    BOOKING_API_TIMEOUT_SECONDS: float = 10.0

    DEFAULT_TIMEZONE: str = "Asia/Hong_Kong"
    VIEWER_TIMEZONE: str | None = None

    STATE_DATA_DIR: str = "./data/state"
    # "file" persists the overlay under STATE_DATA_DIR; "memory" is lost on restart.
    STATE_BACKEND: str = "file"
    DEFAULT_SLOT_INTERVAL_MINUTES: int = 15

    # Lower-cased substrings of service error messages that mean a
    # cancellation/modification window has already closed.
    TIME_RESTRICTION_PATTERNS: list[str] = [
        "time restriction",
        "cannot be cancelled",
        "cannot be canceled",
        "cannot be modified",
        "too late",
        "threshold",
        "cancellation window",
    ]


settings = Settings()
