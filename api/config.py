"""AutoTime API Configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"  # Ignore extra fields from .env
    )
    
    DB_PATH: str = "/app/db/autotime.db"
    UK_TIMEZONE: str = "Europe/London"
    
    # Clock entries shorter than this are kept but flagged needs_approval
    MIN_SHIFT_DURATION_S: int = 60
    
    # Scheduled jobs auth (X-Admin-Secret)
    INTERNAL_ADMIN_SECRET: str | None = None
    
    # Test mode (E2E/CI)
    IS_TEST_MODE: bool = False
    
    # Clock-in/out photo storage
    PHOTO_DIR: str = "/app/data/photos"
    
    # postcodes.io geocoder
    POSTCODES_API_URL: str = "https://api.postcodes.io"
    POSTCODES_TIMEOUT_S: float = 5.0
    
    # Scheduled jobs
    AUTO_CLOCK_OUT_HOURS: int = 12
    CLOCK_IN_REMINDER_HOUR: int = 9
    CLOCK_OUT_REMINDER_HOUR: int = 19
    
    # Overtime review window
    OVERTIME_LOOKBACK_DAYS: int = 14
    OVERTIME_MAX_HOURS: float = 3.0
    
    # Signup
    TRIAL_DAYS: int = 14
    
    # Per-IP rate limit (requests per second + burst)
    RATE_LIMIT_RPS: float = 5
    RATE_LIMIT_BURST: int = 10


settings = Settings()
