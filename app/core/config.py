from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Onboarding Assessment Proctoring"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
        "http://localhost:5500"
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./onboarding.db"
    TEST_DATABASE_URL: Optional[str] = None

    # Attempt policy
    DEFAULT_MAX_ATTEMPTS: int = 3
    DEFAULT_PASSING_SCORE: int = 80

    # Recording storage
    AWS_REGION: str = "us-east-1"
    S3_BUCKET_NAME: Optional[str] = None
    LOCAL_RECORDINGS_DIR: str = "uploads/recordings"
    RECORDINGS_BASE_URL: str = "/uploads/recordings"
    MAX_RECORDING_SIZE: str = "100MB"
    ALLOWED_RECORDING_TYPES: str = "video/webm,video/mp4"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Email
    SENDGRID_API_KEY: Optional[str] = None
    EMAILS_FROM_EMAIL: str = "onboarding@example.com"
    EMAILS_FROM_NAME: str = "Onboarding Assessments"

    # Stale session sweep, off unless explicitly enabled
    SESSION_SWEEP_ENABLED: bool = False
    SESSION_STALE_AFTER_MINUTES: int = 120
    SESSION_SWEEP_INTERVAL_MINUTES: int = 15

    class Config:
        env_file = ".env"

settings = Settings()
