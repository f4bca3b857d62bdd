"""
Application configuration.

Settings are read from the environment (and a local ``.env`` file, if any).
"""

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # Database
    database_url: str = "sqlite:///./librarian.db"
    database_echo: bool = False
    auto_migrate: bool = True

    # Tokens
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Lending
    loan_period_days: int = 14

    # Environment
    environment: str = "development"
    debug: bool = True
    log_request_body: bool = False

    def __post_init__(self):
        if self.jwt_algorithm not in HMAC_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of {', '.join(HMAC_ALGORITHMS)}, "
                f"got {self.jwt_algorithm!r}"
            )
        if self.loan_period_days < 1:
            raise ValueError("LOAN_PERIOD_DAYS must be positive")

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            database_echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
            auto_migrate=os.getenv("AUTO_MIGRATE", "true").lower() == "true",
            jwt_secret=os.getenv("JWT_SECRET", cls.jwt_secret),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", cls.jwt_algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)
            ),
            loan_period_days=int(os.getenv("LOAN_PERIOD_DAYS", cls.loan_period_days)),
            environment=os.getenv("LIBRARIAN_ENV", cls.environment),
            debug=os.getenv("DEBUG", "true").lower() == "true",
            log_request_body=os.getenv("LOG_REQUEST_BODY", "false").lower() == "true",
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings.from_env()
