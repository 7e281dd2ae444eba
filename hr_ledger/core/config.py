import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()

BASE_RANGE_POLICIES = ("advisory", "enforce")

class Config(BaseModel):
    app_name: str = "HR Leave Ledger"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"
    version: str = "1.0.0"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./database.db")

    # Accounting
    hours_per_day: float = float(os.getenv("HOURS_PER_DAY", "8"))
    partial_day_default_hours: float = float(os.getenv("PARTIAL_DAY_DEFAULT_HOURS", "4"))
    # "advisory" flags an out-of-range settlement base, "enforce" rejects it
    base_range_policy: str = os.getenv("BASE_RANGE_POLICY", "advisory").lower()
    balance_sync_attempts: int = int(os.getenv("BALANCE_SYNC_ATTEMPTS", "3"))

    # Scalability
    settlement_rate_limit: str = os.getenv("SETTLEMENT_RATE_LIMIT", "30/minute")
    request_id_header: str = "X-Request-ID"

    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

settings = Config()

# --- Startup Validation ---
_logger = logging.getLogger(__name__)
if settings.base_range_policy not in BASE_RANGE_POLICIES:
    raise RuntimeError(
        f"FATAL: BASE_RANGE_POLICY must be one of {', '.join(BASE_RANGE_POLICIES)}, "
        f"got '{settings.base_range_policy}'."
    )
if settings.hours_per_day <= 0:
    raise RuntimeError("FATAL: HOURS_PER_DAY must be positive.")
if settings.environment == "development" and settings.database_url.startswith("sqlite"):
    _logger.info("Using SQLite database - only acceptable in development.")
