"""Application settings and logging setup."""

import logging
from decimal import Decimal
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pennywise.database.factories import default_database_path
from pennywise.domain.recurring import DetectionConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """Settings read from ``PENNYWISE_*`` environment variables or ``.env``."""

    database_url: Optional[str] = None
    db_path: Optional[str] = None

    api_prefix: str = "/api"
    user_id_header: str = "X-User-Id"
    cors_origins: list[str] = ["*"]

    detection_min_occurrences: int = Field(3, ge=2)
    detection_amount_tolerance_percent: float = Field(5, ge=0, le=50)
    detection_date_variance_days: int = Field(3, ge=0, le=7)
    detection_lookback_months: int = Field(12, ge=1, le=24)
    detection_confidence_threshold: float = Field(0.7, ge=0.1, le=1.0)

    alert_min_interval_minutes: int = Field(60, ge=0)
    alert_max_per_day: int = Field(10, ge=1)

    default_budget_share: Decimal = Field(Decimal("40"), gt=0, le=100)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="PENNYWISE_", env_file=".env", extra="ignore")

    def resolved_database_url(self) -> str:
        """The explicit URL, else SQLite at ``db_path`` or the default location."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.db_path or default_database_path()}"

    def detection_config(self) -> DetectionConfig:
        return DetectionConfig(
            min_occurrences=self.detection_min_occurrences,
            amount_tolerance_percent=self.detection_amount_tolerance_percent,
            date_variance_days=self.detection_date_variance_days,
            lookback_months=self.detection_lookback_months,
            confidence_threshold=self.detection_confidence_threshold,
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level.upper())
