"""
Configuration management from environment variables and .env files.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """
    Application settings with environment variable support.

    Priority: Environment Variable > .env.local > .env > Default

    HTTP transport timeouts are fixed in notifier.http and are not settings.
    """
    # BigQuery (image store + audit trail)
    bq_project: str = ""
    bq_dataset: str = "sentinel_notifier"
    bq_images_table: str = "images"
    bq_audit_table: str = "audit_log"

    # GCP
    gcp_project: str = ""

    # Runtime
    environment: str = "development"
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            bq_project=os.getenv("BQ_PROJECT", os.getenv("GCP_PROJECT", "")),
            bq_dataset=os.getenv("BQ_DATASET", "sentinel_notifier"),
            bq_images_table=os.getenv("BQ_IMAGES_TABLE", "images"),
            bq_audit_table=os.getenv("BQ_AUDIT_TABLE", "audit_log"),
            gcp_project=os.getenv("GCP_PROJECT", ""),
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    # Placeholder values that indicate unconfigured settings
    PLACEHOLDER_VALUES = {
        "your-gcp-project",
        "your_dataset_name",
    }

    def _is_placeholder(self, value: str) -> bool:
        """Check if a value is a placeholder."""
        return value in self.PLACEHOLDER_VALUES

    def is_bq_configured(self) -> bool:
        """Check if BigQuery is properly configured (not placeholder)."""
        if not self.bq_project:
            return False
        return not self._is_placeholder(self.bq_project)


def _load_dotenv() -> None:
    """Load .env.local file if it exists."""
    root = os.path.dirname(os.path.dirname(__file__))

    # Try .env.local first, then .env
    env_local = os.path.join(root, ".env.local")
    env_file = os.path.join(root, ".env")

    if os.path.exists(env_local):
        load_dotenv(env_local)
        logger.debug(f"Loaded settings from {env_local}")
    elif os.path.exists(env_file):
        load_dotenv(env_file)
        logger.debug(f"Loaded settings from {env_file}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Loads .env.local / .env first, then reads the environment.
    """
    _load_dotenv()
    logger.info("Loading settings from environment")
    return Settings.from_environment()
