"""Core configuration for the onboarding console.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

Database connection parameters are only read by the `pg` engine type; the
in-memory engine needs no external configuration at all.
"""

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Connection parameters for the external process store."""

    url: str = Field(
        default="postgresql://localhost:5432/activiti",
        description="Database connection URL",
    )
    username: str = Field(
        default="",
        description="Database user (empty means use the URL / libpq defaults)",
    )
    password: str = Field(
        default="",
        description="Database password",
    )
    driver: str = Field(
        default="postgresql",
        description="Database driver identifier",
    )

    model_config = SettingsConfigDict(
        env_prefix="ONBOARDING_DB_",
        env_file=".env",
        extra="ignore",
    )


class OnboardingSettings(BaseSettings):
    """Main configuration for the onboarding console.

    Environment variables:
    - ONBOARDING_LOG_LEVEL
    - ONBOARDING_LOG_FORMAT      (text | json)
    - ONBOARDING_ENGINE_TYPE     (mem | pg)
    - ONBOARDING_PROCESS_RESOURCE
    - ONBOARDING_PROCESS_KEY
    - ONBOARDING_CANDIDATE_GROUP
    - ONBOARDING_DB_*            (see DatabaseConfig)

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `OnboardingSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log record layout",
    )

    # Kept as a plain string: the bootstrapper owns validation of engine types.
    engine_type: str = Field(
        default="mem",
        description="Process store backing the engine: 'mem' or 'pg'",
    )
    process_resource: str = Field(
        default="onboarding.bpmn20.xml",
        description="Bundled resource name or filesystem path of the BPMN definition",
    )
    process_key: str = Field(
        default="onboarding",
        description="Logical key of the process to start",
    )
    candidate_group: str = Field(
        default="managers",
        description="Candidate group whose tasks the operator works on",
    )

    date_format: str = Field(
        default="%Y-%m-%d",
        description="strptime pattern for date form fields",
    )
    date_hint: str = Field(
        default="yyyy-MM-dd",
        description="Human readable date pattern shown in prompts",
    )

    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig,
        description="External database configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="ONBOARDING_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def numeric_log_level(self) -> int:
        """Logging level as understood by the `logging` module."""

        return getattr(logging, self.log_level.upper(), logging.INFO)
