"""Core package initialization."""

from onboarding_console.core.config import DatabaseConfig, OnboardingSettings
from onboarding_console.core.logging import configure_logging

__all__ = [
    "DatabaseConfig",
    "OnboardingSettings",
    "configure_logging",
]
