"""Onboarding Console.

A console driver for a BPMN onboarding process:
- configuration loaded from `.env` / environment
- a pluggable process engine (in-memory or PostgreSQL backed)
- operator prompts for human task forms and an activity history report
"""

__version__ = "0.1.0"

from onboarding_console.core.config import OnboardingSettings

__all__ = ["__version__", "OnboardingSettings"]
