"""Onboarding process: console driver, form input and the automated delegate."""

from onboarding_console.onboarding.delegates import AutomatedDataDelegate
from onboarding_console.onboarding.driver import OnboardingDriver

__all__ = [
    "AutomatedDataDelegate",
    "OnboardingDriver",
]
