"""Process stores backing the engine."""

from onboarding_console.engine.store.base import ProcessStore
from onboarding_console.engine.store.memory import InMemoryProcessStore

__all__ = [
    "InMemoryProcessStore",
    "ProcessStore",
]
