"""Process engine package initialization."""

from onboarding_console.engine.bootstrap import (
    EngineType,
    ProcessEngineConfiguration,
    get_process_engine_configuration,
)
from onboarding_console.engine.delegates import DelegateExecution, JavaDelegate
from onboarding_console.engine.errors import (
    DeploymentError,
    ProcessDefinitionNotFound,
    ProcessEngineError,
    TaskCompletionError,
    TaskNotFound,
)
from onboarding_console.engine.service import ProcessEngine

__all__ = [
    "DelegateExecution",
    "DeploymentError",
    "EngineType",
    "JavaDelegate",
    "ProcessDefinitionNotFound",
    "ProcessEngine",
    "ProcessEngineConfiguration",
    "ProcessEngineError",
    "TaskCompletionError",
    "TaskNotFound",
    "get_process_engine_configuration",
]
