"""Process engine exceptions."""

from __future__ import annotations


class ProcessEngineError(RuntimeError):
    """Base class for failures raised by the process engine."""


class DeploymentError(ProcessEngineError):
    """A process definition resource could not be read or parsed."""


class ProcessDefinitionNotFound(ProcessEngineError):
    pass


class TaskNotFound(ProcessEngineError):
    pass


class TaskCompletionError(ProcessEngineError):
    """The engine refused to complete a task.

    Raised when required form fields are missing from the submitted variables.
    """

    def __init__(self, task_id: str, missing_fields: list[str]) -> None:
        self.task_id = task_id
        self.missing_fields = missing_fields
        super().__init__(
            f"Task {task_id} cannot be completed, missing required fields: "
            + ", ".join(missing_fields)
        )
