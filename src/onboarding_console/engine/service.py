"""Abstract base class for process engines."""

from abc import ABC, abstractmethod
from typing import Any

from onboarding_console.engine.models import (
    Deployment,
    HistoricActivityInstance,
    ProcessDefinition,
    ProcessInstance,
    Task,
    TaskFormData,
)


class ProcessEngine(ABC):
    """Abstract base class for process engines.

    This interface covers the services the console consumes: repository
    (deploy, definition lookup), runtime (start, instance lookup, variables),
    task and form queries, task completion and history.
    """

    VERSION = "0.1.0"

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name, used in log output."""
        pass

    @abstractmethod
    def deploy(self, resource: str, content: bytes | None = None) -> Deployment:
        """Deploy a process definition resource.

        Args:
            resource: Bundled resource name or filesystem path.
            content: Raw BPMN bytes; read from `resource` when omitted.

        Returns:
            The created deployment.
        """
        pass

    @abstractmethod
    def get_process_definition(self, deployment_id: str) -> ProcessDefinition:
        """Return the single process definition created by a deployment.

        Args:
            deployment_id: Deployment identifier.

        Returns:
            The process definition.
        """
        pass

    @abstractmethod
    def get_latest_process_definition(self, key: str) -> ProcessDefinition:
        """Return the highest version of the process definition with `key`."""
        pass

    @abstractmethod
    def start_process_instance_by_key(
        self,
        key: str,
        variables: dict[str, Any] | None = None,
        business_key: str | None = None,
    ) -> ProcessInstance:
        """Start the latest version of a process definition.

        Args:
            key: Logical process key.
            variables: Initial process variables.
            business_key: Optional caller supplied correlation key.

        Returns:
            The started instance, already advanced to its first wait state.
        """
        pass

    @abstractmethod
    def get_process_instance(self, instance_id: str) -> ProcessInstance | None:
        """Fetch the current state of a process instance."""
        pass

    @abstractmethod
    def get_variables(self, instance_id: str) -> dict[str, Any]:
        """Return the variables visible in a process instance."""
        pass

    @abstractmethod
    def list_candidate_group_tasks(self, group: str) -> list[Task]:
        """List open tasks whose candidate groups include `group`."""
        pass

    @abstractmethod
    def get_task_form_data(self, task_id: str) -> TaskFormData:
        """Return the ordered form schema of a task."""
        pass

    @abstractmethod
    def complete_task(self, task_id: str, variables: dict[str, Any] | None = None) -> None:
        """Complete a task with the given variables.

        The engine runs every automated step that follows before returning.

        Raises:
            TaskNotFound: The task is not open.
            TaskCompletionError: Required form fields are missing.
        """
        pass

    @abstractmethod
    def list_historic_activities(
        self, instance_id: str, finished: bool = True
    ) -> list[HistoricActivityInstance]:
        """Return recorded activities ordered by end time ascending.

        Args:
            instance_id: Process instance identifier.
            finished: Only return activities that have ended.
        """
        pass

    def close(self) -> None:
        """Release resources held by the engine."""

    def __enter__(self) -> "ProcessEngine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
