"""Storage interface for deployments, process instances and history."""

from __future__ import annotations

from typing import Any, Protocol

from onboarding_console.engine.models import (
    Deployment,
    HistoricActivityInstance,
    ProcessDefinition,
    ProcessInstance,
)


class ProcessStore(Protocol):
    def migrate(self) -> None: ...

    def save_deployment(self, deployment: Deployment, resources: dict[str, bytes]) -> None: ...

    def get_resource(self, deployment_id: str, resource_name: str) -> bytes | None: ...

    def save_process_definition(self, definition: ProcessDefinition) -> None: ...

    def list_process_definitions(
        self, *, key: str | None = None, deployment_id: str | None = None
    ) -> list[ProcessDefinition]: ...

    def save_instance(self, instance: ProcessInstance, workflow: Any) -> None: ...

    def get_instance(self, instance_id: str) -> ProcessInstance | None: ...

    def load_workflow(self, instance_id: str) -> Any | None: ...

    def list_active_instances(self) -> list[ProcessInstance]: ...

    def save_activity(self, activity: HistoricActivityInstance) -> None: ...

    def list_activities(self, instance_id: str) -> list[HistoricActivityInstance]: ...

    def close(self) -> None: ...
