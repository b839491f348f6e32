"""Ephemeral in-memory process store.

Workflows are kept as live objects, so nothing is serialized and no external
process is needed. Everything is lost when the engine is closed.
"""

from __future__ import annotations

import threading
from typing import Any

from onboarding_console.engine.models import (
    Deployment,
    HistoricActivityInstance,
    ProcessDefinition,
    ProcessInstance,
)


class InMemoryProcessStore:
    """Simple in-memory implementation of ProcessStore."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._deployments: dict[str, Deployment] = {}
        self._resources: dict[tuple[str, str], bytes] = {}
        self._definitions: dict[str, ProcessDefinition] = {}
        self._instances: dict[str, ProcessInstance] = {}
        self._workflows: dict[str, Any] = {}
        # Insertion ordered; activity id -> record
        self._activities: dict[str, HistoricActivityInstance] = {}

    def migrate(self) -> None:
        return None

    def save_deployment(self, deployment: Deployment, resources: dict[str, bytes]) -> None:
        with self._lock:
            self._deployments[deployment.id] = deployment
            for name, content in resources.items():
                self._resources[(deployment.id, name)] = content

    def get_resource(self, deployment_id: str, resource_name: str) -> bytes | None:
        with self._lock:
            return self._resources.get((deployment_id, resource_name))

    def save_process_definition(self, definition: ProcessDefinition) -> None:
        with self._lock:
            self._definitions[definition.id] = definition

    def list_process_definitions(
        self, *, key: str | None = None, deployment_id: str | None = None
    ) -> list[ProcessDefinition]:
        with self._lock:
            return [
                d
                for d in self._definitions.values()
                if (key is None or d.key == key)
                and (deployment_id is None or d.deployment_id == deployment_id)
            ]

    def save_instance(self, instance: ProcessInstance, workflow: Any) -> None:
        with self._lock:
            self._instances[instance.id] = instance
            self._workflows[instance.id] = workflow

    def get_instance(self, instance_id: str) -> ProcessInstance | None:
        with self._lock:
            return self._instances.get(instance_id)

    def load_workflow(self, instance_id: str) -> Any | None:
        with self._lock:
            return self._workflows.get(instance_id)

    def list_active_instances(self) -> list[ProcessInstance]:
        with self._lock:
            return [i for i in self._instances.values() if not i.ended]

    def save_activity(self, activity: HistoricActivityInstance) -> None:
        with self._lock:
            self._activities[activity.id] = activity

    def list_activities(self, instance_id: str) -> list[HistoricActivityInstance]:
        with self._lock:
            return [
                a for a in self._activities.values() if a.process_instance_id == instance_id
            ]

    def close(self) -> None:
        with self._lock:
            self._workflows.clear()
