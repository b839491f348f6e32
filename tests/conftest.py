"""Test configuration and fixtures."""

import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from onboarding_console.core.config import DatabaseConfig, OnboardingSettings
from onboarding_console.engine.bootstrap import get_process_engine_configuration
from onboarding_console.engine.models import (
    Deployment,
    FormField,
    HistoricActivityInstance,
    ProcessDefinition,
    ProcessInstance,
    Task,
    TaskFormData,
)
from onboarding_console.engine.service import ProcessEngine
from onboarding_console.engine.store.memory import InMemoryProcessStore
from onboarding_console.engine.store.postgres import PostgresProcessStore
from onboarding_console.onboarding.delegates import AUTOMATED_DATA_DELEGATE, AutomatedDataDelegate

T0 = datetime(2024, 1, 15, 9, 0, 0, tzinfo=UTC)


class FakeProcessEngine(ProcessEngine):
    """Scripted engine double.

    Each candidate group query returns the next entry of `polls`. The
    instance reports ended once every scripted poll has been served.
    """

    def __init__(
        self,
        polls: list[list[Task]],
        forms: dict[str, list[FormField]] | None = None,
        activities: list[HistoricActivityInstance] | None = None,
    ) -> None:
        self.polls = [list(p) for p in polls]
        self.forms = forms or {}
        self.activities = activities or []
        self.completed: list[tuple[str, dict[str, Any]]] = []
        self.queried_groups: list[str] = []
        self.instance_fetches = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    def deploy(self, resource: str, content: bytes | None = None) -> Deployment:
        return Deployment(id="dep-1", name=resource, deployed_at=T0, resource_names=[resource])

    def get_process_definition(self, deployment_id: str) -> ProcessDefinition:
        return ProcessDefinition(
            id=f"onboarding:1:{deployment_id}",
            key="onboarding",
            name="Onboarding",
            version=1,
            deployment_id=deployment_id,
            resource_name="onboarding.bpmn20.xml",
        )

    def get_latest_process_definition(self, key: str) -> ProcessDefinition:
        return self.get_process_definition("dep-1")

    def start_process_instance_by_key(
        self,
        key: str,
        variables: dict[str, Any] | None = None,
        business_key: str | None = None,
    ) -> ProcessInstance:
        return self._instance(ended=False)

    def get_process_instance(self, instance_id: str) -> ProcessInstance | None:
        self.instance_fetches += 1
        return self._instance(ended=not self.polls)

    def get_variables(self, instance_id: str) -> dict[str, Any]:
        variables: dict[str, Any] = {}
        for _, submitted in self.completed:
            variables.update(submitted)
        return variables

    def list_candidate_group_tasks(self, group: str) -> list[Task]:
        self.queried_groups.append(group)
        return self.polls.pop(0) if self.polls else []

    def get_task_form_data(self, task_id: str) -> TaskFormData:
        return TaskFormData(task_id=task_id, fields=self.forms.get(task_id, []))

    def complete_task(self, task_id: str, variables: dict[str, Any] | None = None) -> None:
        self.completed.append((task_id, dict(variables or {})))

    def list_historic_activities(
        self, instance_id: str, finished: bool = True
    ) -> list[HistoricActivityInstance]:
        return list(self.activities)

    def close(self) -> None:
        self.closed = True

    def _instance(self, ended: bool) -> ProcessInstance:
        return ProcessInstance(
            id="pi-1",
            process_definition_id="onboarding:1:dep-1",
            process_definition_key="onboarding",
            ended=ended,
            started_at=T0,
        )


class SerializingProcessStore(InMemoryProcessStore):
    """In-memory store that keeps workflows as serialized JSON.

    Every load returns a new workflow object, like the PostgreSQL store.
    """

    def __init__(self) -> None:
        super().__init__()
        self.serializer = PostgresProcessStore._build_serializer()
        self.loads = 0

    def save_instance(self, instance: ProcessInstance, workflow: Any) -> None:
        super().save_instance(instance, self.serializer.serialize_json(workflow))

    def load_workflow(self, instance_id: str) -> Any | None:
        state_json = super().load_workflow(instance_id)
        if state_json is None:
            return None
        self.loads += 1
        return self.serializer.deserialize_json(state_json)


def make_task(task_id: str, name: str | None = None) -> Task:
    return Task(
        id=task_id,
        name=name or task_id,
        task_definition_key=task_id,
        process_instance_id="pi-1",
        candidate_groups=["managers"],
        created_at=T0,
    )


@pytest.fixture
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> OnboardingSettings:
    """Provide settings isolated from any local .env file."""
    monkeypatch.chdir(tmp_path)
    return OnboardingSettings(
        log_level="DEBUG",
        engine_type="mem",
        database=DatabaseConfig(url="postgresql://db.test:5432/onboarding"),
    )


@pytest.fixture
def memory_engine() -> Iterator[ProcessEngine]:
    """Provide an in-memory SpiffWorkflow engine with the onboarding delegate."""
    cfg = get_process_engine_configuration("mem")
    cfg.register_delegate(AUTOMATED_DATA_DELEGATE, AutomatedDataDelegate())
    engine = cfg.build_process_engine()
    yield engine
    engine.close()


@pytest.fixture
def fake_engine_factory() -> type[FakeProcessEngine]:
    """Provide the scripted engine double for driver tests."""
    return FakeProcessEngine


@pytest.fixture
def task_factory():
    return make_task


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Undo configure_logging() after the test."""
    root = logging.getLogger()
    level = root.level
    spiff_level = logging.getLogger("spiff").level
    yield
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger("spiff").setLevel(spiff_level)


@pytest.fixture
def serializing_store() -> SerializingProcessStore:
    return SerializingProcessStore()
