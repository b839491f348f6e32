"""Process engine backed by the SpiffWorkflow BPMN interpreter."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from importlib import resources
from pathlib import Path
from typing import Any
from uuid import uuid4

from lxml import etree
from SpiffWorkflow.bpmn.parser.BpmnParser import BpmnParser
from SpiffWorkflow.bpmn.parser.ValidationException import ValidationException
from SpiffWorkflow.bpmn.workflow import BpmnWorkflow
from SpiffWorkflow.exceptions import WorkflowException
from SpiffWorkflow.util.task import TaskState

from onboarding_console.engine.definitions import ProcessModel, parse_process_models
from onboarding_console.engine.delegates import (
    DelegateScriptEngine,
    JavaDelegate,
    bind_instance_id,
)
from onboarding_console.engine.errors import (
    DeploymentError,
    ProcessDefinitionNotFound,
    ProcessEngineError,
    TaskCompletionError,
    TaskNotFound,
)
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
from onboarding_console.engine.store.base import ProcessStore

logger = logging.getLogger(__name__)

RESOURCE_PACKAGE = "onboarding_console.resources"

# Spiff task states that correspond to a started activity.
_ACTIVE_STATES = (TaskState.WAITING, TaskState.READY, TaskState.STARTED)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def load_resource(resource: str) -> bytes:
    """Read a BPMN resource from the filesystem or the bundled resources.

    Raises:
        DeploymentError: Neither location has the resource.
    """
    path = Path(resource)
    if path.is_file():
        return path.read_bytes()
    bundled = resources.files(RESOURCE_PACKAGE).joinpath(resource)
    if bundled.is_file():
        return bundled.read_bytes()
    raise DeploymentError(f"Process resource not found: {resource}")


class SpiffProcessEngine(ProcessEngine):
    """ProcessEngine implementation driving SpiffWorkflow.

    SpiffWorkflow interprets the process graph (gateways, scripts, events).
    This class adds what a BPMN engine exposes around it: versioned
    deployments, candidate group task queries, task forms and an activity
    history, all persisted through a ProcessStore.
    """

    def __init__(
        self,
        store: ProcessStore,
        delegates: dict[str, JavaDelegate] | None = None,
        name: str = "default",
    ) -> None:
        self._name = name
        self._store = store
        self._script_engine = DelegateScriptEngine(delegates or {})
        self._models: dict[str, ProcessModel] = {}
        self._specs: dict[str, tuple[Any, dict[str, Any]]] = {}

    @property
    def name(self) -> str:
        return self._name

    # -- repository ---------------------------------------------------------

    def deploy(self, resource: str, content: bytes | None = None) -> Deployment:
        if content is None:
            content = load_resource(resource)
        resource_name = Path(resource).name

        models = parse_process_models(content)
        # Let the interpreter reject the document before anything is stored.
        for model in models:
            self._parse_spec(content, resource_name, model.key)

        deployment = Deployment(
            id=uuid4().hex,
            name=resource_name,
            deployed_at=_utc_now(),
            resource_names=[resource_name],
        )
        self._store.save_deployment(deployment, {resource_name: content})

        for model in models:
            existing = self._store.list_process_definitions(key=model.key)
            version = max((d.version for d in existing), default=0) + 1
            definition = ProcessDefinition(
                id=f"{model.key}:{version}:{deployment.id}",
                key=model.key,
                name=model.name,
                version=version,
                deployment_id=deployment.id,
                resource_name=resource_name,
            )
            self._store.save_process_definition(definition)
            self._models[definition.id] = model

        logger.info(
            "Deployment created",
            extra={"deployment_id": deployment.id, "resource": resource_name},
        )
        return deployment

    def get_process_definition(self, deployment_id: str) -> ProcessDefinition:
        definitions = self._store.list_process_definitions(deployment_id=deployment_id)
        if not definitions:
            raise ProcessDefinitionNotFound(f"No process definition in deployment {deployment_id}")
        if len(definitions) > 1:
            raise ProcessEngineError(
                f"Deployment {deployment_id} has {len(definitions)} process definitions"
            )
        return definitions[0]

    def get_latest_process_definition(self, key: str) -> ProcessDefinition:
        definitions = self._store.list_process_definitions(key=key)
        if not definitions:
            raise ProcessDefinitionNotFound(f"No process definition with key '{key}'")
        return max(definitions, key=lambda d: d.version)

    # -- runtime ------------------------------------------------------------

    def start_process_instance_by_key(
        self,
        key: str,
        variables: dict[str, Any] | None = None,
        business_key: str | None = None,
    ) -> ProcessInstance:
        definition = self.get_latest_process_definition(key)
        spec, subprocess_specs = self._spec(definition)

        workflow = BpmnWorkflow(spec, subprocess_specs, script_engine=self._script_engine)
        instance = ProcessInstance(
            id=uuid4().hex,
            process_definition_id=definition.id,
            process_definition_key=definition.key,
            business_key=business_key,
            started_at=_utc_now(),
        )
        bind_instance_id(workflow, instance.id)

        if variables:
            for task in workflow.get_tasks(state=TaskState.READY):
                task.data.update(variables)

        try:
            workflow.do_engine_steps()
        except WorkflowException as e:
            raise ProcessEngineError(f"Process {key} failed to start: {e}") from e

        instance = self._persist(instance, workflow, self._model(definition))
        logger.info(
            "Process instance started",
            extra={"process_instance_id": instance.id, "key": definition.key},
        )
        return instance

    def get_process_instance(self, instance_id: str) -> ProcessInstance | None:
        return self._store.get_instance(instance_id)

    def get_variables(self, instance_id: str) -> dict[str, Any]:
        workflow = self._load_workflow(instance_id)
        completed = [t for t in workflow.get_tasks(state=TaskState.COMPLETED)]
        completed.sort(key=lambda t: t.last_state_change)
        variables: dict[str, Any] = {}
        for task in completed:
            variables.update(task.data)
        variables.update(workflow.data)
        return variables

    # -- tasks and forms ----------------------------------------------------

    def list_candidate_group_tasks(self, group: str) -> list[Task]:
        tasks: list[Task] = []
        for instance in self._store.list_active_instances():
            workflow = self._load_workflow(instance.id)
            model = self._model_for_instance(instance)
            created = {a.id: a.start_time for a in self._store.list_activities(instance.id)}
            for spiff_task in workflow.get_tasks(state=TaskState.READY):
                definition = model.user_tasks.get(spiff_task.task_spec.name)
                if definition is None or group not in definition.candidate_groups:
                    continue
                task_id = str(spiff_task.id)
                tasks.append(
                    Task(
                        id=task_id,
                        name=definition.name,
                        task_definition_key=definition.id,
                        process_instance_id=instance.id,
                        candidate_groups=list(definition.candidate_groups),
                        created_at=created.get(task_id, instance.started_at),
                    )
                )
        return tasks

    def get_task_form_data(self, task_id: str) -> TaskFormData:
        _, _, model, spiff_task = self._find_open_task(task_id)
        definition = model.user_tasks.get(spiff_task.task_spec.name)
        fields: list[FormField] = list(definition.form_fields) if definition else []
        return TaskFormData(task_id=task_id, fields=fields)

    def complete_task(self, task_id: str, variables: dict[str, Any] | None = None) -> None:
        instance, workflow, model, spiff_task = self._find_open_task(task_id)
        variables = dict(variables or {})

        definition = model.user_tasks.get(spiff_task.task_spec.name)
        if definition is not None:
            missing = [
                f.id for f in definition.form_fields if f.required and variables.get(f.id) is None
            ]
            if missing:
                raise TaskCompletionError(task_id, missing)

        spiff_task.data.update(variables)
        try:
            spiff_task.run()
            workflow.do_engine_steps()
        except WorkflowException as e:
            raise ProcessEngineError(f"Task {task_id} failed: {e}") from e

        instance = self._persist(instance, workflow, model)
        logger.info(
            "Task completed",
            extra={
                "task_id": task_id,
                "process_instance_id": instance.id,
                "ended": instance.ended,
            },
        )

    # -- history ------------------------------------------------------------

    def list_historic_activities(
        self, instance_id: str, finished: bool = True
    ) -> list[HistoricActivityInstance]:
        activities = self._store.list_activities(instance_id)
        if finished:
            activities = [a for a in activities if a.finished]
        # sorted() is stable: activities ending together keep recording order.
        return sorted(
            activities,
            key=lambda a: (a.end_time is None, a.end_time or a.start_time),
        )

    def close(self) -> None:
        self._store.close()
        self._models.clear()
        self._specs.clear()
        logger.info("Process engine closed", extra={"engine": self._name})

    # -- internals ----------------------------------------------------------

    def _parse_spec(self, content: bytes, resource_name: str, key: str) -> tuple[Any, dict[str, Any]]:
        parser = BpmnParser()
        try:
            parser.add_bpmn_xml(etree.fromstring(content), filename=resource_name)
            return parser.get_spec(key), parser.get_subprocess_specs(key)
        except ValidationException as e:
            raise DeploymentError(f"Invalid process definition '{key}': {e}") from e

    def _resource(self, definition: ProcessDefinition) -> bytes:
        content = self._store.get_resource(definition.deployment_id, definition.resource_name)
        if content is None:
            raise ProcessDefinitionNotFound(
                f"Resource {definition.resource_name} missing for {definition.id}"
            )
        return content

    def _model(self, definition: ProcessDefinition) -> ProcessModel:
        model = self._models.get(definition.id)
        if model is None:
            for candidate in parse_process_models(self._resource(definition)):
                if candidate.key == definition.key:
                    model = candidate
                    break
            else:
                raise ProcessDefinitionNotFound(definition.id)
            self._models[definition.id] = model
        return model

    def _spec(self, definition: ProcessDefinition) -> tuple[Any, dict[str, Any]]:
        if definition.id not in self._specs:
            self._specs[definition.id] = self._parse_spec(
                self._resource(definition), definition.resource_name, definition.key
            )
        return self._specs[definition.id]

    def _model_for_instance(self, instance: ProcessInstance) -> ProcessModel:
        for definition in self._store.list_process_definitions(key=instance.process_definition_key):
            if definition.id == instance.process_definition_id:
                return self._model(definition)
        raise ProcessDefinitionNotFound(instance.process_definition_id)

    def _load_workflow(self, instance_id: str) -> Any:
        workflow = self._store.load_workflow(instance_id)
        if workflow is None:
            raise ProcessEngineError(f"Unknown process instance {instance_id}")
        # Persistent stores hand out a freshly deserialized object on every load.
        workflow.script_engine = self._script_engine
        bind_instance_id(workflow, instance_id)
        return workflow

    def _find_open_task(self, task_id: str) -> tuple[ProcessInstance, Any, ProcessModel, Any]:
        for instance in self._store.list_active_instances():
            workflow = self._load_workflow(instance.id)
            for spiff_task in workflow.get_tasks(state=TaskState.READY):
                if str(spiff_task.id) == task_id:
                    return instance, workflow, self._model_for_instance(instance), spiff_task
        raise TaskNotFound(f"No open task with id {task_id}")

    def _persist(
        self, instance: ProcessInstance, workflow: Any, model: ProcessModel
    ) -> ProcessInstance:
        self._record_history(instance.id, workflow, model)
        if workflow.is_completed() and not instance.ended:
            instance = instance.model_copy(update={"ended": True, "ended_at": _utc_now()})
        self._store.save_instance(instance, workflow)
        return instance

    def _record_history(self, instance_id: str, workflow: Any, model: ProcessModel) -> None:
        """Bring the activity history in line with the workflow's task states.

        Steps the interpreter ran inside a single engine call were never seen
        active; they are recorded with their completion time as start time.
        """
        known = {a.id: a for a in self._store.list_activities(instance_id)}
        now = _utc_now()

        for spiff_task in workflow.get_tasks():
            node = model.nodes.get(spiff_task.task_spec.name)
            if node is None:
                continue
            completed = spiff_task.state == TaskState.COMPLETED
            if not completed and spiff_task.state not in _ACTIVE_STATES:
                continue

            activity_id = str(spiff_task.id)
            record = known.get(activity_id)
            end_time = (
                datetime.fromtimestamp(spiff_task.last_state_change, tz=UTC) if completed else None
            )

            if record is None:
                record = HistoricActivityInstance(
                    id=activity_id,
                    activity_id=node.id,
                    activity_name=node.name,
                    activity_type=node.type,
                    process_instance_id=instance_id,
                    start_time=end_time or now,
                    end_time=end_time,
                )
            elif completed and record.end_time is None:
                record = record.model_copy(
                    update={"end_time": max(end_time, record.start_time)}
                )
            else:
                continue
            self._store.save_activity(record)
