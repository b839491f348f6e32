"""Engine-invoked delegates.

A delegate is registered on the engine configuration under a name. Script
tasks in a process definition invoke it with the `execution` object the script
engine injects, e.g.::

    <scriptTask id="automatedIntro" scriptFormat="python">
      <script>automatedDataDelegate.execute(execution)</script>
    </scriptTask>

The delegate only sees the `DelegateExecution` capability, never the engine.
"""

from __future__ import annotations

from typing import Any, Protocol

from SpiffWorkflow.bpmn.script_engine import PythonScriptEngine, TaskDataEnvironment

EXECUTION_NAME = "execution"

# Attribute carrying the process instance id on a live workflow object.
INSTANCE_ID_ATTR = "onboarding_instance_id"


def bind_instance_id(workflow: Any, instance_id: str) -> None:
    """Tag a workflow object with the process instance it executes."""
    setattr(workflow, INSTANCE_ID_ATTR, instance_id)


def bound_instance_id(workflow: Any) -> str:
    # Subprocess workflows defer to the workflow that started them.
    top = getattr(workflow, "top_workflow", None) or workflow
    return getattr(top, INSTANCE_ID_ATTR, "")


class DelegateExecution:
    """Read and write access to the variables of the running step."""

    def __init__(self, data: dict[str, Any], process_instance_id: str, activity_id: str) -> None:
        self._data = data
        self.process_instance_id = process_instance_id
        self.activity_id = activity_id

    def get_variable(self, name: str) -> Any:
        return self._data.get(name)

    def set_variable(self, name: str, value: Any) -> None:
        self._data[name] = value

    def get_variables(self) -> dict[str, Any]:
        return dict(self._data)

    def has_variable(self, name: str) -> bool:
        return name in self._data


class JavaDelegate(Protocol):
    """A callback the engine runs at an automated step."""

    def execute(self, execution: DelegateExecution) -> None: ...


class DelegateScriptEngine(PythonScriptEngine):
    """Script engine that exposes registered delegates to script tasks.

    Delegates are script globals; each script also receives a fresh
    `execution` bound to the task data. Neither is left behind in the
    process variables once the script has run.
    """

    def __init__(self, delegates: dict[str, JavaDelegate]) -> None:
        super().__init__(environment=TaskDataEnvironment(dict(delegates)))
        self.delegates = dict(delegates)

    def execute(self, task: Any, script: str, external_context: dict[str, Any] | None = None) -> Any:
        context = dict(external_context or {})
        context[EXECUTION_NAME] = DelegateExecution(
            task.data,
            process_instance_id=bound_instance_id(task.workflow),
            activity_id=task.task_spec.name,
        )
        return super().execute(task, script, context)
