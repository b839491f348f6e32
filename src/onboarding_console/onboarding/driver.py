"""Interactive driver for one run of the onboarding process.

The operator acts for every member of the candidate group: each open task is
shown, its form is filled in from the console and the task is completed. The
process instance is re-read from the engine after every pass because automated
steps may have moved it on, possibly to its end.
"""

from __future__ import annotations

import logging
from typing import Any

from onboarding_console.engine.models import ProcessDefinition, ProcessInstance, Task
from onboarding_console.engine.service import ProcessEngine
from onboarding_console.onboarding.console import Console
from onboarding_console.onboarding.forms import FormInput
from onboarding_console.onboarding.history import format_activity_history

logger = logging.getLogger(__name__)


class OnboardingDriver:
    """Deploys, starts and walks a process instance through its human tasks."""

    def __init__(
        self,
        engine: ProcessEngine,
        console: Console | None = None,
        *,
        resource: str = "onboarding.bpmn20.xml",
        process_key: str = "onboarding",
        candidate_group: str = "managers",
        form_input: FormInput | None = None,
    ) -> None:
        self.engine = engine
        self.console = console or Console()
        self.resource = resource
        self.process_key = process_key
        self.candidate_group = candidate_group
        self.form_input = form_input or FormInput()

    def run(self) -> ProcessInstance | None:
        """Run the process to its end.

        Returns:
            The last instance state reported by the engine.

        Raises:
            FormInputError: Operator input did not match a field type.
            PromptCancelled: Input ended before the process did.
            ProcessEngineError: The engine rejected a deployment or completion.
        """
        deployment = self.engine.deploy(self.resource)
        definition = self.engine.get_process_definition(deployment.id)
        logger.info(f"Found process definition [{definition.name}] with id [{definition.id}]")

        instance: ProcessInstance | None = self.engine.start_process_instance_by_key(
            self.process_key
        )
        logger.info(
            f"Onboarding process started with process instance id [{instance.id}] "
            f"key [{instance.process_definition_key}]"
        )

        while instance is not None and not instance.ended:
            tasks = self.engine.list_candidate_group_tasks(self.candidate_group)
            logger.info(f"Active outstanding tasks: [{len(tasks)}]")

            for task in tasks:
                self.process_task(task)
                self.print_activity_history(definition, instance)

            # Re-query the process instance, making sure the latest state is available
            instance = self.engine.get_process_instance(instance.id)

        return instance

    def process_task(self, task: Task) -> dict[str, Any]:
        """Collect the task's form values and complete it."""
        logger.info(f"Processing Task [{task.name}]", extra={"task_id": task.id})
        variables = self.input_variables(task)
        self.engine.complete_task(task.id, variables)
        return variables

    def input_variables(self, task: Task) -> dict[str, Any]:
        """Prompt for every supported field of the task's form."""
        variables: dict[str, Any] = {}
        form = self.engine.get_task_form_data(task.id)
        for field in form.fields:
            if not self.form_input.is_supported(field):
                logger.info(
                    "<form type not supported>",
                    extra={"field_id": field.id, "field_type": field.type},
                )
                continue
            raw = self.console.ask(self.form_input.prompt(field))
            variables[field.id] = self.form_input.parse(field, raw)
        return variables

    def print_activity_history(
        self, definition: ProcessDefinition, instance: ProcessInstance
    ) -> None:
        activities = self.engine.list_historic_activities(instance.id, finished=True)
        for line in format_activity_history(definition, instance, activities):
            self.console.write(line)
