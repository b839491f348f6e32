"""SpiffWorkflow engine over a store that reloads workflows from JSON."""

import gc
from collections.abc import Iterator
from datetime import date, datetime

import pytest

from onboarding_console.engine.delegates import DelegateExecution
from onboarding_console.engine.spiff_engine import SpiffProcessEngine
from onboarding_console.onboarding.delegates import AUTOMATED_DATA_DELEGATE, AutomatedDataDelegate
from onboarding_console.onboarding.history import order_activity_history

RESOURCE = "onboarding.bpmn20.xml"


class RecordingDelegate(AutomatedDataDelegate):
    def __init__(self) -> None:
        self.instance_ids: list[str] = []

    def execute(self, execution: DelegateExecution) -> None:
        self.instance_ids.append(execution.process_instance_id)
        super().execute(execution)


@pytest.fixture
def delegate() -> RecordingDelegate:
    return RecordingDelegate()


@pytest.fixture
def engine(serializing_store, delegate: RecordingDelegate) -> Iterator[SpiffProcessEngine]:
    engine = SpiffProcessEngine(serializing_store, delegates={AUTOMATED_DATA_DELEGATE: delegate})
    engine.deploy(RESOURCE)
    yield engine
    engine.close()


def _complete_data_entry(engine: SpiffProcessEngine, instance_id: str, years: int) -> None:
    (task,) = [
        t for t in engine.list_candidate_group_tasks("managers") if t.process_instance_id == instance_id
    ]
    engine.complete_task(task.id, {"fullName": "Jane", "yearsOfExperience": years})


def test_automated_path_after_reload(
    engine: SpiffProcessEngine, serializing_store, delegate: RecordingDelegate
) -> None:
    instance = engine.start_process_instance_by_key("onboarding")

    _complete_data_entry(engine, instance.id, 5)

    assert serializing_store.loads > 0
    assert delegate.instance_ids == [instance.id]
    assert engine.get_process_instance(instance.id).ended is True
    assert isinstance(engine.get_variables(instance.id)["autoWelcomeTime"], datetime)

    history = order_activity_history(engine.list_historic_activities(instance.id))
    assert [a.activity_id for a in history][0] == "startOnboarding"
    assert [a.activity_id for a in history][-1] == "endOnboarding"
    assert "automatedIntroTask" in {a.activity_id for a in history}


def test_personalized_path_after_reload(
    engine: SpiffProcessEngine, delegate: RecordingDelegate
) -> None:
    instance = engine.start_process_instance_by_key("onboarding")
    _complete_data_entry(engine, instance.id, 2)

    (follow_up,) = engine.list_candidate_group_tasks("managers")
    assert follow_up.task_definition_key == "personalizedIntroTask"
    assert [f.id for f in engine.get_task_form_data(follow_up.id).fields] == ["personalWelcomeTime"]

    engine.complete_task(follow_up.id, {"personalWelcomeTime": date(2024, 2, 1)})

    assert delegate.instance_ids == []
    assert engine.get_process_instance(instance.id).ended is True
    variables = engine.get_variables(instance.id)
    assert variables["personalWelcomeTime"] == date(2024, 2, 1)
    assert "autoWelcomeTime" not in variables
    history_ids = [a.activity_id for a in engine.list_historic_activities(instance.id)]
    assert "personalizedIntroTask" in history_ids
    assert "automatedIntroTask" not in history_ids


def test_delegate_reachable_after_collected_workflows(
    engine: SpiffProcessEngine, delegate: RecordingDelegate
) -> None:
    started = []
    for _ in range(40):
        instance = engine.start_process_instance_by_key("onboarding")
        started.append(instance.id)
        gc.collect()
        _complete_data_entry(engine, instance.id, 5)

    assert delegate.instance_ids == started
    assert not engine.list_candidate_group_tasks("managers")
