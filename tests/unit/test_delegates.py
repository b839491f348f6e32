"""Unit tests for the automated data delegate."""

import logging
from datetime import datetime

import pytest

from onboarding_console.engine.delegates import DelegateExecution
from onboarding_console.onboarding.delegates import AutomatedDataDelegate


def test_sets_auto_welcome_time(caplog: pytest.LogCaptureFixture) -> None:
    data = {"fullName": "Jane Doe", "yearsOfExperience": 5}
    execution = DelegateExecution(data, process_instance_id="pi-1", activity_id="automatedIntroTask")
    caplog.set_level(logging.INFO)

    AutomatedDataDelegate().execute(execution)

    assert isinstance(data["autoWelcomeTime"], datetime)
    assert data["autoWelcomeTime"].tzinfo is not None
    assert "Faux call to backend for [Jane Doe]" in caplog.messages
    record = next(r for r in caplog.records if r.getMessage().startswith("Faux call"))
    assert record.process_instance_id == "pi-1"


def test_missing_full_name_still_completes(caplog: pytest.LogCaptureFixture) -> None:
    execution = DelegateExecution({}, process_instance_id="pi-2", activity_id="automatedIntroTask")
    caplog.set_level(logging.INFO)

    AutomatedDataDelegate().execute(execution)

    assert execution.has_variable("autoWelcomeTime")
    assert "Faux call to backend for [None]" in caplog.messages


def test_execution_variables_are_a_copy() -> None:
    execution = DelegateExecution({"a": 1}, process_instance_id="pi", activity_id="x")

    snapshot = execution.get_variables()
    snapshot["a"] = 2

    assert execution.get_variable("a") == 1
    assert execution.get_variable("missing") is None
