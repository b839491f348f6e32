"""Delegates the onboarding process definition calls from its script tasks."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from onboarding_console.engine.delegates import DelegateExecution

logger = logging.getLogger(__name__)

# Name the process definition uses to reach AutomatedDataDelegate.
AUTOMATED_DATA_DELEGATE = "automatedDataDelegate"


class AutomatedDataDelegate:
    """Stamps the automated welcome time on experienced hires.

    Stands in for a backend integration; no external call is made.
    """

    def execute(self, execution: DelegateExecution) -> None:
        execution.set_variable("autoWelcomeTime", datetime.now(tz=UTC))
        logger.info(
            f"Faux call to backend for [{execution.get_variable('fullName')}]",
            extra={"process_instance_id": execution.process_instance_id},
        )
