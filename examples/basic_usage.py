#!/usr/bin/env python3
"""Programmatic onboarding example.

This drives the engine services directly instead of prompting:

* load settings from `.env`
* deploy the bundled onboarding process and start an instance
* complete every managers task from command line values
* print the activity history

Use `--years` above 3 to take the automated path.
"""

from __future__ import annotations

import argparse
from datetime import date
from typing import Sequence

from onboarding_console.core.config import OnboardingSettings
from onboarding_console.core.logging import configure_logging
from onboarding_console.engine import get_process_engine_configuration
from onboarding_console.onboarding.delegates import AUTOMATED_DATA_DELEGATE, AutomatedDataDelegate
from onboarding_console.onboarding.history import format_activity_history


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Onboard a new hire without prompts.")
    parser.add_argument("--name", required=True, help="Full name of the new hire")
    parser.add_argument("--years", type=int, required=True, help="Years of experience")
    parser.add_argument(
        "--welcome",
        type=date.fromisoformat,
        default=date.today(),
        help="Personal welcome date (YYYY-MM-DD), used on the personalized path",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = OnboardingSettings()
    configure_logging(settings.log_level, settings.log_format)

    answers = {
        "fullName": args.name,
        "yearsOfExperience": args.years,
        "personalWelcomeTime": args.welcome,
    }

    cfg = get_process_engine_configuration(settings.engine_type, settings.database)
    cfg.register_delegate(AUTOMATED_DATA_DELEGATE, AutomatedDataDelegate())

    with cfg.build_process_engine() as engine:
        deployment = engine.deploy(settings.process_resource)
        definition = engine.get_process_definition(deployment.id)
        instance = engine.start_process_instance_by_key(settings.process_key)

        while instance is not None and not instance.ended:
            for task in engine.list_candidate_group_tasks(settings.candidate_group):
                form = engine.get_task_form_data(task.id)
                engine.complete_task(task.id, {f.id: answers.get(f.id) for f in form.fields})
                print(f"Completed: {task.name}")
            instance = engine.get_process_instance(instance.id)

        for line in format_activity_history(
            definition, instance, engine.list_historic_activities(instance.id)
        ):
            print(line)
        print(f"Variables: {engine.get_variables(instance.id)}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
