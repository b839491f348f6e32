"""CLI entrypoint for the onboarding console."""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from onboarding_console import __version__
from onboarding_console.core.config import OnboardingSettings
from onboarding_console.core.logging import configure_logging
from onboarding_console.engine.bootstrap import get_process_engine_configuration
from onboarding_console.engine.errors import ProcessEngineError
from onboarding_console.onboarding.console import Console, PromptCancelled
from onboarding_console.onboarding.delegates import AUTOMATED_DATA_DELEGATE, AutomatedDataDelegate
from onboarding_console.onboarding.driver import OnboardingDriver
from onboarding_console.onboarding.forms import FormInput, FormInputError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onboarding-console",
        description="Run the onboarding process, answering its human tasks from the console",
    )
    parser.add_argument(
        "--version", action="version", version=f"onboarding-console {__version__}"
    )
    parser.add_argument(
        "--engine",
        dest="engine_type",
        default=None,
        help="Process store: 'mem' (in-memory) or 'pg' (PostgreSQL via ONBOARDING_DB_*)",
    )
    parser.add_argument(
        "--resource",
        default=None,
        help="Bundled resource name or path of the BPMN process definition",
    )
    parser.add_argument("--process-key", default=None, help="Key of the process to start")
    parser.add_argument(
        "--candidate-group",
        default=None,
        help="Candidate group whose tasks are answered from the console",
    )
    parser.add_argument("--log-level", default=None, help="Logging level, e.g. DEBUG")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Log record layout",
    )
    return parser


def _apply_overrides(settings: OnboardingSettings, args: argparse.Namespace) -> OnboardingSettings:
    overrides = {
        key: value
        for key, value in {
            "engine_type": args.engine_type,
            "process_resource": args.resource,
            "process_key": args.process_key,
            "candidate_group": args.candidate_group,
            "log_level": args.log_level,
            "log_format": args.log_format,
        }.items()
        if value is not None
    }
    return settings.model_copy(update=overrides)


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = _apply_overrides(OnboardingSettings(), args)
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.numeric_log_level, settings.log_format)

    try:
        cfg = get_process_engine_configuration(settings.engine_type, settings.database)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    cfg.register_delegate(AUTOMATED_DATA_DELEGATE, AutomatedDataDelegate())

    with cfg.build_process_engine() as engine:
        driver = OnboardingDriver(
            engine,
            console,
            resource=settings.process_resource,
            process_key=settings.process_key,
            candidate_group=settings.candidate_group,
            form_input=FormInput(date_format=settings.date_format, date_hint=settings.date_hint),
        )
        try:
            driver.run()
        except FormInputError as e:
            logger.error(f"Invalid input: {e}", extra={"field_id": e.field.id})
            print(f"Invalid input: {e}", file=sys.stderr)
            return 1
        except PromptCancelled as e:
            logger.warning(f"Run cancelled: {e}")
            return 130
        except ProcessEngineError as e:
            logger.exception("Process engine error")
            print(f"Process engine error: {e}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
