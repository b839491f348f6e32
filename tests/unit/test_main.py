"""End-to-end tests for the CLI entrypoint with the in-memory engine."""

import importlib
import io
import logging
import tomllib
from pathlib import Path

import pytest

from onboarding_console.main import build_parser, main
from onboarding_console.onboarding.console import Console

pytestmark = pytest.mark.usefixtures("restore_root_logger")


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


def _run(answers: str, *argv: str) -> tuple[int, str]:
    out = io.StringIO()
    code = main(["--engine", "mem", *argv], console=Console(io.StringIO(answers), out))
    return code, out.getvalue()


def test_experienced_hire_run_completes() -> None:
    code, output = _run("Jane Doe\n5\n")

    assert code == 0
    assert "Full Name?" in output
    assert "Years of Experience? (Must be a whole number)" in output
    assert "-- Generic and Automated Data Entry [automatedIntroTask]" in output
    lines = output.splitlines()
    assert lines[-1].startswith("COMPLETE Onboarding [onboarding]")
    assert lines[-2].startswith("-- End [endOnboarding]")


def test_junior_hire_run_prompts_for_welcome_time() -> None:
    code, output = _run("Sam\n1\n2024-02-01\n")

    assert code == 0
    assert "Personal Welcome Time? (Must be a date yyyy-MM-dd)" in output
    assert output.count("BEGIN Onboarding [onboarding]") == 2
    assert output.splitlines()[-1].startswith("COMPLETE Onboarding [onboarding]")


def test_malformed_number_exits_with_error(capsys: pytest.CaptureFixture[str]) -> None:
    code, output = _run("Jane\nfive\n")

    assert code == 1
    assert "COMPLETE" not in output
    assert "Invalid input" in capsys.readouterr().err


def test_end_of_input_exits_cancelled() -> None:
    code, _ = _run("")

    assert code == 130


def test_unknown_engine_type_is_a_configuration_error(capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["--engine", "bogus"], console=Console(io.StringIO(""), io.StringIO()))

    assert code == 2
    assert "Unsupported engine type" in capsys.readouterr().err


def test_invalid_env_file_is_a_configuration_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    (tmp_path / ".env").write_text("ONBOARDING_LOG_FORMAT=yaml\n", encoding="utf-8")

    code = main([], console=Console(io.StringIO(""), io.StringIO()))

    assert code == 2
    assert "Configuration error" in capsys.readouterr().err


def test_unknown_log_level_falls_back_to_info() -> None:
    code, _ = _run("Jane\n5\n", "--log-level", "chatty")

    assert code == 0
    assert logging.getLogger().level == logging.INFO


def test_console_script_resolves_to_main() -> None:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    scripts = tomllib.loads(pyproject.read_text(encoding="utf-8"))["project"]["scripts"]

    module_name, _, attr = scripts["onboarding-console"].partition(":")

    assert getattr(importlib.import_module(module_name), attr) is main


def test_parser_overrides() -> None:
    args = build_parser().parse_args(
        ["--engine", "pg", "--candidate-group", "hr", "--log-format", "json"]
    )

    assert args.engine_type == "pg"
    assert args.candidate_group == "hr"
    assert args.log_format == "json"
    assert args.resource is None
