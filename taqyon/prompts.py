"""Interactive project questions.

The question sequence is a pure function of the answers given so far
(:func:`next_question`); :func:`ask_project_spec` is the thin Rich driver that
puts each question to the operator.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.prompt import Confirm, Prompt

from taqyon.config import (
    BackendOptions,
    Framework,
    FrontendLanguage,
    ProjectSpec,
    validate_project_name,
)
from taqyon.errors import ConfigurationError
from taqyon.toolchain import ToolchainDescriptor
from taqyon.utils import console as default_console


@dataclass(frozen=True)
class Question:
    """One question in the flow.

    ``kind`` is ``"text"``, ``"confirm"`` or ``"choice"``; ``choices`` holds
    ``(value, label)`` pairs for choice questions.
    """

    key: str
    message: str
    kind: str
    default: Any = None
    choices: tuple[tuple[str, str], ...] = ()


_FRONTEND_ONLY = ("framework", "frontend_language")
_BACKEND_ONLY = ("logging_enabled", "dev_server_enabled")

QUESTIONS: tuple[Question, ...] = (
    Question("name", "Project name", "text"),
    Question("frontend_enabled", "Scaffold frontend?", "confirm", True),
    Question("backend_enabled", "Scaffold backend?", "confirm", True),
    Question(
        "framework",
        "Select a frontend framework",
        "choice",
        Framework.REACT.value,
        tuple((fw.value, fw.label) for fw in Framework),
    ),
    Question(
        "frontend_language",
        "Select a frontend language",
        "choice",
        FrontendLanguage.JS.value,
        tuple((lang.value, lang.label) for lang in FrontendLanguage),
    ),
    Question("logging_enabled", "Enable logging?", "confirm", True),
    Question("dev_server_enabled", "Enable dev server?", "confirm", True),
)


def _applies(question: Question, answers: Mapping[str, Any]) -> bool:
    if question.key in _FRONTEND_ONLY:
        return bool(answers.get("frontend_enabled"))
    if question.key in _BACKEND_ONLY:
        return bool(answers.get("backend_enabled"))
    return True


def next_question(answers: Mapping[str, Any]) -> Question | ProjectSpec:
    """Return the next unanswered question, or the finished spec.

    Raises:
        ConfigurationError: The answers do not form a valid project (for
            example both parts disabled).
    """
    for question in QUESTIONS:
        if question.key not in answers and _applies(question, answers):
            return question
    return spec_from_answers(answers)


def spec_from_answers(answers: Mapping[str, Any]) -> ProjectSpec:
    data: dict[str, Any] = {
        "name": answers.get("name", ""),
        "frontend_enabled": answers.get("frontend_enabled", True),
        "backend_enabled": answers.get("backend_enabled", True),
    }
    for key in _FRONTEND_ONLY:
        if key in answers:
            data[key] = answers[key]
    data["backend_options"] = BackendOptions(
        logging_enabled=answers.get("logging_enabled", True),
        dev_server_enabled=answers.get("dev_server_enabled", True),
    )
    try:
        return ProjectSpec(**data)
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise ConfigurationError(messages) from exc


# ---------------------------------------------------------------------------
# Rich driver
# ---------------------------------------------------------------------------


def ask(question: Question, console: Console | None = None) -> Any:
    """Put one question to the operator and return the answer."""
    console = console or default_console
    if question.kind == "confirm":
        return Confirm.ask(question.message, default=question.default, console=console)

    if question.kind == "choice":
        labels = ", ".join(f"{value} ({label})" for value, label in question.choices)
        console.print(f"[dim]{labels}[/dim]")
        return Prompt.ask(
            question.message,
            choices=[value for value, _ in question.choices],
            default=question.default,
            console=console,
        )

    while True:
        answer = Prompt.ask(question.message, console=console)
        try:
            return validate_project_name(answer)
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")


def ask_project_spec(
    preset: Mapping[str, Any] | None = None,
    asker: Callable[[Question], Any] = ask,
) -> ProjectSpec:
    """Ask every remaining question and return the resulting spec.

    *preset* holds answers already known (for example from CLI flags).
    """
    answers: dict[str, Any] = dict(preset or {})
    while True:
        step = next_question(answers)
        if isinstance(step, ProjectSpec):
            return step
        answers[step.key] = asker(step)


def confirm_toolchain(descriptor: ToolchainDescriptor) -> bool:
    """Ask whether to continue when preflight found Qt missing or incomplete."""
    return Confirm.ask(
        "Preflight checks reported missing requirements. Continue anyway?",
        default=False,
        console=default_console,
    )


def ask_qt_path() -> str | None:
    answer = Prompt.ask(
        "Enter Qt6 installation path (or press Enter to skip)",
        default="",
        show_default=False,
        console=default_console,
    )
    return answer.strip() or None
