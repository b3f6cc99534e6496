"""Tests for the interactive question flow (taqyon.prompts)."""

from __future__ import annotations

import io

import pytest
from rich.console import Console
from rich.prompt import Confirm, Prompt

from taqyon.config import Framework, FrontendLanguage, ProjectSpec
from taqyon.errors import ConfigurationError
from taqyon.prompts import QUESTIONS, ask, ask_project_spec, next_question, spec_from_answers

pytestmark = pytest.mark.unit


def _keys_asked(answers: dict) -> list[str]:
    """Drive the flow with *answers* and return the keys asked, in order."""
    asked: list[str] = []

    def asker(question):
        asked.append(question.key)
        return answers[question.key]

    ask_project_spec(asker=asker)
    return asked


# ---------------------------------------------------------------------------
# Question sequence
# ---------------------------------------------------------------------------


class TestNextQuestion:
    def test_starts_with_name(self):
        assert next_question({}).key == "name"

    def test_full_sequence(self):
        answers = {
            "name": "demo",
            "frontend_enabled": True,
            "backend_enabled": True,
            "framework": "react",
            "frontend_language": "ts",
            "logging_enabled": True,
            "dev_server_enabled": False,
        }
        assert _keys_asked(answers) == [q.key for q in QUESTIONS]

    def test_frontend_questions_skipped_without_frontend(self):
        answers = {
            "name": "native",
            "frontend_enabled": False,
            "backend_enabled": True,
            "logging_enabled": False,
            "dev_server_enabled": True,
        }
        assert _keys_asked(answers) == [
            "name", "frontend_enabled", "backend_enabled", "logging_enabled", "dev_server_enabled",
        ]

    def test_backend_questions_skipped_without_backend(self):
        answers = {
            "name": "web",
            "frontend_enabled": True,
            "backend_enabled": False,
            "framework": "vue",
            "frontend_language": "js",
        }
        assert _keys_asked(answers) == [
            "name", "frontend_enabled", "backend_enabled", "framework", "frontend_language",
        ]

    def test_returns_spec_when_complete(self):
        spec = next_question({
            "name": "demo",
            "frontend_enabled": True,
            "backend_enabled": False,
            "framework": "svelte",
            "frontend_language": "ts",
        })
        assert isinstance(spec, ProjectSpec)
        assert spec.framework is Framework.SVELTE
        assert spec.frontend_language is FrontendLanguage.TS

    def test_both_parts_disabled(self):
        with pytest.raises(ConfigurationError, match="At least one"):
            next_question({"name": "x", "frontend_enabled": False, "backend_enabled": False})


class TestSpecFromAnswers:
    def test_defaults(self):
        spec = spec_from_answers({"name": "demo"})
        assert spec.frontend_enabled and spec.backend_enabled
        assert spec.framework is Framework.REACT
        assert spec.backend_options.logging_enabled

    def test_backend_options(self):
        spec = spec_from_answers({"name": "demo", "logging_enabled": False})
        assert spec.backend_options.logging_enabled is False
        assert spec.backend_options.dev_server_enabled is True

    def test_invalid_name(self):
        with pytest.raises(ConfigurationError, match="Project name may only contain"):
            spec_from_answers({"name": "bad name"})

    def test_missing_name(self):
        with pytest.raises(ConfigurationError, match="Project name is required"):
            spec_from_answers({})

    def test_unknown_framework(self):
        with pytest.raises(ConfigurationError):
            spec_from_answers({"name": "demo", "framework": "angular"})


class TestAskProjectSpec:
    def test_preset_answers_not_asked(self):
        asked: list[str] = []

        def asker(question):
            asked.append(question.key)
            return question.default

        spec = ask_project_spec({"name": "demo", "framework": "vue"}, asker=asker)
        assert "name" not in asked
        assert "framework" not in asked
        assert spec.framework is Framework.VUE
        assert spec.frontend_language is FrontendLanguage.JS


# ---------------------------------------------------------------------------
# Rich driver
# ---------------------------------------------------------------------------


class TestAsk:
    @pytest.fixture
    def quiet_console(self):
        return Console(file=io.StringIO(), width=120)

    def test_name_is_asked_until_valid(self, monkeypatch, quiet_console):
        replies = iter(["", "bad name", "  good-name  "])
        monkeypatch.setattr(Prompt, "ask", lambda *args, **kwargs: next(replies))

        assert ask(QUESTIONS[0], quiet_console) == "good-name"
        output = quiet_console.file.getvalue()
        assert "Project name is required." in output
        assert "may only contain" in output

    def test_confirm(self, monkeypatch, quiet_console):
        seen: dict = {}

        def fake_confirm(message, **kwargs):
            seen.update(kwargs, message=message)
            return False

        monkeypatch.setattr(Confirm, "ask", fake_confirm)
        question = next(q for q in QUESTIONS if q.key == "backend_enabled")
        assert ask(question, quiet_console) is False
        assert seen["message"] == "Scaffold backend?"
        assert seen["default"] is True

    def test_choice(self, monkeypatch, quiet_console):
        seen: dict = {}

        def fake_prompt(message, **kwargs):
            seen.update(kwargs)
            return "svelte"

        monkeypatch.setattr(Prompt, "ask", fake_prompt)
        question = next(q for q in QUESTIONS if q.key == "framework")
        assert ask(question, quiet_console) == "svelte"
        assert seen["choices"] == ["react", "vue", "svelte"]
        assert seen["default"] == "react"
