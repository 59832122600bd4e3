from __future__ import annotations

import io
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from gk.ui import Cancelled, Prompter

GIT_AVAILABLE = subprocess.run(["git", "--version"], capture_output=True).returncode == 0

requires_git = pytest.mark.skipif(not GIT_AVAILABLE, reason="git missing")

INTERRUPT = object()


def run(cmd: list[str], cwd: Path | None = None) -> str:
    result = subprocess.run(
        cmd, cwd=str(cwd) if cwd else None, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


def git(repo: Path, *args: str) -> str:
    return run(["git", *args], cwd=repo)


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def init_repo(root: Path, branch: str = "main") -> Path:
    root.mkdir(parents=True, exist_ok=True)
    git(root, "init", "-q")
    git(root, "symbolic-ref", "HEAD", f"refs/heads/{branch}")
    git(root, "config", "user.email", "test@example.com")
    git(root, "config", "user.name", "Test")
    git(root, "config", "commit.gpgsign", "false")
    commit_file(root, "README.md", "hello\n", "init")
    return root


class ScriptedPrompter(Prompter):
    """Answers prompts from a queue instead of the terminal.

    An answer may be a plain value, a callable receiving the offered
    ``(label, value)`` choices, or ``INTERRUPT`` to simulate Ctrl-C. Text
    answers go through the prompt's validator; a rejected answer is consumed
    and the next one is tried, like a re-prompt.
    """

    def __init__(self, answers: Sequence[Any]) -> None:
        self.answers = list(answers)
        self.asked: list[tuple[str, str]] = []

    def _next(self, kind: str, message: str) -> Any:
        self.asked.append((kind, message))
        if not self.answers:
            raise Cancelled()
        answer = self.answers.pop(0)
        if answer is INTERRUPT:
            raise Cancelled()
        return answer

    def select(self, message: str, choices: Sequence[tuple[str, Any]], default: Any = None) -> Any:
        answer = self._next("select", message)
        if callable(answer) and not isinstance(answer, type):
            answer = answer(list(choices))
        values = [value for _, value in choices]
        assert answer in values, f"{answer!r} is not offered by {message!r}: {values!r}"
        return answer

    def checkbox(self, message: str, choices: Sequence[tuple[str, Any]]) -> list[Any]:
        answer = self._next("checkbox", message)
        if callable(answer):
            answer = answer(list(choices))
        values = [value for _, value in choices]
        for item in answer:
            assert item in values, f"{item!r} is not offered by {message!r}"
        return list(answer)

    def text(self, message: str, validate: Callable[[str], Any] | None = None) -> str:
        while True:
            answer = str(self._next("text", message))
            if validate is None or validate(answer) is True:
                return answer

    def confirm(self, message: str, default: bool = False) -> bool:
        return bool(self._next("confirm", message))

    def fuzzy(self, message: str, options: Sequence[str]) -> str:
        answer = self._next("fuzzy", message)
        assert answer in options
        return str(answer)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the developer's own gk settings out of the tests."""
    config_home = tmp_path / "config-home"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO(), width=120, highlight=False, color_system=None)


def output(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    if not GIT_AVAILABLE:
        pytest.skip("git missing")
    return init_repo(tmp_path / "repo")


@pytest.fixture
def calls(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    """Record passthrough git commands instead of running them."""
    from gk import git_ops

    recorded: list[list[str]] = []

    def fake_passthrough(args: Sequence[str], cwd: Path | None = None) -> int:
        recorded.append(list(args))
        return 0

    monkeypatch.setattr(git_ops, "passthrough", fake_passthrough)
    return recorded
