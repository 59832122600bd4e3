from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar, Union

import questionary
from prompt_toolkit.completion import FuzzyCompleter, WordCompleter
from prompt_toolkit.shortcuts import prompt
from prompt_toolkit.validation import Validator
from rich.console import Console
from rich.markup import escape

from .models import SELECT_ALL, CommitRecord, Control, Item, ResetMode

T = TypeVar("T")

Validate = Callable[[str], Union[bool, str]]

DANGER = "[red bold]"
SUBJECT_WIDTH = 60


class Cancelled(Exception):
    """The operator interrupted a prompt."""


def _ask(question: Any) -> Any:
    try:
        return question.unsafe_ask()
    except (KeyboardInterrupt, EOFError) as exc:
        raise Cancelled() from exc


def resolve_selection(selected: Iterable[Any], items: Sequence[T]) -> list[T]:
    """Map checkbox answers back to real values in listing order.

    Picking the select-all entry means every item; the entry itself is never
    part of the result.
    """
    chosen = list(selected)
    if SELECT_ALL in chosen:
        return list(items)
    wanted = [answer.value for answer in chosen if isinstance(answer, Item)]
    return [item for item in items if item in wanted]


class Prompter:
    """Blocking terminal prompts backed by questionary and prompt_toolkit."""

    def select(
        self,
        message: str,
        choices: Sequence[tuple[str, Any]],
        default: Any = None,
    ) -> Any:
        q_choices = [questionary.Choice(title=label, value=value) for label, value in choices]
        return _ask(questionary.select(message, choices=q_choices, default=default))

    def checkbox(self, message: str, choices: Sequence[tuple[str, Any]]) -> list[Any]:
        q_choices = [questionary.Choice(title=label, value=value) for label, value in choices]
        return list(_ask(questionary.checkbox(message, choices=q_choices)) or [])

    def text(self, message: str, validate: Validate | None = None) -> str:
        if validate is None:
            return str(_ask(questionary.text(message)))
        return str(_ask(questionary.text(message, validate=validate)))

    def confirm(self, message: str, default: bool = False) -> bool:
        return bool(_ask(questionary.confirm(message, default=default)))

    def fuzzy(self, message: str, options: Sequence[str]) -> str:
        completer = FuzzyCompleter(WordCompleter(list(options), ignore_case=True))
        validator = Validator.from_callable(
            lambda value: value in options,
            error_message="Pick one of the listed names.",
            move_cursor_to_end=True,
        )
        try:
            return prompt(f"{message} ", completer=completer, validator=validator)
        except (KeyboardInterrupt, EOFError) as exc:
            raise Cancelled() from exc

    # Composite prompts, built only on the primitives above so a scripted
    # double only has to provide those.

    def multi_select(
        self,
        message: str,
        items: Sequence[tuple[str, T]],
        all_label: str = "Select all",
    ) -> list[T]:
        choices: list[tuple[str, Any]] = [(all_label, SELECT_ALL)]
        choices.extend((label, Item(value)) for label, value in items)
        answers = self.checkbox(message, choices)
        return resolve_selection(answers, [value for _, value in items])

    def confirm_token(self, message: str, token: str = "yes") -> None:
        """Require the operator to type an exact token; re-prompts otherwise."""

        def _validate(value: str) -> bool | str:
            return True if value == token else f'Type "{token}" to confirm'

        self.text(message, validate=_validate)

    def reset_mode(self, message: str, order: Sequence[ResetMode]) -> ResetMode:
        choices = [(format_mode(mode), mode) for mode in order]
        return self.select(message, choices, default=ResetMode.MIXED)


def format_mode(mode: ResetMode) -> str:
    label = f"{mode.value:<6} - {mode.description}"
    if mode.dangerous:
        return f"{label}  (DANGER: cannot be undone)"
    return label


def _fit(text: str, width: int) -> str:
    if len(text) > width:
        if width <= 3:
            return text[:width]
        return f"{text[: width - 3]}..."
    return text


def format_commit(commit: CommitRecord) -> str:
    return f"{commit.short_hash} - {_fit(commit.subject, SUBJECT_WIDTH)} ({commit.relative_time})"


def print_commits(console: Console, commits: Sequence[CommitRecord], numbered: bool = True) -> None:
    width = len(str(len(commits)))
    for idx, commit in enumerate(commits, start=1):
        prefix = f"{str(idx).rjust(width)}. " if numbered else "- "
        subject = escape(_fit(commit.subject, SUBJECT_WIDTH))
        age = escape(commit.relative_time)
        console.print(f"  {prefix}[yellow]{commit.short_hash}[/yellow] {subject} [dim]({age})[/dim]")


def control_label(control: Control) -> str:
    return control.name.replace("-", " ").capitalize()


def make_console(stderr: bool = False) -> Console:
    return Console(stderr=stderr, highlight=False)
