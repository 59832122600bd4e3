from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TypeVar

from rich.console import Console
from rich.markup import escape

from . import git_ops
from .config import Settings
from .models import BatchResult, Result
from .ui import Cancelled, Prompter, make_console

log = logging.getLogger(__name__)

T = TypeVar("T")


class Tool:
    """Base for the interactive tools.

    Subclasses implement ``_run``; ``run`` turns interrupts and unexpected git
    failures into a ``Result`` instead of ending the process.
    """

    def __init__(
        self,
        cwd: Path,
        prompter: Prompter | None = None,
        console: Console | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.cwd = cwd
        self.prompter = prompter or Prompter()
        self.console = console or make_console()
        self.settings = settings or Settings()
        self.mutated = False

    def run(self) -> Result:
        self.mutated = False
        try:
            return self._run()
        except Cancelled:
            return Result.cancelled("Cancelled.", mutated=self.mutated)
        except git_ops.GitError as exc:
            log.debug("unhandled git failure", exc_info=True)
            return Result.failed(str(exc), mutated=self.mutated)

    def _run(self) -> Result:
        raise NotImplementedError

    def execute(self, args: list[str]) -> bool:
        """Run a mutating git command attached to the terminal."""
        ok = git_ops.passthrough(args, cwd=self.cwd) == 0
        if ok:
            self.mutated = True
        return ok

    def apply_each(self, items: Iterable[T], action: Callable[[T], None]) -> BatchResult[T]:
        """Apply a mutating action per item, collecting failures without stopping."""
        batch: BatchResult[T] = BatchResult()
        for item in items:
            try:
                action(item)
            except git_ops.GitError as exc:
                batch.add(item, exc.stderr or str(exc))
            else:
                batch.add(item)
                self.mutated = True
        return batch

    def report_batch(self, batch: BatchResult[T], label: Callable[[T], str] = str) -> None:
        for item, error in batch.outcomes:
            if error is None:
                self.console.print(f"  [green]✓[/green] {escape(label(item))}")
                continue
            self.console.print(f"  [red]✗[/red] {escape(label(item))} [dim]{escape(error)}[/dim]")

    def header(self, text: str) -> None:
        self.console.print(f"\n[bold]{escape(text)}[/bold]\n")

    def info(self, text: str) -> None:
        self.console.print(f"[cyan]{escape(text)}[/cyan]")

    def warn(self, text: str) -> None:
        self.console.print(f"[yellow]warning:[/yellow] {escape(text)}")

    def error(self, text: str) -> None:
        self.console.print(f"[red bold]error:[/red bold] {escape(text)}")

    def success(self, text: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(text)}")
