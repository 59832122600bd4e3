"""Interactive stash manager."""

from __future__ import annotations

from enum import Enum

from rich.markup import escape
from rich.table import Table

from . import git_ops
from .app import Tool
from .models import BACK, CLEAR_ALL, Item, Result, StashEntry, WorkingStatus
from .ui import control_label


class StashAction(Enum):
    CREATE = "create"
    MANAGE = "manage"
    LIST = "list"
    QUIT = "quit"


class StashVariant(Enum):
    DEFAULT = ("Stash tracked changes", "git stash push", ())
    MESSAGE = ("Stash with a message", 'git stash push -m "message"', ("-m",))
    INCLUDE_UNTRACKED = ("Include untracked files", "git stash push -u", ("-u",))
    KEEP_INDEX = ("Keep staged changes in the index", "git stash push --keep-index", ("--keep-index",))
    ALL = ("Include untracked and ignored files", "git stash push -a", ("-a",))

    def __init__(self, title: str, command: str, flags: tuple[str, ...]) -> None:
        self.title = title
        self.command = command
        self.flags = flags

    @property
    def label(self) -> str:
        return f"{self.title}  [{self.command}]"


class StashOperation(Enum):
    POP = "Pop - apply to the working tree and remove from the list"
    APPLY = "Apply - apply to the working tree and keep in the list"
    SHOW = "Show - display the changes in this stash"
    DROP = "Drop - delete this stash"
    BACK = "Back"


def validate_message(value: str) -> bool | str:
    return True if value.strip() else "The message cannot be empty"


def push_args(variant: StashVariant, message: str | None = None) -> list[str]:
    """Build the ``git stash push`` arguments for a variant."""
    args = ["stash", "push", *variant.flags]
    if variant is StashVariant.MESSAGE:
        if not message or not message.strip():
            raise ValueError("a stash message is required")
        args.append(message)
    return args


class StashTool(Tool):
    def _run(self) -> Result:
        self.header("Git stash")
        branch = git_ops.current_branch(self.cwd)
        status = git_ops.working_status(self.cwd)
        stashes = git_ops.stash_list(self.cwd)
        self._print_status(branch, status, len(stashes))

        choices = self.menu_choices(status, stashes)
        if not choices:
            self.info("The working tree is clean and there are no stashes. Nothing to do.")
            return Result.success()

        action = self.prompter.select("What do you want to do?", choices)
        if action is StashAction.CREATE:
            return self.create()
        if action is StashAction.MANAGE:
            return self.manage()
        if action is StashAction.LIST:
            return self.show_list()
        return Result.cancelled("Bye.")

    def menu_choices(
        self, status: WorkingStatus, stashes: list[StashEntry]
    ) -> list[tuple[str, StashAction]]:
        choices: list[tuple[str, StashAction]] = []
        if status.has_changes:
            choices.append(("Stash changes - save the working tree and index", StashAction.CREATE))
        if stashes:
            choices.append(
                (f"Manage stashes ({len(stashes)}) - pop, apply, show or drop", StashAction.MANAGE)
            )
            choices.append(("List stashes", StashAction.LIST))
        if choices:
            choices.append(("Quit", StashAction.QUIT))
        return choices

    def _print_status(self, branch: str | None, status: WorkingStatus, stash_count: int) -> None:
        self.console.print("Current state:")
        if branch:
            self.console.print(f"  Branch:    {escape(branch)}")
        if status.modified:
            self.console.print(f"  Modified:  {status.modified} file(s)")
        if status.staged:
            self.console.print(f"  Staged:    {status.staged} file(s)")
        if status.untracked:
            self.console.print(f"  Untracked: {status.untracked} file(s)")
        self.console.print(f"  Stashes:   {stash_count}\n")

    def _report_count(self, label: str = "Stashes") -> None:
        count = len(git_ops.stash_list(self.cwd))
        self.console.print(f"{label}: {count}")

    def create(self) -> Result:
        self.header("Stash changes")
        status = git_ops.working_status(self.cwd)
        if not status.has_changes:
            self.info("There are no changes to stash.")
            return Result.success()

        variant = self.prompter.select(
            "How do you want to stash?",
            [(variant.label, variant) for variant in StashVariant],
        )
        message = None
        if variant is StashVariant.MESSAGE:
            message = self.prompter.text("Stash message:", validate=validate_message).strip()

        if not self.execute(push_args(variant, message)):
            return Result.failed("Stash failed.", mutated=self.mutated)
        self.success("Changes stashed.")
        self._report_count()
        return Result.success(mutated=True)

    def manage(self) -> Result:
        self.header("Manage stashes")
        stashes = git_ops.stash_list(self.cwd)
        if not stashes:
            self.info("There are no stashes.")
            return Result.success()

        choices: list[tuple[str, object]] = [
            (f"[{idx}] {stash.message} ({stash.relative_time})", Item(stash.ref))
            for idx, stash in enumerate(stashes)
        ]
        choices.append((f"{control_label(CLEAR_ALL)} - drop every stash", CLEAR_ALL))
        choices.append((control_label(BACK), BACK))
        answer = self.prompter.select("Pick a stash:", choices)
        if answer == BACK:
            return Result.cancelled()
        if answer == CLEAR_ALL:
            return self.clear_all()
        return self.operate(answer.value)

    def _find(self, ref: str) -> StashEntry | None:
        return next((s for s in git_ops.stash_list(self.cwd) if s.ref == ref), None)

    def operate(self, ref: str) -> Result:
        while True:
            entry = self._find(ref)
            if entry is None:
                return Result.failed(f"{ref} no longer exists.", mutated=self.mutated)
            self.console.print(f"\nSelected: {escape(ref)} {escape(entry.message)}\n")
            operation = self.prompter.select(
                f"What should happen to {ref}?",
                [(op.value, op) for op in StashOperation],
            )
            if operation is StashOperation.POP:
                return self.pop(ref)
            if operation is StashOperation.APPLY:
                return self.apply(ref)
            if operation is StashOperation.DROP:
                return self.drop(ref)
            if operation is StashOperation.SHOW:
                self.show(ref)
                if self.prompter.confirm("Do something else with this stash?", default=False):
                    continue
                return Result.success()
            return Result.cancelled()

    def _confirm_dirty(self, verb: str) -> bool:
        if not git_ops.working_status(self.cwd).has_changes:
            return True
        self.warn("The working tree has uncommitted changes.")
        return self.prompter.confirm(f"{verb} may cause conflicts. Continue?", default=False)

    def pop(self, ref: str) -> Result:
        if not self._confirm_dirty("Popping"):
            return Result.cancelled("Cancelled.")
        self.info(f"Popping {ref}...")
        if not self.execute(["stash", "pop", ref]):
            self.error(f"Could not pop {ref}; there may be conflicts.")
            self.console.print(f"[dim]After resolving them, drop it with: git stash drop {escape(ref)}[/dim]")
            return Result.failed(mutated=self.mutated)
        self.success(f"Popped {ref}.")
        self._report_count("Stashes left")
        return Result.success(mutated=True)

    def apply(self, ref: str) -> Result:
        if not self._confirm_dirty("Applying"):
            return Result.cancelled("Cancelled.")
        self.info(f"Applying {ref}...")
        if not self.execute(["stash", "apply", ref]):
            self.error(f"Could not apply {ref}; there may be conflicts.")
            return Result.failed(mutated=self.mutated)
        self.success(f"Applied {ref}; it is still in the stash list.")
        self._report_count()
        return Result.success(mutated=True)

    def show(self, ref: str) -> None:
        self.console.rule(ref)
        git_ops.passthrough(["stash", "show", "-p", ref], cwd=self.cwd)
        self.console.rule()

    def drop(self, ref: str) -> Result:
        entry = self._find(ref)
        label = f"{ref} {entry.message}" if entry else ref
        self.console.print(f"About to drop: {escape(label)}")
        self.warn("This cannot be undone.")
        if not self.prompter.confirm(f"Drop {ref}?", default=False):
            return Result.cancelled("Cancelled.")
        if not self.execute(["stash", "drop", ref]):
            return Result.failed(f"Could not drop {ref}.", mutated=self.mutated)
        self.success(f"Dropped {ref}.")
        self._report_count("Stashes left")
        return Result.success(mutated=True)

    def clear_all(self) -> Result:
        stashes = git_ops.stash_list(self.cwd)
        self.header(f"Clear all stashes ({len(stashes)})")
        self.warn("This cannot be undone. These stashes will be deleted:")
        for idx, stash in enumerate(stashes, start=1):
            self.console.print(f"  {idx}. {escape(stash.message)} [dim]({escape(stash.relative_time)})[/dim]")
        self.console.print()
        self.prompter.confirm_token(f'Type "yes" to delete all {len(stashes)} stash(es):')
        if not self.execute(["stash", "clear"]):
            return Result.failed("Could not clear the stash list.", mutated=self.mutated)
        self.success("All stashes deleted.")
        self._report_count("Stashes left")
        return Result.success(mutated=True)

    def show_list(self) -> Result:
        stashes = git_ops.stash_list(self.cwd)
        if not stashes:
            self.info("There are no stashes.")
            return Result.success()
        table = Table(title=f"{len(stashes)} stash(es)", title_justify="left")
        table.add_column("#", justify="right")
        table.add_column("REF")
        table.add_column("MESSAGE")
        table.add_column("BRANCH")
        table.add_column("AGE", style="dim")
        for idx, stash in enumerate(stashes):
            table.add_row(
                str(idx),
                stash.ref,
                escape(stash.message),
                escape(stash.branch or "-"),
                stash.relative_time,
            )
        self.console.print(table)
        return Result.success()
