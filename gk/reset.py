"""Interactive reset: rewind commits, unstage files, sync to remote, reset to a commit."""

from __future__ import annotations

from enum import Enum

from rich.markup import escape

from . import git_ops
from .app import Tool
from .models import CUSTOM, CommitRecord, Item, ResetMode, Result
from .ui import format_commit, format_mode, print_commits

MAX_REWIND = 99
MIN_HASH_LENGTH = 6
REWIND_MODES = (ResetMode.SOFT, ResetMode.MIXED, ResetMode.HARD)
TARGET_MODES = (ResetMode.MIXED, ResetMode.SOFT, ResetMode.HARD)


class ResetAction(Enum):
    REWIND = "Rewind commits - undo the latest commits, keeping or discarding their changes"
    UNSTAGE = "Unstage files - move staged files out of the index"
    SYNC_REMOTE = "Sync to remote - reset this branch to its remote counterpart"
    TO_COMMIT = "Reset to commit - move this branch to a chosen commit"
    CANCEL = "Cancel"


class CommitSource(Enum):
    LIST = "Pick from the recent commits"
    MANUAL = "Enter a commit hash"


def validate_rewind_count(value: str) -> bool | str:
    value = value.strip()
    if value.isdigit() and 1 <= int(value) <= MAX_REWIND:
        return True
    return f"Enter a number between 1 and {MAX_REWIND}"


def validate_hash(value: str) -> bool | str:
    if len(value.strip()) >= MIN_HASH_LENGTH:
        return True
    return f"Enter at least {MIN_HASH_LENGTH} characters"


class ResetTool(Tool):
    def _run(self) -> Result:
        self.header("Git reset")
        action = self.prompter.select(
            "What do you want to do?",
            [(action.value, action) for action in ResetAction],
        )
        if action is ResetAction.REWIND:
            return self.rewind()
        if action is ResetAction.UNSTAGE:
            return self.unstage()
        if action is ResetAction.SYNC_REMOTE:
            return self.sync_remote()
        if action is ResetAction.TO_COMMIT:
            return self.reset_to_commit()
        return Result.cancelled("Cancelled.")

    def _choose_count(self) -> int:
        choices: list[tuple[str, object]] = [
            (f"Rewind {n} commit{'s' if n > 1 else ''}", n) for n in self.settings.rewind_presets
        ]
        choices.append(("Custom count", CUSTOM))
        answer = self.prompter.select("How many commits?", choices)
        if answer == CUSTOM:
            raw = self.prompter.text(
                f"Number of commits to rewind (1-{MAX_REWIND}):",
                validate=validate_rewind_count,
            )
            return int(raw.strip())
        return int(answer)

    def rewind(self) -> Result:
        self.header("Rewind commits")
        count = self._choose_count()
        target = f"HEAD~{count}"
        if not git_ops.rev_exists(self.cwd, target):
            return Result.failed(f"Cannot rewind {count} commits: {target} does not exist.")

        self.console.print(f"These {count} commit(s) will be rewound:\n")
        print_commits(self.console, git_ops.recent_commits(self.cwd, count))
        self.console.print()

        mode = self.prompter.reset_mode("Reset mode:", REWIND_MODES)
        if mode is ResetMode.HARD:
            self.console.print("[red bold]This permanently discards:[/red bold]")
            self.console.print(f"  - every change made in the last {count} commit(s)")
            self.console.print("  - all uncommitted changes in the working tree")
            self.console.print("[red bold]It cannot be undone.[/red bold]\n")
            self.prompter.confirm_token('Type "yes" to run the hard reset:')

        if not self.execute(["reset", mode.flag, target]):
            return Result.failed("Rewind failed.", mutated=self.mutated)

        self.success(f"Rewound {count} commit(s) ({mode.value}).")
        head = git_ops.recent_commits(self.cwd, 1)
        if head:
            self.console.print(f"HEAD is now at {escape(format_commit(head[0]))}")
        self.console.print("[dim]Run 'git reflog' to see the full history of HEAD.[/dim]")
        return Result.success(mutated=True)

    def unstage(self) -> Result:
        self.header("Unstage files")
        staged = git_ops.staged_files(self.cwd)
        if not staged:
            self.info("Nothing is staged.")
            return Result.success()

        entries = self.prompter.multi_select(
            "Files to unstage (space to toggle, enter to confirm):",
            [(entry.label, entry) for entry in staged],
            all_label="Select all (unstage every file)",
        )
        if not entries:
            return Result.cancelled("No files selected.")

        batch = self.apply_each(entries, lambda entry: git_ops.unstage(self.cwd, *entry.paths))
        self.report_batch(batch, label=lambda entry: entry.label)
        if not batch.ok:
            return Result.failed(
                f"Unstaged {len(batch.succeeded)} of {len(entries)} file(s).", mutated=self.mutated
            )
        self.success(f"Unstaged {len(batch.succeeded)} file(s); the changes stay in the working tree.")
        return Result.success(mutated=True)

    def sync_remote(self) -> Result:
        self.header("Sync to remote")
        branch = git_ops.current_branch(self.cwd)
        if not branch:
            return Result.failed("HEAD is detached; check out a branch first.")
        remote, remote_branch = git_ops.tracking_info(self.cwd, branch, self.settings.default_remote)
        self.console.print(f"Local branch:  {escape(branch)}")
        self.console.print(f"Remote branch: {escape(remote)}/{escape(remote_branch)}\n")
        self.info("Fetching remote...")

        diff = git_ops.remote_diff(self.cwd, self.settings.default_remote)
        if diff is None:
            return Result.failed(f"Could not compare with {remote}/{remote_branch}.")
        if diff.in_sync:
            self.success(f"{branch} is already in sync with {diff.full_remote_ref}.")
            return Result.success()

        if diff.ahead:
            self.console.print(f"Local is ahead by {diff.ahead} commit(s):")
            print_commits(self.console, diff.ahead_commits, numbered=False)
            self.console.print()
        if diff.behind:
            self.console.print(f"Remote is ahead by {diff.behind} commit(s):")
            print_commits(self.console, diff.behind_commits, numbered=False)
            self.console.print()
        self.warn(f"This moves {branch} to the state of {diff.full_remote_ref}.")

        mode = self.prompter.reset_mode("Reset mode:", TARGET_MODES)
        if not self.prompter.confirm(f"Reset {branch} to {diff.full_remote_ref}?", default=False):
            return Result.cancelled("Cancelled.")
        if not self.execute(["reset", mode.flag, diff.full_remote_ref]):
            return Result.failed("Reset failed.", mutated=self.mutated)
        self.success(f"Reset to {diff.full_remote_ref} ({mode.value}).")
        return Result.success(mutated=True)

    def _pick_commit(self, commits: list[CommitRecord]) -> CommitRecord | None:
        source = CommitSource.MANUAL
        if commits:
            source = self.prompter.select(
                "How do you want to choose the commit?",
                [(item.value, item) for item in CommitSource],
            )
        if source is CommitSource.LIST:
            answer = self.prompter.select(
                "Reset to which commit?",
                [(format_commit(commit), Item(commit.full_hash)) for commit in commits],
            )
            return next((c for c in commits if c.full_hash == answer.value), None)
        rev = self.prompter.text("Commit hash (full or abbreviated):", validate=validate_hash)
        return git_ops.resolve_commit(self.cwd, rev.strip())

    def reset_to_commit(self) -> Result:
        self.header("Reset to commit")
        commits = git_ops.recent_commits(self.cwd, self.settings.recent_commits)
        if commits:
            self.console.print(f"The last {len(commits)} commit(s):\n")
            print_commits(self.console, commits)
            self.console.print()

        target = self._pick_commit(commits)
        if target is None:
            return Result.failed("Unknown commit.")

        self.console.print("\nTarget commit:")
        self.console.print(f"  Hash:    {target.short_hash}")
        self.console.print(f"  Author:  {escape(target.author)}")
        self.console.print(f"  Date:    {escape(target.relative_time)}")
        self.console.print(f"  Subject: {escape(target.subject)}\n")

        mode = self.prompter.reset_mode("Reset mode:", TARGET_MODES)
        if mode.dangerous:
            self.warn(format_mode(mode))
        if not self.prompter.confirm(f"Reset to {target.short_hash}?", default=False):
            return Result.cancelled("Cancelled.")
        if not self.execute(["reset", mode.flag, target.full_hash]):
            return Result.failed("Reset failed.", mutated=self.mutated)
        self.success(f"Reset to {target.short_hash} ({mode.value}).")
        return Result.success(mutated=True)
