"""Branch listing, switching and deletion."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from rich.markup import escape

from . import git_ops
from .app import Tool
from .models import BranchEntry, RemoteRef, Result


def list_branches(cwd: Path) -> int:
    return git_ops.passthrough(["branch"], cwd=cwd)


def branch_label(entry: BranchEntry) -> str:
    return f"* {entry.name} (current)" if entry.is_current else entry.name


def remote_candidates(
    deleted: list[str],
    upstreams: dict[str, RemoteRef],
    remote_names: list[str],
    remote_refs: list[str],
) -> list[RemoteRef]:
    """Pick the remote branches that correspond to deleted local branches.

    A branch matches its recorded upstream, or the same name on any configured
    remote, and only when that exact remote-tracking ref exists.
    """
    existing = set(remote_refs)
    candidates: list[RemoteRef] = []
    for branch in deleted:
        options: list[RemoteRef] = []
        if branch in upstreams:
            options.append(upstreams[branch])
        options.extend(RemoteRef(remote, branch) for remote in remote_names)
        for ref in options:
            if ref.full_ref in existing and ref not in candidates:
                candidates.append(ref)
    return candidates


class CheckoutTool(Tool):
    def __init__(self, cwd: Path, new_branch: str | None = None, **kwargs: Any) -> None:
        super().__init__(cwd, **kwargs)
        self.new_branch = new_branch

    def _run(self) -> Result:
        if self.new_branch:
            return self.create_and_switch(self.new_branch)
        return self.switch()

    def _pick(self, branches: list[BranchEntry]) -> str:
        current = next((b.name for b in branches if b.is_current), None)
        if len(branches) > self.settings.fuzzy_threshold:
            return self.prompter.fuzzy("Branch:", [b.name for b in branches])
        return self.prompter.select(
            "Switch to which branch?",
            [(branch_label(b), b.name) for b in branches],
            default=current,
        )

    def switch(self) -> Result:
        branches = git_ops.local_branches(self.cwd)
        if not branches:
            return Result.failed("No local branches found.")
        target = self._pick(branches)
        if any(b.is_current and b.name == target for b in branches):
            self.success(f"Already on {target}.")
            return Result.success()
        self.info(f"Switching to {target}...")
        if not self.execute(["switch", target]) and not self.execute(["checkout", target]):
            return Result.failed("Switch failed; check for uncommitted changes.")
        self.success(f"Switched to {target}.")
        return Result.success(mutated=True)

    def create_and_switch(self, name: str) -> Result:
        source = git_ops.current_branch(self.cwd)
        if source:
            self.info(f"Creating {name} from {source}...")
        else:
            self.info(f"Creating {name}...")
        if not self.execute(["checkout", "-b", name]):
            return Result.failed("Could not create the branch; it may already exist.")
        if source:
            self.success(f"Created {name} from {source} and switched to it.")
        else:
            self.success(f"Created {name} and switched to it.")
        return Result.success(mutated=True)


class BranchDeleteTool(Tool):
    def _run(self) -> Result:
        current = git_ops.current_branch(self.cwd)
        candidates = [b.name for b in git_ops.local_branches(self.cwd) if not b.is_current]
        if not candidates:
            self.info("There are no local branches to delete besides the current one.")
            return Result.success()

        selected = self.prompter.multi_select(
            f"Branches to delete (current: {current or 'detached'}, cannot be deleted):",
            [(name, name) for name in candidates],
            all_label="Select all branches",
        )
        if not selected:
            return Result.cancelled("No branches selected.")

        self.console.print("About to delete these local branches:")
        for name in selected:
            self.console.print(f"  - {escape(name)}")
        if not self.prompter.confirm("Delete them (safe delete, git branch -d)?", default=True):
            return Result.cancelled("Cancelled.")

        upstreams = self._record_upstreams(selected)
        batch = self.apply_each(selected, lambda name: git_ops.branch_delete(self.cwd, name))
        self.console.print("\nSafe delete:")
        self.report_batch(batch)
        deleted = list(batch.succeeded)
        remaining: list[tuple[str, str]] = []

        if batch.failed:
            self.console.print(
                f"\n{len(batch.failed)} branch(es) not deleted (unmerged or otherwise protected)."
            )
            if self.prompter.confirm("Force delete these (git branch -D)?", default=False):
                forced = self.apply_each(
                    batch.failed_items(),
                    lambda name: git_ops.branch_delete(self.cwd, name, force=True),
                )
                self.console.print()
                self.report_batch(forced)
                deleted.extend(forced.succeeded)
                remaining = forced.failed
            else:
                remaining = batch.failed

        if not deleted:
            self.info("No local branch was deleted; skipping remote branches.")
            return self._finish(remaining, [])

        if not self.prompter.confirm(
            f"Also delete the matching remote branches ({len(deleted)} local deleted)?",
            default=False,
        ):
            return self._finish(remaining, [])

        refs = remote_candidates(
            [name for name in selected if name in deleted],
            upstreams,
            git_ops.remotes(self.cwd),
            git_ops.remote_branches(self.cwd),
        )
        if not refs:
            self.info("No matching remote branches found.")
            return self._finish(remaining, [])

        chosen = self.prompter.multi_select(
            "Remote branches to delete:",
            [(ref.full_ref, ref) for ref in refs],
            all_label="Select all remote branches",
        )
        if not chosen:
            return self._finish(remaining, [])

        self.console.print("\nDeleting remote branches:")
        remote_batch = self.apply_each(
            chosen, lambda ref: git_ops.remote_branch_delete(self.cwd, ref.remote, ref.branch)
        )
        self.report_batch(remote_batch, label=lambda ref: ref.full_ref)
        return self._finish(remaining, remote_batch.failed)

    def _record_upstreams(self, branches: list[str]) -> dict[str, RemoteRef]:
        upstreams: dict[str, RemoteRef] = {}
        for name in branches:
            if git_ops.get_upstream(self.cwd, name) is None:
                continue
            remote, remote_branch = git_ops.tracking_info(
                self.cwd, name, self.settings.default_remote
            )
            upstreams[name] = RemoteRef(remote, remote_branch)
        return upstreams

    def _finish(
        self, local_failed: list[tuple[str, str]], remote_failed: list[tuple[RemoteRef, str]]
    ) -> Result:
        failures = len(local_failed) + len(remote_failed)
        if failures:
            return Result.failed(f"{failures} branch deletion(s) failed.", mutated=self.mutated)
        return Result.success("Done.", mutated=self.mutated)
