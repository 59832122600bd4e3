"""Single-command wrappers: pull, push and log."""

import logging
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from gk import git_ops

log = logging.getLogger(__name__)

LOG_ARGS = ["log", "--oneline", "--decorate", "--graph", "--color"]


def pull(cwd: Path, console: Console) -> int:
    console.print("[cyan]Running git pull...[/cyan]")
    return git_ops.passthrough(["pull"], cwd=cwd)


def push(cwd: Path, console: Console, default_remote: str = "origin") -> int:
    """Push, setting the upstream on the first push of a new branch."""
    console.print("[cyan]Running git push...[/cyan]")
    status = git_ops.passthrough(["push"], cwd=cwd)
    if status == 0:
        return 0

    branch = git_ops.current_branch(cwd)
    if not branch:
        log.debug("push failed on a detached HEAD, not retrying")
        return status
    if git_ops.get_upstream(cwd, branch) is not None:
        return status

    console.print(f"\n[cyan]No upstream for {branch}; pushing with --set-upstream {default_remote}.[/cyan]")
    return git_ops.passthrough(["push", "--set-upstream", default_remote, branch], cwd=cwd)


def log_args(extra: Sequence[str], count: int = 20) -> list[str]:
    """Build the git log arguments: the pretty graph, or the caller's own flags."""
    if extra:
        return ["log", *extra]
    return [*LOG_ARGS, f"-{count}"]


def show_log(cwd: Path, extra: Sequence[str], count: int = 20) -> int:
    return git_ops.passthrough(log_args(extra, count), cwd=cwd)
