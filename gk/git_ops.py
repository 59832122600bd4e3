"""Git subprocess operations."""

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from gk import parse
from gk.models import (
    BranchEntry,
    CommitRecord,
    RemoteBranchInfo,
    StagedFileEntry,
    StashEntry,
    WorkingStatus,
)

log = logging.getLogger(__name__)


class GitError(Exception):
    """Git command failed."""

    def __init__(self, cmd: Sequence[str], stderr: str, returncode: int = 1) -> None:
        self.cmd = list(cmd)
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(f"git {' '.join(cmd)}: {stderr}")


def run(args: Sequence[str], cwd: Path | None = None) -> str:
    """Run a git command and return stdout."""
    log.debug("git %s", " ".join(args))
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=False,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        encoding="utf-8",
        errors="surrogateescape",
    )
    if result.returncode != 0:
        raise GitError(args, result.stderr.strip() or result.stdout.strip(), result.returncode)
    return result.stdout.strip()


def try_run(args: Sequence[str], cwd: Path | None = None) -> str | None:
    """Run a git command, returning None on failure."""
    try:
        return run(args, cwd=cwd)
    except GitError as exc:
        log.debug("ignored failure: %s", exc)
        return None


def passthrough(args: Sequence[str], cwd: Path | None = None) -> int:
    """Run a git command attached to the terminal and return its exit code."""
    log.debug("git %s (interactive)", " ".join(args))
    return subprocess.run(["git", *args], cwd=cwd, check=False).returncode


def is_inside_work_tree(cwd: Path) -> bool:
    """Check whether cwd is inside a git working tree."""
    return try_run(["rev-parse", "--is-inside-work-tree"], cwd=cwd) == "true"


def get_repo_root(cwd: Path) -> Path | None:
    """Get the top-level directory of the working tree."""
    out = try_run(["rev-parse", "--show-toplevel"], cwd=cwd)
    return Path(out) if out else None


def current_branch(cwd: Path) -> str | None:
    """Get the checked out branch name (None when HEAD is detached)."""
    return try_run(["branch", "--show-current"], cwd=cwd) or None


def _count_lines(output: str | None) -> int:
    if not output:
        return 0
    return len([line for line in output.splitlines() if line.strip()])


def working_status(cwd: Path) -> WorkingStatus:
    """Count modified, staged and untracked files."""
    return WorkingStatus(
        modified=_count_lines(try_run(["diff", "--name-only"], cwd=cwd)),
        staged=_count_lines(try_run(["diff", "--cached", "--name-only"], cwd=cwd)),
        untracked=_count_lines(
            try_run(["ls-files", "--others", "--exclude-standard"], cwd=cwd)
        ),
    )


def is_clean(cwd: Path) -> bool:
    """Check if the working tree has no uncommitted or untracked changes."""
    status = try_run(["status", "--porcelain"], cwd=cwd)
    return status == ""


def staged_files(cwd: Path) -> list[StagedFileEntry]:
    """List files staged in the index.

    Uses NUL-separated output so paths are never C-quoted by git.
    """
    out = try_run(["diff", "--cached", "--name-status", "-z"], cwd=cwd)
    return parse.parse_name_status(out or "")


def recent_commits(cwd: Path, count: int) -> list[CommitRecord]:
    """Get the most recent commits reachable from HEAD."""
    out = try_run(["log", f"-{count}", parse.COMMIT_FORMAT], cwd=cwd)
    return parse.parse_commits(out or "")


def commits_in_range(cwd: Path, rev_range: str) -> list[CommitRecord]:
    """Get the commits of a range such as ``origin/main..HEAD``."""
    out = try_run(["log", rev_range, parse.COMMIT_FORMAT], cwd=cwd)
    return parse.parse_commits(out or "")


def resolve_commit(cwd: Path, rev: str) -> CommitRecord | None:
    """Look up a single commit by hash or revision expression."""
    if rev.startswith("-"):
        return None
    out = try_run(["log", "-1", parse.COMMIT_FORMAT, rev, "--"], cwd=cwd)
    commits = parse.parse_commits(out or "")
    return commits[0] if commits else None


def rev_exists(cwd: Path, rev: str) -> bool:
    """Check that a revision names a commit."""
    return try_run(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], cwd=cwd) is not None


def stash_list(cwd: Path) -> list[StashEntry]:
    """List stash entries, newest first."""
    out = try_run(["stash", "list", parse.STASH_FORMAT], cwd=cwd)
    return parse.parse_stash_list(out or "")


def local_branches(cwd: Path) -> list[BranchEntry]:
    """List local branches, flagging the checked out one."""
    out = try_run(["for-each-ref", "--format=%(refname:short)", "refs/heads"], cwd=cwd)
    return parse.parse_branch_list(out or "", current_branch(cwd))


def remote_branches(cwd: Path) -> list[str]:
    """List remote-tracking refs such as ``origin/main``."""
    out = try_run(["for-each-ref", "--format=%(refname:short)", "refs/remotes"], cwd=cwd)
    return [ref for ref in parse.parse_ref_names(out or "") if not ref.endswith("/HEAD")]


def remotes(cwd: Path) -> list[str]:
    """List configured remote names."""
    out = try_run(["remote"], cwd=cwd)
    return [line.strip() for line in (out or "").splitlines() if line.strip()]


def get_upstream(cwd: Path, branch: str) -> str | None:
    """Get the upstream tracking branch for a ref."""
    return try_run(["rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"], cwd=cwd)


def tracking_info(cwd: Path, branch: str, default_remote: str = "origin") -> tuple[str, str]:
    """Get (remote, remote branch) for a local branch from git config.

    Falls back to the default remote and the same branch name when the branch
    has no tracking configuration.
    """
    remote = try_run(["config", f"branch.{branch}.remote"], cwd=cwd) or default_remote
    merge = try_run(["config", f"branch.{branch}.merge"], cwd=cwd) or ""
    remote_branch = merge.removeprefix("refs/heads/") or branch
    return remote, remote_branch


def fetch(cwd: Path, remote: str) -> bool:
    """Fetch a remote quietly, returning whether it succeeded."""
    return try_run(["fetch", remote], cwd=cwd) is not None


def remote_diff(cwd: Path, default_remote: str = "origin") -> RemoteBranchInfo | None:
    """Compare the current branch with its remote counterpart.

    Fetches the remote first; returns None when HEAD is detached or the remote
    branch cannot be resolved.
    """
    branch = current_branch(cwd)
    if not branch:
        return None
    remote, remote_branch = tracking_info(cwd, branch, default_remote)
    full_ref = f"{remote}/{remote_branch}"
    if not fetch(cwd, remote):
        log.warning("could not fetch %s, using the last known state", remote)
    if not rev_exists(cwd, full_ref):
        return None
    ahead = parse.parse_count(try_run(["rev-list", "--count", f"{full_ref}..HEAD"], cwd=cwd))
    behind = parse.parse_count(try_run(["rev-list", "--count", f"HEAD..{full_ref}"], cwd=cwd))
    if ahead is None or behind is None:
        return None
    return RemoteBranchInfo(
        local_branch=branch,
        remote=remote,
        remote_branch=remote_branch,
        ahead=ahead,
        behind=behind,
        ahead_commits=tuple(commits_in_range(cwd, f"{full_ref}..HEAD")) if ahead else (),
        behind_commits=tuple(commits_in_range(cwd, f"HEAD..{full_ref}")) if behind else (),
    )


def unstage(cwd: Path, *paths: str) -> None:
    """Remove paths from the index, keeping the working tree copies."""
    run(["--literal-pathspecs", "reset", "-q", "HEAD", "--", *paths], cwd=cwd)


def branch_delete(cwd: Path, branch: str, force: bool = False) -> None:
    """Delete a local branch."""
    run(["branch", "-D" if force else "-d", branch], cwd=cwd)


def remote_branch_delete(cwd: Path, remote: str, branch: str) -> None:
    """Delete a branch on a remote."""
    run(["push", remote, "--delete", branch], cwd=cwd)
