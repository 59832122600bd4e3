from __future__ import annotations

from pathlib import Path

import pytest

from conftest import commit_file, git, init_repo, requires_git
from gk import git_ops
from gk.models import ChangeKind


def _clone_with_remote(tmp_path: Path) -> tuple[Path, Path]:
    origin = init_repo(tmp_path / "origin")
    git(origin, "config", "receive.denyCurrentBranch", "ignore")
    clone = tmp_path / "clone"
    git(tmp_path, "clone", "-q", str(origin), str(clone))
    git(clone, "config", "user.email", "test@example.com")
    git(clone, "config", "user.name", "Test")
    git(clone, "config", "commit.gpgsign", "false")
    return origin, clone


@requires_git
def test_probe_and_repo_root(repo: Path, tmp_path: Path) -> None:
    (repo / "sub").mkdir()
    assert git_ops.is_inside_work_tree(repo / "sub")
    assert git_ops.get_repo_root(repo / "sub") == repo.resolve()
    outside = tmp_path / "outside"
    outside.mkdir()
    assert not git_ops.is_inside_work_tree(outside)


@requires_git
def test_run_raises_git_error_with_stderr(repo: Path) -> None:
    with pytest.raises(git_ops.GitError) as excinfo:
        git_ops.run(["rev-parse", "--verify", "no-such-ref"], cwd=repo)
    assert excinfo.value.returncode != 0
    assert excinfo.value.cmd == ["rev-parse", "--verify", "no-such-ref"]
    assert git_ops.try_run(["rev-parse", "--verify", "no-such-ref"], cwd=repo) is None


@requires_git
def test_current_branch_and_detached(repo: Path) -> None:
    assert git_ops.current_branch(repo) == "main"
    git(repo, "checkout", "-q", "--detach")
    assert git_ops.current_branch(repo) is None


@requires_git
def test_working_status_counts(repo: Path) -> None:
    assert git_ops.is_clean(repo)
    assert git_ops.working_status(repo).is_clean
    (repo / "README.md").write_text("changed\n")
    (repo / "staged.txt").write_text("x\n")
    git(repo, "add", "staged.txt")
    (repo / "untracked.txt").write_text("u\n")
    status = git_ops.working_status(repo)
    assert (status.modified, status.staged, status.untracked) == (1, 1, 1)
    assert status.has_changes
    assert not git_ops.is_clean(repo)


@requires_git
def test_staged_files(repo: Path) -> None:
    (repo / "README.md").write_text("changed\n")
    (repo / "new.txt").write_text("n\n")
    git(repo, "add", "README.md", "new.txt")
    entries = {e.path: e.status for e in git_ops.staged_files(repo)}
    assert entries == {"README.md": ChangeKind.MODIFIED, "new.txt": ChangeKind.ADDED}


@requires_git
def test_recent_commits_and_resolve(repo: Path) -> None:
    commit_file(repo, "a.txt", "a", "add a | with pipe")
    head = commit_file(repo, "b.txt", "b", "add b")
    commits = git_ops.recent_commits(repo, 10)
    assert [c.subject for c in commits] == ["add b", "add a | with pipe", "init"]
    assert commits[0].full_hash == head
    assert commits[0].author == "Test"

    resolved = git_ops.resolve_commit(repo, head[:8])
    assert resolved is not None and resolved.full_hash == head
    assert git_ops.resolve_commit(repo, "deadbeefdead") is None
    assert git_ops.resolve_commit(repo, "--all") is None
    assert git_ops.rev_exists(repo, "HEAD~2")
    assert not git_ops.rev_exists(repo, "HEAD~3")


@requires_git
def test_stash_list_roundtrip(repo: Path) -> None:
    assert git_ops.stash_list(repo) == []
    (repo / "README.md").write_text("changed\n")
    git(repo, "stash", "push", "-m", "foo")
    stashes = git_ops.stash_list(repo)
    assert len(stashes) == 1
    assert stashes[0].ref == "stash@{0}"
    assert stashes[0].message == "foo"
    assert stashes[0].branch == "main"


@requires_git
def test_branches_and_tracking_defaults(repo: Path) -> None:
    git(repo, "branch", "feature/x")
    branches = git_ops.local_branches(repo)
    assert [(b.name, b.is_current) for b in branches] == [("feature/x", False), ("main", True)]
    assert git_ops.tracking_info(repo, "main", "upstream") == ("upstream", "main")
    git(repo, "config", "branch.main.remote", "fork")
    git(repo, "config", "branch.main.merge", "refs/heads/trunk")
    assert git_ops.tracking_info(repo, "main") == ("fork", "trunk")


@requires_git
def test_remote_diff_ahead_and_behind(tmp_path: Path) -> None:
    origin, clone = _clone_with_remote(tmp_path)
    diff = git_ops.remote_diff(clone)
    assert diff is not None and diff.in_sync
    assert diff.full_remote_ref == "origin/main"

    commit_file(origin, "remote.txt", "r", "remote work")
    commit_file(clone, "local1.txt", "1", "local one")
    commit_file(clone, "local2.txt", "2", "local two")

    diff = git_ops.remote_diff(clone)
    assert diff is not None
    assert (diff.ahead, diff.behind) == (2, 1)
    assert [c.subject for c in diff.ahead_commits] == ["local two", "local one"]
    assert [c.subject for c in diff.behind_commits] == ["remote work"]
    assert "origin/main" in git_ops.remote_branches(clone)
    assert git_ops.remotes(clone) == ["origin"]


@requires_git
def test_remote_diff_without_remote(repo: Path) -> None:
    assert git_ops.remote_diff(repo) is None
