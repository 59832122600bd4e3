from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console

from conftest import ScriptedPrompter, commit_file, git, init_repo, output, requires_git
from gk import git_ops
from gk.branches import BranchDeleteTool, CheckoutTool, branch_label, remote_candidates
from gk.config import Settings
from gk.models import SELECT_ALL, BranchEntry, Item, Outcome, RemoteRef


def test_branch_label() -> None:
    assert branch_label(BranchEntry("main", is_current=True)) == "* main (current)"
    assert branch_label(BranchEntry("dev")) == "dev"


def test_remote_candidates_same_name_on_every_remote() -> None:
    refs = remote_candidates(
        ["feature/x"],
        {},
        ["origin", "upstream"],
        ["origin/feature/x", "upstream/feature/x", "origin/other"],
    )
    assert refs == [RemoteRef("origin", "feature/x"), RemoteRef("upstream", "feature/x")]


def test_remote_candidates_never_match_by_suffix() -> None:
    assert remote_candidates(["x"], {}, ["origin"], ["origin/feature/x", "origin/fix-x"]) == []


def test_remote_candidates_prefer_recorded_upstream() -> None:
    upstreams = {"local": RemoteRef("fork", "renamed/on-remote")}
    refs = remote_candidates(
        ["local"], upstreams, ["origin", "fork"], ["fork/renamed/on-remote", "origin/local"]
    )
    assert refs == [RemoteRef("fork", "renamed/on-remote"), RemoteRef("origin", "local")]


def test_remote_candidates_require_existing_ref_and_dedupe() -> None:
    upstreams = {"a": RemoteRef("origin", "a"), "b": RemoteRef("gone", "b")}
    refs = remote_candidates(["a", "b"], upstreams, ["origin"], ["origin/a"])
    assert refs == [RemoteRef("origin", "a")]


def _clone(tmp_path: Path) -> tuple[Path, Path]:
    origin = init_repo(tmp_path / "origin")
    clone = tmp_path / "clone"
    git(tmp_path, "clone", "-q", str(origin), str(clone))
    git(clone, "config", "user.email", "test@example.com")
    git(clone, "config", "user.name", "Test")
    git(clone, "config", "commit.gpgsign", "false")
    return origin, clone


def _tool(repo: Path, answers: list, console: Console) -> BranchDeleteTool:  # type: ignore[type-arg]
    return BranchDeleteTool(repo, prompter=ScriptedPrompter(answers), console=console)


@requires_git
def test_delete_local_and_remote(tmp_path: Path, console: Console) -> None:
    origin, clone = _clone(tmp_path)
    git(clone, "checkout", "-q", "-b", "feature/a")
    commit_file(clone, "a.txt", "a", "feature a")
    git(clone, "push", "-q", "-u", "origin", "feature/a")
    git(clone, "checkout", "-q", "main")

    answers = [[SELECT_ALL], True, True, [SELECT_ALL]]
    result = _tool(clone, answers, console).run()
    assert result.outcome is Outcome.SUCCESS
    assert result.mutated
    assert [b.name for b in git_ops.local_branches(clone)] == ["main"]
    assert git(origin, "branch", "--list", "feature/a") == ""
    assert "origin/feature/a" not in git_ops.remote_branches(clone)
    assert "✓ origin/feature/a" in output(console)


@requires_git
def test_delete_skips_remote_when_declined(tmp_path: Path, console: Console) -> None:
    origin, clone = _clone(tmp_path)
    git(clone, "checkout", "-q", "-b", "topic")
    git(clone, "push", "-q", "-u", "origin", "topic")
    git(clone, "checkout", "-q", "main")

    result = _tool(clone, [[Item("topic")], True, False], console).run()
    assert result.outcome is Outcome.SUCCESS
    assert git(origin, "branch", "--list", "topic") != ""


@requires_git
def test_current_branch_is_never_offered(repo: Path, console: Console) -> None:
    git(repo, "branch", "other")

    def only_other(choices: list) -> list:  # type: ignore[type-arg]
        values = [value for _, value in choices]
        assert values == [SELECT_ALL, Item("other")]
        return [SELECT_ALL]

    result = _tool(repo, [only_other, False], console).run()
    assert result.outcome is Outcome.CANCELLED
    assert result.exit_code == 0


@requires_git
def test_only_current_branch(repo: Path, console: Console) -> None:
    prompter = ScriptedPrompter([])
    result = BranchDeleteTool(repo, prompter=prompter, console=console).run()
    assert result.outcome is Outcome.SUCCESS
    assert prompter.asked == []


@requires_git
def test_force_delete_unmerged(repo: Path, console: Console) -> None:
    git(repo, "checkout", "-q", "-b", "wip")
    commit_file(repo, "wip.txt", "w", "unmerged work")
    git(repo, "checkout", "-q", "main")

    result = _tool(repo, [[SELECT_ALL], True, True, False], console).run()
    assert result.outcome is Outcome.SUCCESS
    assert [b.name for b in git_ops.local_branches(repo)] == ["main"]
    assert "1 branch(es) not deleted" in output(console)


@requires_git
def test_declined_force_delete_fails(repo: Path, console: Console) -> None:
    git(repo, "checkout", "-q", "-b", "wip")
    commit_file(repo, "wip.txt", "w", "unmerged work")
    git(repo, "checkout", "-q", "main")

    result = _tool(repo, [[SELECT_ALL], True, False], console).run()
    assert result.outcome is Outcome.FAILED
    assert result.exit_code == 1
    assert "wip" in [b.name for b in git_ops.local_branches(repo)]


@requires_git
def test_partial_local_failure_still_deletes_the_rest(repo: Path, console: Console) -> None:
    git(repo, "branch", "merged")
    git(repo, "checkout", "-q", "-b", "wip")
    commit_file(repo, "wip.txt", "w", "unmerged work")
    git(repo, "checkout", "-q", "main")

    result = _tool(repo, [[SELECT_ALL], True, False, False], console).run()
    assert result.outcome is Outcome.FAILED
    assert [b.name for b in git_ops.local_branches(repo)] == ["main", "wip"]


@requires_git
def test_interrupt_after_local_delete_exits_nonzero(repo: Path, console: Console) -> None:
    git(repo, "branch", "done")
    # answers run out at the remote prompt, like Ctrl-C
    result = _tool(repo, [[SELECT_ALL], True], console).run()
    assert result.outcome is Outcome.CANCELLED
    assert result.mutated
    assert result.exit_code == 1
    assert [b.name for b in git_ops.local_branches(repo)] == ["main"]


@requires_git
def test_remote_delete_failure_is_reported(
    tmp_path: Path, console: Console, monkeypatch: pytest.MonkeyPatch
) -> None:
    _, clone = _clone(tmp_path)
    git(clone, "checkout", "-q", "-b", "topic")
    git(clone, "push", "-q", "-u", "origin", "topic")
    git(clone, "checkout", "-q", "main")

    def rejected(cwd: Path, remote: str, branch: str) -> None:
        raise git_ops.GitError(["push", remote, "--delete", branch], "permission denied")

    monkeypatch.setattr(git_ops, "remote_branch_delete", rejected)
    result = _tool(clone, [[SELECT_ALL], True, True, [SELECT_ALL]], console).run()
    assert result.outcome is Outcome.FAILED
    assert "permission denied" in output(console)


@requires_git
def test_checkout_switches(repo: Path, console: Console) -> None:
    git(repo, "branch", "dev")
    prompter = ScriptedPrompter(["dev"])
    result = CheckoutTool(repo, prompter=prompter, console=console).run()
    assert result.outcome is Outcome.SUCCESS
    assert git_ops.current_branch(repo) == "dev"
    assert [kind for kind, _ in prompter.asked] == ["select"]


@requires_git
def test_checkout_already_on_branch(repo: Path, console: Console, calls: list[list[str]]) -> None:
    git(repo, "branch", "dev")
    result = CheckoutTool(repo, prompter=ScriptedPrompter(["main"]), console=console).run()
    assert result.outcome is Outcome.SUCCESS
    assert calls == []
    assert "Already on main" in output(console)


@requires_git
def test_checkout_uses_fuzzy_prompt_for_many_branches(repo: Path, console: Console) -> None:
    git(repo, "branch", "dev")
    prompter = ScriptedPrompter(["dev"])
    tool = CheckoutTool(repo, prompter=prompter, console=console, settings=Settings(fuzzy_threshold=1))
    assert tool.run().outcome is Outcome.SUCCESS
    assert [kind for kind, _ in prompter.asked] == ["fuzzy"]
    assert git_ops.current_branch(repo) == "dev"


@requires_git
def test_checkout_creates_branch(repo: Path, console: Console) -> None:
    prompter = ScriptedPrompter([])
    result = CheckoutTool(repo, new_branch="topic", prompter=prompter, console=console).run()
    assert result.outcome is Outcome.SUCCESS
    assert git_ops.current_branch(repo) == "topic"
    assert prompter.asked == []
    assert "Created topic from main" in output(console)


@requires_git
def test_checkout_create_existing_fails(repo: Path, console: Console) -> None:
    git(repo, "branch", "dev")
    result = CheckoutTool(repo, new_branch="dev", prompter=ScriptedPrompter([]), console=console).run()
    assert result.outcome is Outcome.FAILED
    assert git_ops.current_branch(repo) == "main"
