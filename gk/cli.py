import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from gk import git_ops, wrappers
from gk.app import Tool
from gk.branches import BranchDeleteTool, CheckoutTool, list_branches
from gk.config import ConfigError, Settings, load_settings
from gk.models import Outcome, Result
from gk.reset import ResetTool
from gk.stash import StashTool
from gk.ui import Prompter, make_console

NOT_A_REPO = "gk: not inside a git repository"

ALIASES = {
    "p": "pull",
    "b": "branches",
    "l": "log",
    "ck": "checkout",
    "bd": "delete-branches",
    "res": "reset",
}


@dataclass
class Env:
    cwd: Path
    console: Console
    settings: Settings


class AliasedGroup(click.Group):
    """Accepts the short tool names as aliases of the subcommands."""

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, ALIASES.get(cmd_name, cmd_name))

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        _, cmd, rest = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, rest


def setup_logging(verbose: bool) -> None:
    handler = RichHandler(
        console=Console(stderr=True),
        show_level=True,
        show_path=False,
        show_time=False,
    )
    logger = logging.getLogger("gk")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _finish(env: Env, result: Result) -> None:
    if result.message:
        if result.outcome is Outcome.FAILED:
            env.console.print(f"[red bold]error:[/red bold] {escape(result.message)}")
        else:
            env.console.print(escape(result.message))
    raise SystemExit(result.exit_code)


def _run_tool(env: Env, tool_cls: type[Tool], **kwargs: Any) -> None:
    tool = tool_cls(
        env.cwd, prompter=Prompter(), console=env.console, settings=env.settings, **kwargs
    )
    _finish(env, tool.run())


@click.group(
    cls=AliasedGroup,
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
)
@click.option(
    "-C",
    "directory",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Run as if started in this directory.",
)
@click.option("-v", "--verbose", is_flag=True, help="Log every git command.")
@click.pass_context
def main(ctx: click.Context, directory: Path | None, verbose: bool) -> None:
    """gk: interactive helpers for everyday git.

    Short aliases: p (pull), b (branches), l (log), ck (checkout),
    bd (delete-branches), res (reset).
    """
    setup_logging(verbose)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        return

    cwd = (directory or Path.cwd()).resolve()
    if not git_ops.is_inside_work_tree(cwd):
        click.echo(NOT_A_REPO, err=True)
        raise SystemExit(1)

    try:
        settings = load_settings(git_ops.get_repo_root(cwd))
    except ConfigError as exc:
        click.echo(f"gk: {exc}", err=True)
        raise SystemExit(1)
    ctx.obj = Env(cwd=cwd, console=make_console(), settings=settings)


@main.command()
@click.pass_obj
def pull(env: Env) -> None:
    """Run git pull."""
    raise SystemExit(wrappers.pull(env.cwd, env.console))


@main.command()
@click.pass_obj
def push(env: Env) -> None:
    """Run git push, setting the upstream for new branches."""
    raise SystemExit(wrappers.push(env.cwd, env.console, env.settings.default_remote))


@main.command()
@click.pass_obj
def branches(env: Env) -> None:
    """List local branches."""
    env.console.print("Local branches:\n")
    raise SystemExit(list_branches(env.cwd))


@main.command(
    "log",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
def log_cmd(env: Env, args: tuple[str, ...]) -> None:
    """Show the commit graph, or run git log with ARGS."""
    raise SystemExit(wrappers.show_log(env.cwd, args, env.settings.log_count))


@main.command()
@click.argument("name", required=False)
@click.pass_obj
def checkout(env: Env, name: str | None) -> None:
    """Pick a branch to switch to, or create NAME from the current branch."""
    _run_tool(env, CheckoutTool, new_branch=name)


@main.command("delete-branches")
@click.pass_obj
def delete_branches(env: Env) -> None:
    """Delete local branches and, optionally, their remote counterparts."""
    _run_tool(env, BranchDeleteTool)


@main.command()
@click.pass_obj
def reset(env: Env) -> None:
    """Rewind commits, unstage files or reset to a remote branch or commit."""
    _run_tool(env, ResetTool)


@main.command()
@click.pass_obj
def stash(env: Env) -> None:
    """Create, inspect and clean up stashes."""
    _run_tool(env, StashTool)


if __name__ == "__main__":
    main()
