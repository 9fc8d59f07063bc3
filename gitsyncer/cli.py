"""
gitsyncer command line.

This module is the only place that terminates the process: every lifecycle
abort is turned into ``typer.Exit`` with the abort's exit code.
"""

from pathlib import Path
from typing import Callable, List, Optional

import typer

from .config import SyncConfig, load_configuration
from .errors import SyncAbort
from .git_sync import Syncer, SyncerGitOptions
from .server import main as server_main, setup_logging

CONFIG_ERROR_EXIT_CODE = 2

app = typer.Typer(
    name="gitsyncer",
    help="Keep a workspace working copy in sync with a remote repository",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    context: Optional[Path] = typer.Option(
        None, "--context", "-C", help="Project root (default: $GITSYNCER_CONTEXT or cwd)"
    ),
    tag: Optional[str] = typer.Option(
        None, "--tag", "-t", help="Sync tag distinguishing sync targets"
    ),
    repository_url: Optional[str] = typer.Option(
        None, "--repository-url", "-r", help="Remote repository URL"
    ),
    default_branch: Optional[str] = typer.Option(
        None, "--default-branch", help="Remote default branch"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"
    ),
) -> None:
    """Bootstrap, sync and publish a vendored working copy."""
    try:
        config = load_configuration(
            context=context,
            sync_tag=tag,
            repository_url=repository_url,
            default_branch=default_branch,
            log_level=log_level,
        )
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(CONFIG_ERROR_EXIT_CODE)

    setup_logging(config)
    ctx.obj = config


def _run(config: SyncConfig, action: Callable[[Syncer], object],
         git_options: Optional[SyncerGitOptions] = None) -> object:
    try:
        syncer = Syncer(config, git_options)
        return action(syncer)
    except SyncAbort as abort:
        raise typer.Exit(abort.exit_code)


@app.command()
def bootstrap(ctx: typer.Context) -> None:
    """Create the workspace, ignore entries and history log."""
    _run(ctx.obj, lambda syncer: syncer.bootstrap())


@app.command()
def reset(ctx: typer.Context) -> None:
    """Delete the working copy and the history log."""
    _run(ctx.obj, lambda syncer: syncer.reset())


@app.command("sync-local")
def sync_local(
    ctx: typer.Context,
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Local branch name"),
) -> None:
    """Initialize or refresh the working copy from the remote."""
    options = SyncerGitOptions()
    if branch:
        options.branch_name = branch
    _run(ctx.obj, lambda syncer: syncer.sync_local(), options)


@app.command("sync-remote")
def sync_remote(
    ctx: typer.Context,
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Local branch name"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
    files: Optional[List[str]] = typer.Option(None, "--file", "-f", help="Path to stage (repeatable)"),
    create_mr: bool = typer.Option(False, "--create-mr", help="Open a merge request after pushing"),
) -> None:
    """Push local changes to a freshly named remote branch."""
    config: SyncConfig = ctx.obj
    if create_mr:
        config.create_merge_request = True

    options = SyncerGitOptions()
    if branch:
        options.branch_name = branch
    if message:
        options.commit_message = message
    if files:
        options.add_files = list(files)

    remote_branch = _run(config, lambda syncer: syncer.sync_remote(), options)
    typer.echo(remote_branch)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show bootstrap and working copy state."""
    state = _run(ctx.obj, lambda syncer: syncer.status())
    for key, value in state.items():
        typer.echo(f"{key}: {value}")


@app.command()
def serve(ctx: typer.Context) -> None:
    """Run the MCP tool server on stdio."""
    server_main(ctx.obj)


def run() -> None:
    """Console script entry point."""
    app()
