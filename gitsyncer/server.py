"""MCP tool server exposing the gitsyncer lifecycle."""

import asyncio
import logging
import sys
from typing import Callable, List, Optional

from mcp.server.fastmcp import FastMCP

from .config import SyncConfig, load_configuration, validate_configuration
from .errors import SyncAbort, create_success_response, error_response_from_abort
from .git_sync import Syncer, SyncerGitOptions

SyncerFactory = Callable[[SyncerGitOptions], Syncer]


def setup_logging(config: SyncConfig) -> None:
    """Configure root logging with the step-aware structured formatter."""
    class StructuredFormatter(logging.Formatter):
        def format(self, record):
            # Prefix records emitted inside a step with the step label
            if getattr(record, 'step', None):
                record = logging.makeLogRecord(record.__dict__)
                record.msg = f"[{record.step}] {record.msg}"
            return super().format(record)

    formatter = StructuredFormatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # stderr keeps stdout free for the stdio transport
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, config.log_level))


def register_tools(server: FastMCP, server_config: SyncConfig,
                   syncer_factory: Optional[SyncerFactory] = None) -> None:
    """Register the lifecycle operations as MCP tools."""

    def make_syncer(git_options: SyncerGitOptions) -> Syncer:
        if syncer_factory is not None:
            return syncer_factory(git_options)
        return Syncer(server_config, git_options)

    async def run_operation(operation: str, action: Callable[[Syncer], object],
                            git_options: Optional[SyncerGitOptions] = None) -> dict:
        def work():
            syncer = make_syncer(git_options or SyncerGitOptions())
            result = action(syncer)
            return result, syncer.status()

        try:
            # Lifecycle calls block on git and may drive their own event loop
            result, status = await asyncio.to_thread(work)
        except SyncAbort as abort:
            return error_response_from_abort(abort, operation).to_dict()

        data = {"status": status}
        if result is not None:
            data["result"] = result
        return create_success_response(operation, data)

    @server.tool()
    async def bootstrap() -> dict:
        """
        Create the workspace directory, ignore-file entries and sync history log.

        Safe to call repeatedly; existing entries and the history record are kept.
        """
        return await run_operation("bootstrap", lambda syncer: syncer.bootstrap())

    @server.tool()
    async def reset() -> dict:
        """Delete the working copy and the sync history log."""
        return await run_operation("reset", lambda syncer: syncer.reset())

    @server.tool()
    async def sync_local(branch_name: Optional[str] = None) -> dict:
        """
        Initialize or refresh the working copy from the remote default branch.

        Args:
            branch_name: Local branch created on first sync (defaults to "<tag>-sync")
        """
        options = SyncerGitOptions()
        if branch_name:
            options.branch_name = branch_name
        return await run_operation("sync_local", lambda syncer: syncer.sync_local(), options)

    @server.tool()
    async def sync_remote(branch_name: Optional[str] = None,
                          commit_message: Optional[str] = None,
                          add_files: Optional[List[str]] = None) -> dict:
        """
        Push working copy changes to a new remote branch.

        The remote branch is named "<branch_name>-<epoch milliseconds>". When there
        are no changes the response has level "warning" and nothing is pushed.

        Args:
            branch_name: Local branch name (defaults to "<tag>-sync")
            commit_message: Commit message for the sync commit
            add_files: Paths to stage, relative to the working copy (defaults to ".")
        """
        options = SyncerGitOptions()
        if branch_name:
            options.branch_name = branch_name
        if commit_message:
            options.commit_message = commit_message
        if add_files:
            options.add_files = list(add_files)
        return await run_operation("sync_remote", lambda syncer: syncer.sync_remote(), options)

    @server.tool()
    async def status() -> dict:
        """Report bootstrap and working copy state for the configured sync tag."""
        return await run_operation("status", lambda syncer: None)

    logging.getLogger('gitsyncer.init').info("MCP tools registered successfully")


def initialize_server(server_config: Optional[SyncConfig] = None) -> FastMCP:
    """Initialize the MCP server with stdio transport."""
    server_config = server_config or load_configuration()
    setup_logging(server_config)
    init_logger = logging.getLogger('gitsyncer.init')

    validation_issues = validate_configuration(server_config)
    for issue in validation_issues:
        if issue.startswith("ERROR:"):
            init_logger.error(issue[7:])
        elif issue.startswith("WARNING:"):
            init_logger.warning(issue[9:])

    error_count = sum(1 for issue in validation_issues if issue.startswith("ERROR:"))
    if error_count > 0:
        raise ValueError(f"Server startup failed due to {error_count} configuration error(s)")

    init_logger.info(f"Serving sync tag '{server_config.sync_tag}' for {server_config.context}")
    server = FastMCP("gitsyncer", log_level=server_config.log_level)
    register_tools(server, server_config)
    return server


def main(server_config: Optional[SyncConfig] = None) -> None:
    """Main entry point for the tool server with stdio transport."""
    try:
        server = initialize_server(server_config)
    except ValueError as e:
        logging.getLogger('gitsyncer.init').critical(str(e))
        sys.exit(1)

    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        logging.getLogger('gitsyncer.init').info("Server stopped by user (Ctrl+C)")
