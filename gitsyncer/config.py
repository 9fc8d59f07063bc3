"""Configuration management for gitsyncer."""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

from .git_server import GitServerOptions, GitServerType
from .platform import normalize_path

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class SyncConfig:
    """Per-instance workspace configuration with validation and defaults.

    The derived paths are computed once in ``__post_init__`` and never change
    for the lifetime of the instance.
    """

    # Workspace layout
    context: Path = field(default_factory=Path.cwd)
    sync_tag: str = "deps"
    workspace_dir_name: str = ".sync"
    repository_dir_name: str = "repository"

    # Remote repository
    repository_url: Optional[str] = None
    default_branch: str = "master"

    # Hosting service
    git_server: GitServerOptions = field(default_factory=GitServerOptions)
    create_merge_request: bool = False

    # Logging and exit behaviour
    log_level: str = "INFO"
    error_exit_code: int = 1

    # Timeouts in seconds (None disables the git timeout)
    command_timeout: Optional[float] = None
    http_timeout: float = 30.0

    def __post_init__(self):
        """Validate configuration and compute derived paths."""
        self.context = normalize_path(self.context)

        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}")

        if not self.sync_tag:
            raise ValueError("sync_tag must not be empty")

        for name in ("workspace_dir_name", "repository_dir_name"):
            value = getattr(self, name)
            if not value:
                raise ValueError(f"{name} must not be empty")
            if "/" in value or "\\" in value:
                raise ValueError(f"{name} must be a single directory name, got {value!r}")

        if not self.default_branch:
            raise ValueError("default_branch must not be empty")

        if self.command_timeout is not None and self.command_timeout < 0:
            raise ValueError("command_timeout must be non-negative")

        if self.http_timeout < 0:
            raise ValueError("http_timeout must be non-negative")

        self._workspace_dir = self.context / self.workspace_dir_name
        self._repository_dir = self._workspace_dir / self.repository_dir_name
        self._log_file = self._workspace_dir / f"{self.sync_tag}-sync-history.json"

    @property
    def workspace_dir(self) -> Path:
        """Container directory for the working copy and the history log."""
        return self._workspace_dir

    @property
    def repository_dir(self) -> Path:
        """Working copy directory."""
        return self._repository_dir

    @property
    def log_file(self) -> Path:
        """Sync history log for this sync tag."""
        return self._log_file

    @property
    def ignore_file(self) -> Path:
        """Ignore file of the embedding project."""
        return self.context / ".gitignore"

    @property
    def remote_default_ref(self) -> str:
        """Remote-tracking ref of the default branch."""
        return f"origin/{self.default_branch}"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


def load_configuration(**overrides) -> SyncConfig:
    """Load configuration from environment variables and a ``.env`` file.

    Keyword arguments that are not ``None`` take precedence over the
    environment. Unknown keyword arguments are rejected by ``SyncConfig``.
    """
    load_dotenv()

    try:
        server_options = GitServerOptions(
            type=GitServerType.from_tag(os.getenv("GITSYNCER_SERVER_TYPE", "gitlab")),
            host=os.getenv("GITSYNCER_SERVER_HOST", ""),
            token=os.getenv("GITSYNCER_SERVER_TOKEN", ""),
            repository_id=os.getenv("GITSYNCER_REPOSITORY_ID", ""),
        )

        values = {
            "context": Path(os.getenv("GITSYNCER_CONTEXT", str(Path.cwd()))),
            "sync_tag": os.getenv("GITSYNCER_SYNC_TAG", "deps"),
            "workspace_dir_name": os.getenv("GITSYNCER_WORKSPACE_DIR", ".sync"),
            "repository_dir_name": os.getenv("GITSYNCER_REPOSITORY_DIR", "repository"),
            "repository_url": os.getenv("GITSYNCER_REPOSITORY_URL"),
            "default_branch": os.getenv("GITSYNCER_DEFAULT_BRANCH", "master"),
            "git_server": server_options,
            "create_merge_request": _env_bool("GITSYNCER_CREATE_MR"),
            "log_level": os.getenv("GITSYNCER_LOG_LEVEL", "INFO").upper(),
            "error_exit_code": int(os.getenv("GITSYNCER_ERROR_EXIT_CODE", "1")),
            "command_timeout": _env_optional_float("GITSYNCER_COMMAND_TIMEOUT"),
            "http_timeout": float(os.getenv("GITSYNCER_HTTP_TIMEOUT", "30")),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})

        return SyncConfig(**values)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}")


def validate_configuration(config: SyncConfig) -> List[str]:
    """Validate configuration and return any errors or warnings."""
    errors = []

    if not config.repository_url:
        errors.append("ERROR: No repository URL configured (set GITSYNCER_REPOSITORY_URL)")
    elif not config.repository_url.startswith(("http://", "https://", "ssh://", "git@")):
        errors.append(f"WARNING: Repository URL may be invalid: {config.repository_url}")

    if config.create_merge_request:
        if not config.git_server.token:
            errors.append("WARNING: Merge requests enabled but no hosting token configured")
        if not config.git_server.repository_id:
            errors.append("WARNING: Merge requests enabled but no repository id configured")

    if config.context.exists() and not config.context.is_dir():
        errors.append(f"ERROR: Project context is not a directory: {config.context}")

    logging.getLogger('gitsyncer.config').debug(
        f"Configuration validated with {len(errors)} issue(s)"
    )

    return errors
