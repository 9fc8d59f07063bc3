"""Hosting-service clients for opening merge requests."""

from .base import GitServer, GitServerOptions, GitServerType
from .github import GitHub
from .gitlab import GitLab


def create_git_server(options: GitServerOptions, timeout: float = 30.0) -> GitServer:
    """Create the client for ``options.type``; anything but GitHub gets GitLab."""
    if options.type is GitServerType.GITHUB:
        return GitHub(options, timeout=timeout)
    return GitLab(options, timeout=timeout)


__all__ = [
    'GitServer',
    'GitServerOptions',
    'GitServerType',
    'GitHub',
    'GitLab',
    'create_git_server'
]
