"""Base class for hosting-service API clients."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class GitServerType(Enum):
    """Supported hosting services."""
    GITHUB = "github"
    GITLAB = "gitlab"
    GIST = "gist"

    @classmethod
    def from_tag(cls, tag: str) -> "GitServerType":
        """Parse a configuration tag; unknown tags fall back to GitLab."""
        try:
            return cls(tag.strip().lower())
        except ValueError:
            logging.getLogger('gitsyncer.git_server').warning(
                f"Unknown git server type {tag!r}, falling back to gitlab"
            )
            return cls.GITLAB


@dataclass
class GitServerOptions:
    """Connection settings for the hosting API."""
    type: GitServerType = GitServerType.GITLAB
    host: str = ""
    token: str = ""
    repository_id: str = ""


class GitServer(ABC):
    """Authenticated access to a hosting service's REST API."""

    default_host = ""

    def __init__(self, options: GitServerOptions, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            options: Host, token and repository identifier
            timeout: Seconds limit for each request
            transport: Optional httpx transport, used by tests
        """
        self.options = options
        self.timeout = timeout
        self.transport = transport
        self.logger = logging.getLogger('gitsyncer.git_server')

    @property
    def base_url(self) -> str:
        return (self.options.host or self.default_host).rstrip("/")

    @property
    def configured(self) -> bool:
        """True when a token and repository id are available."""
        return bool(self.options.token and self.options.repository_id)

    @abstractmethod
    def _auth_headers(self) -> Dict[str, str]:
        """Authentication headers for every request."""

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._auth_headers(),
            timeout=self.timeout,
            transport=self.transport
        )

    async def get_http(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` and return the decoded JSON body."""
        async with self._client() as client:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()

    async def post_http(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """POST ``payload`` as JSON to ``path`` and return the decoded body."""
        async with self._client() as client:
            response = await client.post(path, json=payload or {})
            response.raise_for_status()
            return response.json()

    async def create_merge_request(self, source_branch: str, target_branch: str,
                                   title: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Ask the hosting service to merge ``source_branch`` into ``target_branch``.

        Returns the created proposal, or None when no credentials are
        configured.
        """
        if not self.configured:
            self.logger.warning(
                f"No token or repository id configured, skipping merge request "
                f"{source_branch} -> {target_branch}"
            )
            return None

        title = title or f"Sync {source_branch} into {target_branch}"
        return await self._create_merge_request(source_branch, target_branch, title)

    @abstractmethod
    async def _create_merge_request(self, source_branch: str, target_branch: str,
                                    title: str) -> Dict[str, Any]:
        """Service specific merge request call."""
