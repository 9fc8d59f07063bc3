"""GitLab merge request client."""

from typing import Any, Dict
from urllib.parse import quote

from .base import GitServer


class GitLab(GitServer):
    """GitLab REST API v4."""

    default_host = "https://gitlab.com"

    def _auth_headers(self) -> Dict[str, str]:
        if not self.options.token:
            return {}
        return {"PRIVATE-TOKEN": self.options.token}

    @property
    def project_path(self) -> str:
        # Namespaced ids like "group/project" must be URL-encoded
        return f"/api/v4/projects/{quote(self.options.repository_id, safe='')}"

    async def _create_merge_request(self, source_branch: str, target_branch: str,
                                    title: str) -> Dict[str, Any]:
        result = await self.post_http(
            f"{self.project_path}/merge_requests",
            {
                "source_branch": source_branch,
                "target_branch": target_branch,
                "title": title,
                "remove_source_branch": True
            }
        )
        self.logger.info(f"Opened merge request {result.get('web_url', result.get('iid'))}")
        return result
