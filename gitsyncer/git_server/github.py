"""GitHub pull request client."""

from typing import Any, Dict

from .base import GitServer


class GitHub(GitServer):
    """GitHub REST API; ``repository_id`` is ``owner/name``."""

    default_host = "https://api.github.com"

    def _auth_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.options.token:
            headers["Authorization"] = f"Bearer {self.options.token}"
        return headers

    async def _create_merge_request(self, source_branch: str, target_branch: str,
                                    title: str) -> Dict[str, Any]:
        result = await self.post_http(
            f"/repos/{self.options.repository_id}/pulls",
            {"head": source_branch, "base": target_branch, "title": title}
        )
        self.logger.info(f"Opened pull request {result.get('html_url', result.get('number'))}")
        return result
