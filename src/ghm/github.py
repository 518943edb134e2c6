"""
GitHub REST client -- the two Actions secrets endpoints ghm needs.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from .errors import RemoteError
from .models import RepositoryPublicKey

logger = logging.getLogger("ghm.github")

API_VERSION = "2022-11-28"


class GitHubClient:
    """Token-authenticated client for the repository secrets API.

    Args:
        token: Personal access token or app installation token.
        api_url: API root, ``https://api.github.com`` for github.com.
        timeout: Seconds before a request is abandoned.
        session: Optional ``requests.Session`` to reuse.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _api_call(
        self, method: str, endpoint: str, data: Optional[dict] = None,
    ) -> requests.Response:
        """Make an authenticated API request.

        Raises:
            RemoteError: On transport failure or any 4xx/5xx response.
        """
        if not self._token:
            raise RemoteError("GitHub token not configured")

        url = f"{self.api_url}{endpoint}"
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        try:
            resp = self._session.request(
                method, url, headers=headers, json=data, timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise RemoteError(f"GitHub API {method} {endpoint}: {exc}") from exc

        if resp.status_code >= 400:
            raise RemoteError(
                f"GitHub API {method} {endpoint}: {resp.status_code} {resp.text}",
                status_code=resp.status_code,
            )
        return resp

    def get_repo_public_key(self, owner: str, repo: str) -> RepositoryPublicKey:
        """Fetch the repository's current Actions secrets public key."""
        resp = self._api_call(
            "GET", f"/repos/{owner}/{repo}/actions/secrets/public-key",
        )
        try:
            payload: Any = resp.json()
            key = RepositoryPublicKey(key_id=payload["key_id"], key=payload["key"])
        except (ValueError, KeyError, TypeError) as exc:
            raise RemoteError(
                f"Unexpected public key response for {owner}/{repo}: {exc}",
                status_code=resp.status_code,
            ) from exc
        logger.debug("Fetched public key %s for %s/%s", key.key_id, owner, repo)
        return key

    def create_or_update_repo_secret(
        self, owner: str, repo: str, name: str, encrypted_value: str, key_id: str,
    ) -> bool:
        """Upsert an encrypted repository secret.

        Returns:
            True if the secret was created, False if it was updated.
        """
        resp = self._api_call(
            "PUT",
            f"/repos/{owner}/{repo}/actions/secrets/{name}",
            data={"encrypted_value": encrypted_value, "key_id": key_id},
        )
        created = resp.status_code == 201
        logger.info(
            "Secret '%s' %s in %s/%s",
            name, "created" if created else "updated", owner, repo,
        )
        return created
