"""
Sync Engine -- builds a pipeline per request and runs it.

    ghm add-secret          ->  SecretPublish
    ghm add-workflow        ->  WorkflowPublish
    ghm add-saved-secrets   ->  SecretPublish per saved name, best effort
    ghm add-saved-workflows ->  WorkflowPublish per saved name, best effort
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from .config import GHMConfig
from .errors import GHMError
from .github import GitHubClient
from .models import PublishResult, RepositoryRecord
from .pipelines import SecretPublish, WorkflowPublish
from .store import LocalStateStore

logger = logging.getLogger("ghm.engine")

ClientFactory = Callable[[GHMConfig], GitHubClient]


def _default_client(config: GHMConfig) -> GitHubClient:
    return GitHubClient(
        config.github_token or "", api_url=config.api_url, timeout=config.timeout,
    )


class SyncEngine:
    """Distributes secrets and workflows to repositories.

    Args:
        config: Token, endpoints and timeouts. Owned by the caller.
        store: Local state store the pipelines persist into.
        client_factory: Builds the API client; replaced in tests.
        workdir: Directory workflow pipelines resolve working copies
            against. Defaults to the current directory at run time.
    """

    def __init__(
        self,
        config: GHMConfig,
        store: LocalStateStore,
        client_factory: Optional[ClientFactory] = None,
        workdir: Optional[Path] = None,
    ):
        self.config = config
        self.store = store
        self._client_factory = client_factory or _default_client
        self.workdir = workdir

    def add_secret(self, repo: str, secret_name: str, secret_value: str) -> PublishResult:
        """Encrypt and upsert one secret, then save it locally."""
        pipeline = SecretPublish(
            repo, secret_name, secret_value,
            client=self._client_factory(self.config), store=self.store,
        )
        return pipeline.run()

    def add_workflow(self, repo: str, workflow_name: str, content: str) -> PublishResult:
        """Commit and push one workflow file, then save it locally."""
        pipeline = WorkflowPublish(
            repo, workflow_name, content,
            store=self.store,
            token=self.config.github_token,
            base_url=self.config.git_base_url,
            workdir=self.workdir,
            timeout=self.config.git_timeout,
        )
        return pipeline.run()

    def add_secrets_to_repo(self, repo: str, secret_names: Iterable[str]) -> dict[str, bool]:
        """Apply saved secrets to ``repo``, skipping any that fail.

        Returns:
            Dict mapping each secret name to whether it was applied.
        """
        results: dict[str, bool] = {}
        for name in secret_names:
            try:
                value = self.store.secrets.get(name)
                self.add_secret(repo, name, value)
            except GHMError as exc:
                logger.warning("Skipping secret '%s' for '%s': %s", name, repo, exc)
                results[name] = False
                continue
            results[name] = True
        return results

    def add_workflows_to_repo(self, repo: str, workflow_names: Iterable[str]) -> dict[str, bool]:
        """Apply saved workflows to ``repo``, skipping any that fail.

        Returns:
            Dict mapping each workflow name to whether it was applied.
        """
        results: dict[str, bool] = {}
        for name in workflow_names:
            try:
                content = self.store.workflows.get(name)
                self.add_workflow(repo, name, content)
            except GHMError as exc:
                logger.warning("Skipping workflow '%s' for '%s': %s", name, repo, exc)
                results[name] = False
                continue
            results[name] = True
        return results

    def repositories(self) -> dict[str, RepositoryRecord]:
        """Every repository ghm has published to, keyed by ``owner/name``."""
        return dict(self.store.repositories.load().repositories)
