"""
Publish pipelines -- the only code that changes a remote repository.

    SecretPublish    validate -> fetch key -> encrypt -> upsert -> persist
    WorkflowPublish  validate -> acquire -> write -> commit -> push -> persist

Persisting is always the last stage and is only reached after the
remote change succeeded, so the local store never claims more than
GitHub actually holds.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from .encrypt import encrypt_secret
from .errors import InvalidInput, InvalidRepoFormat, MissingField
from .git import acquire_working_copy
from .github import GitHubClient
from .models import (
    ItemKind,
    PipelineStage,
    PublishResult,
    RepositoryPublicKey,
    Secret,
    Workflow,
)
from .store import LocalStateStore

logger = logging.getLogger("ghm.pipelines")

Encrypt = Callable[[str, RepositoryPublicKey], str]


def parse_repository(repo: str) -> tuple[str, str]:
    """Split ``owner/name``.

    Raises:
        InvalidRepoFormat: Unless there are exactly two non-empty segments.
    """
    parts = (repo or "").split("/")
    if len(parts) != 2 or not all(parts):
        raise InvalidRepoFormat(repo)
    return parts[0], parts[1]


def _validate_workflow_name(name: str) -> None:
    if not name:
        raise MissingField("workflow_name")
    if "/" in name or "\\" in name or "\x00" in name or name in (".", ".."):
        raise InvalidInput(
            f"Workflow name must be a plain file name, got {name!r}"
        )


class Pipeline(ABC):
    """One publish operation against one repository.

    ``stage`` tracks progress; after a failure it is ``FAILED`` and
    ``failed_at`` holds the stage that raised.
    """

    kind: ItemKind

    def __init__(self, repo: str, name: str, store: LocalStateStore):
        self.repo = repo
        self.name = name
        self.store = store
        self.stage = PipelineStage.PENDING
        self.failed_at: Optional[PipelineStage] = None
        self.error: Optional[Exception] = None

    def _enter(self, stage: PipelineStage) -> None:
        logger.debug("%s '%s' -> %s: %s", self.kind.value, self.name, self.repo, stage.value)
        self.stage = stage

    def run(self) -> PublishResult:
        """Run every stage in order.

        Raises:
            GHMError: Whatever the failing stage raised. Any other exception
                is recorded the same way and re-raised.
        """
        try:
            result = self._execute()
        except Exception as exc:
            self.failed_at = self.stage
            self.error = exc
            self.stage = PipelineStage.FAILED
            logger.error(
                "Failed to publish %s '%s' to %s during %s: %s",
                self.kind.value, self.name, self.repo, self.failed_at.value, exc,
            )
            raise
        self.stage = PipelineStage.DONE
        return result

    @abstractmethod
    def _execute(self) -> PublishResult:
        """Stage-by-stage body. Must call ``_enter`` before each stage."""


class SecretPublish(Pipeline):
    """Encrypt a secret against the repository key and upsert it."""

    kind = ItemKind.SECRET

    def __init__(
        self,
        repo: str,
        name: str,
        value: str,
        client: GitHubClient,
        store: LocalStateStore,
        encrypt: Encrypt = encrypt_secret,
    ):
        super().__init__(repo, name, store)
        self.secret = Secret(name=name, value=value)
        self.client = client
        self.encrypt = encrypt

    def _execute(self) -> PublishResult:
        self._enter(PipelineStage.VALIDATING)
        owner, repo_name = parse_repository(self.repo)
        if not self.name:
            raise MissingField("secret_name")

        self._enter(PipelineStage.FETCHING_KEY)
        public_key = self.client.get_repo_public_key(owner, repo_name)

        self._enter(PipelineStage.ENCRYPTING)
        ciphertext = self.encrypt(self.secret.value, public_key)

        self._enter(PipelineStage.UPSERTING)
        self.client.create_or_update_repo_secret(
            owner, repo_name, self.name, ciphertext, public_key.key_id,
        )

        self._enter(PipelineStage.PERSISTING)
        self.store.secrets.put(self.secret.name, self.secret.value)
        self.store.repositories.record_secret(self.repo, self.name)

        logger.info("Secret '%s' added to repository '%s'", self.name, self.repo)
        return PublishResult(kind=self.kind, repository=self.repo, name=self.name)


class WorkflowPublish(Pipeline):
    """Commit a workflow file into the repository and push it."""

    kind = ItemKind.WORKFLOW

    def __init__(
        self,
        repo: str,
        name: str,
        content: str,
        store: LocalStateStore,
        token: Optional[str] = None,
        base_url: str = "https://github.com",
        workdir: Optional[Path] = None,
        timeout: float = 120.0,
    ):
        super().__init__(repo, name, store)
        self.workflow = Workflow(name=name, content=content)
        self.token = token
        self.base_url = base_url
        self.workdir = workdir
        self.timeout = timeout

    def _execute(self) -> PublishResult:
        self._enter(PipelineStage.VALIDATING)
        owner, repo_name = parse_repository(self.repo)
        _validate_workflow_name(self.name)
        if not self.workflow.content:
            raise MissingField("workflow_content")

        self._enter(PipelineStage.ACQUIRING)
        with acquire_working_copy(
            owner, repo_name, token=self.token, base_url=self.base_url,
            workdir=self.workdir, timeout=self.timeout,
        ) as working_copy:
            self._enter(PipelineStage.WRITING)
            relative = working_copy.write_workflow(self.workflow.name, self.workflow.content)

            self._enter(PipelineStage.COMMITTING)
            sha = working_copy.commit_file(relative)

            self._enter(PipelineStage.PUSHING)
            pushed = working_copy.push()

        self._enter(PipelineStage.PERSISTING)
        self.store.workflows.put(self.workflow.name, self.workflow.content)
        self.store.repositories.record_workflow(self.repo, self.name)

        logger.info("Workflow '%s' added to repository '%s'", self.name, self.repo)
        return PublishResult(
            kind=self.kind, repository=self.repo, name=self.name,
            commit=sha, pushed=pushed,
        )
