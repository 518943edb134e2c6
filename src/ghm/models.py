"""
Data models -- what ghm distributes and what it remembers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Secret(BaseModel):
    """A named secret value. The value is plaintext."""

    name: str
    value: str


class Workflow(BaseModel):
    """A named workflow file, e.g. ``ci.yml``."""

    name: str
    content: str


class RepositoryPublicKey(BaseModel):
    """A repository's Actions secrets public key.

    Fetched fresh for every publish, never persisted.
    """

    key_id: str
    key: str


class RepositoryRecord(BaseModel):
    """What has been applied to one repository."""

    secrets: list[str] = Field(default_factory=list)
    workflows: list[str] = Field(default_factory=list)
    last_update: datetime = Field(default_factory=_now)

    def add_secret(self, name: str) -> None:
        """Record a secret name and refresh ``last_update``."""
        if name not in self.secrets:
            self.secrets.append(name)
        self.last_update = _now()

    def add_workflow(self, name: str) -> None:
        """Record a workflow name and refresh ``last_update``."""
        if name not in self.workflows:
            self.workflows.append(name)
        self.last_update = _now()


class ReposState(BaseModel):
    """Contents of ``repos.json``: one record per ``owner/name``."""

    repositories: dict[str, RepositoryRecord] = Field(default_factory=dict)


class ItemKind(str, Enum):
    """What a pipeline publishes."""

    SECRET = "secret"
    WORKFLOW = "workflow"


class PipelineStage(str, Enum):
    """Pipeline progress. Secret and workflow pipelines share the vocabulary."""

    PENDING = "pending"
    VALIDATING = "validating"
    FETCHING_KEY = "fetching_key"
    ENCRYPTING = "encrypting"
    UPSERTING = "upserting"
    ACQUIRING = "acquiring"
    WRITING = "writing"
    COMMITTING = "committing"
    PUSHING = "pushing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class PublishResult(BaseModel):
    """Outcome of one successful pipeline run."""

    kind: ItemKind
    repository: str
    name: str
    stage: PipelineStage = PipelineStage.DONE
    commit: Optional[str] = None
    pushed: bool = False
    finished_at: datetime = Field(default_factory=_now)
