"""
Error taxonomy for ghm.

Validation errors are raised before any I/O. Everything else is raised
by the component that owns the failing resource and carries the
original exception as ``__cause__``.
"""

from __future__ import annotations

from typing import Optional


class GHMError(Exception):
    """Base class for every error ghm raises on purpose."""


class InvalidInput(GHMError, ValueError):
    """Caller-supplied input was rejected before any I/O."""


class InvalidRepoFormat(InvalidInput):
    """Repository identifier is not ``owner/name``."""

    def __init__(self, repo: str):
        super().__init__(f"Invalid repository format: {repo!r}. Use 'owner/repo'.")
        self.repo = repo


class MissingField(InvalidInput):
    """A required field was empty."""

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class EncryptionError(GHMError):
    """Secret could not be encrypted for the repository."""


class InvalidKey(EncryptionError):
    """Public key material is empty or not valid base64."""


class UnsupportedKeyFormat(EncryptionError):
    """Public key is neither a sealed-box key nor an RSA key."""


class RemoteError(GHMError):
    """The GitHub API rejected or failed a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WorkingCopyError(GHMError):
    """A local git working copy could not be prepared or written."""


class CloneError(WorkingCopyError):
    """Cloning the repository failed."""


class CommitError(WorkingCopyError):
    """Staging or committing the workflow file failed."""


class PushError(WorkingCopyError):
    """Pushing the commit to the remote failed."""


class LocalStoreError(GHMError):
    """A local state file could not be read or written."""


class ItemNotFound(GHMError, KeyError):
    """A saved secret or workflow is not in the local store."""

    def __init__(self, kind: str, name: str):
        super().__init__(f"{kind} '{name}' not found")
        self.kind = kind
        self.name = name

    def __str__(self) -> str:
        return self.args[0]


class ConfigError(GHMError):
    """Configuration file is unreadable or a key is unknown."""
