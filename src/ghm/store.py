"""
Local state store -- what has been saved and what has been applied where.

Three JSON documents live in the ghm home directory:

    secrets.json    {"NAME": "value", ...}
    workflows.json  {"ci.yml": "<file text>", ...}
    repos.json      {"repositories": {"owner/name": {"secrets": [...],
                                                     "workflows": [...],
                                                     "last_update": "..."}}}

Each document is loaded whole and saved whole. A missing document is
created empty on first load. There is no locking: one ghm process at a
time owns the home directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .errors import ItemNotFound, LocalStoreError
from .models import ReposState, RepositoryRecord

logger = logging.getLogger("ghm.store")

SECRETS_FILE = "secrets.json"
WORKFLOWS_FILE = "workflows.json"
REPOS_FILE = "repos.json"


def _read_json(path: Path):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise LocalStoreError(f"Corrupt state file {path}: {exc}") from exc
    except OSError as exc:
        raise LocalStoreError(f"Cannot read state file {path}: {exc}") from exc


def _write_text(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
    except OSError as exc:
        raise LocalStoreError(f"Cannot write state file {path}: {exc}") from exc


class NamedContentStore:
    """A flat ``name -> text`` JSON document (secrets or workflows)."""

    def __init__(self, path: Path, kind: str):
        self.path = path
        self.kind = kind

    def load(self) -> dict[str, str]:
        """Load the collection, creating an empty file if none exists.

        Raises:
            LocalStoreError: If the file cannot be read or is not a
                flat object of strings.
        """
        if not self.path.exists():
            logger.info("Creating empty %s store at %s", self.kind, self.path)
            self.save({})
            return {}

        data = _read_json(self.path)
        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise LocalStoreError(
                f"State file {self.path} must hold a flat name -> string object"
            )
        return data

    def save(self, items: dict[str, str]) -> None:
        """Overwrite the backing file with ``items``."""
        _write_text(self.path, json.dumps(items, indent=2))

    def get(self, name: str) -> str:
        """Look up one saved item.

        Raises:
            ItemNotFound: If no item of that name is saved.
        """
        items = self.load()
        if name not in items:
            raise ItemNotFound(self.kind, name)
        return items[name]

    def put(self, name: str, value: str) -> None:
        """Save or overwrite one item."""
        items = self.load()
        items[name] = value
        self.save(items)
        logger.info("Saved %s '%s' locally", self.kind, name)

    def remove(self, name: str) -> bool:
        """Forget one item locally. Returns False if it was not saved."""
        items = self.load()
        if name not in items:
            logger.debug("%s '%s' not saved, nothing to remove", self.kind, name)
            return False
        del items[name]
        self.save(items)
        logger.info("Removed %s '%s' from local store", self.kind, name)
        return True

    def names(self) -> list[str]:
        """Saved item names, sorted."""
        return sorted(self.load())


class RepositoryStore:
    """The ``repos.json`` document of per-repository sync records."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> ReposState:
        """Load all records, creating an empty file if none exists.

        Raises:
            LocalStoreError: If the file cannot be read or parsed.
        """
        if not self.path.exists():
            logger.info("Creating empty repository store at %s", self.path)
            state = ReposState()
            self.save(state)
            return state

        data = _read_json(self.path)
        try:
            return ReposState(**data)
        except (TypeError, ValidationError) as exc:
            raise LocalStoreError(f"Invalid repository store {self.path}: {exc}") from exc

    def save(self, state: ReposState) -> None:
        """Overwrite the backing file with ``state``."""
        _write_text(self.path, state.model_dump_json(indent=2))

    def get(self, repo: str) -> Optional[RepositoryRecord]:
        """Return the record for ``owner/name``, or None if never targeted."""
        return self.load().repositories.get(repo)

    def record_secret(self, repo: str, name: str) -> RepositoryRecord:
        """Note that secret ``name`` now exists in ``repo``."""
        state = self.load()
        record = state.repositories.setdefault(repo, RepositoryRecord())
        record.add_secret(name)
        self.save(state)
        return record

    def record_workflow(self, repo: str, name: str) -> RepositoryRecord:
        """Note that workflow ``name`` now exists in ``repo``."""
        state = self.load()
        record = state.repositories.setdefault(repo, RepositoryRecord())
        record.add_workflow(name)
        self.save(state)
        return record


class LocalStateStore:
    """The three independent collections under one home directory."""

    def __init__(self, home: Path):
        self.home = Path(home).expanduser()
        self.secrets = NamedContentStore(self.home / SECRETS_FILE, "secret")
        self.workflows = NamedContentStore(self.home / WORKFLOWS_FILE, "workflow")
        self.repositories = RepositoryStore(self.home / REPOS_FILE)
