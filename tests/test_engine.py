"""Tests for the sync engine and its best-effort batch operations."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from conftest import FakeGitHubClient, requires_git
from ghm.config import GHMConfig
from ghm.engine import SyncEngine
from ghm.errors import InvalidRepoFormat
from ghm.store import LocalStateStore


@pytest.fixture
def engine(store: LocalStateStore, fake_client: FakeGitHubClient) -> SyncEngine:
    config = GHMConfig(github_token="t0ken")
    return SyncEngine(config, store, client_factory=lambda cfg: fake_client)


class TestAddSecret:
    """Single secret publish through the engine."""

    def test_end_to_end(self, engine: SyncEngine, ghm_home: Path):
        """API_KEY lands in the secret map and the repository record."""
        engine.add_secret("acme/widgets", "API_KEY", "sk_live_123")

        reloaded = LocalStateStore(ghm_home)
        assert reloaded.secrets.load() == {"API_KEY": "sk_live_123"}
        assert "API_KEY" in reloaded.repositories.get("acme/widgets").secrets

    def test_invalid_repo_raises(self, engine: SyncEngine, fake_client):
        with pytest.raises(InvalidRepoFormat):
            engine.add_secret("acme-widgets", "API_KEY", "v")
        assert fake_client.calls == []

    def test_client_built_from_config(self, store: LocalStateStore, fake_client):
        seen = []

        def factory(cfg):
            seen.append(cfg.github_token)
            return fake_client

        SyncEngine(GHMConfig(github_token="abc"), store, client_factory=factory).add_secret(
            "acme/widgets", "N", "v",
        )
        assert seen == ["abc"]


class TestBatchSecrets:
    """add_secrets_to_repo applies what it can and skips the rest."""

    def test_missing_item_skipped(self, engine: SyncEngine, store: LocalStateStore):
        store.secrets.put("itemA", "a-value")

        results = engine.add_secrets_to_repo("acme/widgets", ["itemA", "itemB"])

        assert results == {"itemA": True, "itemB": False}
        assert store.repositories.get("acme/widgets").secrets == ["itemA"]

    def test_pipeline_failure_does_not_abort(self, store: LocalStateStore, sealed_keypair):
        client = FakeGitHubClient(sealed_keypair[1], fail_upsert=True)
        engine = SyncEngine(GHMConfig(github_token="t"), store, client_factory=lambda c: client)
        store.secrets.put("A", "1")
        store.secrets.put("B", "2")

        results = engine.add_secrets_to_repo("acme/widgets", ["A", "B"])

        assert results == {"A": False, "B": False}
        upserts = [c for c in client.calls if c[0] == "create_or_update_repo_secret"]
        assert len(upserts) == 2
        assert store.repositories.get("acme/widgets") is None

    def test_invalid_repo_never_raises(self, engine: SyncEngine, store: LocalStateStore):
        store.secrets.put("A", "1")
        assert engine.add_secrets_to_repo("bad", ["A"]) == {"A": False}

    def test_copy_to_second_repository(self, engine: SyncEngine, store: LocalStateStore):
        """A secret saved for one repository can be applied to another."""
        engine.add_secret("acme/widgets", "API_KEY", "sk_live_123")
        engine.add_secrets_to_repo("acme/gadgets", ["API_KEY"])

        repos = engine.repositories()
        assert repos["acme/widgets"].secrets == ["API_KEY"]
        assert repos["acme/gadgets"].secrets == ["API_KEY"]

    def test_logs_skipped_items(self, engine: SyncEngine, caplog):
        with caplog.at_level("WARNING", logger="ghm.engine"):
            engine.add_secrets_to_repo("acme/widgets", ["ghost"])
        assert "ghost" in caplog.text


class TestBatchWorkflows:
    """add_workflows_to_repo has the same best-effort contract."""

    def test_missing_item_skipped_without_git(self, engine: SyncEngine):
        assert engine.add_workflows_to_repo("acme/widgets", ["ghost.yml"]) == {
            "ghost.yml": False,
        }

    @requires_git
    def test_valid_and_missing(self, store: LocalStateStore, git_remote, tmp_path: Path):
        config = GHMConfig(github_token="t", git_base_url=git_remote)
        engine = SyncEngine(config, store, workdir=tmp_path / "elsewhere")
        store.workflows.put("ci.yml", "on: push\n")

        results = engine.add_workflows_to_repo("acme/widgets", ["ci.yml", "missing.yml"])

        assert results == {"ci.yml": True, "missing.yml": False}
        assert store.repositories.get("acme/widgets").workflows == ["ci.yml"]


class TestBatchKeepsGoing:
    """One bad item never stops the rest of a batch."""

    def test_unencodable_value_skipped(self, engine: SyncEngine, store: LocalStateStore):
        store.secrets.put("BAD", "\ud800")
        store.secrets.put("GOOD", "ok")

        results = engine.add_secrets_to_repo("acme/widgets", ["BAD", "GOOD"])

        assert results == {"BAD": False, "GOOD": True}
        assert store.repositories.get("acme/widgets").secrets == ["GOOD"]

    def test_no_temp_dir_for_clones(self, engine: SyncEngine, store: LocalStateStore,
                                    tmp_path: Path, monkeypatch):
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path / "does-not-exist"))
        engine.workdir = tmp_path / "elsewhere"
        store.workflows.put("a.yml", "on: push\n")
        store.workflows.put("b.yml", "on: push\n")

        results = engine.add_workflows_to_repo("acme/widgets", ["a.yml", "b.yml"])

        assert results == {"a.yml": False, "b.yml": False}
        assert store.repositories.get("acme/widgets") is None
