"""Shared test fixtures for ghm."""

from __future__ import annotations

import base64
import shutil
import subprocess
from pathlib import Path
from typing import Optional

import pytest
from nacl.public import PrivateKey

from ghm.errors import RemoteError
from ghm.models import RepositoryPublicKey
from ghm.store import LocalStateStore

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


class FakeGitHubClient:
    """Stands in for GitHubClient and records every call."""

    def __init__(
        self,
        public_key: RepositoryPublicKey,
        fail_key: bool = False,
        fail_upsert: bool = False,
    ):
        self.public_key = public_key
        self.fail_key = fail_key
        self.fail_upsert = fail_upsert
        self.calls: list[tuple] = []
        self.secrets: dict[str, tuple[str, str]] = {}

    def get_repo_public_key(self, owner: str, repo: str) -> RepositoryPublicKey:
        self.calls.append(("get_repo_public_key", owner, repo))
        if self.fail_key:
            raise RemoteError("GitHub API GET public-key: 404 Not Found", status_code=404)
        return self.public_key

    def create_or_update_repo_secret(
        self, owner: str, repo: str, name: str, encrypted_value: str, key_id: str,
    ) -> bool:
        self.calls.append(("create_or_update_repo_secret", owner, repo, name))
        if self.fail_upsert:
            raise RemoteError("GitHub API PUT secret: 403 Forbidden", status_code=403)
        created = name not in self.secrets
        self.secrets[name] = (encrypted_value, key_id)
        return created


@pytest.fixture
def ghm_home(tmp_path: Path) -> Path:
    """Provide a temporary ghm home directory."""
    home = tmp_path / ".ghm"
    home.mkdir()
    return home


@pytest.fixture
def store(ghm_home: Path) -> LocalStateStore:
    return LocalStateStore(ghm_home)


@pytest.fixture
def sealed_keypair() -> tuple[PrivateKey, RepositoryPublicKey]:
    """A Curve25519 key pair shaped like GitHub's secrets public key."""
    private = PrivateKey.generate()
    key = RepositoryPublicKey(
        key_id="568250167242549743",
        key=base64.b64encode(bytes(private.public_key)).decode("ascii"),
    )
    return private, key


@pytest.fixture
def fake_client(sealed_keypair) -> FakeGitHubClient:
    return FakeGitHubClient(sealed_keypair[1])


def run_git(*args: str, cwd: Optional[Path] = None) -> str:
    result = subprocess.run(
        ["git", "-c", "user.name=Test", "-c", "user.email=test@example.com",
         "-c", "commit.gpgsign=false", *args],
        capture_output=True, text=True, check=True, cwd=str(cwd) if cwd else None,
    )
    return result.stdout


@pytest.fixture
def git_remote(tmp_path: Path) -> str:
    """A bare ``acme/widgets`` repository with one commit.

    Returns:
        Base URL to use in place of https://github.com.
    """
    seed = tmp_path / "seed"
    run_git("init", str(seed))
    (seed / "README.md").write_text("# widgets\n")
    run_git("add", "README.md", cwd=seed)
    run_git("commit", "-m", "Initial commit", cwd=seed)

    remotes = tmp_path / "remotes"
    (remotes / "acme").mkdir(parents=True)
    run_git("clone", "--bare", str(seed), str(remotes / "acme" / "widgets.git"))
    return remotes.as_uri()


@pytest.fixture
def scratch_tmp(tmp_path: Path, monkeypatch) -> Path:
    """Point tempfile at a private directory so leftover clones are visible."""
    import tempfile

    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch
