"""
ghm — GitHub secret and workflow distribution.

Encrypt a secret against a repository's public key and upsert it.
Commit a workflow file and push it. Remember what went where.
"""

import os

__version__ = "0.1.0"

GHM_HOME = os.environ.get("GHM_HOME", "~/.ghm")
