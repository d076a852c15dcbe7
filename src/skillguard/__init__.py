"""SkillGuard: install gate, integrity ledger and drift watcher for agent skills."""

from __future__ import annotations

__version__ = "2.0.0"
__license__ = "MIT"
