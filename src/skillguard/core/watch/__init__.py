"""Post-install drift watcher."""

from skillguard.core.watch.models import (
    STATE_SCHEMA_VERSION,
    AlertSeverity,
    AlertType,
    SkillState,
    WatchAlert,
    WatchReport,
    WatchState,
)
from skillguard.core.watch.engine import InstalledSkill, Watcher, format_alerts

__all__ = [
    "STATE_SCHEMA_VERSION",
    "AlertSeverity",
    "AlertType",
    "InstalledSkill",
    "SkillState",
    "WatchAlert",
    "WatchReport",
    "WatchState",
    "Watcher",
    "format_alerts",
]
