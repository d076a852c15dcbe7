"""SkillGuard exception hierarchy.

All public exceptions inherit from SkillGuardError, giving callers a single
base class to catch when they want to handle any SkillGuard-specific failure
without swallowing unrelated errors.

Scan-local problems (an unreadable file, a binary blob) and state-local
problems (a corrupt ledger) are never raised: they are logged and the
component degrades gracefully. Only fatal input reaches the CLI boundary.
"""


class SkillGuardError(Exception):
    """Base exception for all SkillGuard errors."""


class ConfigError(SkillGuardError):
    """Raised when a configuration file exists but cannot be used.

    Covers unparseable YAML, non-mapping documents and values of the
    wrong type (e.g. a string where a threshold number is expected).
    """


class RuleLoadError(SkillGuardError):
    """Raised when a rule file cannot be read or has no ``rules`` list."""


class NotAPackageError(SkillGuardError):
    """Raised when a target path is not a skill package.

    A package is a directory holding a ``SKILL.md`` manifest, either
    directly or in exactly one nested sub-directory.
    """


class HubFetchError(SkillGuardError):
    """Raised when a remote skill cannot be downloaded or unpacked."""


class StateError(SkillGuardError):
    """Raised when a persisted store cannot be written back to disk."""
