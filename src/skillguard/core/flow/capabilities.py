"""Per-file capability classification.

Each family is a single case-insensitive pattern. A file either shows the
capability somewhere in its text or it does not; positions are not kept.
"""

from __future__ import annotations

import re

from skillguard.core.flow.models import FileCapabilities

CREDENTIAL_PATTERN = re.compile(
    r"process\.env|\.env|api[_-]?key|secret|token|password|credential|auth",
    re.IGNORECASE,
)
NETWORK_PATTERN = re.compile(
    r"\bfetch\s*\(|\baxios\b|\bhttpx?\b|\brequests\.\w+\(|\bcurl\b|\bhttp\.request",
    re.IGNORECASE,
)
ENCODE_PATTERN = re.compile(
    r"\bbtoa\b|\batob\b|\bBuffer\.from\b|\bbase64\b|\bJSON\.stringify\b.*\bfetch",
    re.IGNORECASE,
)
EXEC_PATTERN = re.compile(
    r"\beval\b|\bexec\b|\bspawn\b|\bchild_process\b|\bFunction\s*\(",
    re.IGNORECASE,
)
WRITE_PATTERN = re.compile(
    r"\bwriteFile\b|\bfs\.\w*write\b|\bcreateWriteStream\b",
    re.IGNORECASE,
)


def classify_capabilities(content: str) -> FileCapabilities:
    """Infer which of the five capability families ``content`` exhibits."""
    return FileCapabilities(
        reads_credentials=bool(CREDENTIAL_PATTERN.search(content)),
        makes_network_calls=bool(NETWORK_PATTERN.search(content)),
        encodes_data=bool(ENCODE_PATTERN.search(content)),
        executes_code=bool(EXEC_PATTERN.search(content)),
        writes_files=bool(WRITE_PATTERN.search(content)),
    )
