"""
Read-only query guard.

A blocklist over normalised text, not a SQL parser. The warehouse
credential is expected to be read-only as well; this only stops the
obvious cases before anything leaves the process.
"""

import re

from app.core.schemas import ValidationResult

WRITE_OPERATIONS = (
    "insert",
    "update",
    "delete",
    "drop",
    "create",
    "alter",
    "truncate",
    "grant",
    "revoke",
    "merge",
    "copy",
    "call",
)

DANGEROUS_FUNCTIONS = ("load_file", "load_data", "outfile", "dumpfile")

_LINE_COMMENT = re.compile(r"--[^\n]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")

_WRITE_PATTERNS = [
    (operation, re.compile(rf"\b{operation}\b")) for operation in WRITE_OPERATIONS
]


def normalize_query(query: str) -> str:
    """Lowercase, drop -- and /* */ comments, collapse whitespace."""
    normalized = query.lower()
    normalized = _LINE_COMMENT.sub("", normalized)
    normalized = _BLOCK_COMMENT.sub("", normalized)
    normalized = _WHITESPACE.sub(" ", normalized)
    return normalized.strip()


def validate_read_only_query(query: str) -> ValidationResult:
    normalized = normalize_query(query)

    for operation, pattern in _WRITE_PATTERNS:
        if pattern.search(normalized):
            return ValidationResult(
                valid=False,
                reason=f"{operation.upper()} operations are not allowed",
            )

    for fn in DANGEROUS_FUNCTIONS:
        if fn in normalized:
            return ValidationResult(
                valid=False, reason=f"{fn.upper()} function is not allowed"
            )

    if ";" in normalized:
        return ValidationResult(
            valid=False, reason="Multiple statements not allowed (found semicolon)"
        )

    return ValidationResult(valid=True)
