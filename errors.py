"""
errors.py - Domain exceptions.

The API maps these onto HTTP status codes; the CLI maps them onto exit 1.
"""

from __future__ import annotations


class SitebookError(Exception):
    """Base class for all domain errors."""


class ValidationError(SitebookError, ValueError):
    """Input failed a domain rule (bad amount, unknown category, ...)."""


class RecordNotFoundError(SitebookError, LookupError):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class DuplicateRecordError(SitebookError):
    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(f"{kind} already exists: {record_id}")
        self.kind = kind
        self.record_id = record_id
