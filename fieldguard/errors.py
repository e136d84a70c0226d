"""
Exception hierarchy for fieldguard.

Only ConfigurationError is invocation-fatal. Every other error is scoped to a
single record and is recovered by the pipeline, which counts it and moves on.
"""

from __future__ import annotations


class FieldGuardError(Exception):
    """Base exception for all fieldguard failures."""


class ConfigurationError(FieldGuardError):
    """Raised for invalid runtime configuration; aborts before any record is touched."""


class DecodeError(FieldGuardError):
    """Raised when a transport message cannot be decoded into a typed record."""


class SchemaError(FieldGuardError):
    """Raised for missing key/version fields or values that cannot be planned."""


class WriteConflict(FieldGuardError):
    """Raised when the store rejects a write because a field already holds newer data."""


class TransientStoreError(FieldGuardError):
    """Raised for throttling and network faults that are worth retrying."""


class FatalStoreError(FieldGuardError):
    """Raised for store errors that retrying cannot fix (validation, permissions)."""


__all__ = [
    "FieldGuardError",
    "ConfigurationError",
    "DecodeError",
    "SchemaError",
    "WriteConflict",
    "TransientStoreError",
    "FatalStoreError",
]
