"""Error taxonomy for emovec.

Load-time failures abort the load and leave the engine unloaded, runtime
embedding failures reach the immediate caller, and batch operations
(index build) swallow per-entry failures so the batch keeps moving.
"""
from __future__ import annotations


class EmovecError(Exception):
    """Base class for all emovec errors."""


class NotLoaded(EmovecError):
    """An embedding or search was requested with no resident model."""

    def __init__(self, message: str = "Model is not loaded") -> None:
        super().__init__(message)


class ConfigInvalid(EmovecError):
    """Model configuration is malformed, missing, or inconsistent."""


class WeightsMissing(EmovecError):
    """No usable weight tensors were found, or a required one is absent."""


class PerEntryEmbedFailure(EmovecError):
    """A single corpus entry failed to embed during an index build."""

    def __init__(self, label: str, cause: BaseException) -> None:
        super().__init__(f"Embedding failed for entry {label!r}: {cause}")
        self.label = label
        self.cause = cause


class CacheIOFailure(EmovecError):
    """Reading or writing the persisted vector cache failed."""
