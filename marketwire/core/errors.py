"""
Exception types raised inside the fetch and storage layers.

They never leave the pipeline: the aggregator turns them into Failure
results or SaveOutcome values at its isolation boundaries.
"""


class MarketwireError(Exception):
    """Base class for Marketwire errors."""


class FeedError(MarketwireError):
    """A feed could not be fetched or its payload was unusable."""


class StorageError(MarketwireError):
    """The archive storage backend could not read or write."""


class StorageQuotaExceeded(StorageError):
    """The payload does not fit in the storage backend."""
