"""Exception hierarchy for incremental sync runs."""


class SyncError(Exception):
    """Base exception for sync failures."""

    pass


class SourceUnavailableError(SyncError):
    """The source store could not be queried. Fatal for the batch."""

    pass


class DestinationUnavailableError(SyncError):
    """The destination store could not be queried for the watermark. Fatal for the batch."""

    pass


class RowValidationError(SyncError):
    """A fetched row has no usable business key."""

    pass


class DestinationWriteError(SyncError):
    """A lookup or write for a single row failed."""

    pass


class DuplicateKeyError(DestinationWriteError):
    """An insert collided with a row another writer stored for the same key."""

    pass
