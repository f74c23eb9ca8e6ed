"""Error hierarchy for snapshot packaging.

Every failure raised by this package derives from :class:`SnapshotError`,
so callers that only care about success or failure can catch one type.
"""


class SnapshotError(Exception):
    """Base class for all packaging failures."""


class ConfigurationError(SnapshotError):
    """A required setting is missing or invalid."""


class DestinationNotReady(SnapshotError):
    """The destination directory is missing or not a directory."""


class WorkspaceNotReady(SnapshotError):
    """The collection root is missing or not a directory."""


class CollectionIOError(SnapshotError):
    """A file or directory could not be read during collection."""


class ArchiveIOError(SnapshotError):
    """The archive could not be created, written or finalized."""


class ArchiveStateError(SnapshotError):
    """The archive writer was used after it was finalized."""


class MarkerWriteError(SnapshotError):
    """The archive is complete but its ``.DONE`` marker could not be created."""


class SnapshotCancelled(SnapshotError):
    """The run was cancelled between collection passes."""
