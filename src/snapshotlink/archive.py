"""Incremental zip archive writer."""

import logging
import os
import pathlib
import shutil
import zipfile
from datetime import datetime
from typing import BinaryIO

from snapshotlink.errors import ArchiveIOError, ArchiveStateError, CollectionIOError

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 64 * 1024

# Zip timestamps cannot represent dates before 1980
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def _zip_date_time(modified: datetime | None) -> tuple[int, int, int, int, int, int]:
    if modified is None:
        modified = datetime.now()
    date_time = modified.timetuple()[:6]
    return max(date_time, _ZIP_EPOCH)


class ArchiveWriter:
    """Append-only zip sink that streams one entry at a time.

    The archive is created when the writer is constructed. Entries are
    written in full before the next one starts, and :meth:`finalize`
    writes the central directory and releases the file handle.

    Example:
        >>> with ArchiveWriter("out/snapshot.zip") as writer:
        ...     with open("src/Main.java", "rb") as source:
        ...         writer.write_entry("src/Main.java", source)
    """

    def __init__(self, destination: str | os.PathLike, compression: int = zipfile.ZIP_DEFLATED):
        self.path = pathlib.Path(destination)
        self.compression = compression
        self._names: list[str] = []
        self._name_set: set[str] = set()
        self._finalized = False

        if self.path.is_dir():
            raise ArchiveIOError(f"Cannot create archive {self.path}: it is a directory")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._zip = zipfile.ZipFile(self.path, "w", compression=compression)
        except OSError as e:
            raise ArchiveIOError(f"Cannot create archive {self.path}: {e}") from e
        logger.debug("Opened archive %s", self.path)

    @classmethod
    def open(cls, destination: str | os.PathLike) -> "ArchiveWriter":
        return cls(destination)

    def __enter__(self) -> "ArchiveWriter":
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.finalize()
        else:
            self.abort()

    def __contains__(self, name: str) -> bool:
        return name in self._name_set

    def __len__(self) -> int:
        return len(self._names)

    @property
    def entries(self) -> list[str]:
        """Entry names in the order they were written."""
        return list(self._names)

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _check_open(self, action: str):
        if self._finalized:
            raise ArchiveStateError(f"Cannot {action}: archive {self.path} is already finalized")

    def write_entry(
        self,
        relative_path: str,
        source: BinaryIO,
        modified: datetime | None = None,
        size: int | None = None,
    ):
        """Copy every byte of ``source`` into a new entry named ``relative_path``.

        Args:
            relative_path: Forward-slash entry name without a leading slash
            source: Binary stream to read until exhausted
            modified: Timestamp recorded on the entry (defaults to now)
            size: Expected size in bytes, lets zipfile pick zip64 for large entries

        Raises:
            ArchiveStateError: If the archive was already finalized
            ArchiveIOError: If the entry could not be written
        """
        self._check_open("write entry")
        if not relative_path or relative_path.startswith("/"):
            raise ValueError(f"Invalid archive entry name: {relative_path!r}")

        info = zipfile.ZipInfo(relative_path, date_time=_zip_date_time(modified))
        info.compress_type = self.compression
        if size is not None:
            info.file_size = size

        # Names that cannot be encoded (undecodable bytes on disk) fail with
        # UnicodeEncodeError, oversized entries with RuntimeError
        try:
            with self._zip.open(info, "w") as entry:
                shutil.copyfileobj(source, entry, COPY_BUFFER_SIZE)
        except (OSError, ValueError, RuntimeError) as e:
            raise ArchiveIOError(f"Cannot write entry {relative_path!r} to {self.path}: {e}") from e
        self._names.append(relative_path)
        self._name_set.add(relative_path)

    def write_file(self, relative_path: str, file_path: str | os.PathLike):
        """Stream a file from disk into a new entry, keeping its modification time."""
        file_path = pathlib.Path(file_path)
        try:
            stat = file_path.stat()
            source = open(file_path, "rb")
        except OSError as e:
            raise CollectionIOError(
                f"Cannot open {file_path} for entry {relative_path}: {e}"
            ) from e
        with source:
            self.write_entry(
                relative_path,
                source,
                modified=datetime.fromtimestamp(stat.st_mtime),
                size=stat.st_size,
            )

    def finalize(self):
        """Write the archive trailer and close the file.

        Raises:
            ArchiveStateError: On a second call
            ArchiveIOError: If the trailer could not be written
        """
        self._check_open("finalize")
        self._finalized = True
        try:
            self._zip.close()
        except OSError as e:
            raise ArchiveIOError(f"Cannot finalize archive {self.path}: {e}") from e
        logger.debug("Finalized archive %s with %d entries", self.path, len(self._names))

    def abort(self):
        """Release the file handle after a failure, leaving the archive incomplete."""
        if self._finalized:
            return
        self._finalized = True
        try:
            self._zip.close()
        except (OSError, ValueError) as e:
            logger.warning("Could not close archive %s: %s", self.path, e)
