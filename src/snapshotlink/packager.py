"""Snapshot packaging: filter the workspace per language into one archive."""

import logging
import os
import pathlib
from collections.abc import Callable
from datetime import datetime

import pathspec
from tqdm import tqdm

from snapshotlink.archive import ArchiveWriter
from snapshotlink.config import check_upload_directory
from snapshotlink.errors import (
    MarkerWriteError,
    SnapshotCancelled,
    SnapshotError,
    WorkspaceNotReady,
)
from snapshotlink.file_operations import FileCollector, load_ignore_spec
from snapshotlink.filters import build_rule_set
from snapshotlink.models import FilterSettings, SnapshotConfiguration, SnapshotResult

SNAPSHOT_TIMESTAMP_FORMAT = "%Y%m%d_%H_%M"
DONE_SUFFIX = ".DONE"

module_logger = logging.getLogger(__name__)


def snapshot_archive_name(customer_id: str, project_id: str, timestamp: datetime) -> str:
    """Archive name for one run, e.g. ``acme.billing.20240131_09_05.zip``."""
    return f"{customer_id}.{project_id}.{timestamp.strftime(SNAPSHOT_TIMESTAMP_FORMAT)}.zip"


def marker_path(archive_path: pathlib.Path) -> pathlib.Path:
    return archive_path.with_name(archive_path.name + DONE_SUFFIX)


class SnapshotPackager:
    """Packages the configured languages of a workspace into one zip archive.

    Each run builds its rule sets fresh from the configuration, walks the
    workspace once per rule set and streams the matches into a single
    archive. The ``.DONE`` marker is written only after the archive has
    been finalized; without it the archive must not be consumed.

    A relative path that is matched by more than one pass is written once,
    by the first pass that matches it.

    Args:
        configuration: Immutable configuration for this run
        logger: Sink for progress and error lines
        clock: Returns the run's start time, used in the archive name
        progress: Show a tqdm progress bar per collection pass
        writer_factory: Creates the archive writer for a destination path
    """

    def __init__(
        self,
        configuration: SnapshotConfiguration,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] = datetime.now,
        progress: bool = False,
        writer_factory: Callable[[pathlib.Path], ArchiveWriter] = ArchiveWriter,
    ):
        self.configuration = configuration
        self.logger = logger or module_logger
        self.clock = clock
        self.progress = progress
        self.writer_factory = writer_factory

    def package(
        self,
        workspace_root: str | os.PathLike,
        destination_dir: str | os.PathLike | None = None,
        cancelled: Callable[[], bool] | None = None,
    ) -> SnapshotResult:
        """Run one packaging pass over the workspace.

        Args:
            workspace_root: Directory whose files are selected
            destination_dir: Existing directory for the archive; defaults to
                the configured upload directory
            cancelled: Checked before each collection pass; returning True
                aborts the run

        Returns:
            A successful SnapshotResult naming the archive

        Raises:
            SnapshotError: On the first failure; no marker is written and the
                partial archive is removed, except for MarkerWriteError which
                leaves the complete archive in place
        """
        started = self.clock()
        config = self.configuration
        destination = check_upload_directory(
            destination_dir if destination_dir is not None else config.upload_directory
        )
        workspace = pathlib.Path(workspace_root)
        if not workspace.is_dir():
            raise WorkspaceNotReady(f"Workspace {workspace} not found or not a directory")

        self.logger.info(
            "Got request to analyze project %s for %s", config.project_id, config.customer_id
        )
        self.logger.info("Zipping sources from %s to %s", workspace, destination.absolute())

        archive_name = snapshot_archive_name(config.customer_id, config.project_id, started)
        archive_path = destination / archive_name
        ignore_spec = load_ignore_spec(workspace) if config.respect_gitignore else None

        writer = self.writer_factory(archive_path)
        try:
            for language in config.languages:
                self._check_cancelled(cancelled, language.name)
                self.logger.info("Zipping sources for language %s", language.name)
                self._copy_files(
                    workspace, writer, language.name, language.file_filter, ignore_spec
                )

                test_filter = language.test_file_filter
                if test_filter is not None and not test_filter.is_empty():
                    self._check_cancelled(cancelled, language.name)
                    self.logger.info("Zipping TEST sources for language %s", language.name)
                    self._copy_files(workspace, writer, language.name, test_filter, ignore_spec)
            writer.finalize()
        except BaseException:
            writer.abort()
            self._remove_partial(archive_path)
            raise

        marker = marker_path(archive_path)
        try:
            marker.touch()
        except OSError as e:
            raise MarkerWriteError(
                f"Archive {archive_path} is complete but marker {marker} could not be created: {e}"
            ) from e

        self.logger.info("DONE ... created snapshot %s (%d entries)", archive_path, len(writer))
        return SnapshotResult(
            success=True,
            archive_name=archive_name,
            archive_path=archive_path,
            entries=len(writer),
        )

    def _check_cancelled(self, cancelled: Callable[[], bool] | None, language: str):
        if cancelled is not None and cancelled():
            raise SnapshotCancelled(f"Packaging cancelled before language {language}")

    def _copy_files(
        self,
        workspace: pathlib.Path,
        writer: ArchiveWriter,
        language: str,
        settings: FilterSettings,
        ignore_spec: pathspec.PathSpec | None,
    ):
        rule_set = build_rule_set(settings)
        collector = FileCollector(
            workspace,
            rule_set,
            ignore_spec=ignore_spec,
            exclude_paths=[writer.path, marker_path(writer.path)],
        )

        written = 0
        try:
            for name in tqdm(
                collector, desc=language, unit="file", disable=not self.progress, leave=False
            ):
                if name in writer:
                    self.logger.debug("Skipping %s for %s: already in archive", name, language)
                    continue
                writer.write_file(name, collector.get_actual_file(name))
                written += 1
        except SnapshotError as e:
            raise type(e)(f"[{language}] {e}") from e
        self.logger.debug("Wrote %d entries for language %s", written, language)

    def _remove_partial(self, archive_path: pathlib.Path):
        try:
            archive_path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning("Could not remove partial archive %s: %s", archive_path, e)
        else:
            self.logger.debug("Removed partial archive %s", archive_path)


def create_snapshot(
    workspace_root: str | os.PathLike,
    configuration: SnapshotConfiguration,
    destination_dir: str | os.PathLike | None = None,
    logger: logging.Logger | None = None,
    progress: bool = False,
) -> SnapshotResult:
    """Package a workspace and report the outcome instead of raising.

    Returns:
        SnapshotResult with ``success`` and either the archive name or a
        one-line error cause
    """
    logger = logger or module_logger
    packager = SnapshotPackager(configuration, logger=logger, progress=progress)
    try:
        return packager.package(workspace_root, destination_dir)
    except SnapshotError as e:
        logger.error("Snapshot failed (%s): %s", type(e).__name__, e)
        return SnapshotResult(success=False, error=f"{type(e).__name__}: {e}")
