"""Workspace traversal and file collection."""

import logging
import os
import pathlib
from collections.abc import Iterable, Iterator

import pathspec

from snapshotlink.errors import CollectionIOError, WorkspaceNotReady
from snapshotlink.filters import FilterRuleSet

logger = logging.getLogger(__name__)

ALWAYS_IGNORE_PATTERNS = [".git/"]


def load_ignore_spec(root_dir: pathlib.Path) -> pathspec.PathSpec:
    """Combines ALWAYS_IGNORE_PATTERNS with patterns from the root's ignore files.

    Loads .gitignore from the root and also checks .git/info/exclude.

    Args:
        root_dir: Workspace root directory

    Returns:
        PathSpec combining the built-in patterns and the ignore-file patterns

    Raises:
        CollectionIOError: If an ignore file exists but cannot be read
    """
    all_patterns = list(ALWAYS_IGNORE_PATTERNS)

    for ignore_path in (root_dir / ".gitignore", root_dir / ".git" / "info" / "exclude"):
        if not ignore_path.is_file():
            continue
        try:
            with open(ignore_path, encoding="utf-8", errors="ignore") as f:
                all_patterns.extend(f.read().splitlines())
        except OSError as e:
            raise CollectionIOError(f"Could not read ignore file {ignore_path}: {e}") from e
        logger.debug("Using ignore patterns from %s", ignore_path)

    return pathspec.GitIgnoreSpec.from_lines(all_patterns)


def read_text(file_path: pathlib.Path) -> str:
    """Read a file for content filtering, ignoring undecodable bytes."""
    try:
        with open(file_path, encoding="utf-8", errors="ignore") as f:
            return f.read()
    except OSError as e:
        raise CollectionIOError(f"Could not read {file_path}: {e}") from e


def _raise_walk_error(error: OSError):
    raise CollectionIOError(
        f"Could not read directory {error.filename}: {error.strerror}"
    ) from error


class FileCollector:
    """Enumerates the files under one root that a rule set accepts.

    Every regular file below the root is a candidate; directories never are.
    Names are yielded as forward-slash paths relative to the root, and each
    yielded name can be turned back into its absolute location with
    :meth:`get_actual_file`.

    Iteration is lazy: the tree is walked while names are consumed. Each call
    to :meth:`file_names` starts a new walk.
    """

    def __init__(
        self,
        root_dir: str | os.PathLike,
        rule_set: FilterRuleSet,
        ignore_spec: pathspec.PathSpec | None = None,
        exclude_paths: Iterable[str | os.PathLike] = (),
    ):
        root = pathlib.Path(root_dir)
        if not root.is_dir():
            raise WorkspaceNotReady(f"Root not found or not a directory: {root}")
        self.root_dir = root.resolve()
        self.rule_set = rule_set
        self.ignore_spec = ignore_spec
        self.exclude_paths = {pathlib.Path(p).resolve() for p in exclude_paths}
        self._files: dict[str, pathlib.Path] = {}

    def __iter__(self) -> Iterator[str]:
        return self.file_names()

    def get_actual_file(self, name: str) -> pathlib.Path:
        """Resolve a yielded relative name back to its absolute path."""
        try:
            return self._files[name]
        except KeyError:
            raise KeyError(f"{name!r} was not collected from {self.root_dir}") from None

    def _is_ignored(self, relative: str) -> bool:
        return self.ignore_spec is not None and self.ignore_spec.match_file(relative)

    def _walk(self) -> Iterator[tuple[pathlib.Path, str]]:
        visited = {os.path.realpath(self.root_dir)}

        for root, dirs, files in os.walk(
            self.root_dir, topdown=True, onerror=_raise_walk_error, followlinks=True
        ):
            root_path = pathlib.Path(root)

            # Prune symlink cycles and ignored directories, keep a stable order
            kept = []
            for d in sorted(dirs):
                dir_path = root_path / d
                real_dir = os.path.realpath(dir_path)
                if real_dir in visited:
                    logger.warning(
                        "Skipping %s: directory already reached through another path", dir_path
                    )
                    continue
                visited.add(real_dir)
                relative_dir = dir_path.relative_to(self.root_dir).as_posix()
                if self._is_ignored(relative_dir + "/"):
                    continue
                kept.append(d)
            dirs[:] = kept

            for filename in sorted(files):
                file_path = root_path / filename
                relative_file = file_path.relative_to(self.root_dir).as_posix()
                if self._is_ignored(relative_file):
                    continue
                # Skip our own output when it lives inside the workspace
                if self.exclude_paths and file_path.resolve() in self.exclude_paths:
                    continue
                if not file_path.is_file():
                    logger.warning("Skipping %s: not a regular file", file_path)
                    continue
                yield file_path, relative_file

    def file_names(self) -> Iterator[str]:
        """Yield relative names of accepted files.

        Raises:
            CollectionIOError: If a directory cannot be listed or an
                accepted-by-name file cannot be read for content checks
        """
        for file_path, relative in self._walk():
            if self.rule_set.accepts(relative, lambda p=file_path: read_text(p)):
                self._files[relative] = file_path
                yield relative


def collect(
    root_dir: str | os.PathLike,
    rule_set: FilterRuleSet,
    ignore_spec: pathspec.PathSpec | None = None,
    exclude_paths: Iterable[str | os.PathLike] = (),
) -> FileCollector:
    """Create a collector over ``root_dir`` for one rule set."""
    return FileCollector(root_dir, rule_set, ignore_spec, exclude_paths)
