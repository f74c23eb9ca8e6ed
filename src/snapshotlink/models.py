"""Data models for snapshotlink."""

import pathlib
from dataclasses import dataclass, field


@dataclass(frozen=True)
class FilterSettings:
    """The four pattern lists of one ``fileFilter`` or ``testFileFilter`` section.

    Attributes:
        include_names: Name masks; a file must match one of them (empty = all)
        exclude_names: Name masks; a file matching any of them is rejected
        include_texts: Substrings; content must contain one of them (empty = no constraint)
        exclude_texts: Substrings; content containing any of them is rejected
    """

    include_names: tuple[str, ...] = ()
    exclude_names: tuple[str, ...] = ()
    include_texts: tuple[str, ...] = ()
    exclude_texts: tuple[str, ...] = ()

    def is_empty(self) -> bool:
        return not (
            self.include_names or self.exclude_names or self.include_texts or self.exclude_texts
        )


@dataclass(frozen=True)
class LanguageSection:
    """Filter settings for one language, with optional test-file settings."""

    name: str
    file_filter: FilterSettings = field(default_factory=FilterSettings)
    test_file_filter: FilterSettings | None = None


@dataclass(frozen=True)
class SnapshotConfiguration:
    """Immutable configuration handed to the packager for one run.

    Attributes:
        customer_id: Customer identifier, first part of the archive name
        project_id: Project identifier, second part of the archive name
        languages: Language sections in declared order
        upload_directory: Default destination directory, if configured
        respect_gitignore: Prune files ignored by the workspace's .gitignore
    """

    customer_id: str
    project_id: str
    languages: tuple[LanguageSection, ...]
    upload_directory: pathlib.Path | None = None
    respect_gitignore: bool = False

    @classmethod
    def from_mapping(cls, values) -> "SnapshotConfiguration":
        """Build a configuration from a flat mapping of dotted keys."""
        from snapshotlink.config import configuration_from_mapping

        return configuration_from_mapping(values)


@dataclass(frozen=True)
class SnapshotResult:
    """Outcome of one packaging run.

    ``archive_name`` is set only on success; ``error`` holds a one-line cause
    on failure.
    """

    success: bool
    archive_name: str | None = None
    archive_path: pathlib.Path | None = None
    entries: int = 0
    error: str | None = None
