"""snapshotlink: package selected workspace files into analysis snapshots.

This package selects files from a source tree per configured language,
using name masks and content filters, streams them into a timestamped zip
archive and marks completion with a ``.DONE`` file.
"""

from snapshotlink.archive import ArchiveWriter
from snapshotlink.cli import main
from snapshotlink.config import load_configuration
from snapshotlink.file_operations import FileCollector, collect
from snapshotlink.filters import FilterRule, FilterRuleSet, FilterRuleSetBuilder, matches
from snapshotlink.models import SnapshotConfiguration, SnapshotResult
from snapshotlink.packager import SnapshotPackager, create_snapshot

__version__ = "0.1.0"
__all__ = [
    "main",
    "ArchiveWriter",
    "FileCollector",
    "FilterRule",
    "FilterRuleSet",
    "FilterRuleSetBuilder",
    "SnapshotConfiguration",
    "SnapshotPackager",
    "SnapshotResult",
    "collect",
    "create_snapshot",
    "load_configuration",
    "matches",
]
