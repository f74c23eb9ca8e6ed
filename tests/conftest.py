"""Shared fixtures for snapshotlink tests."""

import pathlib
from datetime import datetime

import pytest

from snapshotlink.models import FilterSettings, LanguageSection, SnapshotConfiguration

FIXED_TIME = datetime(2024, 1, 31, 9, 5, 42)


def write_files(root: pathlib.Path, files: dict[str, str | bytes]) -> pathlib.Path:
    """Create files under ``root`` from a {relative path: content} mapping."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "upload"
    directory.mkdir()
    return directory


@pytest.fixture
def make_config():
    """Factory for a configuration with the given {language: FilterSettings}."""

    def _make(languages, tests=None, **kwargs):
        tests = tests or {}
        sections = tuple(
            LanguageSection(name=name, file_filter=settings, test_file_filter=tests.get(name))
            for name, settings in languages.items()
        )
        return SnapshotConfiguration(
            customer_id="acme", project_id="billing", languages=sections, **kwargs
        )

    return _make


@pytest.fixture
def java_settings():
    return FilterSettings(include_names=("*.java",))


@pytest.fixture
def files():
    return write_files


@pytest.fixture
def clock():
    return lambda: FIXED_TIME
