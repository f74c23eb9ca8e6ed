"""Loading analysis properties into a SnapshotConfiguration.

The properties file is flat: ``customerId``, ``projectId`` and ``languages``
at the top level, and per-language filter sections under dotted keys::

    customerId = acme
    projectId = billing
    languages = java, docs
    java.fileFilter.includeFilesWithName = *.java
    java.testFileFilter.includeFilesWithName = *Test.java
    docs.fileFilter.includeFilesWithName = *.md|*.txt
"""

import configparser
import logging
import os
import pathlib
from collections.abc import Mapping

from snapshotlink.errors import ConfigurationError, DestinationNotReady
from snapshotlink.models import FilterSettings, LanguageSection, SnapshotConfiguration

logger = logging.getLogger(__name__)

LIST_DELIMITER = ","

# Legacy property names are accepted as fallbacks
CUSTOMER_KEYS = ("customerId", "customerName")
PROJECT_KEYS = ("projectId", "projectName")

FILTER_KEYS = {
    "includeFilesWithName": "include_names",
    "excludeFilesWithName": "exclude_names",
    "includeFilesContainingText": "include_texts",
    "excludeFilesContainingText": "exclude_texts",
}

_SECTION = "properties"


def split_setting(value) -> tuple[str, ...]:
    """Split a delimiter-separated setting into stripped, non-empty items."""
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(LIST_DELIMITER)
    else:
        items = list(value)
    return tuple(item.strip() for item in items if item and item.strip())


def get_subsection(values: Mapping[str, str], prefix: str) -> dict[str, str]:
    """Return the entries under ``prefix.`` with the prefix removed."""
    start = prefix + "."
    return {key[len(start) :]: value for key, value in values.items() if key.startswith(start)}


def parse_properties(text: str) -> dict[str, str]:
    """Parse Java-style properties text into a flat dict.

    Supports ``key = value`` and ``key: value`` lines, ``#`` and ``!``
    comments, and backslash line continuations. Keys keep their case.
    """
    joined: list[str] = []
    pending = ""
    for line in text.splitlines():
        stripped = line.strip()
        if pending:
            stripped = pending + stripped
            pending = ""
        if stripped.endswith("\\") and not stripped.endswith("\\\\"):
            pending = stripped[:-1]
            continue
        joined.append(stripped)
    if pending:
        joined.append(pending)

    parser = configparser.ConfigParser(
        interpolation=None,
        strict=False,
        allow_no_value=True,
        comment_prefixes=("#", "!"),
        delimiters=("=", ":"),
    )
    parser.optionxform = str  # type: ignore[assignment]
    try:
        parser.read_string(f"[{_SECTION}]\n" + "\n".join(joined))
    except configparser.Error as e:
        raise ConfigurationError(f"Malformed properties: {e}") from e
    return {key: value or "" for key, value in parser.items(_SECTION)}


def load_properties(path: str | os.PathLike) -> dict[str, str]:
    """Read a properties file from disk.

    Raises:
        ConfigurationError: If the file is missing, a directory or unreadable
    """
    properties_path = pathlib.Path(path)
    if not properties_path.exists():
        raise ConfigurationError(f"File {properties_path} does not exist or is not accessible")
    if properties_path.is_dir():
        raise ConfigurationError(f"{properties_path} is a directory")
    try:
        with open(properties_path, encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read {properties_path}: {e}") from e
    return parse_properties(text)


def _required(values: Mapping[str, str], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = (values.get(key) or "").strip()
        if value:
            return value
    raise ConfigurationError(f"Properties do not contain property {keys[0]}")


def _flag(values: Mapping[str, str], key: str) -> bool:
    value = values.get(key)
    if value is None or isinstance(value, bool):
        return bool(value)
    try:
        return configparser.ConfigParser.BOOLEAN_STATES[str(value).strip().lower()]
    except KeyError:
        raise ConfigurationError(f"Property {key} is not a boolean: {value!r}") from None


def filter_settings(section: Mapping[str, str]) -> FilterSettings:
    """Build FilterSettings from a ``fileFilter`` or ``testFileFilter`` subsection."""
    unknown = sorted(set(section) - set(FILTER_KEYS))
    if unknown:
        logger.warning("Ignoring unknown filter settings: %s", ", ".join(unknown))
    return FilterSettings(
        **{field: split_setting(section.get(key)) for key, field in FILTER_KEYS.items()}
    )


def configuration_from_mapping(values: Mapping[str, str]) -> SnapshotConfiguration:
    """Build an immutable configuration from flat dotted properties.

    Raises:
        ConfigurationError: If an identifier or the language list is missing
    """
    customer_id = _required(values, CUSTOMER_KEYS)
    project_id = _required(values, PROJECT_KEYS)

    language_names = split_setting(values.get("languages"))
    if not language_names:
        raise ConfigurationError("Properties do not declare any languages")

    languages = []
    for name in language_names:
        language_values = get_subsection(values, name)
        test_settings = filter_settings(get_subsection(language_values, "testFileFilter"))
        languages.append(
            LanguageSection(
                name=name,
                file_filter=filter_settings(get_subsection(language_values, "fileFilter")),
                test_file_filter=None if test_settings.is_empty() else test_settings,
            )
        )

    upload_directory = (values.get("uploadDirectory") or "").strip()
    return SnapshotConfiguration(
        customer_id=customer_id,
        project_id=project_id,
        languages=tuple(languages),
        upload_directory=pathlib.Path(upload_directory).expanduser() if upload_directory else None,
        respect_gitignore=_flag(values, "respectGitignore"),
    )


def load_configuration(path: str | os.PathLike) -> SnapshotConfiguration:
    """Load and validate the analysis properties file once for one run."""
    configuration = configuration_from_mapping(load_properties(path))
    logger.info(
        "Loaded properties for customer %s, project %s",
        configuration.customer_id,
        configuration.project_id,
    )
    return configuration


def check_upload_directory(path: str | os.PathLike | None) -> pathlib.Path:
    """Verify the destination directory exists; it is never created here.

    Raises:
        DestinationNotReady: If the path is unset, missing or not a directory
    """
    if path is None or str(path) == "":
        raise DestinationNotReady("No upload directory configured")
    directory = pathlib.Path(path)
    if not directory.exists():
        raise DestinationNotReady(
            f"Upload directory {directory.absolute()} does not exist or is not accessible"
        )
    if not directory.is_dir():
        raise DestinationNotReady(f"{directory.absolute()} is not a directory")
    return directory
