"""Name-mask and content-text filter rules.

A :class:`FilterRuleSet` combines four :class:`FilterRule` objects into one
selection policy. Name rules are checked first; file content is only read
when a content rule needs it.
"""

import enum
import functools
import posixpath
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from snapshotlink.models import FilterSettings

MASK_SEPARATOR = "|"


@functools.lru_cache(maxsize=512)
def _compile_mask(mask: str) -> re.Pattern[str]:
    parts = []
    for char in mask:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def matches(mask: str, name: str) -> bool:
    """Check a name against a wildcard mask.

    ``*`` matches any run of characters, ``?`` exactly one, and ``|``
    separates alternatives. Matching is case-sensitive and every other
    character is literal.

    Examples:
        >>> matches("*.java", "Foo.java")
        True
        >>> matches("*.java", "Foo.JAVA")
        False
        >>> matches("Test*|*IT.java", "MyServiceIT.java")
        True
    """
    for alternative in mask.split(MASK_SEPARATOR):
        alternative = alternative.strip()
        if alternative and _compile_mask(alternative).fullmatch(name):
            return True
    return False


class RuleKind(enum.Enum):
    INCLUDE_BY_NAME = "includeFilesWithName"
    EXCLUDE_BY_NAME = "excludeFilesWithName"
    INCLUDE_BY_CONTENT = "includeFilesContainingText"
    EXCLUDE_BY_CONTENT = "excludeFilesContainingText"

    @property
    def checks_content(self) -> bool:
        return self in (RuleKind.INCLUDE_BY_CONTENT, RuleKind.EXCLUDE_BY_CONTENT)

    @property
    def is_include(self) -> bool:
        return self in (RuleKind.INCLUDE_BY_NAME, RuleKind.INCLUDE_BY_CONTENT)


@dataclass(frozen=True)
class FilterRule:
    """One include or exclude predicate over a file name or its content."""

    kind: RuleKind
    patterns: tuple[str, ...] = ()

    @property
    def mask(self) -> str:
        """Name patterns joined into a single ``|``-separated mask."""
        return MASK_SEPARATOR.join(self.patterns)

    def is_empty(self) -> bool:
        return not any(self.patterns)

    def hits(self, value: str) -> bool:
        """Whether ``value`` (a name or file content) matches any pattern."""
        if self.kind.checks_content:
            return any(text in value for text in self.patterns if text)
        return matches(self.mask, value)

    def passes(self, value: str) -> bool:
        """Apply the rule; empty include rules place no constraint."""
        if self.kind.is_include:
            return self.is_empty() or self.hits(value)
        return not self.hits(value)


@dataclass(frozen=True)
class FilterRuleSet:
    """Immutable selection policy for one collection pass.

    Use :class:`FilterRuleSetBuilder` or :func:`build_rule_set` to create one.
    """

    include_name: FilterRule = FilterRule(RuleKind.INCLUDE_BY_NAME)
    exclude_name: FilterRule = FilterRule(RuleKind.EXCLUDE_BY_NAME)
    include_content: FilterRule = FilterRule(RuleKind.INCLUDE_BY_CONTENT)
    exclude_content: FilterRule = FilterRule(RuleKind.EXCLUDE_BY_CONTENT)

    @property
    def needs_content(self) -> bool:
        return not (self.include_content.is_empty() and self.exclude_content.is_empty())

    def accepts_name(self, name: str) -> bool:
        return self.include_name.passes(name) and self.exclude_name.passes(name)

    def accepts(self, relative_path: str, content_supplier: Callable[[], str]) -> bool:
        """Decide whether a file belongs to this pass.

        Args:
            relative_path: Forward-slash path; only its last segment is
                checked against name masks
            content_supplier: Called at most once, and only when the name
                checks pass and a content rule is configured

        Returns:
            True if the file passes all four rules
        """
        name = posixpath.basename(relative_path)
        if not self.accepts_name(name):
            return False
        if not self.needs_content:
            return True

        content = content_supplier()
        return self.include_content.passes(content) and self.exclude_content.passes(content)


class FilterRuleSetBuilder:
    """Collects the four pattern lists, then freezes them into a rule set."""

    def __init__(self):
        self._patterns: dict[RuleKind, list[str]] = {kind: [] for kind in RuleKind}

    def _add(self, kind: RuleKind, patterns: Iterable[str]) -> "FilterRuleSetBuilder":
        self._patterns[kind].extend(p for p in patterns if p)
        return self

    def include_files_with_name(self, *masks: str) -> "FilterRuleSetBuilder":
        return self._add(RuleKind.INCLUDE_BY_NAME, masks)

    def exclude_files_with_name(self, *masks: str) -> "FilterRuleSetBuilder":
        return self._add(RuleKind.EXCLUDE_BY_NAME, masks)

    def include_files_containing_text(self, *texts: str) -> "FilterRuleSetBuilder":
        return self._add(RuleKind.INCLUDE_BY_CONTENT, texts)

    def exclude_files_containing_text(self, *texts: str) -> "FilterRuleSetBuilder":
        return self._add(RuleKind.EXCLUDE_BY_CONTENT, texts)

    def build(self) -> FilterRuleSet:
        rules = {kind: FilterRule(kind, tuple(self._patterns[kind])) for kind in RuleKind}
        return FilterRuleSet(
            include_name=rules[RuleKind.INCLUDE_BY_NAME],
            exclude_name=rules[RuleKind.EXCLUDE_BY_NAME],
            include_content=rules[RuleKind.INCLUDE_BY_CONTENT],
            exclude_content=rules[RuleKind.EXCLUDE_BY_CONTENT],
        )


def build_rule_set(settings: FilterSettings) -> FilterRuleSet:
    """Build a fresh rule set from one filter section."""
    return (
        FilterRuleSetBuilder()
        .include_files_with_name(*settings.include_names)
        .exclude_files_with_name(*settings.exclude_names)
        .include_files_containing_text(*settings.include_texts)
        .exclude_files_containing_text(*settings.exclude_texts)
        .build()
    )
