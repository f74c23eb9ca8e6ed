"""Tests for name-mask and content filter rules."""

import pytest

from snapshotlink.filters import (
    FilterRule,
    FilterRuleSet,
    FilterRuleSetBuilder,
    RuleKind,
    build_rule_set,
    matches,
)
from snapshotlink.models import FilterSettings


def no_content():
    raise AssertionError("content should not be read")


class TestMatches:
    """Wildcard mask matching."""

    @pytest.mark.parametrize(
        "mask, name, expected",
        [
            ("*.java", "Foo.java", True),
            ("*.java", "Foo.JAVA", False),
            ("Test*|*IT.java", "MyServiceIT.java", True),
            ("Test*|*IT.java", "TestHelper.kt", True),
            ("Test*|*IT.java", "Service.java", False),
            ("?.txt", "a.txt", True),
            ("?.txt", "ab.txt", False),
            ("*.*", "Main.java.bak", True),
            ("Main.java", "Main.java", True),
            ("Main.java", "MainXjava", False),
        ],
    )
    def test_literal_cases(self, mask, name, expected):
        assert matches(mask, name) is expected

    def test_regex_characters_are_literal(self):
        assert matches("a+b[1].txt", "a+b[1].txt")
        assert not matches("a+b[1].txt", "aab1.txt")

    def test_empty_mask_matches_nothing(self):
        assert not matches("", "Foo.java")
        assert not matches("|", "Foo.java")

    def test_alternatives_ignore_surrounding_spaces(self):
        assert matches("*Test.java | *IT.java", "OrderIT.java")
        assert matches(" *Test.java |*IT.java", "OrderTest.java")
        assert not matches("*Test.java | *IT.java", "Order.java")


class TestFilterRule:
    """Single include/exclude predicates."""

    def test_empty_include_passes_everything(self):
        rule = FilterRule(RuleKind.INCLUDE_BY_NAME)
        assert rule.passes("anything")

    def test_empty_exclude_rejects_nothing(self):
        rule = FilterRule(RuleKind.EXCLUDE_BY_CONTENT)
        assert rule.passes("TODO")

    def test_content_rule_is_substring_not_regex(self):
        rule = FilterRule(RuleKind.EXCLUDE_BY_CONTENT, ("a.c",))
        assert rule.passes("abc")
        assert not rule.passes("xa.cx")

    def test_name_mask_joins_patterns(self):
        rule = FilterRule(RuleKind.INCLUDE_BY_NAME, ("*.java", "*.kt"))
        assert rule.mask == "*.java|*.kt"
        assert rule.hits("A.kt")


class TestFilterRuleSetAccepts:
    """FilterRuleSet.accepts evaluation order and semantics."""

    def test_default_accepts_every_file(self):
        rule_set = FilterRuleSet()
        assert rule_set.accepts("src/Main.java", no_content)
        assert rule_set.accepts("Makefile", no_content)

    def test_explicit_non_matching_include_accepts_none(self):
        rule_set = FilterRuleSetBuilder().include_files_with_name("*.py").build()
        assert not rule_set.accepts("src/Main.java", no_content)
        assert not rule_set.accepts("README.md", no_content)

    def test_exclude_takes_precedence(self):
        rule_set = (
            FilterRuleSetBuilder()
            .include_files_with_name("*.java")
            .exclude_files_with_name("*Test.java")
            .build()
        )
        assert rule_set.accepts("src/Main.java", no_content)
        assert not rule_set.accepts("src/MainTest.java", no_content)

    def test_name_checks_use_last_segment_only(self):
        rule_set = FilterRuleSetBuilder().include_files_with_name("src*").build()
        assert not rule_set.accepts("src/Main.java", no_content)
        assert rule_set.accepts("lib/srcgen.txt", no_content)

    def test_content_not_read_when_name_fails(self):
        rule_set = (
            FilterRuleSetBuilder()
            .include_files_with_name("*.java")
            .exclude_files_containing_text("TODO")
            .build()
        )
        assert not rule_set.accepts("notes.txt", no_content)

    def test_content_read_once(self):
        calls = []

        def supplier():
            calls.append(1)
            return "package main; // generated"

        rule_set = (
            FilterRuleSetBuilder()
            .include_files_containing_text("package")
            .exclude_files_containing_text("TODO")
            .build()
        )
        assert rule_set.accepts("Main.java", supplier)
        assert len(calls) == 1

    def test_include_text_requires_one_match(self):
        rule_set = FilterRuleSetBuilder().include_files_containing_text("@Entity", "@Table").build()
        assert rule_set.accepts("A.java", lambda: "@Table(name='x')")
        assert not rule_set.accepts("B.java", lambda: "class B {}")

    def test_exclude_text_rejects(self):
        rule_set = FilterRuleSetBuilder().exclude_files_containing_text("TODO").build()
        assert not rule_set.accepts("A.java", lambda: "int x; // TODO remove")
        assert rule_set.accepts("B.java", lambda: "int x;")

    def test_repeated_evaluation_is_stable(self):
        rule_set = build_rule_set(
            FilterSettings(include_names=("*.java",), exclude_texts=("TODO",))
        )
        results = {rule_set.accepts("src/A.java", lambda: "class A {}") for _ in range(5)}
        assert results == {True}


class TestBuilder:
    """Building and copying rule sets."""

    def test_rule_set_is_immutable(self):
        rule_set = FilterRuleSetBuilder().include_files_with_name("*.java").build()
        with pytest.raises(AttributeError):
            rule_set.include_name = FilterRule(RuleKind.INCLUDE_BY_NAME, ("*",))

    def test_builders_do_not_share_state(self):
        builder = FilterRuleSetBuilder().include_files_with_name("*.java")
        first = builder.build()
        builder.include_files_with_name("*.kt")
        assert first.include_name.patterns == ("*.java",)
        assert builder.build().include_name.patterns == ("*.java", "*.kt")

    def test_empty_patterns_are_dropped(self):
        rule_set = FilterRuleSetBuilder().include_files_with_name("", "*.java").build()
        assert rule_set.include_name.patterns == ("*.java",)
