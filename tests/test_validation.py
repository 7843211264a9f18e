"""
Tests for utils/validation.py tree checks.

Each check is exercised against small sanitized trees; the registry is
tested for skip lists and for isolating a check that raises.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from budget_tree.sanitizer import sanitize
from utils.validation import (
    ValidationIssue,
    ValidationRegistry,
    ValidationResult,
    build_tree_registry,
    check_blank_names,
    check_duplicate_siblings,
    check_explicit_totals,
    check_missing_values,
    check_negative_values,
    is_valid_amount,
    is_valid_name,
    validate_tree,
)


# ── individual checks ─────────────────────────────────────────────────────────

class TestExplicitTotals:
    def test_mismatch_flagged(self, sample_tree):
        issues = check_explicit_totals(sample_tree)
        assert len(issues) == 1
        assert issues[0].severity == "warning"
        assert issues[0].sample == "/National Budget/Ministry of Finance"
        assert "600 vs 550" in issues[0].detail

    def test_within_tolerance_passes(self):
        root = sanitize({"name": "R", "value": 10.4, "children": [{"value": 10}]})
        assert check_explicit_totals(root) == []

    def test_blank_children_not_compared(self):
        root = sanitize({"name": "R", "value": 10, "children": [{"name": "a"}]})
        assert check_explicit_totals(root) == []


def test_duplicate_siblings():
    root = sanitize({"name": "R", "children": [
        {"name": "Office"}, {"name": "Office"}, {"name": "Other"}]})
    issues = check_duplicate_siblings(root)
    assert issues[0].count == 1
    assert issues[0].sample == "/R/Office"


def test_duplicate_names_in_different_parents_ok():
    root = sanitize({"name": "R", "children": [
        {"name": "A", "children": [{"name": "Office"}]},
        {"name": "B", "children": [{"name": "Office"}]}]})
    assert check_duplicate_siblings(root) == []


def test_blank_names():
    root = sanitize({"name": "R", "children": [{"name": "  "}, {}]})
    issues = check_blank_names(root)
    assert issues[0].count == 2


def test_negative_values():
    root = sanitize({"name": "R", "children": [{"name": "Refund", "value": -5}]})
    issues = check_negative_values(root)
    assert issues[0].check_name == "amount_range"
    assert issues[0].sample == "/R/Refund"


def test_missing_values_is_info(sample_tree):
    issues = check_missing_values(sample_tree)
    assert issues[0].severity == "info"
    assert issues[0].sample == "/National Budget/Central Fund"


# ── registry ──────────────────────────────────────────────────────────────────

class TestRegistry:
    def test_validate_sample_tree(self, sample_tree):
        result = validate_tree(sample_tree)
        assert result.is_valid()
        assert "explicit_totals" in result.failed_checks
        assert "duplicate_siblings" in result.passed_checks
        assert result.warning_count() == 1
        assert result.info_count() == 1

    def test_skip_checks(self, sample_tree):
        result = validate_tree(sample_tree, skip_checks=["explicit_totals"])
        assert "explicit_totals" not in result.failed_checks
        assert "explicit_totals" not in result.passed_checks

    def test_raising_check_is_isolated(self, sample_tree):
        registry = build_tree_registry()

        def broken(root):
            raise RuntimeError("boom")

        registry.register("broken", broken)
        result = registry.run_all(sample_tree)
        assert "broken" in result.failed_checks
        assert result.error_count() == 1
        assert not result.is_valid()
        assert "duplicate_siblings" in result.passed_checks

    def test_to_dict(self, sample_tree):
        data = validate_tree(sample_tree).to_dict()
        assert data["summary"]["total_checks"] == 5
        assert data["issues"][0]["check"] == "explicit_totals"

    def test_summary_text(self):
        result = ValidationResult()
        result.mark_check_passed("a")
        result.add_issue("b", "error", "bad")
        result.mark_check_failed("b")
        text = result.summary_text()
        assert "Passed Checks: 1" in text
        assert "Errors: 1" in text

    def test_empty_registry(self, sample_tree):
        result = ValidationRegistry().run_all(sample_tree)
        assert result.passed_checks == []
        assert result.is_valid()


def test_issue_to_dict():
    issue = ValidationIssue("c", "warning", "d", sample="/A", count=3)
    assert issue.to_dict() == {"check": "c", "severity": "warning",
                               "detail": "d", "sample": "/A", "count": 3}


# ── value helpers ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("value,expected", [
    (0, True), (1.5, True), (1e15, True), (-1, False), (1e16, False),
    (True, False), ("5", False),
])
def test_is_valid_amount(value, expected):
    assert is_valid_amount(value) is expected


@pytest.mark.parametrize("name,expected", [("A", True), ("", False), ("  ", False), (None, False)])
def test_is_valid_name(name, expected):
    assert is_valid_name(name) is expected
