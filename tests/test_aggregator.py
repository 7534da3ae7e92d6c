"""
Unit Tests — Finding Aggregator
================================
Grouping, ordering, sampling and summary invariants of aggregate().
"""
import pytest

from lintpilot.models.diagnostic import Diagnostic
from lintpilot.parser.aggregator import (
    aggregate,
    get_parse_errors,
    has_parse_errors,
    selectable_items,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _diag(rule_id="no-unused-vars", file_path="/repo/src/a.js", line=1, severity="warning",
          message="msg", has_fix=False, source=None):
    return Diagnostic(
        rule_id=rule_id, severity=severity, file_path=file_path, line=line,
        column=1, message=message, has_fix=has_fix, source=source,
    )


@pytest.fixture
def mixed_diagnostics():
    return [
        _diag("semi", "/repo/a.js", 1, has_fix=True),
        _diag("no-unused-vars", "/repo/a.js", 3, severity="error", message="'x' is unused"),
        _diag("semi", "/repo/b.js", 7, has_fix=False),
        _diag(None, "/repo/c.js", 2, severity="error", message="Parsing error: Unexpected token"),
        _diag("no-unused-vars", "/repo/b.js", 9, severity="error", message="'y' is unused"),
        _diag("eqeqeq", "/repo/c.js", 5, has_fix=True),
    ]


# ===================================================================
# Invariants
# ===================================================================
def test_counts_match_input(mixed_diagnostics):
    result = aggregate(mixed_diagnostics)
    assert sum(item.count for item in result.rules) == len(mixed_diagnostics)
    assert result.summary.unique_rules == len(result.rules)
    assert result.summary.fixable == sum(
        1 for item in result.rules for loc in item.locations if loc.has_fix
    )


def test_item_count_matches_locations(mixed_diagnostics):
    for item in aggregate(mixed_diagnostics).rules:
        assert item.count == len(item.locations)
        assert item.fixable_count == sum(1 for loc in item.locations if loc.has_fix)


def test_groups_follow_first_occurrence(mixed_diagnostics):
    result = aggregate(mixed_diagnostics)
    assert [item.rule_id for item in result.rules] == ["semi", "no-unused-vars", None, "eqeqeq"]


def test_aggregation_is_deterministic(mixed_diagnostics):
    assert aggregate(mixed_diagnostics) == aggregate(list(mixed_diagnostics))


def test_summary_severity_counts(mixed_diagnostics):
    summary = aggregate(mixed_diagnostics).summary
    assert summary.total_issues == 6
    assert summary.errors == 3
    assert summary.warnings == 3


def test_empty_input():
    result = aggregate([])
    assert result.rules == []
    assert result.summary.total_issues == 0
    assert result.summary.unique_rules == 0


# ===================================================================
# auto_fixable is rule-level and coarse
# ===================================================================
def test_partially_fixable_rule_is_flagged(mixed_diagnostics):
    semi = aggregate(mixed_diagnostics).rules[0]
    assert semi.auto_fixable is True
    assert semi.fixable_count == 1
    assert semi.count == 2


def test_selectable_excludes_fixable_and_parse_errors(mixed_diagnostics):
    items = selectable_items(aggregate(mixed_diagnostics))
    assert [item.rule_id for item in items] == ["no-unused-vars"]


# ===================================================================
# Samples
# ===================================================================
def test_samples_are_capped_and_distinct():
    diags = [
        _diag("quotes", line=i, message="Strings must use singlequote", source=f"const s{i} = \"x\";")
        for i in range(1, 6)
    ]
    item = aggregate(diags).rules[0]
    assert item.sample_messages == ["Strings must use singlequote"]
    assert len(item.sample_source) == 3


def test_missing_sources_are_not_sampled():
    item = aggregate([_diag("quotes", source=None), _diag("quotes", source="x")]).rules[0]
    assert item.sample_source == ["x"]


def test_location_uses_short_path():
    loc = aggregate([_diag(file_path="/repo/src/deep/file.js", line=4)]).rules[0].locations[0]
    assert loc.file == "file.js"
    assert loc.file_full == "/repo/src/deep/file.js"
    assert loc.line == 4


# ===================================================================
# Parse errors
# ===================================================================
def test_parse_errors_detected(mixed_diagnostics):
    result = aggregate(mixed_diagnostics)
    assert has_parse_errors(result) is True
    assert get_parse_errors(result) == [
        {"file": "/repo/c.js", "line": 2, "message": "Parsing error: Unexpected token"},
    ]


def test_no_parse_errors():
    result = aggregate([_diag("semi")])
    assert has_parse_errors(result) is False
    assert get_parse_errors(result) == []


# ===================================================================
# Scenarios
# ===================================================================
def test_scenario_all_occurrences_machine_fixable():
    result = aggregate([_diag("X", line=i, has_fix=True) for i in range(1, 6)])
    assert result.summary.fixable == 5
    assert len(result.rules) == 1
    item = result.rules[0]
    assert (item.rule_id, item.auto_fixable, item.count) == ("X", True, 5)
    assert selectable_items(result) == []


def test_scenario_manual_rule_is_single_selectable_item():
    result = aggregate([_diag("Y", line=i) for i in range(1, 4)])
    items = selectable_items(result)
    assert len(items) == 1
    assert items[0].rule_id == "Y"
    assert items[0].count == 3
