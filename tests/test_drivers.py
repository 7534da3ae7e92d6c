"""
Unit Tests — Loop Drivers
==========================
Automated policy and the interactive prompt handling (click prompts patched).
"""
import asyncio
from unittest.mock import patch

import pytest

from lintpilot.agents.drivers import (
    Action,
    AutomatedDriver,
    InteractiveDriver,
    Selection,
    parse_fix_selection,
)
from lintpilot.models.fix_bundle import DisableConfigEdit, Explanation, FixBundle, LocationFix
from lintpilot.models.work_item import Location, Summary, WorkItem


def _item(rule_id, files):
    locations = [
        Location(file=f.rsplit("/", 1)[-1], file_full=f, line=i + 1, column=1)
        for i, f in enumerate(files)
    ]
    return WorkItem(rule_id=rule_id, severity="error", count=len(locations), locations=locations)


def _bundle(fix_count=2, modified_config=""):
    fixes = [
        LocationFix(file="/repo/a.js", start_line=i, end_line=i, original=f"var v{i}", fixed=f"const v{i}")
        for i in range(1, fix_count + 1)
    ]
    return FixBundle(
        rule_id="no-var", count=fix_count, severity="error",
        explain=Explanation(problem_description="p"),
        disable_config=DisableConfigEdit(modified_config=modified_config, diff_description="d"),
        fixes=fixes,
    )


# ===================================================================
# parse_fix_selection
# ===================================================================
@pytest.mark.parametrize("raw, expected", [
    ("a", [0, 1, 2]),
    ("all", [0, 1, 2]),
    ("1,3", [0, 2]),
    (" 3 , 1 ", [2, 0]),
    ("2,2,9,x", [1]),
    ("0", []),
    ("", []),
])
def test_parse_fix_selection(raw, expected):
    assert parse_fix_selection(raw, 3) == expected


def test_unknown_action_kind_rejected():
    with pytest.raises(ValueError):
        Action("explode")


# ===================================================================
# AutomatedDriver
# ===================================================================
def test_automated_fixed_answers():
    driver = AutomatedDriver(quiet=True)
    assert asyncio.run(driver.confirm_parse_errors([{"file": "a.js", "line": 1, "message": "x"}])) is False
    assert asyncio.run(driver.confirm_autofix(Summary(fixable=3))) is True


def test_automated_selects_file_by_file_and_narrows():
    driver = AutomatedDriver(quiet=True)
    items = [
        _item("no-var", ["/repo/a.js", "/repo/b.js"]),
        _item("eqeqeq", ["/repo/a.js"]),
    ]

    selection = asyncio.run(driver.select(items))

    assert selection.file_key == "/repo/a.js"
    assert selection.item.rule_id == "no-var"
    assert selection.item.count == 1
    assert [loc.file_full for loc in selection.item.locations] == ["/repo/a.js"]
    # the input item is not mutated
    assert items[0].count == 2


def test_automated_skip_budget_and_reset():
    driver = AutomatedDriver(max_skip_attempts=2, quiet=True)
    items = [_item("no-var", ["/repo/a.js"]), _item("eqeqeq", ["/repo/a.js"])]

    first = asyncio.run(driver.select(items))
    driver.record_outcome(first, fixed=0, skipped=1)
    driver.record_outcome(first, fixed=0, skipped=1)
    assert driver.skip_counts[("/repo/a.js", "no-var")] == 2

    second = asyncio.run(driver.select(items))
    assert second.item.rule_id == "eqeqeq"

    driver.record_outcome(second, fixed=0, skipped=1)
    driver.record_outcome(second, fixed=1, skipped=0)
    assert ("/repo/a.js", "eqeqeq") not in driver.skip_counts


def test_automated_exhausted_when_all_pairs_spent():
    driver = AutomatedDriver(max_skip_attempts=1, quiet=True)
    items = [_item("no-var", ["/repo/a.js"])]
    driver.record_outcome(asyncio.run(driver.select(items)), fixed=0, skipped=1)

    selection = asyncio.run(driver.select(items))
    assert selection.exhausted
    assert selection.item is None


def test_automated_applies_first_fix_only():
    driver = AutomatedDriver(quiet=True)
    action = asyncio.run(driver.act(_bundle(fix_count=3)))
    assert action.kind == "fix"
    assert action.fix_indices == [0]
    assert asyncio.run(driver.act(_bundle(fix_count=0))).kind == "skip"


def test_record_outcome_ignores_empty_selection():
    driver = AutomatedDriver(quiet=True)
    driver.record_outcome(Selection(quit=True), fixed=0, skipped=1)
    assert driver.skip_counts == {}


# ===================================================================
# InteractiveDriver
# ===================================================================
def test_interactive_select_reprompts_on_invalid_input():
    driver = InteractiveDriver(quiet=True)
    items = [_item("no-var", ["/repo/a.js"]), _item("eqeqeq", ["/repo/b.js"])]

    with patch("lintpilot.agents.drivers.click.prompt", side_effect=["9", "abc", "2"]) as prompt:
        selection = asyncio.run(driver.select(items))

    assert prompt.call_count == 3
    assert selection.item.rule_id == "eqeqeq"
    assert selection.file_key == "/repo/b.js"


def test_interactive_select_quit():
    driver = InteractiveDriver(quiet=True)
    with patch("lintpilot.agents.drivers.click.prompt", return_value="q"):
        assert asyncio.run(driver.select([_item("no-var", ["/repo/a.js"])])).quit


def test_interactive_fix_selection():
    driver = InteractiveDriver(quiet=True)
    with patch("lintpilot.agents.drivers.click.prompt", side_effect=["f", "2"]):
        action = asyncio.run(driver.act(_bundle()))
    assert action.kind == "fix"
    assert action.fix_indices == [1]


def test_interactive_cancelled_fix_returns_to_menu():
    driver = InteractiveDriver(quiet=True)
    with patch("lintpilot.agents.drivers.click.prompt", side_effect=["f", "c", "s"]):
        assert asyncio.run(driver.act(_bundle())).kind == "skip"


def test_interactive_disable_requires_config_and_confirmation():
    driver = InteractiveDriver(quiet=True)
    with patch("lintpilot.agents.drivers.click.prompt", side_effect=["d", "q"]), \
            patch("lintpilot.agents.drivers.click.confirm") as confirm:
        assert asyncio.run(driver.act(_bundle(modified_config=""))).kind == "quit"
    confirm.assert_not_called()

    with patch("lintpilot.agents.drivers.click.prompt", return_value="d"), \
            patch("lintpilot.agents.drivers.click.confirm", return_value=True):
        assert asyncio.run(driver.act(_bundle(modified_config="export default [];"))).kind == "disable"


@pytest.mark.parametrize("answer, kind", [("1", "ignore_line"), ("2", "ignore_file")])
def test_interactive_ignore(answer, kind):
    driver = InteractiveDriver(quiet=True)
    with patch("lintpilot.agents.drivers.click.prompt", side_effect=["i", answer]):
        assert asyncio.run(driver.act(_bundle())).kind == kind


def test_interactive_ask():
    driver = InteractiveDriver(quiet=True)
    with patch("lintpilot.agents.drivers.click.prompt", side_effect=["a", "Why const?"]):
        action = asyncio.run(driver.act(_bundle()))
    assert action.kind == "ask"
    assert action.question == "Why const?"
