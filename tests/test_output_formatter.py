"""
Unit Tests — Output Formatter
==============================
Rendered strings are compared after click.unstyle, so colors never matter.
"""
import click

from lintpilot.core.constants import ARROW
from lintpilot.core.output_formatter import (
    render_answer,
    render_bundle,
    render_file_switch,
    render_rules_menu,
    render_summary,
    render_totals,
)
from lintpilot.models.diagnostic import Diagnostic
from lintpilot.models.fix_bundle import (
    DisableConfigEdit,
    Explanation,
    FixBundle,
    FollowUpAnswer,
    LocationFix,
)
from lintpilot.parser.aggregator import aggregate, selectable_items


def _plain(text: str) -> str:
    return click.unstyle(text)


def _result():
    return aggregate([
        Diagnostic(rule_id="no-var", severity="error", file_path="/repo/a.js", line=1),
        Diagnostic(rule_id="no-var", severity="error", file_path="/repo/b.js", line=7),
        Diagnostic(rule_id="semi", severity="warning", file_path="/repo/a.js", line=2, has_fix=True),
    ])


class TestSummary:

    def test_counts(self):
        text = _plain(render_summary(_result()))
        assert "Total issues: 3 (errors: 2, warnings: 1)" in text
        assert "Auto-fixable: 1 (eslint --fix)" in text
        assert "Manual fix: 2 (AI assisted)" in text
        assert "Unique rules: 2" in text

    def test_rule_lines(self):
        text = _plain(render_summary(_result()))
        assert "• no-var (2) - error [manual]" in text
        assert "• semi (1) - warning [auto-fix]" in text


class TestRulesMenu:

    def test_only_manual_rules_numbered(self):
        text = _plain(render_rules_menu(selectable_items(_result())))
        assert "[1] no-var (error) - 2 issues [manual]" in text
        assert "[2]" not in text


class TestBundle:

    def _bundle(self):
        return FixBundle(
            rule_id="no-var", count=1, severity="error",
            explain=Explanation(problem_description="var is function scoped", priority="high"),
            disable_config=DisableConfigEdit(diff_description="+ 'no-var': 'off'"),
            fixes=[LocationFix(file="/repo/src/a.js", start_line=3, end_line=4,
                               original="var a = 1;\nvar b = 2;", fixed="const a = 1;\nconst b = 2;",
                               explanation="prefer const")],
        )

    def test_previews(self):
        text = _plain(render_bundle(self._bundle()))
        assert "Rule: no-var (1 fixes)" in text
        assert "Severity: error | Priority: high" in text
        assert "a.js:3-4" in text
        assert "   - var b = 2;" in text
        assert "   + const b = 2;" in text
        assert "+ 'no-var': 'off'" in text
        assert "[1] Line: // eslint-disable-next-line no-var" in text
        assert "[2] File: /* eslint-disable no-var */" in text


class TestMisc:

    def test_file_switch_uses_arrow(self):
        text = _plain(render_file_switch("/repo/a.js", "/repo/b.js"))
        assert text == f"[Session] Switching file: a.js {ARROW} b.js"

    def test_answer_with_suggestion(self):
        text = _plain(render_answer(FollowUpAnswer(answer="Use const", code_suggestion="const a = 1;")))
        assert "Use const" in text
        assert "Code suggestion:" in text

    def test_totals(self):
        assert _plain(render_totals(3, 1)) == "Total fixed: 3\nTotal skipped: 1"
