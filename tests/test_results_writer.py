"""
Unit Tests — Results Writer
============================
"""
import json

from lintpilot.models.diagnostic import Diagnostic
from lintpilot.models.run_report import RunReport
from lintpilot.parser.aggregator import aggregate
from lintpilot.services.results_writer import ResultsWriter


def _result():
    return aggregate([
        Diagnostic(rule_id="no-var", severity="error", file_path="/repo/a.js", line=4, message="m"),
    ])


def test_write_analysis(tmp_path):
    out = tmp_path / "analysis.json"
    assert ResultsWriter.write_analysis(_result(), str(out)) is True

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["summary"]["total_issues"] == 1
    assert data["rules"][0]["locations"][0]["line"] == 4


def test_write_report_includes_last_snapshot(tmp_path):
    out = tmp_path / "run.json"
    report = RunReport(status="exhausted", iterations=3, total_skipped=2, last_result=_result())
    assert ResultsWriter.write_report(report, str(out)) is True

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["status"] == "exhausted"
    assert data["last_result"]["rules"][0]["rule_id"] == "no-var"


def test_unwritable_path_returns_false(tmp_path):
    out = tmp_path / "missing-dir" / "out.json"
    assert ResultsWriter.write_analysis(_result(), str(out)) is False
