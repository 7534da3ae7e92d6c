"""
Output Formatter
================
Renders analysis summaries, fix bundles and menus for the terminal.

Every function returns a string; printing is the caller's job. Colors
come from click.style so they vanish automatically when stdout is not a
terminal (CliRunner, pipes).
"""
from typing import List

import click

from lintpilot.core.constants import ARROW
from lintpilot.models.fix_bundle import FixBundle, FollowUpAnswer
from lintpilot.models.work_item import AggregationResult, WorkItem
from lintpilot.utils.path_utils import short_path

_WIDTH = 64


def _rule(char: str = "═", bold: bool = True) -> str:
    return click.style(char * _WIDTH, fg="cyan", bold=bold)


def _fix_label(item: WorkItem) -> str:
    if item.auto_fixable:
        return click.style("[auto-fix]", fg="green")
    return click.style("[manual]", fg="yellow")


def render_summary(result: AggregationResult) -> str:
    """Summary block with per-rule counts."""
    summary = result.summary
    manual = summary.total_issues - summary.fixable
    lines: List[str] = [
        "",
        _rule(),
        click.style("                    Lint Analysis Summary", fg="cyan", bold=True),
        _rule(),
        "",
        click.style("Summary (ESLint results)", fg="yellow"),
        f"   Total issues: {click.style(str(summary.total_issues), bold=True)} "
        f"(errors: {click.style(str(summary.errors), fg='red')}, "
        f"warnings: {click.style(str(summary.warnings), fg='yellow')})",
        f"   ├─ Auto-fixable: {click.style(str(summary.fixable), fg='green')} (eslint --fix)",
        f"   └─ Manual fix: {click.style(str(manual), fg='yellow')} (AI assisted)",
        f"   Unique rules: {click.style(str(summary.unique_rules), bold=True)}",
        "",
        click.style("Rules", fg="yellow"),
    ]
    for item in result.rules:
        rule_name = item.rule_id or "(parsing error)"
        lines.append(f"   • {rule_name} ({item.count}) - {item.severity} {_fix_label(item)}")
    lines.append("")
    return "\n".join(lines)


def render_parse_errors(errors: List[dict]) -> str:
    lines = [click.style("\nParsing errors found!", fg="red", bold=True)]
    for error in errors:
        lines.append(click.style(f"  {error['file']}:{error['line']} - {error['message']}", dim=True))
    return "\n".join(lines)


def render_rules_menu(items: List[WorkItem]) -> str:
    lines = [
        "",
        _rule(),
        click.style("              Select a Rule to Process", fg="cyan", bold=True),
        _rule(),
        "",
    ]
    for i, item in enumerate(items, start=1):
        color = "red" if item.severity == "error" else "yellow"
        lines.append(
            f"  {click.style(f'[{i}]', fg='cyan')} {item.rule_id} "
            f"{click.style(f'({item.severity})', fg=color)} - {item.count} issues {_fix_label(item)}"
        )
    lines.append("")
    return "\n".join(lines)


def render_bundle(bundle: FixBundle) -> str:
    """Full bundle view: explanation, fix previews, disable and ignore previews."""
    explain = bundle.explain
    lines: List[str] = [
        "",
        _rule(bold=False),
        f"{click.style('Rule:', bold=True)} {click.style(bundle.rule_id, fg='yellow')} ({bundle.count} fixes)",
        f"{click.style('Severity:', bold=True)} {bundle.severity} | "
        f"{click.style('Priority:', bold=True)} {explain.priority}",
        "",
        click.style("── AI Analysis " + "─" * 49, dim=True),
        f"{click.style('Problem:', bold=True)} {explain.problem_description}",
        f"{click.style('Why:', bold=True)} {explain.why_problem}",
        f"{click.style('How to fix:', bold=True)} {explain.how_to_fix}",
        "",
        click.style("── [f] Fix Preview (AI generated) " + "─" * 30, dim=True),
    ]

    for fix in bundle.fixes:
        span = str(fix.start_line) if fix.start_line == fix.end_line else f"{fix.start_line}-{fix.end_line}"
        lines.append(click.style(f"{short_path(fix.file)}:{span}", bold=True))
        lines.append(click.style("   Original:", fg="red"))
        lines.extend(click.style(f"   - {line}", fg="red") for line in fix.original.split("\n"))
        lines.append(click.style("   Fixed:", fg="green"))
        lines.extend(click.style(f"   + {line}", fg="green") for line in fix.fixed.split("\n"))
        lines.append(click.style(f"   └ {fix.explanation}", dim=True))
        lines.append("")

    lines += [
        click.style("── [d] Disable Preview (AI generated) " + "─" * 26, dim=True),
        f"   {bundle.disable_config.diff_description}",
        "",
        click.style("── [i] Ignore Options " + "─" * 42, dim=True),
        f"   [1] Line: // eslint-disable-next-line {bundle.rule_id}",
        f"   [2] File: /* eslint-disable {bundle.rule_id} */",
        "",
    ]
    return "\n".join(lines)


def render_action_menu() -> str:
    det = click.style("[deterministic]", fg="green")
    nondet = click.style("[non-deterministic]", fg="magenta")
    key = lambda k: click.style(f"[{k}]", fg="yellow")  # noqa: E731
    return "\n".join([
        click.style("─" * _WIDTH, fg="cyan"),
        f"  {key('f')} Fix      - Apply AI-generated fix          {det}",
        f"  {key('d')} Disable  - Apply config change             {det}",
        f"  {key('i')} Ignore   - Add eslint-disable comment      {det}",
        f"  {key('a')} Ask AI   - Ask additional questions        {nondet}",
        f"  {key('s')} Skip     - Skip this rule                  {det}",
        f"  {key('q')} Quit     - Exit                            {det}",
        click.style("─" * _WIDTH, fg="cyan"),
    ])


def render_fix_choices(bundle: FixBundle) -> str:
    lines = [click.style(f"\nApply fixes ({len(bundle.fixes)} available):", fg="cyan")]
    for i, fix in enumerate(bundle.fixes, start=1):
        lines.append(f"  {i}) {short_path(fix.file)}:{fix.start_line}")
    return "\n".join(lines)


def render_answer(answer: FollowUpAnswer) -> str:
    lines = [click.style("\nAI Response:", fg="green"), answer.answer]
    if answer.code_suggestion:
        lines += [click.style("\nCode suggestion:", fg="green"), answer.code_suggestion]
    return "\n".join(lines)


def render_file_switch(previous: str, current: str) -> str:
    return click.style(
        f"[Session] Switching file: {short_path(previous)} {ARROW} {short_path(current)}", dim=True
    )


def render_totals(fixed: int, skipped: int) -> str:
    return "\n".join([
        click.style(f"Total fixed: {fixed}", fg="cyan"),
        click.style(f"Total skipped: {skipped}", fg="yellow"),
    ])
