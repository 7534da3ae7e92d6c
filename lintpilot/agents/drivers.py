"""
Loop Drivers
============
A driver makes every decision the orchestration loop needs and renders its
progress. The orchestrator owns the state machine and all side effects;
drivers only answer questions.

Drivers:
    InteractiveDriver — prompts a human on the terminal (click prompts)
    AutomatedDriver   — fixed policy, no prompts:
                          * parse errors halt the run
                          * eslint --fix is always accepted
                          * (file, rule) pairs are visited file by file in
                            first-seen order; a pair is dropped after
                            MAX_SKIP_ATTEMPTS consecutive skips, and its
                            counter is cleared by any successful fix
                          * only the first candidate fix is applied; the rest
                            are regenerated against the re-scanned file
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import click

from lintpilot.core import output_formatter as fmt
from lintpilot.core.config import MAX_SKIP_ATTEMPTS
from lintpilot.models.fix_bundle import FixBundle, FollowUpAnswer
from lintpilot.models.run_report import RunReport
from lintpilot.models.work_item import AggregationResult, Summary, WorkItem
from lintpilot.utils.path_utils import short_path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------
ACTION_KINDS = ("fix", "disable", "ignore_line", "ignore_file", "ask", "skip", "quit")


@dataclass
class Selection:
    """The work item chosen in SELECT_RULE, or why nothing was chosen."""
    item: Optional[WorkItem] = None
    file_key: Optional[str] = None
    quit: bool = False
    exhausted: bool = False


@dataclass
class Action:
    """The driver's answer to a presented FixBundle."""
    kind: str
    fix_indices: List[int] = field(default_factory=list)
    question: str = ""

    def __post_init__(self) -> None:
        if self.kind not in ACTION_KINDS:
            raise ValueError(f"Unknown action: {self.kind}")


def parse_fix_selection(raw: str, count: int) -> List[int]:
    """
    Parse "1,3" / "a" into zero-based fix indices.

    Out-of-range and non-numeric entries are ignored; duplicates collapse
    and the typed order is kept.
    """
    raw = raw.strip().lower()
    if raw in ("a", "all"):
        return list(range(count))

    indices: List[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part.isdigit():
            continue
        index = int(part) - 1
        if 0 <= index < count and index not in indices:
            indices.append(index)
    return indices


# ---------------------------------------------------------------------------
# Base driver: rendering hooks
# ---------------------------------------------------------------------------
class LoopDriver:
    """Shared rendering; subclasses implement the decisions."""

    mode = "base"

    def __init__(self, quiet: bool = False) -> None:
        self.quiet = quiet

    def echo(self, message: str = "") -> None:
        if not self.quiet:
            click.echo(message)

    # --- Progress hooks ---
    def on_scan(self, iteration: int) -> None:
        self.echo(click.style(f"\nRunning ESLint (pass {iteration})...", fg="cyan"))

    def on_summary(self, result: AggregationResult) -> None:
        self.echo(fmt.render_summary(result))

    def on_autofix(self, exit_code: Optional[int], error: str = "") -> None:
        if error:
            self.echo(click.style(f"eslint --fix failed: {error}", fg="red"))
        else:
            self.echo(click.style(f"eslint --fix completed (exit {exit_code})", fg="green"))

    def on_file_switch(self, previous: str, current: str) -> None:
        self.echo(fmt.render_file_switch(previous, current))

    def on_generating(self, item: WorkItem) -> None:
        self.echo(click.style(f"\nGenerating AI analysis for {item.rule_id} ({item.count} issues)...", fg="cyan"))

    def on_no_bundle(self, item: WorkItem) -> None:
        self.echo(click.style(f"No fix generated for {item.rule_id}", fg="yellow"))

    def on_applied(self, message: str, ok: bool = True) -> None:
        self.echo(click.style(message, fg="green" if ok else "red"))

    def on_answer(self, answer: Optional[FollowUpAnswer]) -> None:
        if answer is None:
            self.echo(click.style("Failed to get an answer", fg="red"))
        else:
            self.echo(fmt.render_answer(answer))

    def on_finish(self, report: RunReport) -> None:
        if report.message:
            self.echo(click.style(f"\n{report.message}", fg="cyan"))
        self.echo(fmt.render_totals(report.total_fixed, report.total_skipped))

    # --- Decisions ---
    async def confirm_parse_errors(self, errors: List[dict]) -> bool:
        raise NotImplementedError

    async def confirm_autofix(self, summary: Summary) -> bool:
        raise NotImplementedError

    async def select(self, items: List[WorkItem]) -> Selection:
        raise NotImplementedError

    async def act(self, bundle: FixBundle) -> Action:
        raise NotImplementedError

    def record_outcome(self, selection: Selection, fixed: int, skipped: int) -> None:
        """Feedback after a unit of work; only the automated policy uses it."""


# ---------------------------------------------------------------------------
# Interactive driver
# ---------------------------------------------------------------------------
class InteractiveDriver(LoopDriver):
    """Terminal prompts for a human operator."""

    mode = "interactive"

    async def confirm_parse_errors(self, errors: List[dict]) -> bool:
        self.echo(fmt.render_parse_errors(errors))
        return click.confirm("Continue anyway?", default=False)

    async def confirm_autofix(self, summary: Summary) -> bool:
        return click.confirm(
            f"Run eslint --fix for {summary.fixable} auto-fixable issues?", default=True
        )

    async def select(self, items: List[WorkItem]) -> Selection:
        self.echo(fmt.render_rules_menu(items))
        while True:
            raw = click.prompt(
                "Select rule number (or 'q' to quit)", default="", show_default=False
            ).strip().lower()
            if raw == "q":
                return Selection(quit=True)
            if raw.isdigit() and 1 <= int(raw) <= len(items):
                item = items[int(raw) - 1]
                return Selection(item=item, file_key=item.first_file)
            self.echo(click.style("Invalid selection", fg="red"))

    async def act(self, bundle: FixBundle) -> Action:
        self.echo(fmt.render_bundle(bundle))
        while True:
            self.echo(fmt.render_action_menu())
            choice = click.prompt("Select action", default="", show_default=False).strip().lower()

            if choice == "f":
                action = self._choose_fixes(bundle)
                if action is not None:
                    return action
            elif choice == "d":
                if not bundle.disable_config.modified_config:
                    self.echo(click.style("No config change available for this rule", fg="yellow"))
                    continue
                self.echo(f"\n{bundle.disable_config.diff_description}")
                if click.confirm("Apply this config change?", default=False):
                    return Action("disable")
            elif choice == "i":
                raw = click.prompt(
                    "Ignore with [1] line comment or [2] file comment ('c' to cancel)",
                    default="c",
                ).strip().lower()
                if raw == "1":
                    return Action("ignore_line")
                if raw == "2":
                    return Action("ignore_file")
            elif choice == "a":
                question = click.prompt("Question", default="", show_default=False).strip()
                if question:
                    return Action("ask", question=question)
            elif choice == "s":
                return Action("skip")
            elif choice == "q":
                return Action("quit")
            else:
                self.echo(click.style("Invalid action", fg="red"))

    def _choose_fixes(self, bundle: FixBundle) -> Optional[Action]:
        if not bundle.fixes:
            self.echo(click.style("No fixes available for this rule", fg="yellow"))
            return None

        self.echo(fmt.render_fix_choices(bundle))
        raw = click.prompt(
            "Select fixes (comma-separated, 'a' for all, 'c' to cancel)", default="a"
        ).strip().lower()
        if raw == "c":
            return None

        indices = parse_fix_selection(raw, len(bundle.fixes))
        if not indices:
            self.echo(click.style("No valid fixes selected", fg="red"))
            return None
        return Action("fix", fix_indices=indices)


# ---------------------------------------------------------------------------
# Automated driver
# ---------------------------------------------------------------------------
class AutomatedDriver(LoopDriver):
    """
    Unattended policy with a per-(file, rule) skip budget.

    Parameters
    ----------
    max_skip_attempts : int
        Consecutive skips after which a pair is no longer selected.
    quiet : bool
        Suppress terminal output (HTTP background runs).
    """

    mode = "automated"

    def __init__(self, max_skip_attempts: int = MAX_SKIP_ATTEMPTS, quiet: bool = False) -> None:
        super().__init__(quiet=quiet)
        self.max_skip_attempts = max_skip_attempts
        self.skip_counts: Dict[Tuple[str, str], int] = {}

    async def confirm_parse_errors(self, errors: List[dict]) -> bool:
        self.echo(fmt.render_parse_errors(errors))
        logger.error("Parsing errors block automated mode (%d found)", len(errors))
        return False

    async def confirm_autofix(self, summary: Summary) -> bool:
        logger.info("Running eslint --fix for %d auto-fixable issues", summary.fixable)
        return True

    async def select(self, items: List[WorkItem]) -> Selection:
        for file_path, item in self._pairs(items):
            if self.skip_counts.get((file_path, item.rule_id), 0) >= self.max_skip_attempts:
                continue
            narrowed = item.model_copy(update={
                "locations": [loc for loc in item.locations if loc.file_full == file_path],
            })
            narrowed = narrowed.model_copy(update={"count": len(narrowed.locations)})
            self.echo(click.style(
                f"\nTarget: {short_path(file_path)} / {item.rule_id} ({narrowed.count} issues)",
                fg="cyan",
            ))
            return Selection(item=narrowed, file_key=file_path)

        logger.warning("All remaining (file, rule) pairs exceeded the skip budget")
        return Selection(exhausted=True)

    async def act(self, bundle: FixBundle) -> Action:
        if not bundle.fixes:
            return Action("skip")
        return Action("fix", fix_indices=[0])

    def record_outcome(self, selection: Selection, fixed: int, skipped: int) -> None:
        if selection.item is None or selection.file_key is None:
            return
        key = (selection.file_key, selection.item.rule_id)
        if fixed > 0:
            self.skip_counts.pop(key, None)
        elif skipped > 0:
            self.skip_counts[key] = self.skip_counts.get(key, 0) + 1
            logger.info(
                "Skip %d/%d for %s in %s",
                self.skip_counts[key], self.max_skip_attempts,
                selection.item.rule_id, short_path(selection.file_key),
            )

    @staticmethod
    def _pairs(items: List[WorkItem]) -> List[Tuple[str, WorkItem]]:
        """(file, item) pairs grouped by file in first-seen order."""
        by_file: Dict[str, List[WorkItem]] = {}
        for item in items:
            for location in item.locations:
                rules = by_file.setdefault(location.file_full, [])
                if item not in rules:
                    rules.append(item)
        return [(file_path, item) for file_path, rules in by_file.items() for item in rules]
