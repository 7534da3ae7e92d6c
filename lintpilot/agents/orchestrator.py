"""
Orchestrator Agent
==================
Drives the Scan → Aggregate → Select → Generate → Present → Act loop.

State Machine:
    The transition table is a pure function, next_state(state, event).
    Orchestrator.run() executes the side effects of the current state,
    which yields one LoopEvent, then looks up the successor. A driver makes
    every decision (interactive prompts or the automated policy).

        SCAN ──parse errors──► PARSE_ERROR ──continue──► HAS_FINDINGS
          │                        └──halt──► QUIT
          ├──clean──► CLEAN ──► DONE
          ├──findings──► HAS_FINDINGS ──fixable──► AUTOFIX_OFFERED
          │                   └──none fixable──► SELECT_RULE
          └──scan failed──► QUIT
        AUTOFIX_OFFERED ──applied──► SCAN | declined/failed ──► SELECT_RULE
        SELECT_RULE ──selected──► GENERATE_FIX ──bundle──► PRESENT
                    ├──nothing selectable──► SCAN      └──no bundle──► SCAN
                    ├──stalled──► DONE
                    └──quit/exhausted──► QUIT
        PRESENT ──acted──► SCAN | follow-up──► PRESENT | quit──► QUIT

Re-Scan Rule:
    Every mutation (eslint --fix, a patch, a suppression, a config edit) is
    followed by a fresh SCAN. Line numbers are never carried across a
    mutation.

Loop Guards:
    - An eslint --fix run that leaves the summary unchanged is not offered
      again until the summary changes.
    - Two consecutive scans with an identical summary and nothing
      selectable end the run as DONE.

Fault Tolerance:
    Oracle failures, rejected proposals and patch mismatches are absorbed.
    A ScanFailure ends the run with status "scan_failed"; declined parse
    errors end it with "parse_error". Both map to a non-zero exit.
"""
import asyncio
import logging
from enum import Enum
from typing import Dict, Optional

from lintpilot.agents.drivers import Action, LoopDriver, Selection
from lintpilot.agents.fix_agent import FixAgent
from lintpilot.core.errors import ScanFailure
from lintpilot.llm.client import create_oracle
from lintpilot.llm.session import SessionManager
from lintpilot.models.fix_bundle import FixBundle
from lintpilot.models.run_report import RunReport
from lintpilot.models.work_item import AggregationResult, Summary
from lintpilot.parser.aggregator import (
    aggregate,
    get_parse_errors,
    has_parse_errors,
    selectable_items,
)
from lintpilot.services.config_finder import find_lint_config
from lintpilot.services.eslint_runner import ESLintRunner
from lintpilot.services.patcher import (
    apply_fixes,
    apply_suppression_at_file,
    apply_suppression_at_line,
    write_config,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# States and events
# ---------------------------------------------------------------------------
class LoopState(str, Enum):
    SCAN = "scan"
    PARSE_ERROR = "parse_error"
    CLEAN = "clean"
    HAS_FINDINGS = "has_findings"
    AUTOFIX_OFFERED = "autofix_offered"
    SELECT_RULE = "select_rule"
    GENERATE_FIX = "generate_fix"
    PRESENT = "present"
    DONE = "done"
    QUIT = "quit"


class LoopEvent(str, Enum):
    SCAN_FAILED = "scan_failed"
    PARSE_ERRORS_FOUND = "parse_errors_found"
    NO_ISSUES = "no_issues"
    ISSUES_FOUND = "issues_found"
    CONTINUE = "continue"
    HALT = "halt"
    FINISHED = "finished"
    FIXABLE_PRESENT = "fixable_present"
    NONE_FIXABLE = "none_fixable"
    AUTOFIX_APPLIED = "autofix_applied"
    AUTOFIX_DECLINED = "autofix_declined"
    AUTOFIX_FAILED = "autofix_failed"
    NOTHING_SELECTABLE = "nothing_selectable"
    STALLED = "stalled"
    RULE_SELECTED = "rule_selected"
    QUIT_REQUESTED = "quit_requested"
    EXHAUSTED = "exhausted"
    BUNDLE_READY = "bundle_ready"
    NO_BUNDLE = "no_bundle"
    ACTION_DONE = "action_done"
    FOLLOW_UP = "follow_up"


TERMINAL_STATES = frozenset({LoopState.DONE, LoopState.QUIT})

_TRANSITIONS: Dict[LoopState, Dict[LoopEvent, LoopState]] = {
    LoopState.SCAN: {
        LoopEvent.SCAN_FAILED: LoopState.QUIT,
        LoopEvent.PARSE_ERRORS_FOUND: LoopState.PARSE_ERROR,
        LoopEvent.NO_ISSUES: LoopState.CLEAN,
        LoopEvent.ISSUES_FOUND: LoopState.HAS_FINDINGS,
    },
    LoopState.PARSE_ERROR: {
        LoopEvent.CONTINUE: LoopState.HAS_FINDINGS,
        LoopEvent.HALT: LoopState.QUIT,
    },
    LoopState.CLEAN: {
        LoopEvent.FINISHED: LoopState.DONE,
    },
    LoopState.HAS_FINDINGS: {
        LoopEvent.FIXABLE_PRESENT: LoopState.AUTOFIX_OFFERED,
        LoopEvent.NONE_FIXABLE: LoopState.SELECT_RULE,
    },
    LoopState.AUTOFIX_OFFERED: {
        LoopEvent.AUTOFIX_APPLIED: LoopState.SCAN,
        LoopEvent.AUTOFIX_DECLINED: LoopState.SELECT_RULE,
        LoopEvent.AUTOFIX_FAILED: LoopState.SELECT_RULE,
    },
    LoopState.SELECT_RULE: {
        LoopEvent.NOTHING_SELECTABLE: LoopState.SCAN,
        LoopEvent.STALLED: LoopState.DONE,
        LoopEvent.RULE_SELECTED: LoopState.GENERATE_FIX,
        LoopEvent.QUIT_REQUESTED: LoopState.QUIT,
        LoopEvent.EXHAUSTED: LoopState.QUIT,
    },
    LoopState.GENERATE_FIX: {
        LoopEvent.BUNDLE_READY: LoopState.PRESENT,
        LoopEvent.NO_BUNDLE: LoopState.SCAN,
    },
    LoopState.PRESENT: {
        LoopEvent.ACTION_DONE: LoopState.SCAN,
        LoopEvent.FOLLOW_UP: LoopState.PRESENT,
        LoopEvent.QUIT_REQUESTED: LoopState.QUIT,
    },
}


def next_state(state: LoopState, event: LoopEvent) -> LoopState:
    """
    Successor of ``state`` on ``event``.

    Raises
    ------
    ValueError
        If the event is not valid in the given state.
    """
    try:
        return _TRANSITIONS[state][event]
    except KeyError:
        raise ValueError(f"Invalid transition: {state.value} on {event.value}") from None


def scan(runner: ESLintRunner, target: str) -> AggregationResult:
    """One analyzer pass, aggregated. Raises ScanFailure."""
    return aggregate(runner.run(target))


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------
class Orchestrator:
    """
    Executes the remediation loop for one target.

    Parameters
    ----------
    runner : ESLintRunner
        Analyzer bound to the project root.
    fix_agent : FixAgent
        Bundle generator (owns the oracle and its session).
    config_path : str
        Lint config file, re-read before every disable request.
    target : str
        Path handed to ESLint.
    driver : LoopDriver
        Decision maker and renderer.
    session : SessionManager or None
        Defaults to the FixAgent's session.
    """

    def __init__(
        self,
        runner: ESLintRunner,
        fix_agent: FixAgent,
        config_path: str,
        target: str,
        driver: LoopDriver,
        session: Optional[SessionManager] = None,
    ) -> None:
        self.runner = runner
        self.fix_agent = fix_agent
        self.config_path = config_path
        self.target = target
        self.driver = driver
        self.session = session or fix_agent.session

        self.report = RunReport()
        self.state = LoopState.SCAN

        self._result: Optional[AggregationResult] = None
        self._selection: Optional[Selection] = None
        self._bundle: Optional[FixBundle] = None
        self._autofix_summary: Optional[Summary] = None
        self._idle_summary: Optional[Summary] = None

        self._handlers = {
            LoopState.SCAN: self._on_scan,
            LoopState.PARSE_ERROR: self._on_parse_error,
            LoopState.CLEAN: self._on_clean,
            LoopState.HAS_FINDINGS: self._on_has_findings,
            LoopState.AUTOFIX_OFFERED: self._on_autofix_offered,
            LoopState.SELECT_RULE: self._on_select_rule,
            LoopState.GENERATE_FIX: self._on_generate_fix,
            LoopState.PRESENT: self._on_present,
        }

    async def run(self) -> RunReport:
        """Run the loop until DONE or QUIT and return the report."""
        logger.info("Starting %s run on %s", self.driver.mode, self.target)
        try:
            while self.state not in TERMINAL_STATES:
                event = await self._handlers[self.state]()
                new_state = next_state(self.state, event)
                logger.debug("%s --%s--> %s", self.state.value, event.value, new_state.value)
                self.state = new_state
        finally:
            await self.fix_agent.oracle.close()

        if self.report.status == "running":
            self.report.status = "done" if self.state == LoopState.DONE else "quit"
        logger.info(
            "Run finished: %s (fixed=%d, skipped=%d, iterations=%d)",
            self.report.status, self.report.total_fixed,
            self.report.total_skipped, self.report.iterations,
        )
        self.driver.on_finish(self.report)
        return self.report

    # -------------------------------------------------------------------
    # State handlers
    # -------------------------------------------------------------------
    async def _on_scan(self) -> LoopEvent:
        self.report.iterations += 1
        self.driver.on_scan(self.report.iterations)
        try:
            self._result = await asyncio.to_thread(scan, self.runner, self.target)
        except ScanFailure as exc:
            logger.error("Scan failed: %s", exc)
            self.report.status = "scan_failed"
            self.report.message = str(exc)
            return LoopEvent.SCAN_FAILED

        self.report.last_result = self._result
        self.driver.on_summary(self._result)

        if has_parse_errors(self._result):
            return LoopEvent.PARSE_ERRORS_FOUND
        if self._result.summary.total_issues == 0:
            return LoopEvent.NO_ISSUES
        return LoopEvent.ISSUES_FOUND

    async def _on_parse_error(self) -> LoopEvent:
        errors = get_parse_errors(self._result)
        if await self.driver.confirm_parse_errors(errors):
            return LoopEvent.CONTINUE
        self.report.status = "parse_error"
        self.report.message = f"{len(errors)} parsing error(s) found. Fix them first."
        return LoopEvent.HALT

    async def _on_clean(self) -> LoopEvent:
        self.report.message = "No issues found!"
        return LoopEvent.FINISHED

    async def _on_has_findings(self) -> LoopEvent:
        summary = self._result.summary
        if summary.fixable > 0 and summary != self._autofix_summary:
            return LoopEvent.FIXABLE_PRESENT
        return LoopEvent.NONE_FIXABLE

    async def _on_autofix_offered(self) -> LoopEvent:
        summary = self._result.summary
        if not await self.driver.confirm_autofix(summary):
            return LoopEvent.AUTOFIX_DECLINED

        self._autofix_summary = summary
        try:
            exit_code = await asyncio.to_thread(self.runner.run_autofix, self.target)
        except ScanFailure as exc:
            logger.warning("eslint --fix failed, continuing with manual rules: %s", exc)
            self.driver.on_autofix(None, str(exc))
            return LoopEvent.AUTOFIX_FAILED

        self.driver.on_autofix(exit_code)
        return LoopEvent.AUTOFIX_APPLIED

    async def _on_select_rule(self) -> LoopEvent:
        items = selectable_items(self._result)
        if not items:
            summary = self._result.summary
            if summary == self._idle_summary:
                self.report.message = "No remaining issues can be fixed with AI assistance."
                return LoopEvent.STALLED
            self._idle_summary = summary
            logger.info("No manual-fix rules remaining, re-scanning")
            return LoopEvent.NOTHING_SELECTABLE
        self._idle_summary = None

        self._selection = await self.driver.select(items)
        if self._selection.quit:
            return LoopEvent.QUIT_REQUESTED
        if self._selection.exhausted or self._selection.item is None:
            self.report.status = "exhausted"
            self.report.message = "All remaining rules were skipped too many times."
            return LoopEvent.EXHAUSTED
        return LoopEvent.RULE_SELECTED

    async def _on_generate_fix(self) -> LoopEvent:
        item = self._selection.item
        file_key = self._selection.file_key or item.first_file

        previous = self.session.current_file
        if self.session.switch_file(file_key):
            self.driver.on_file_switch(previous, file_key)

        self.driver.on_generating(item)
        self._bundle = await self.fix_agent.generate(item, self._read_config())
        if self._bundle is None:
            self.driver.on_no_bundle(item)
            self.report.total_skipped += 1
            self.driver.record_outcome(self._selection, fixed=0, skipped=1)
            return LoopEvent.NO_BUNDLE
        return LoopEvent.BUNDLE_READY

    async def _on_present(self) -> LoopEvent:
        action = await self.driver.act(self._bundle)

        if action.kind == "quit":
            return LoopEvent.QUIT_REQUESTED
        if action.kind == "ask":
            answer = await self.fix_agent.ask_follow_up(self._bundle, action.question)
            self.driver.on_answer(answer)
            return LoopEvent.FOLLOW_UP

        fixed, skipped = self._execute(action)
        self.report.total_fixed += fixed
        self.report.total_skipped += skipped
        self.driver.record_outcome(self._selection, fixed=fixed, skipped=skipped)
        return LoopEvent.ACTION_DONE

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def _execute(self, action: Action):
        """Apply ``action`` to disk. Returns (fixed, skipped)."""
        bundle = self._bundle
        item = self._selection.item

        if action.kind == "fix":
            chosen = [bundle.fixes[i] for i in action.fix_indices if 0 <= i < len(bundle.fixes)]
            stats = apply_fixes(chosen)
            self.driver.on_applied(
                f"Applied {stats.success} fix(es), {stats.failed} failed, {stats.skipped} skipped",
                ok=stats.success > 0,
            )
            return stats.success, stats.failed + stats.skipped

        if action.kind == "disable":
            ok = write_config(self.config_path, bundle.disable_config.modified_config)
            self.driver.on_applied(
                f"Disabled {bundle.rule_id} in config" if ok else "Failed to apply config change",
                ok=ok,
            )
            return (1, 0) if ok else (0, 1)

        if action.kind == "ignore_line":
            # Bottom-up per file so earlier insertions don't shift later lines
            targets = sorted(
                {(loc.file_full, loc.line) for loc in item.locations},
                key=lambda pair: (pair[0], -pair[1]),
            )
            done = sum(
                1 for file_path, line in targets
                if apply_suppression_at_line(file_path, line, bundle.rule_id)
            )
            self.driver.on_applied(f"Added {done} line comment(s) for {bundle.rule_id}", ok=done > 0)
            return done, len(targets) - done

        if action.kind == "ignore_file":
            files = list(dict.fromkeys(loc.file_full for loc in item.locations))
            done = sum(1 for file_path in files if apply_suppression_at_file(file_path, bundle.rule_id))
            self.driver.on_applied(f"Added {done} file comment(s) for {bundle.rule_id}", ok=done > 0)
            return done, len(files) - done

        # skip
        self.driver.on_applied(f"Skipped {bundle.rule_id}", ok=True)
        return 0, 1

    def _read_config(self) -> str:
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read lint config %s: %s", self.config_path, exc)
            return ""


def build_orchestrator(
    project_root: str,
    target: str,
    provider: str,
    driver: LoopDriver,
    model: Optional[str] = None,
    config: Optional[str] = None,
) -> Orchestrator:
    """
    Wire analyzer, oracle, fix agent and driver for one run.

    Raises
    ------
    ConfigMissing
        If no lint config can be found.
    ValueError
        If the provider is unknown.
    """
    config_path = find_lint_config(project_root, config)
    oracle = create_oracle(provider, model=model)
    return Orchestrator(
        runner=ESLintRunner(project_root),
        fix_agent=FixAgent(oracle),
        config_path=config_path,
        target=target,
        driver=driver,
    )
