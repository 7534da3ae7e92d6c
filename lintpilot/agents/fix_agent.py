"""
Fix Agent
=========
Builds a FixBundle for one WorkItem by consulting the oracle.

Steps (each independently best-effort):
    1. Explain the rule from sample source/messages
       -> placeholder Explanation on failure
    2. Ask for a disable-rule config edit against the LIVE config text
       -> empty edit with a "Failed to generate" description on failure
    3. For EVERY location (no cap, strictly sequential, location order):
       extract a ±10 line numbered window, request a location fix,
       validate the returned span, capture the CURRENT original text

Validation (a proposed fix is accepted only if):
    - start_line >= 1
    - end_line >= start_line
    - end_line <= current file length
    - fixed_code is a non-empty string
    Rejected proposals are dropped silently (logged at INFO).

The Fix Agent does NOT:
    - Apply anything to disk (that's the patcher's job)
    - Decide what to do with the bundle (that's the orchestrator's job)

Session continuity flows through the SessionManager passed in: the handle
goes out with each call and is refreshed from each reply.
"""
import logging
from typing import List, Optional

from lintpilot.core.config import CONTEXT_WINDOW_LINES
from lintpilot.core.constants import (
    DISABLE_EDIT_FAILED,
    EXPLANATION_FAILED,
    NO_FIX_EXPLANATION,
    PRIORITIES,
)
from lintpilot.llm.client import OracleClient
from lintpilot.llm.session import SessionManager
from lintpilot.models.fix_bundle import (
    DisableConfigEdit,
    Explanation,
    FixBundle,
    FollowUpAnswer,
    LocationFix,
)
from lintpilot.models.oracle_reply import OracleReply
from lintpilot.models.work_item import Location, WorkItem

logger = logging.getLogger(__name__)


def _placeholder_explanation() -> Explanation:
    return Explanation(
        problem_description=EXPLANATION_FAILED,
        why_problem="N/A",
        how_to_fix="Check the ESLint documentation for this rule",
        priority="medium",
    )


def _read_lines(path: str) -> List[str]:
    # Same newline handling as the patcher so captured originals match on disk
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read().split("\n")


def extract_context(lines: List[str], line: int, window: int = CONTEXT_WINDOW_LINES) -> str:
    """
    Render ``window`` lines before through ``window`` lines after ``line``
    (1-based), clipped to the file, as ``"<n>\\t<text>"`` rows.
    """
    start = max(0, line - window - 1)
    end = min(len(lines), line + window)
    return "\n".join(f"{i + 1}\t{lines[i]}" for i in range(start, end))


def validate_fix_payload(data: dict, line_count: int) -> Optional[tuple]:
    """
    Check a generate_fix payload against the live file length.

    Returns (start_line, end_line, fixed_code, explanation) or None.
    """
    start = data.get("start_line")
    end = data.get("end_line")
    fixed = data.get("fixed_code")

    # bool is an int subclass; a JSON true is not a line number
    if not isinstance(start, int) or isinstance(start, bool):
        return None
    if not isinstance(end, int) or isinstance(end, bool):
        return None
    if start < 1 or end < start or end > line_count:
        return None
    if not isinstance(fixed, str) or not fixed:
        return None

    explanation = data.get("explanation")
    if not isinstance(explanation, str) or not explanation:
        explanation = NO_FIX_EXPLANATION
    return start, end, fixed, explanation


class FixAgent:
    """
    Generates FixBundles from WorkItems using an oracle.

    Parameters
    ----------
    oracle : OracleClient
        Provider to consult.
    session : SessionManager or None
        Conversation handle owner (auto-created if not provided).
    context_window : int
        Lines of context on each side of a finding.
    """

    def __init__(
        self,
        oracle: OracleClient,
        session: Optional[SessionManager] = None,
        context_window: int = CONTEXT_WINDOW_LINES,
    ) -> None:
        self.oracle = oracle
        self.session = session or SessionManager()
        self.context_window = context_window

    def _track(self, reply: OracleReply) -> OracleReply:
        self.session.update(reply.session_id)
        return reply

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------
    async def generate(self, item: WorkItem, config_content: str) -> Optional[FixBundle]:
        """
        Build a FixBundle for ``item``.

        Returns None for the parse-error bucket, or when not a single oracle
        call produced a usable payload.
        """
        if item.rule_id is None:
            return None

        rule_id = item.rule_id
        any_usable = False

        # --- Step 1: Explanation ---
        explain_reply = self._track(await self.oracle.explain_rule(
            rule_id,
            "\n".join(item.sample_source),
            "\n".join(item.sample_messages),
            session_id=self.session.session_id,
        ))
        explanation = self._parse_explanation(explain_reply)
        if explanation is None:
            logger.warning("Explanation failed for %s: %s", rule_id, explain_reply.error)
            explanation = _placeholder_explanation()
        else:
            any_usable = True

        # --- Step 2: Disable-config edit ---
        disable_reply = self._track(await self.oracle.generate_disable_config(
            rule_id, config_content, session_id=self.session.session_id,
        ))
        disable_edit = self._parse_disable_edit(disable_reply)
        if disable_edit is None:
            logger.warning("Disable edit failed for %s: %s", rule_id, disable_reply.error)
            disable_edit = DisableConfigEdit(modified_config="", diff_description=DISABLE_EDIT_FAILED)
        else:
            any_usable = True

        # --- Step 3: Per-location fixes (sequential, location order) ---
        message = item.sample_messages[0] if item.sample_messages else ""
        fixes: List[LocationFix] = []
        for location in item.locations:
            fix, replied = await self._fix_location(rule_id, location, message)
            any_usable = any_usable or replied
            if fix is not None:
                fixes.append(fix)

        if not any_usable:
            logger.warning("No usable oracle reply for %s, no bundle", rule_id)
            return None

        logger.info("Generated %d/%d fixes for %s", len(fixes), item.count, rule_id)
        return FixBundle(
            rule_id=rule_id,
            count=len(fixes),
            severity=item.severity,
            explain=explanation,
            disable_config=disable_edit,
            fixes=fixes,
        )

    async def ask_follow_up(self, bundle: FixBundle, question: str) -> Optional[FollowUpAnswer]:
        """Ask a free-form question about ``bundle``; None on failure."""
        context = (
            f"Rule: {bundle.rule_id}\n"
            f"Problem: {bundle.explain.problem_description}\n"
            f"Fix: {bundle.explain.how_to_fix}"
        )
        reply = self._track(await self.oracle.ask_question(
            question, context, session_id=self.session.session_id,
        ))
        if not reply.success or not reply.data:
            logger.warning("Follow-up question failed: %s", reply.error)
            return None

        answer = reply.data.get("answer")
        if not isinstance(answer, str) or not answer:
            return None
        suggestion = reply.data.get("code_suggestion")
        return FollowUpAnswer(
            answer=answer,
            code_suggestion=suggestion if isinstance(suggestion, str) and suggestion else None,
        )

    # -------------------------------------------------------------------
    # Internal Helpers
    # -------------------------------------------------------------------
    async def _fix_location(self, rule_id: str, location: Location, message: str):
        """
        Request and validate one location fix.

        Returns (LocationFix or None, whether the oracle replied usably).
        """
        try:
            lines = _read_lines(location.file_full)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot read %s: %s", location.file_full, exc)
            return None, False

        code_context = extract_context(lines, location.line, self.context_window)
        reply = self._track(await self.oracle.generate_fix(
            rule_id,
            location.file_full,
            location.line,
            message,
            code_context,
            session_id=self.session.session_id,
        ))
        if not reply.success or not reply.data:
            logger.warning(
                "Fix failed for %s at %s:%d: %s",
                rule_id, location.file, location.line, reply.error,
            )
            return None, False

        # Re-read: an earlier location of this rule may share the file
        try:
            lines = _read_lines(location.file_full)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Cannot re-read %s: %s", location.file_full, exc)
            return None, True

        validated = validate_fix_payload(reply.data, len(lines))
        if validated is None:
            logger.info(
                "Rejected fix for %s at %s:%d (invalid span or empty code)",
                rule_id, location.file, location.line,
            )
            return None, True

        start, end, fixed, explanation = validated
        return LocationFix(
            file=location.file_full,
            start_line=start,
            end_line=end,
            original="\n".join(lines[start - 1:end]),
            fixed=fixed,
            explanation=explanation,
        ), True

    @staticmethod
    def _parse_explanation(reply: OracleReply) -> Optional[Explanation]:
        if not reply.success or not reply.data:
            return None
        data = reply.data
        problem = data.get("problem_description")
        if not isinstance(problem, str) or not problem:
            return None
        priority = data.get("priority")
        return Explanation(
            problem_description=problem,
            why_problem=str(data.get("why_problem") or ""),
            how_to_fix=str(data.get("how_to_fix") or ""),
            priority=priority if priority in PRIORITIES else "medium",
        )

    @staticmethod
    def _parse_disable_edit(reply: OracleReply) -> Optional[DisableConfigEdit]:
        if not reply.success or not reply.data:
            return None
        modified = reply.data.get("modified_config")
        if not isinstance(modified, str):
            return None
        return DisableConfigEdit(
            modified_config=modified,
            diff_description=str(reply.data.get("diff_description") or ""),
        )
