"""
ESLint Runner
=============
The analyzer boundary: runs ESLint as a black box and converts its JSON
report into Diagnostic objects.

NO ORACLE CALLS HERE. This module only invokes the analyzer and parses
what it prints.

OUTPUT CONTRACT:
    run(target) -> List[Diagnostic]       (one call per SCAN)
    run_autofix(target) -> int            (mutates files in place)

Exit Status:
    ESLint exits 1 whenever any finding exists, so the exit status alone
    says nothing about success. A run succeeds if stdout holds a JSON
    report. No report at all (missing binary, crash, timeout, garbage on
    stdout) raises ScanFailure, which is fatal for the whole run.
"""
import json
import logging
import shlex
import subprocess
from typing import Any, List

from lintpilot.core.config import ANALYZER_TIMEOUT_SECONDS, ESLINT_COMMAND
from lintpilot.core.errors import ScanFailure
from lintpilot.models.diagnostic import Diagnostic

logger = logging.getLogger(__name__)


# ===================================================================
# Report Parsing
# ===================================================================
def parse_eslint_results(payload: List[dict]) -> List[Diagnostic]:
    """
    Flatten an ESLint JSON report into Diagnostics, preserving order.

    Parameters
    ----------
    payload : list of dict
        ESLint ``--format json`` output: one entry per file with a
        ``messages`` list.
    """
    diagnostics: List[Diagnostic] = []
    for file_result in payload:
        file_path = file_result.get("filePath", "")
        for msg in file_result.get("messages", []):
            diagnostics.append(Diagnostic(
                rule_id=msg.get("ruleId"),
                severity="error" if msg.get("severity") == 2 else "warning",
                file_path=file_path,
                line=max(int(msg.get("line") or 1), 1),
                column=max(int(msg.get("column") or 1), 1),
                message=msg.get("message", ""),
                has_fix=bool(msg.get("fix")),
                source=msg.get("source") or None,
            ))
    return diagnostics


# ===================================================================
# Runner
# ===================================================================
class ESLintRunner:
    """
    Invokes ESLint inside the project root.

    Parameters
    ----------
    project_root : str
        Working directory for the ESLint process.
    command : str
        Command prefix (default from ESLINT_COMMAND, e.g. "npx eslint").
    timeout : float
        Seconds before a run is abandoned.
    """

    def __init__(
        self,
        project_root: str,
        command: str = ESLINT_COMMAND,
        timeout: float = ANALYZER_TIMEOUT_SECONDS,
    ) -> None:
        self.project_root = project_root
        self.command = shlex.split(command)
        self.timeout = timeout

    def _exec(self, args: List[str]) -> subprocess.CompletedProcess:
        cmd = [*self.command, *args]
        logger.debug("Running analyzer: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.project_root,
            )
        except FileNotFoundError as exc:
            raise ScanFailure(f"Analyzer not found: {self.command[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ScanFailure(f"Analyzer timed out after {self.timeout:.0f}s") from exc
        except OSError as exc:
            raise ScanFailure(f"Analyzer could not be started: {exc}") from exc

    def run_raw(self, target: str) -> List[Any]:
        """Run ESLint and return its raw JSON report."""
        result = self._exec([target, "--format", "json"])
        raw = result.stdout.strip()
        if not raw:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise ScanFailure(f"ESLint produced no output: {detail}")
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ScanFailure(f"ESLint output is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise ScanFailure("ESLint output is not a JSON report list")

        if result.returncode not in (0, 1):
            logger.warning("ESLint exited with status %d but produced a report", result.returncode)
        return payload

    def run(self, target: str) -> List[Diagnostic]:
        """Run ESLint and return the parsed diagnostics."""
        payload = self.run_raw(target)
        try:
            diagnostics = parse_eslint_results(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            raise ScanFailure(f"Unexpected ESLint report structure: {exc}") from exc
        logger.info("ESLint reported %d diagnostic(s)", len(diagnostics))
        return diagnostics

    def run_autofix(self, target: str) -> int:
        """
        Run ``eslint --fix``. Remaining findings make ESLint exit 1,
        which is not an error here. Returns the exit status.
        """
        result = self._exec([target, "--fix"])
        if result.returncode not in (0, 1):
            raise ScanFailure(
                f"eslint --fix failed (status {result.returncode}): {result.stderr.strip()}"
            )
        return result.returncode
