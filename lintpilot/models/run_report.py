"""
Run Report Model
================
Final outcome of one orchestration loop run.

Fields:
    status         — "done" | "quit" | "exhausted" | "parse_error" | "scan_failed"
    iterations     — number of SCAN entries performed
    total_fixed    — location fixes applied (plus suppressions/config edits)
    total_skipped  — skipped or failed occurrences
    message        — human-readable closing message
    last_result    — last aggregation snapshot, for the JSON output file

Used by:
    - CLI to pick the exit status
    - HTTP service to report background runs
    - Results writer to dump the final summary
"""
from typing import Literal, Optional
from pydantic import BaseModel

from .work_item import AggregationResult


RunStatus = Literal["running", "done", "quit", "exhausted", "parse_error", "scan_failed"]


class RunReport(BaseModel):
    status: RunStatus = "running"
    iterations: int = 0
    total_fixed: int = 0
    total_skipped: int = 0
    message: str = ""
    last_result: Optional[AggregationResult] = None

    @property
    def is_failure(self) -> bool:
        return self.status in ("parse_error", "scan_failed")
