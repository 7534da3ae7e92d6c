"""
Fix Bundle Models
=================
Pydantic models for the oracle-derived remediation package of one WorkItem.

Explanation        — per-rule description, rationale, guidance, priority
DisableConfigEdit  — full replacement config text + human-readable summary
LocationFix        — one literal original -> fixed substitution
FixBundle          — everything above for one rule; built fresh each
                     iteration, never persisted

LocationFix.original is captured from the live file at generation time;
the patcher matches on it literally, line numbers are for display only.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel

from .diagnostic import Severity


Priority = Literal["low", "medium", "high"]


class Explanation(BaseModel):
    problem_description: str
    why_problem: str = ""
    how_to_fix: str = ""
    priority: Priority = "medium"


class DisableConfigEdit(BaseModel):
    modified_config: str = ""
    diff_description: str = ""


class LocationFix(BaseModel):
    file: str
    start_line: int
    end_line: int
    original: str
    fixed: str
    explanation: str = ""


class FixBundle(BaseModel):
    rule_id: str
    count: int
    severity: Severity
    explain: Explanation
    disable_config: DisableConfigEdit
    fixes: List[LocationFix] = []


class FollowUpAnswer(BaseModel):
    answer: str
    code_suggestion: Optional[str] = None


class ApplyStats(BaseModel):
    success: int = 0
    failed: int = 0
    skipped: int = 0
