"""
Diagnostic Model
================
Pydantic model for one raw analyzer finding.
This is the contract between the analyzer layer and the aggregator.

Fields:
    rule_id     — rule identifier; None marks a parse/syntax error
    severity    — "error" or "warning"
    file_path   — absolute path reported by the analyzer
    line        — 1-based line
    column      — 1-based column
    message     — analyzer message text
    has_fix     — True if the analyzer attached a machine-applicable patch
    source      — optional source snippet for the offending line
"""
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict


Severity = Literal["error", "warning"]


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: Optional[str] = None
    severity: Severity = "warning"
    file_path: str
    line: int = 1
    column: int = 1
    message: str = ""
    has_fix: bool = False
    source: Optional[str] = None
