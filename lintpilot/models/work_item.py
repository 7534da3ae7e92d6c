"""
Work Item Models
================
Aggregated, rule-grouped view of one analyzer run.

WorkItem fields:
    rule_id          — rule identifier (None = parse error bucket)
    severity         — severity of the first diagnostic of the rule
    count            — number of occurrences (== len(locations))
    auto_fixable     — True if ANY location carries a machine patch
    fixable_count    — number of locations with has_fix
    locations        — ordered occurrences
    sample_messages  — up to 3 distinct messages
    sample_source    — up to 3 distinct source snippets

Summary fields are all derived from the WorkItem list and are recomputed
on every aggregation pass.
"""
from typing import List, Optional
from pydantic import BaseModel

from .diagnostic import Severity


class Location(BaseModel):
    file: str
    file_full: str
    line: int
    column: int
    has_fix: bool = False


class WorkItem(BaseModel):
    rule_id: Optional[str] = None
    severity: Severity = "warning"
    count: int = 0
    auto_fixable: bool = False
    fixable_count: int = 0
    locations: List[Location] = []
    sample_messages: List[str] = []
    sample_source: List[str] = []

    @property
    def first_file(self) -> Optional[str]:
        return self.locations[0].file_full if self.locations else None


class Summary(BaseModel):
    total_issues: int = 0
    errors: int = 0
    warnings: int = 0
    fixable: int = 0
    unique_rules: int = 0


class AggregationResult(BaseModel):
    summary: Summary = Summary()
    rules: List[WorkItem] = []
