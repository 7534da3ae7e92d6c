"""
Finding Aggregator
==================
Groups raw analyzer diagnostics into per-rule work items.

CONTRACT:
    aggregate(diagnostics) -> AggregationResult(summary, rules)
    - One WorkItem per distinct rule_id (None = parse error bucket)
    - Group order follows first occurrence of each rule_id
    - Pure: no I/O, deterministic, always succeeds (empty in -> empty out)

auto_fixable is coarse: a rule is flagged as soon as ONE occurrence carries
a machine patch. Consumers that split work between the analyzer's bulk
auto-fix and the oracle must look at Location.has_fix.
"""
from typing import Dict, List, Optional

from lintpilot.core.constants import MAX_SAMPLE_MESSAGES, MAX_SAMPLE_SOURCES
from lintpilot.models.diagnostic import Diagnostic
from lintpilot.models.work_item import AggregationResult, Location, Summary, WorkItem
from lintpilot.utils.path_utils import short_path


def _distinct(values: List[str]) -> List[str]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(values))


def _build_work_item(rule_id: Optional[str], group: List[Diagnostic]) -> WorkItem:
    locations = [
        Location(
            file=short_path(d.file_path),
            file_full=d.file_path,
            line=d.line,
            column=d.column,
            has_fix=d.has_fix,
        )
        for d in group
    ]
    return WorkItem(
        rule_id=rule_id,
        severity=group[0].severity,
        count=len(group),
        auto_fixable=any(d.has_fix for d in group),
        fixable_count=sum(1 for d in group if d.has_fix),
        locations=locations,
        sample_messages=_distinct([d.message for d in group[:MAX_SAMPLE_MESSAGES]]),
        sample_source=_distinct(
            [d.source for d in group[:MAX_SAMPLE_SOURCES] if d.source]
        ),
    )


def aggregate(diagnostics: List[Diagnostic]) -> AggregationResult:
    """
    Aggregate one analyzer run into a Summary plus ordered WorkItems.

    Parameters
    ----------
    diagnostics : list[Diagnostic]
        Every diagnostic of a single analyzer invocation, in analyzer order.

    Returns
    -------
    AggregationResult
        Summary and rule-grouped work items.
    """
    # dicts keep insertion order, which gives first-occurrence grouping
    groups: Dict[Optional[str], List[Diagnostic]] = {}
    for diag in diagnostics:
        groups.setdefault(diag.rule_id, []).append(diag)

    rules = [_build_work_item(rule_id, group) for rule_id, group in groups.items()]

    summary = Summary(
        total_issues=len(diagnostics),
        errors=sum(1 for d in diagnostics if d.severity == "error"),
        warnings=sum(1 for d in diagnostics if d.severity == "warning"),
        fixable=sum(1 for d in diagnostics if d.has_fix),
        unique_rules=len(rules),
    )
    return AggregationResult(summary=summary, rules=rules)


def has_parse_errors(result: AggregationResult) -> bool:
    """True if the run contains rule-less (syntax/parse) diagnostics."""
    return any(rule.rule_id is None for rule in result.rules)


def get_parse_errors(result: AggregationResult) -> List[dict]:
    """Return ``{file, line, message}`` for each parse error location."""
    bucket = next((rule for rule in result.rules if rule.rule_id is None), None)
    if bucket is None:
        return []

    return [
        {
            "file": loc.file_full,
            "line": loc.line,
            "message": (
                bucket.sample_messages[i]
                if i < len(bucket.sample_messages)
                else "Parsing error"
            ),
        }
        for i, loc in enumerate(bucket.locations)
    ]


def selectable_items(result: AggregationResult) -> List[WorkItem]:
    """
    Work items eligible for AI-assisted remediation.

    Excludes the parse-error bucket and every rule flagged auto_fixable,
    even partially; see module docstring.
    """
    return [
        rule for rule in result.rules
        if rule.rule_id is not None and not rule.auto_fixable
    ]
