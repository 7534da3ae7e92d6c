"""
Patch Applier
=============
Applies oracle-proposed edits and suppression comments to source files.

Content-Addressed Editing:
    apply_fix locates the edit by the literal ``original`` text, never by
    line number. Line numbers from the analyzer are stale as soon as any
    earlier edit lands in the same file; literal matching either finds the
    exact code the fix was generated against or fails cleanly.

Freshness Rule:
    Every operation reads the file from disk immediately before writing it.
    Nothing is cached between calls, so interleaved edits to one file are
    always applied on top of the latest content.

Failure Semantics:
    All operations return bool. A missing original, an out-of-range line, or
    an I/O error is logged and reported as False; the file is left untouched.
"""
import logging
from typing import Iterable, List

from lintpilot.core.constants import (
    FILE_SUPPRESSION_PREFIX,
    FILE_SUPPRESSION_TEMPLATE,
    LINE_SUPPRESSION_TEMPLATE,
)
from lintpilot.models.fix_bundle import ApplyStats, LocationFix

logger = logging.getLogger(__name__)


def _read(path: str) -> str:
    # newline="" keeps CRLF files byte-identical on rewrite
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def _write(path: str, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)


def _line_ending(content: str) -> str:
    return "\r\n" if "\r\n" in content else "\n"


# ---------------------------------------------------------------------------
# Content-addressed fixes
# ---------------------------------------------------------------------------
def apply_fix(fix: LocationFix) -> bool:
    """
    Replace the first occurrence of ``fix.original`` with ``fix.fixed``.

    Returns False (no write) if the original text is no longer present.
    """
    try:
        content = _read(fix.file)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", fix.file, exc)
        return False

    if not fix.original or fix.original not in content:
        logger.info(
            "Original code not found in %s (lines %d-%d), skipping",
            fix.file, fix.start_line, fix.end_line,
        )
        return False

    try:
        _write(fix.file, content.replace(fix.original, fix.fixed, 1))
    except OSError as exc:
        logger.warning("Cannot write %s: %s", fix.file, exc)
        return False

    logger.debug("Applied fix to %s:%d", fix.file, fix.start_line)
    return True


def apply_fixes(fixes: Iterable[LocationFix]) -> ApplyStats:
    """Apply fixes in order; incomplete fixes are counted as skipped."""
    stats = ApplyStats()
    for fix in fixes:
        if not fix.original or not fix.fixed:
            stats.skipped += 1
            continue
        if apply_fix(fix):
            stats.success += 1
        else:
            stats.failed += 1
    return stats


# ---------------------------------------------------------------------------
# Suppression comments
# ---------------------------------------------------------------------------
def apply_suppression_at_line(file_path: str, line: int, rule_id: str) -> bool:
    """
    Insert a next-line suppression comment above the 1-based ``line``.

    The comment reuses the target line's leading whitespace.
    """
    try:
        content = _read(file_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", file_path, exc)
        return False

    newline = _line_ending(content)
    lines: List[str] = content.split(newline)
    if line < 1 or line > len(lines):
        logger.info("Line %d out of range for %s (%d lines)", line, file_path, len(lines))
        return False

    target = lines[line - 1]
    indent = target[: len(target) - len(target.lstrip(" \t"))]
    lines.insert(line - 1, LINE_SUPPRESSION_TEMPLATE.format(indent=indent, rule_id=rule_id))

    try:
        _write(file_path, newline.join(lines))
    except OSError as exc:
        logger.warning("Cannot write %s: %s", file_path, exc)
        return False
    return True


def apply_suppression_at_file(file_path: str, rule_id: str) -> bool:
    """
    Add a file-level suppression header, or extend the existing one.

    Only a header at the very top of the file is extended.
    """
    try:
        content = _read(file_path)
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read %s: %s", file_path, exc)
        return False

    if content.startswith(FILE_SUPPRESSION_PREFIX):
        new_content = content.replace(
            FILE_SUPPRESSION_PREFIX, f"{FILE_SUPPRESSION_PREFIX} {rule_id},", 1
        )
    else:
        header = FILE_SUPPRESSION_TEMPLATE.format(rule_id=rule_id)
        new_content = header.replace("\n", _line_ending(content)) + content

    try:
        _write(file_path, new_content)
    except OSError as exc:
        logger.warning("Cannot write %s: %s", file_path, exc)
        return False
    return True


# ---------------------------------------------------------------------------
# Config edit
# ---------------------------------------------------------------------------
def write_config(config_path: str, modified_config: str) -> bool:
    """Overwrite the lint config with the oracle's replacement text."""
    if not modified_config:
        return False
    try:
        _write(config_path, modified_config)
    except OSError as exc:
        logger.warning("Cannot write config %s: %s", config_path, exc)
        return False
    return True
