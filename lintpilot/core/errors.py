"""
Error Taxonomy
==============
Only the fatal conditions are exceptions. Oracle failures, validation
rejections and patch mismatches are reported through return values and
never propagate past the orchestrator.
"""


class LintPilotError(RuntimeError):
    """Base class for fatal lintpilot errors."""


class ScanFailure(LintPilotError):
    """Raised when the analyzer cannot be invoked or its output cannot be parsed."""


class ConfigMissing(LintPilotError):
    """Raised when no lint config file can be found."""

