"""
Results Writer
==============
Serializes an aggregation snapshot or a finished run to a JSON file.

Formats:
    analysis  — {"summary": {...}, "rules": [...]} exactly as aggregated
    run       — RunReport fields plus the last aggregation snapshot
"""
import json
import logging
import os
from typing import Any, Dict

from lintpilot.models.run_report import RunReport
from lintpilot.models.work_item import AggregationResult

logger = logging.getLogger(__name__)


class ResultsWriter:
    """Writes lintpilot results to disk as indented JSON."""

    @staticmethod
    def _dump(data: Dict[str, Any], output_path: str) -> bool:
        abs_output = os.path.abspath(output_path)
        logger.info("Writing results to %s", abs_output)
        try:
            with open(abs_output, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error("Failed to write %s: %s", abs_output, e)
            return False
        return True

    @staticmethod
    def write_analysis(result: AggregationResult, output_path: str) -> bool:
        """Write one aggregation snapshot."""
        return ResultsWriter._dump(result.model_dump(), output_path)

    @staticmethod
    def write_report(report: RunReport, output_path: str) -> bool:
        """Write a finished run, including its last snapshot."""
        return ResultsWriter._dump(report.model_dump(), output_path)
