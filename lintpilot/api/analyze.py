"""
POST /api/analyze
=================
One ESLint pass over a path, aggregated into rules. The HTTP counterpart
of `lintpilot analyze --non-interactive`.

Errors:
    400 — no lint config found
    502 — ESLint could not be run or its output could not be parsed
"""
import asyncio
import logging
import os
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from lintpilot.agents.orchestrator import scan
from lintpilot.core.errors import ConfigMissing, ScanFailure
from lintpilot.models.work_item import Summary, WorkItem
from lintpilot.parser.aggregator import get_parse_errors
from lintpilot.services.config_finder import find_lint_config
from lintpilot.services.eslint_runner import ESLintRunner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Analysis"])


class AnalyzeRequest(BaseModel):
    path: str
    config: Optional[str] = None


class AnalyzeResponse(BaseModel):
    config_path: str
    summary: Summary
    rules: List[WorkItem]
    parse_errors: List[dict]


def project_root_for(path: str) -> str:
    """A directory target is its own project root; a file's is its parent."""
    abs_path = os.path.abspath(path)
    return abs_path if os.path.isdir(abs_path) else os.path.dirname(abs_path)


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest) -> AnalyzeResponse:
    logger.info("Analyze request for %s", request.path)
    project_root = project_root_for(request.path)

    try:
        config_path = find_lint_config(project_root, request.config)
    except ConfigMissing as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    runner = ESLintRunner(project_root)
    try:
        result = await asyncio.to_thread(scan, runner, os.path.abspath(request.path))
    except ScanFailure as exc:
        logger.error("Analyze failed for %s: %s", request.path, exc)
        raise HTTPException(status_code=502, detail=str(exc))

    return AnalyzeResponse(
        config_path=config_path,
        summary=result.summary,
        rules=result.rules,
        parse_errors=get_parse_errors(result),
    )
