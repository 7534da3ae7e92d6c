"""
Automated Runs
==============
POST /api/run-agent         — start a fully automated loop in the background
GET  /api/status/{run_id}   — progress counters of a run
GET  /api/results/{run_id}  — final RunReport of a finished run

Runs live in an in-process registry; they do not survive a restart.
Only the newest MAX_FINISHED_RUNS finished runs are kept. Running ones are
never evicted.
"""
import logging
import os
import uuid
from typing import Dict, Optional

from fastapi import APIRouter, BackgroundTasks, HTTPException
from pydantic import BaseModel

from lintpilot.agents.drivers import AutomatedDriver
from lintpilot.agents.orchestrator import Orchestrator, build_orchestrator
from lintpilot.api.analyze import project_root_for
from lintpilot.core.config import LINTPILOT_MODEL, LINTPILOT_PROVIDER, MAX_FINISHED_RUNS
from lintpilot.core.errors import ConfigMissing
from lintpilot.llm.router import is_valid_provider
from lintpilot.models.run_report import RunReport

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Agent"])

_RUNS: Dict[str, RunReport] = {}


class RunRequest(BaseModel):
    path: str
    provider: str = LINTPILOT_PROVIDER
    model: Optional[str] = None
    config: Optional[str] = None


class RunStatusResponse(BaseModel):
    run_id: str
    status: str
    iterations: int
    total_fixed: int
    total_skipped: int


async def _execute(run_id: str, orchestrator: Orchestrator) -> None:
    try:
        await orchestrator.run()
    except Exception as e:
        logger.error("Run %s crashed: %s", run_id, e, exc_info=True)
        orchestrator.report.status = "quit"
        orchestrator.report.message = f"Run crashed: {e}"


def _evict_finished(limit: int) -> None:
    finished = [run_id for run_id, report in _RUNS.items() if report.status != "running"]
    for run_id in finished[: max(len(finished) - limit, 0)]:
        del _RUNS[run_id]
        logger.debug("Evicted finished run %s", run_id)


def _get_run(run_id: str) -> RunReport:
    report = _RUNS.get(run_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Unknown run: {run_id}")
    return report


@router.post("/run-agent")
async def run_agent(request: RunRequest, background_tasks: BackgroundTasks):
    if not is_valid_provider(request.provider):
        raise HTTPException(status_code=400, detail=f"Unknown provider: {request.provider}")

    try:
        orchestrator = build_orchestrator(
            project_root_for(request.path),
            os.path.abspath(request.path),
            request.provider,
            AutomatedDriver(quiet=True),
            model=request.model or LINTPILOT_MODEL or None,
            config=request.config,
        )
    except ConfigMissing as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    _evict_finished(MAX_FINISHED_RUNS)
    run_id = uuid.uuid4().hex[:12]
    _RUNS[run_id] = orchestrator.report
    background_tasks.add_task(_execute, run_id, orchestrator)
    logger.info("Started run %s on %s with %s", run_id, request.path, request.provider)
    return {"run_id": run_id, "status": orchestrator.report.status}


@router.get("/status/{run_id}", response_model=RunStatusResponse)
async def get_status(run_id: str) -> RunStatusResponse:
    report = _get_run(run_id)
    return RunStatusResponse(
        run_id=run_id,
        status=report.status,
        iterations=report.iterations,
        total_fixed=report.total_fixed,
        total_skipped=report.total_skipped,
    )


@router.get("/results/{run_id}", response_model=RunReport)
async def get_results(run_id: str) -> RunReport:
    report = _get_run(run_id)
    if report.status == "running":
        raise HTTPException(status_code=409, detail="Run still in progress")
    return report
