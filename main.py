import logging
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from lintpilot.api.analyze import router as analyze_router
from lintpilot.api.runs import router as runs_router
from lintpilot.core.config import API_HOST, API_PORT, LOG_TO_FILE
from lintpilot.core.constants import VERSION
from lintpilot.core.errors import LintPilotError
from lintpilot.utils.logging_config import setup_logging

setup_logging(level=logging.INFO, log_to_file=LOG_TO_FILE)
logger = logging.getLogger("main")

app = FastAPI(title="lintpilot API", version=VERSION)


# ---------------------------------------------------------------------------
# Request timing
# ---------------------------------------------------------------------------
class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its duration and echoes it as X-Process-Time-Ms."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        route = f"{request.method} {request.url.path}"
        logger.info("-> %s from %s", route, request.client.host if request.client else "unknown")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("!! %s failed after %.1fms: %s", route, (time.perf_counter() - started) * 1000, e)
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"
        logger.info("<- %s %d (%.1fms)", route, response.status_code, elapsed_ms)
        return response


app.add_middleware(RequestTimingMiddleware)


@app.exception_handler(LintPilotError)
async def lintpilot_error_handler(request: Request, exc: LintPilotError):
    # Routes map the expected failures themselves; anything reaching here is unplanned
    logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc), "error": type(exc).__name__})


@app.get("/health")
async def health_check():
    return {"status": "ok", "version": VERSION}


app.include_router(analyze_router)
app.include_router(runs_router)

if __name__ == "__main__":
    uvicorn.run("main:app", host=API_HOST, port=API_PORT, reload=True)
