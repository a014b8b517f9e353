"""
Vendor Scorecard — FastAPI Application Entry Point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scorecard import __version__, config
from scorecard.api.routes import router
from scorecard.core.errors import ScorecardError
from scorecard.session import ScorecardSession

logging.basicConfig(
    level=config.LOG_LEVEL,
    format=config.LOG_FORMAT,
    datefmt=config.LOG_DATEFMT,
)
logger = logging.getLogger(__name__)


# ── Startup / Shutdown lifecycle ──────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    # ON STARTUP: one session per process, held in memory only
    app.state.session = ScorecardSession.from_env()
    logger.info("Scorecard session started (%s variant, %d vendors)",
                config.SCORECARD_VARIANT, len(app.state.session.store))
    yield
    # ON SHUTDOWN
    await app.state.session.aclose()
    logger.info("Scorecard session closed")


app = FastAPI(
    title="Vendor Scorecard API",
    description=(
        "Vendor compliance scorecards: risk scoring, QA approval workflow and "
        "AI-generated risk assessments for subcontractors or vending providers."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ScorecardError)
async def scorecard_error_handler(request: Request, exc: ScorecardError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(router)


@app.get("/", tags=["Root"])
async def root():
    return {
        "service": "Vendor Scorecard API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


# ── Run directly ──────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("scorecard.main:app", host="0.0.0.0", port=8000, reload=True)
