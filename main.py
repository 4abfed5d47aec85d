import time
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
load_dotenv()  # ★ 라우터/모듈 임포트 전에!

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from maturagrader import __version__
from maturagrader.api.v1.session import router as session_router
from maturagrader.client.bootstrap import build_scorer
from maturagrader.core.config import settings
from maturagrader.core.dependencies import SessionShell
from maturagrader.core.exceptions import GraderException, grader_exception_handler
from maturagrader.services.collaborators import ScoringService

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(scorer: Optional[ScoringService] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        startup_time = time.time()
        logger.info("Starting MaturaGrader...")

        shell = SessionShell(scorer=scorer or build_scorer())
        app.state.shell = shell
        logger.info(f"Grading session ready in {(time.time() - startup_time) * 1000:.1f}ms "
                    f"(scorer: {type(shell.scorer).__name__})")
        try:
            yield
        finally:
            logger.info("Shutting down MaturaGrader...")
            shell.close()
            app.state.shell = None

    app = FastAPI(
        title="MaturaGrader API",
        version=__version__,
        description="Rubric evaluation of written matura essays",
        lifespan=lifespan,
    )

    app.add_exception_handler(GraderException, grader_exception_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = f"global_{int(time.time() * 1000)}"
        logger.error(f"[{request_id}] Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "type": "InternalError",
                "request_id": request_id,
            },
        )

    # CORS (open by default; tighten as needed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(session_router, prefix="/v1", tags=["session"])

    @app.get("/health")
    async def health(request: Request):
        shell = getattr(request.app.state, "shell", None)
        if shell is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        return {
            "status": "healthy",
            "version": __version__,
            "scorer": type(shell.scorer).__name__,
            "session": dict(shell.session.describe()),
            "timestamp": time.time(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
