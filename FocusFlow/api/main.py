import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from FocusFlow import VERSION
from FocusFlow.api.deps import ensure_ai_client, ensure_store
from FocusFlow.api.endpoints import core_tasks as core_tasks_router
from FocusFlow.api.endpoints import dashboard as dashboard_router
from FocusFlow.api.endpoints import planned_tasks as planned_tasks_router
from FocusFlow.api.endpoints import preferences as preferences_router
from FocusFlow.api.endpoints import task_logs as task_logs_router
from FocusFlow.config import Settings
from FocusFlow.session import NotSignedInError
from FocusFlow.tracker import PlannedTaskNotFoundError, UnknownCoreTaskError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up FocusFlow API...")
    # Both degrade to their "unavailable" variants instead of failing startup.
    ensure_store(app)
    ensure_ai_client(app)
    yield
    logger.info("Shutting down FocusFlow API...")


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_encoder(exc.errors(include_url=False, include_context=False))},
        )

    @app.exception_handler(UnknownCoreTaskError)
    async def unknown_core_task_handler(request: Request, exc: UnknownCoreTaskError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(PlannedTaskNotFoundError)
    async def planned_task_not_found_handler(request: Request, exc: PlannedTaskNotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(NotSignedInError)
    async def not_signed_in_handler(request: Request, exc: NotSignedInError):
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(
        title="FocusFlow API",
        description="Core tasks, planned time blocks, focus logs and AI weekly insights.",
        version=VERSION,
        openapi_url=f"{settings.api_v1_str}/openapi.json",
        docs_url=f"{settings.api_v1_str}/docs",
        redoc_url=f"{settings.api_v1_str}/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = None
    app.state.ai_client = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],  # Frontend dev server
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_exception_handlers(app)

    # --- API Router for v1 ---
    api_v1_router = APIRouter(prefix=settings.api_v1_str)
    api_v1_router.include_router(core_tasks_router.router, prefix="/core-tasks", tags=["Core Tasks"])
    api_v1_router.include_router(planned_tasks_router.router, prefix="/planned-tasks", tags=["Planned Tasks"])
    api_v1_router.include_router(task_logs_router.router, prefix="/task-logs", tags=["Task Logs"])
    api_v1_router.include_router(dashboard_router.router, tags=["Dashboard"])
    api_v1_router.include_router(preferences_router.router, prefix="/preferences", tags=["Preferences"])
    app.include_router(api_v1_router)

    @app.get("/", tags=["Root"])
    async def read_root():
        return {"message": f"Welcome to the FocusFlow API. See {settings.api_v1_str}/docs for documentation."}

    return app


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
    )
    dev_settings = Settings()
    logger.info("Starting Uvicorn server for development...")
    uvicorn.run(create_app(dev_settings), host=dev_settings.api_host, port=dev_settings.api_port, log_level="info")
