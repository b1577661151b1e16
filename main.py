# main.py
import logging
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import routes
from config.cache import close_redis
from config.settings import settings
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from service.allocation_service import AllocationStore
from starlette.middleware.cors import CORSMiddleware
from util.constants import InternalURIs
from util.enums import Color, Environment
from util.errors import AppError, HistoryError, http_status_for
from util.logger import init_logger

logger = logging.getLogger(__name__)


def _frontend_dir() -> Optional[Path]:
    # Support running from the repo root or from one level below it.
    for candidate in (Path(settings.FRONTEND_DIR), Path("..") / settings.FRONTEND_DIR):
        if (candidate / "index.html").is_file():
            return candidate
    return None


class _UnavailableStore:
    """Stands in when the backend could not even be configured."""

    ready = False

    def __init__(self, error: HistoryError) -> None:
        self.last_error = error

    def total_capacity(self) -> int:
        return 0

    def remaining(self) -> int:
        return 0

    def close(self) -> None:
        return None


def _open_store(app: FastAPI) -> None:
    store: Optional[AllocationStore] = getattr(app.state, "allocation_store", None)
    try:
        if store is None:
            store = AllocationStore.from_settings(settings)
            app.state.allocation_store = store
        store.initialize()
    except HistoryError as e:
        # Keep serving: /api/generate reports the reason as a 500.
        print(f"{Color.RED}History store init failed: {e.message}{Color.RESET}")
        if store is None:
            app.state.allocation_store = _UnavailableStore(e)
        return
    print(
        f"{Color.BLUE}History store ready. Total unique: {store.total_capacity()}, "
        f"remaining: {store.remaining()}, backend: {store.backend.describe()}{Color.RESET}"
    )


def create_app(store: Optional[AllocationStore] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(fastApi: FastAPI):
        init_logger()
        print(f"{Color.GREEN}Initializing...{Color.RESET}")
        fastApi.state.allocation_lock = threading.Lock()
        if store is not None:
            fastApi.state.allocation_store = store
        _open_store(fastApi)
        print(f"{Color.BLUE}Server Started{Color.RESET}")

        try:
            yield
        finally:
            try:
                fastApi.state.allocation_store.close()
                close_redis()
            except Exception as e:
                print("Error closing history backend:", e)

            print(f"{Color.RED}Server Shutdown{Color.RESET}")

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ALLOWED_ORIGIN],
        allow_methods=["GET", "HEAD"],
        allow_headers=["Content-Type", "Accept"],
    )

    @app.get(InternalURIs.HEALTH)
    async def healthz():
        return {"ok": True}

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers={"Cache-Control": "no-store"},
        )

    @app.exception_handler(HistoryError)
    async def history_error_handler(request: Request, exc: HistoryError):
        code = http_status_for(exc)
        if code >= 500:
            logger.error("api.history_error kind=%s err=%s", type(exc).__name__, exc.message)
        return JSONResponse(
            status_code=code,
            content={"error": exc.message},
            headers={"Cache-Control": "no-store"},
        )

    routes.register_routes(app)

    frontend = _frontend_dir()
    if frontend is not None:
        app.mount("/", StaticFiles(directory=str(frontend), html=True), name="frontend")

    return app


app: FastAPI = create_app()

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT, reload=reload)
