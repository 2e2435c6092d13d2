import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles

from core import db, settings
from core.log import configure_logging
from forms import repository as forms_repository
from forms import router as forms_router
from greeting import router as greeting_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One database handle per process, shared by every request via `db.get_db`.
    app.state.db = await db.open_database(settings.database_url())
    try:
        await forms_repository.create_table(app.state.db)
        logger.info("db_init table=forms")
        yield
    finally:
        await app.state.db.close()
        app.state.db = None


def _static_file(directory: Path, name: str) -> FileResponse:
    path = directory / name
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Not Found")
    return FileResponse(path)


def _api_methods(app: FastAPI, path: str) -> set[str]:
    methods: set[str] = set()
    for route in app.routes:
        if isinstance(route, APIRoute) and route.include_in_schema and route.path_regex.match(path):
            methods |= route.methods
    return methods


def create_app() -> FastAPI:
    settings.load_env_file()
    configure_logging(settings.log_level())

    app = FastAPI(lifespan=lifespan)

    # Allow the frontend dev server to call this API from the browser.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["content-type"],
    )

    @app.exception_handler(db.StoreError)
    async def store_error_handler(_: Request, exc: db.StoreError) -> JSONResponse:
        logger.error("store_failed error=%s", exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Database error."})

    app.include_router(greeting_router.router, tags=["greeting"])
    app.include_router(forms_router.router, tags=["forms"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    static_dir = Path(settings.static_dir())

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon() -> FileResponse:
        return _static_file(static_dir, "favicon.ico")

    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning("static_dir_missing path=%s", static_dir)

    # Must stay last: every other GET path serves the single-page frontend.
    @app.get("/{full_path:path}", include_in_schema=False)
    def index(full_path: str, request: Request) -> FileResponse:
        allowed = _api_methods(request.app, request.url.path)
        if allowed:
            # An API path without a GET handler (e.g. POST-only `/form`).
            raise HTTPException(
                status_code=405,
                detail="Method Not Allowed",
                headers={"Allow": ", ".join(sorted(allowed))},
            )
        return _static_file(static_dir, "index.html")

    return app


app = create_app()


def run() -> None:
    host, port = settings.host(), settings.port()
    logger.info("server_start url=http://%s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level())


if __name__ == "__main__":
    run()
