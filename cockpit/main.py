import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from cockpit.core.config import settings
from cockpit.core.http_hardening import install_http_hardening
from cockpit.db.session import Database, TransientDatabaseError
from cockpit.api.router import router as api_router
from cockpit.services.media_library import MediaLibraryClient
from cockpit.services.sql_console import SqlServiceClient

_LOG = logging.getLogger("cockpit.db")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One engine (bounded pool) and one client per upstream for the whole process.
    app.state.database = Database.from_settings(settings)
    app.state.media = MediaLibraryClient.from_settings(settings)
    app.state.sql_service = SqlServiceClient.from_settings(settings)
    try:
        yield
    finally:
        app.state.sql_service.close()
        app.state.media.close()
        app.state.database.dispose()


app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)
install_http_hardening(app)

app.include_router(api_router, prefix="/api")


@app.exception_handler(TransientDatabaseError)
async def _transient_database_error(request: Request, exc: TransientDatabaseError):
    _LOG.error("%s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Database unavailable"})


@app.get("/health")
def health():
    return {"status": "ok"}
