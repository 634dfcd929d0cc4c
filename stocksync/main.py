import logging
import pathlib
import socket
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from stocksync.api import admin, mobile, realtime
from stocksync.config import settings
from stocksync.database import SessionLocal, init_db
from stocksync.services.auth_service import decode_session_token, ensure_default_admin
from stocksync.services.drive_service import DriveUploader
from stocksync.services.google_client import build_drive, build_sheets, load_credentials
from stocksync.services.notify_service import Broadcaster
from stocksync.services.sheets_service import SheetsMirror

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Admin pages reachable without a session
PUBLIC_ADMIN_PATHS = {"/admin", "/admin/", "/admin/login"}


def _local_ip() -> str:
    """First non-loopback IPv4 address, for the startup banner."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            # No packets are sent; connect() only selects the outbound interface
            s.connect(("10.255.255.255", 1))
            ip = s.getsockname()[0]
    except OSError:
        return "0.0.0.0"
    return ip if not ip.startswith("127.") else "0.0.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    credentials = load_credentials(settings)
    broadcaster = Broadcaster()
    mirror = SheetsMirror(
        build_sheets(credentials),
        settings.GOOGLE_SHEETS_ID,
        broadcaster=broadcaster,
        inventory_tab=settings.SHEET_INVENTORY_TAB,
        history_tab=settings.SHEET_HISTORY_TAB,
    )
    uploader = DriveUploader(build_drive(credentials), settings.GOOGLE_DRIVE_FOLDER_ID)

    app.state.broadcaster = broadcaster
    app.state.mirror = mirror
    app.state.uploader = uploader

    db = SessionLocal()
    try:
        ensure_default_admin(db)
        mirror.import_on_first_run(db)
    finally:
        db.close()

    logger.info("Server running at: http://%s:%s/admin", _local_ip(), settings.PORT)
    logger.info("Google Sheets ID: %s", settings.GOOGLE_SHEETS_ID or "not configured")
    logger.info("Google Drive folder: %s", settings.GOOGLE_DRIVE_FOLDER_ID or "not configured")
    yield


app = FastAPI(
    title="Stock Sync",
    description="Inventory admin panel and mobile API with a Google Sheets mirror",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Mobile clients get 400 with the mobile error body instead of FastAPI's 422."""
    if not mobile.is_mobile_path(request.url.path):
        return await request_validation_exception_handler(request, exc)
    logger.warning("Rejected body on %s: %s", request.url.path, exc.errors())
    if request.url.path == "/update_inventory":
        return mobile.error_response(400, "Missing SKU.")
    return mobile.error_response(400, "Invalid request body.")


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"status": "error", "message": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return JSON for unhandled exceptions so clients can parse the error."""
    logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
    if mobile.is_mobile_path(request.url.path):
        return mobile.error_response(500, str(exc))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    """Redirect admin pages to the login page when there is no valid session."""
    path = request.url.path

    if not path.startswith("/admin") or path in PUBLIC_ADMIN_PATHS:
        return await call_next(request)

    token = request.cookies.get(admin.SESSION_COOKIE)
    if not token or not decode_session_token(token):
        return RedirectResponse("/admin", status_code=302)

    return await call_next(request)


app.include_router(admin.router)
app.include_router(mobile.router)
app.include_router(realtime.router)


# Local image fallback when Drive upload is unavailable
_upload_dir = pathlib.Path(settings.UPLOAD_DIR)
_upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=_upload_dir), name="uploads")


@app.get("/")
def root():
    return RedirectResponse("/admin", status_code=302)


@app.get("/health")
def health():
    return {"status": "ok"}


def run():
    import uvicorn

    uvicorn.run("stocksync.main:app", host=settings.HOST, port=settings.PORT)
