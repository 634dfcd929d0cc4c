import logging
import pathlib
import shutil
import time

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from stocksync.api.deps import get_mirror, get_uploader
from stocksync.config import settings
from stocksync.database import get_db
from stocksync.services import auth_service, product_service
from stocksync.services.drive_service import DriveUploader
from stocksync.services.sheets_service import SheetsMirror

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

templates = Jinja2Templates(directory=pathlib.Path(__file__).parent.parent / "templates")

SESSION_COOKIE = "token"
HISTORY_LIMIT = 2000


def current_admin(request: Request) -> dict | None:
    """Session payload from the cookie, or None for anonymous visitors."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    return auth_service.decode_session_token(token)


def _to_dashboard() -> RedirectResponse:
    return RedirectResponse("/admin/dashboard", status_code=303)


def _store_upload(upload: UploadFile, uploader: DriveUploader) -> str:
    """Save an uploaded image locally, then prefer its Drive link when available."""
    upload_dir = pathlib.Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{int(time.time() * 1000)}-{pathlib.Path(upload.filename).name}"
    dest = upload_dir / filename
    with dest.open("wb") as out:
        shutil.copyfileobj(upload.file, out)

    drive_link = uploader.upload_image(str(dest), filename)
    return drive_link or f"/uploads/{filename}"


# --- Session ---

@router.get("")
@router.get("/login")
def login_page(request: Request):
    if current_admin(request):
        return RedirectResponse("/admin/dashboard", status_code=302)
    return templates.TemplateResponse(request, "login.html", {"error": None})


@router.post("/login")
def login(request: Request, username: str = Form(""), password: str = Form(""), db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, username, password)
    if not user:
        return templates.TemplateResponse(request, "login.html", {"error": "Invalid username or password"})
    if user.role != auth_service.ADMIN_ROLE:
        return templates.TemplateResponse(request, "login.html", {"error": "Admin role required"})

    response = _to_dashboard()
    response.set_cookie(
        SESSION_COOKIE,
        auth_service.create_session_token(user.username, user.role),
        httponly=True,
        samesite="lax",
        max_age=3600 * settings.SESSION_MAX_AGE_HOURS,
    )
    logger.info("Admin login: %s", user.username)
    return response


@router.get("/logout")
def logout():
    response = RedirectResponse("/admin", status_code=302)
    response.delete_cookie(SESSION_COOKIE)
    return response


# --- Views ---

@router.get("/dashboard")
def dashboard(request: Request, db: Session = Depends(get_db)):
    return templates.TemplateResponse(request, "dashboard.html", {
        "user": current_admin(request),
        "users": auth_service.list_users(db),
        "products": product_service.list_products(db),
    })


@router.get("/history")
def history(request: Request, db: Session = Depends(get_db)):
    return templates.TemplateResponse(request, "history.html", {
        "user": current_admin(request),
        "logs": product_service.list_logs(db, limit=HISTORY_LIMIT),
    })


@router.get("/download")
def download():
    if settings.GOOGLE_SHEETS_ID:
        return RedirectResponse(
            f"https://docs.google.com/spreadsheets/d/{settings.GOOGLE_SHEETS_ID}/export?format=xlsx",
            status_code=302,
        )
    return PlainTextResponse("Google Sheets is not configured.")


# --- Products ---

@router.post("/products/create")
def create_product(
    background_tasks: BackgroundTasks,
    sku: str = Form(...),
    name: str = Form(""),
    location: str = Form(""),
    quantity: str = Form("0"),
    product_image: UploadFile | None = File(None, alias="productImage"),
    db: Session = Depends(get_db),
    mirror: SheetsMirror = Depends(get_mirror),
    uploader: DriveUploader = Depends(get_uploader),
):
    image = ""
    if product_image is not None and product_image.filename:
        image = _store_upload(product_image, uploader)

    product_service.save_product(
        db, sku.strip(), name, location, product_service.coerce_quantity(quantity), image
    )
    background_tasks.add_task(mirror.sync_all)
    return _to_dashboard()


@router.get("/products/edit/{sku:path}")
def edit_product_page(sku: str, request: Request, db: Session = Depends(get_db)):
    product = product_service.get_product(db, sku)
    if not product:
        return RedirectResponse("/admin/dashboard", status_code=302)
    return templates.TemplateResponse(request, "edit_product.html", {"user": current_admin(request), "product": product})


@router.post("/products/edit/{sku:path}")
def edit_product(
    sku: str,
    background_tasks: BackgroundTasks,
    name: str = Form(""),
    location: str = Form(""),
    quantity: str = Form("0"),
    product_image: UploadFile | None = File(None, alias="productImage"),
    db: Session = Depends(get_db),
    mirror: SheetsMirror = Depends(get_mirror),
    uploader: DriveUploader = Depends(get_uploader),
):
    existing = product_service.get_product(db, sku)
    image = existing.image if existing else ""
    if product_image is not None and product_image.filename:
        image = _store_upload(product_image, uploader)

    product_service.update_product(
        db, sku, name, location, product_service.coerce_quantity(quantity), image or ""
    )
    background_tasks.add_task(mirror.sync_all)
    return _to_dashboard()


@router.get("/products/delete/{sku:path}")
def delete_product(
    sku: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mirror: SheetsMirror = Depends(get_mirror),
):
    product_service.delete_product(db, sku)
    background_tasks.add_task(mirror.sync_all)
    return RedirectResponse("/admin/dashboard", status_code=302)


# --- Users ---

@router.post("/users/create")
def create_user(
    username: str = Form(...),
    password: str = Form(...),
    role: str = Form("staff"),
    db: Session = Depends(get_db),
):
    try:
        auth_service.create_user(db, username.strip(), password, role)
    except ValueError as e:
        logger.warning("User not created: %s", e)
    return _to_dashboard()


@router.get("/users/edit/{username:path}")
def edit_user_page(username: str, request: Request, db: Session = Depends(get_db)):
    target = auth_service.get_user(db, username)
    if not target:
        return RedirectResponse("/admin/dashboard", status_code=302)
    return templates.TemplateResponse(request, "edit_user.html", {"user": current_admin(request), "user_edit": target})


@router.post("/users/edit/{username:path}")
def edit_user(
    username: str,
    role: str = Form("staff"),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    auth_service.update_user(db, username, role, password)
    return _to_dashboard()


@router.get("/users/delete/{username:path}")
def delete_user(username: str, db: Session = Depends(get_db)):
    if username == auth_service.ADMIN_USERNAME:
        logger.warning("Refused to delete the '%s' account", username)
    else:
        auth_service.delete_user(db, username)
    return RedirectResponse("/admin/dashboard", status_code=302)
