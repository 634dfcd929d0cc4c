from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from stocksync.api.deps import get_mirror
from stocksync.database import get_db
from stocksync.schemas.auth import LoginRequest, LoginResponse
from stocksync.schemas.product import InventoryUpdate, ProductOut
from stocksync.services import auth_service, product_service
from stocksync.services.product_service import InsufficientStockError
from stocksync.services.sheets_service import SheetsMirror

router = APIRouter(tags=["Mobile"])

# Routes whose errors use the mobile {status, message} body
MOBILE_PATH_PREFIXES = ("/api/", "/get_inventory", "/update_inventory", "/delete_inventory/")


def is_mobile_path(path: str) -> bool:
    return path.startswith(MOBILE_PATH_PREFIXES)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


@router.post("/api/login", response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Credential check only; the mobile app keeps no server session."""
    user = auth_service.authenticate(db, data.username, data.password)
    if not user:
        return error_response(401, "Invalid username or password")
    return LoginResponse(role=user.role)


@router.get("/get_inventory")
def get_inventory(db: Session = Depends(get_db)):
    products = product_service.list_products(db)
    return {
        "status": "success",
        "inventory": [ProductOut.model_validate(p) for p in products],
    }


@router.post("/update_inventory")
def update_inventory(
    data: InventoryUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mirror: SheetsMirror = Depends(get_mirror),
):
    if not data.sku:
        return error_response(400, "Missing SKU.")
    try:
        product = product_service.apply_transaction(
            db,
            data.sku,
            data.quantity,
            data.is_inbound,
            user=data.user,
            name=data.name,
            location=data.location,
        )
    except InsufficientStockError as e:
        return error_response(400, str(e))
    background_tasks.add_task(mirror.sync_all)
    return {"status": "success", "message": "Success.", "quantity": product.quantity}


@router.delete("/delete_inventory/{sku:path}")
def delete_inventory(
    sku: str,
    background_tasks: BackgroundTasks,
    user: str | None = None,
    db: Session = Depends(get_db),
    mirror: SheetsMirror = Depends(get_mirror),
):
    product_service.remove_inventory(db, sku, user=user)
    background_tasks.add_task(mirror.sync_all)
    return {"status": "success", "message": "Deleted."}
