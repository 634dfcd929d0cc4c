import logging
import math
import re

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from stocksync.models.inventory_log import LogEntry
from stocksync.models.product import Product

logger = logging.getLogger(__name__)

ACTION_INBOUND = "inbound"
ACTION_OUTBOUND = "outbound"
ACTION_DELETE = "delete"

ANONYMOUS_USER = "anonymous"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class InsufficientStockError(ValueError):
    pass


def coerce_quantity(value) -> int:
    """Best-effort integer from untrusted input.

    Uses the leading integer of strings ("12abc" -> 12), truncates floats and
    falls back to 0 for anything else. Negative results are clamped to 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        n = value
    elif isinstance(value, float):
        n = int(value) if math.isfinite(value) else 0
    else:
        match = _LEADING_INT.match(str(value))
        n = int(match.group(1)) if match else 0
    return max(n, 0)


def list_products(db: Session) -> list[Product]:
    return db.query(Product).order_by(Product.sku).all()


def get_product(db: Session, sku: str) -> Product | None:
    return db.query(Product).filter(Product.sku == sku).first()


def count_products(db: Session) -> int:
    return db.query(Product).count()


def _upsert(db: Session, values: dict):
    if db.get_bind().dialect.name == "postgresql":
        stmt = postgresql_insert(Product).values(**values)
    else:
        stmt = sqlite_insert(Product).values(**values)
    updates = {k: v for k, v in values.items() if k != "sku"}
    return stmt.on_conflict_do_update(index_elements=[Product.sku], set_=updates)


def save_product(db: Session, sku: str, name: str, location: str, quantity: int, image: str) -> Product:
    """Insert or fully replace the product row for ``sku``."""
    db.execute(_upsert(db, {
        "sku": sku,
        "name": name,
        "location": location,
        "quantity": quantity,
        "image": image,
    }))
    db.commit()
    return get_product(db, sku)


def update_product(db: Session, sku: str, name: str, location: str, quantity: int, image: str) -> Product | None:
    product = get_product(db, sku)
    if not product:
        return None
    product.name = name
    product.location = location
    product.quantity = quantity
    product.image = image
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, sku: str) -> bool:
    product = get_product(db, sku)
    if not product:
        return False
    db.delete(product)
    db.commit()
    return True


def log_transaction(db: Session, user: str | None, action: str, sku: str, quantity: int, balance: int) -> LogEntry:
    entry = LogEntry(
        user=user or ANONYMOUS_USER,
        action=action,
        sku=sku,
        quantity=quantity,
        balance=balance,
    )
    db.add(entry)
    db.commit()
    return entry


def list_logs(db: Session, limit: int = 2000) -> list[LogEntry]:
    return db.query(LogEntry).order_by(LogEntry.id.desc()).limit(limit).all()


def list_logs_for_sku(db: Session, sku: str) -> list[LogEntry]:
    return db.query(LogEntry).filter(LogEntry.sku == sku).order_by(LogEntry.id.desc()).all()


def apply_transaction(
    db: Session,
    sku: str,
    quantity: int,
    is_inbound: bool,
    user: str | None = None,
    name: str | None = None,
    location: str | None = None,
) -> Product:
    """Apply an inbound/outbound movement and record it in the log.

    Unknown SKUs start at quantity 0. The stored name and image are kept;
    ``name`` only names a new product, ``location`` replaces the stored one
    when given.

    The read and the write are separate statements, so two concurrent
    transactions on the same SKU can lose an update.
    """
    current = get_product(db, sku)
    current_qty = current.quantity if current else 0
    current_name = current.name if current else (name or f"Product {sku}")
    current_location = location if location else (current.location if current else "")
    current_image = current.image if current else ""

    if is_inbound:
        new_qty = current_qty + quantity
    else:
        if current_qty < quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {sku}. Current: {current_qty}, requested: {quantity}"
            )
        new_qty = current_qty - quantity

    product = save_product(db, sku, current_name, current_location or "", new_qty, current_image or "")
    log_transaction(db, user, ACTION_INBOUND if is_inbound else ACTION_OUTBOUND, sku, quantity, new_qty)
    logger.info("%s %s x%d by %s -> %d", "Inbound" if is_inbound else "Outbound", sku, quantity, user or ANONYMOUS_USER, new_qty)
    return product


def remove_inventory(db: Session, sku: str, user: str | None = None) -> None:
    """Delete a product and record the deletion, whether or not it existed."""
    delete_product(db, sku)
    log_transaction(db, user, ACTION_DELETE, sku, 0, 0)
