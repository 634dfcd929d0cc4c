"""Mirror of the inventory database into a Google Sheets spreadsheet.

The database is the source of truth. Every sync clears each tab and rewrites
it from scratch, so concurrent syncs are serialized on one lock and the last
writer wins. Failures are logged and never reach the request that triggered
the sync.
"""

import asyncio
import logging

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from stocksync.database import SessionLocal
from stocksync.models.inventory_log import LogEntry
from stocksync.models.product import Product
from stocksync.services import product_service
from stocksync.services.notify_service import DATA_UPDATED, Broadcaster

logger = logging.getLogger(__name__)

INVENTORY_HEADERS = ["SKU", "NAME", "LOCATION", "QUANTITY", "IMAGE"]
HISTORY_HEADERS = ["TIMESTAMP", "USER", "ACTION", "SKU", "QUANTITY", "BALANCE"]

# Only the newest entries are mirrored
MIRROR_LOG_LIMIT = 1000


def product_row(p: Product) -> list:
    return [p.sku, p.name, p.location or "", p.quantity, p.image or ""]


def log_row(entry: LogEntry) -> list:
    timestamp = entry.timestamp.strftime("%Y-%m-%d %H:%M:%S") if entry.timestamp else ""
    return [timestamp, entry.user, entry.action, entry.sku, entry.quantity, entry.balance]


class SheetsMirror:
    def __init__(
        self,
        sheets=None,
        spreadsheet_id: str = "",
        broadcaster: Broadcaster | None = None,
        session_factory=SessionLocal,
        inventory_tab: str = "TonKho",
        history_tab: str = "LichSu",
    ):
        self.sheets = sheets
        self.spreadsheet_id = spreadsheet_id
        self.broadcaster = broadcaster
        self.session_factory = session_factory
        self.inventory_tab = inventory_tab
        self.history_tab = history_tab
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.sheets is not None and bool(self.spreadsheet_id)

    # --- Reading ---

    def read_range(self, tab: str) -> list[list]:
        """Rows of a tab below its header row; [] when unavailable."""
        if not self.enabled:
            logger.warning("Google Sheets not configured")
            return []
        try:
            response = self.sheets.spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=f"{tab}!A2:Z1000",
            ).execute()
        except Exception as e:
            logger.error("Error reading from Google Sheets (%s): %s", tab, e)
            return []
        return response.get("values", [])

    def import_on_first_run(self, db: Session) -> int:
        """Seed an empty products table from the inventory tab."""
        if product_service.count_products(db) > 0:
            return 0

        rows = self.read_range(self.inventory_tab)
        imported = 0
        for row in rows:
            if not row or not str(row[0]).strip():
                continue
            cells = list(row) + [""] * (5 - len(row))
            product_service.save_product(
                db,
                sku=str(cells[0]).strip(),
                name=cells[1] or "",
                location=cells[2] or "",
                quantity=product_service.coerce_quantity(cells[3]),
                image=cells[4] or "",
            )
            imported += 1

        if imported:
            logger.info("Imported %d products from Google Sheets", imported)
        return imported

    # --- Writing ---

    def _rewrite(self, tab: str, values: list[list]) -> None:
        api = self.sheets.spreadsheets().values()
        api.clear(
            spreadsheetId=self.spreadsheet_id,
            range=f"{tab}!A1:Z1000",
            body={},
        ).execute()
        api.update(
            spreadsheetId=self.spreadsheet_id,
            range=f"{tab}!A1",
            valueInputOption="RAW",
            body={"values": values},
        ).execute()

    async def write_range(self, tab: str, headers: list[str], rows: list[list]) -> bool:
        if not self.enabled:
            logger.warning("Google Sheets not configured, skipping sync")
            return False

        async with self._lock:
            try:
                await run_in_threadpool(self._rewrite, tab, [headers, *rows])
            except Exception as e:
                logger.error("Error writing to Google Sheets (%s): %s", tab, e)
                return False

        logger.info("Synced to Google Sheets: %s (%d rows)", tab, len(rows))
        return True

    def _snapshot(self) -> tuple[list[list], list[list]]:
        db = self.session_factory()
        try:
            products = product_service.list_products(db)
            logs = product_service.list_logs(db, limit=MIRROR_LOG_LIMIT)
            return [product_row(p) for p in products], [log_row(entry) for entry in logs]
        finally:
            db.close()

    async def sync_all(self) -> None:
        """Rewrite both tabs from the database, then tell admin clients to refresh."""
        try:
            product_rows, log_rows = await run_in_threadpool(self._snapshot)
            await self.write_range(self.inventory_tab, INVENTORY_HEADERS, product_rows)
            await self.write_range(self.history_tab, HISTORY_HEADERS, log_rows)

            if self.broadcaster is not None:
                await self.broadcaster.broadcast(DATA_UPDATED)
        except Exception as e:
            logger.error("Error syncing to Google Sheets: %s", e)
