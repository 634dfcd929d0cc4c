import threading

import pytest

from stocksync.database import SessionLocal
from stocksync.services import product_service
from stocksync.services.product_service import InsufficientStockError, coerce_quantity


def test_inbound_sequence_sums_deltas(db):
    deltas = [3, 7, 1, 12]
    for d in deltas:
        product_service.apply_transaction(db, "FRESH", d, True)
    assert product_service.get_product(db, "FRESH").quantity == sum(deltas)


def test_stock_scenario_a1(db):
    assert product_service.apply_transaction(db, "A1", 10, True).quantity == 10
    assert product_service.apply_transaction(db, "A1", 5, True).quantity == 15

    with pytest.raises(InsufficientStockError):
        product_service.apply_transaction(db, "A1", 20, False)
    assert product_service.get_product(db, "A1").quantity == 15

    assert product_service.apply_transaction(db, "A1", 15, False).quantity == 0


def test_outbound_on_unknown_sku_fails_without_creating_it(db):
    with pytest.raises(InsufficientStockError):
        product_service.apply_transaction(db, "GHOST", 1, False)
    assert product_service.get_product(db, "GHOST") is None
    assert product_service.list_logs(db) == []


def test_new_product_gets_override_name_or_placeholder(db):
    product_service.apply_transaction(db, "N1", 1, True, name="Blue mug")
    product_service.apply_transaction(db, "N2", 1, True)
    assert product_service.get_product(db, "N1").name == "Blue mug"
    assert product_service.get_product(db, "N2").name == "Product N2"


def test_transaction_keeps_name_and_image_and_overrides_location(db):
    product_service.save_product(db, "B7", "Bolt M6", "Shelf 1", 4, "/uploads/bolt.jpg")

    product_service.apply_transaction(db, "B7", 2, True, name="Ignored", location="Shelf 9")
    product = product_service.get_product(db, "B7")
    assert product.name == "Bolt M6"
    assert product.location == "Shelf 9"
    assert product.image == "/uploads/bolt.jpg"
    assert product.quantity == 6

    product_service.apply_transaction(db, "B7", 1, False)
    product = product_service.get_product(db, "B7")
    assert product.location == "Shelf 9"
    assert product.quantity == 5


def test_transaction_appends_log_entry(db):
    product_service.apply_transaction(db, "L1", 8, True, user="mai")
    product_service.apply_transaction(db, "L1", 3, False)

    logs = product_service.list_logs(db)
    assert [(l.action, l.quantity, l.balance, l.user) for l in logs] == [
        ("outbound", 3, 5, "anonymous"),
        ("inbound", 8, 8, "mai"),
    ]
    assert logs[0].timestamp is not None


def test_save_product_replaces_every_field(db):
    product_service.save_product(db, "U1", "Old", "A", 5, "old.jpg")
    product_service.save_product(db, "U1", "New", "B", 9, "")
    product = product_service.get_product(db, "U1")
    assert (product.name, product.location, product.quantity, product.image) == ("New", "B", 9, "")
    assert len(product_service.list_products(db)) == 1


def test_update_product_ignores_unknown_sku(db):
    assert product_service.update_product(db, "NOPE", "x", "y", 1, "") is None
    assert product_service.get_product(db, "NOPE") is None


def test_delete_keeps_log_entries(db):
    product_service.apply_transaction(db, "D1", 4, True)
    product_service.remove_inventory(db, "D1", user="tuan")

    assert product_service.get_product(db, "D1") is None
    logs = product_service.list_logs_for_sku(db, "D1")
    assert [(l.action, l.quantity, l.balance) for l in logs] == [("delete", 0, 0), ("inbound", 4, 4)]
    assert logs[0].user == "tuan"


@pytest.mark.parametrize(
    "value, expected",
    [
        (5, 5),
        ("12", 12),
        ("7 boxes", 7),
        (" 3", 3),
        (2.9, 2),
        ("abc", 0),
        ("", 0),
        (None, 0),
        (-4, 0),
        ("-4", 0),
        (True, 0),
        (float("nan"), 0),
    ],
)
def test_coerce_quantity(value, expected):
    assert coerce_quantity(value) == expected


def test_concurrent_inbound_may_lose_an_update(monkeypatch):
    """Two +1 transactions that both read before either writes end at 1 or 2."""
    barrier = threading.Barrier(2, timeout=5)
    real_get = product_service.get_product

    def get_then_wait(db, sku):
        product = real_get(db, sku)
        try:
            barrier.wait()
        except threading.BrokenBarrierError:
            pass
        return product

    errors = []
    reads = {"count": 0}
    lock = threading.Lock()

    def patched_get(db, sku):
        # Only the first read of each transaction waits for the other thread
        with lock:
            reads["count"] += 1
            first_reads = reads["count"] <= 2
        return get_then_wait(db, sku) if first_reads else real_get(db, sku)

    monkeypatch.setattr(product_service, "get_product", patched_get)

    def worker():
        session = SessionLocal()
        try:
            product_service.apply_transaction(session, "RACE", 1, True)
        except Exception as e:
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    session = SessionLocal()
    try:
        assert real_get(session, "RACE").quantity in (1, 2)
        assert len(product_service.list_logs_for_sku(session, "RACE")) == 2
    finally:
        session.close()
