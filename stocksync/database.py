from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from stocksync.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _migrate_add_columns():
    """Add columns that older inventory databases were created without."""
    inspector = inspect(engine)
    tables = inspector.get_table_names()

    if "products" in tables:
        existing = {col["name"] for col in inspector.get_columns("products")}
        new_cols = {
            "location": "TEXT DEFAULT ''",
            "image": "TEXT DEFAULT ''",
        }
        with engine.begin() as conn:
            for col_name, col_type in new_cols.items():
                if col_name not in existing:
                    conn.execute(text(f"ALTER TABLE products ADD COLUMN {col_name} {col_type}"))


def init_db():
    # Import all models so Base.metadata knows about them
    import stocksync.models.inventory_log  # noqa: F401
    import stocksync.models.product  # noqa: F401
    import stocksync.models.user  # noqa: F401

    Base.metadata.create_all(bind=engine)
    _migrate_add_columns()
