from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Stock Sync"
    DATABASE_URL: str = "sqlite:///./inventory.db"
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Local fallback for product images when Drive upload is unavailable
    UPLOAD_DIR: str = "./uploads"

    # Admin session cookie
    SESSION_SECRET: str = "kho-dev-session-secret"
    SESSION_MAX_AGE_HOURS: int = 24

    # Seeded on first startup
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    # Google service account: key file first, then embedded credentials
    GOOGLE_SERVICE_ACCOUNT_FILE: str = "service-account.json"
    GOOGLE_SERVICE_ACCOUNT_EMAIL: str = ""
    GOOGLE_PRIVATE_KEY: str = ""

    GOOGLE_SHEETS_ID: str = ""
    GOOGLE_DRIVE_FOLDER_ID: str = ""

    # Spreadsheet tabs mirrored from the database
    SHEET_INVENTORY_TAB: str = "TonKho"
    SHEET_HISTORY_TAB: str = "LichSu"

    model_config = {"env_file": ".env"}


settings = Settings()
