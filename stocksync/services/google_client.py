import logging
import os

from google.oauth2 import service_account
from googleapiclient.discovery import build

from stocksync.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def load_credentials(settings: Settings = default_settings) -> service_account.Credentials | None:
    """Service-account credentials from the key file, else from env vars.

    Returns None when neither is configured or the key cannot be parsed;
    Sheets and Drive features are then disabled.
    """
    try:
        if os.path.exists(settings.GOOGLE_SERVICE_ACCOUNT_FILE):
            return service_account.Credentials.from_service_account_file(
                settings.GOOGLE_SERVICE_ACCOUNT_FILE, scopes=SCOPES
            )
        if settings.GOOGLE_SERVICE_ACCOUNT_EMAIL and settings.GOOGLE_PRIVATE_KEY:
            info = {
                "type": "service_account",
                "client_email": settings.GOOGLE_SERVICE_ACCOUNT_EMAIL,
                "private_key": settings.GOOGLE_PRIVATE_KEY.replace("\\n", "\n"),
                "token_uri": TOKEN_URI,
            }
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    except (ValueError, OSError) as e:
        logger.error("Error setting up Google credentials: %s", e)
        return None

    logger.warning("Google credentials not found. Google Sheets sync will be disabled.")
    return None


def build_sheets(credentials):
    if credentials is None:
        return None
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def build_drive(credentials):
    if credentials is None:
        return None
    return build("drive", "v3", credentials=credentials, cache_discovery=False)
