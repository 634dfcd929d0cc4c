import logging

from googleapiclient.http import MediaFileUpload

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPE = "image/jpeg"


class DriveUploader:
    def __init__(self, drive=None, folder_id: str = ""):
        self.drive = drive
        self.folder_id = folder_id

    @property
    def enabled(self) -> bool:
        return self.drive is not None and bool(self.folder_id)

    def _media(self, file_path: str):
        return MediaFileUpload(file_path, mimetype=IMAGE_MIME_TYPE)

    def upload_image(self, file_path: str, file_name: str) -> str | None:
        """Upload an image, make it public and return its direct link.

        Returns None when Drive is not configured or any call fails, so the
        caller can fall back to the locally stored copy.
        """
        if not self.enabled:
            logger.warning("Google Drive not configured (missing credentials or folder id)")
            return None

        try:
            created = self.drive.files().create(
                body={"name": file_name, "parents": [self.folder_id]},
                media_body=self._media(file_path),
                fields="id, webViewLink, webContentLink",
            ).execute()

            self.drive.permissions().create(
                fileId=created["id"],
                body={"role": "reader", "type": "anyone"},
            ).execute()

            file = self.drive.files().get(fileId=created["id"], fields="webContentLink").execute()
        except Exception as e:
            logger.error("Error uploading %s to Google Drive: %s", file_name, e)
            return None

        link = file.get("webContentLink")
        logger.info("Uploaded to Google Drive: %s", link)
        return link
