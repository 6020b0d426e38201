from fastapi import HTTPException, status, UploadFile
from config import UPLOAD_DIR, MAX_UPLOAD_BYTES
from typing import Tuple
import uuid
import os
import logging

logger = logging.getLogger(__name__)

IMAGE_TYPES = ["image/jpeg", "image/png", "image/gif", "image/webp"]
SLIP_TYPES = IMAGE_TYPES + ["application/pdf"]


class UploadHelpers:
    """Local-disk storage for files served under /uploads"""

    def __init__(self, root: str = UPLOAD_DIR):
        self.root = root

    def path_for(self, subdir: str, filename: str) -> str:
        directory = os.path.join(self.root, subdir)
        os.makedirs(directory, exist_ok=True)
        return os.path.join(directory, filename)

    def url_for(self, subdir: str, filename: str) -> str:
        return f"/uploads/{subdir}/{filename}"

    async def save_file(self, file: UploadFile, subdir: str, allowed_types: list = IMAGE_TYPES) -> Tuple[str, str]:
        """
        Validate and store an uploaded file
        Returns (filename, public url)
        """
        try:
            if file.content_type not in allowed_types:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"File type {file.content_type} not allowed"
                )

            file_content = await file.read()
            if len(file_content) > MAX_UPLOAD_BYTES:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"File size must be less than {MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
                )

            file_extension = os.path.splitext(file.filename)[1] if file.filename else ''
            unique_filename = f"{uuid.uuid4()}{file_extension}"

            with open(self.path_for(subdir, unique_filename), "wb") as out:
                out.write(file_content)

            logger.info(f"Stored upload {subdir}/{unique_filename} ({len(file_content)} bytes)")
            return unique_filename, self.url_for(subdir, unique_filename)

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unexpected error storing upload: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to upload file"
            )

    def delete_file(self, url: str) -> bool:
        """Remove a previously stored file given its /uploads URL"""
        if not url or not url.startswith("/uploads/"):
            return False
        path = os.path.join(self.root, url[len("/uploads/"):])
        try:
            os.remove(path)
            return True
        except OSError as e:
            logger.warning(f"Could not delete upload {path}: {e}")
            return False


upload_helpers = UploadHelpers()
