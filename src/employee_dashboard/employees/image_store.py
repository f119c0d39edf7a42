from __future__ import annotations

import os
import uuid
from typing import Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..common.logger import get_logger
from ..core.exceptions import ValidationError

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp"})
MAX_IMAGE_BYTES = 5 * 1024 * 1024
URL_PREFIX = "/api/uploads/"


class LocalImageStore:
    """Profile images on the local filesystem, served back under /api/uploads/."""

    def __init__(self, folder: str):
        self.folder = folder

    def save(self, user_id: int, upload: Optional[FileStorage]) -> str:
        if upload is None or not upload.filename:
            raise ValidationError("No image file provided", details=[{"field": "image", "message": "Required"}])

        filename = secure_filename(upload.filename)
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                "Invalid file type",
                details=[{"field": "image", "message": f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"}],
            )

        data = upload.read()
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError(
                "File too large", details=[{"field": "image", "message": "Maximum size is 5MB"}]
            )

        os.makedirs(self.folder, exist_ok=True)
        stored = f"user_{user_id}_{uuid.uuid4().hex}.{ext}"
        with open(os.path.join(self.folder, stored), "wb") as fh:
            fh.write(data)
        return URL_PREFIX + stored

    def delete(self, url: Optional[str]) -> None:
        if not url or not url.startswith(URL_PREFIX):
            return
        path = os.path.join(self.folder, secure_filename(url[len(URL_PREFIX):]))
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug("image already gone path=%s", path)
