"""
Upload storage.  Files land under ``UPLOAD_DIR`` at a date-prefixed,
uuid-named path and are served back from ``PUBLIC_UPLOAD_BASE``.
"""
import logging
import os
import re
import uuid
from datetime import date
from typing import Optional

from fastapi import Depends

from config import Settings, get_settings

logger = logging.getLogger("receiptlens.storage")


def build_storage_path(filename: Optional[str], today: Optional[date] = None) -> str:
    """``uploads/2025-01-15/<uuid>.pdf``, extension kept when the name has one."""
    today = today or date.today()
    base = f"uploads/{today.isoformat()}"
    unique_id = uuid.uuid4()
    safe_name = re.sub(r'\s+', '-', filename).lower() if filename else ""
    if "." in safe_name:
        extension = safe_name.rsplit(".", 1)[1]
        if extension:
            return f"{base}/{unique_id}.{extension}"
    return f"{base}/{unique_id}"


class LocalStorage:
    def __init__(self, upload_dir: str, public_base: str):
        self.upload_dir = upload_dir
        self.public_base = public_base.rstrip("/")

    def save(self, data: bytes, path: str) -> str:
        """Write ``data`` at ``path`` (relative) and return its public URL."""
        # Stored paths start with "uploads/", which the public base already represents
        relative = path.split("/", 1)[1] if path.startswith("uploads/") else path
        full_path = os.path.join(self.upload_dir, relative)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as f:
            f.write(data)
        logger.info("Stored upload %s (%d KB)", path, len(data) // 1024)
        return f"{self.public_base}/{relative}"


def get_storage(settings: Settings = Depends(get_settings)) -> LocalStorage:
    return LocalStorage(settings.upload_dir, settings.public_upload_base)
