"""
Upload storage on local disk.

Images are saved as ``{UPLOAD_DIR}/{folder}/{field}-{timestamp}-{random}{ext}``
and served back under ``/uploads/{folder}/...``.
"""
import logging
import secrets
import time
from pathlib import Path

from starlette.datastructures import UploadFile

from pharmatrust.core.config import settings
from pharmatrust.core.exceptions import BusinessError

logger = logging.getLogger(__name__)

FOLDERS = {
    "profileImage": "profiles",
    "medicineImage": "medicines",
    "prescriptionImage": "prescriptions",
}

CHUNK_SIZE = 64 * 1024

# Stored extension by MIME type; the client filename is never used. No SVG.
IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def folder_for(field_name: str) -> str:
    return FOLDERS.get(field_name, "others")


def save_upload(file: UploadFile, field_name: str) -> str:
    """Validate and persist one image. Returns the public path, e.g. ``uploads/medicines/x.png``."""
    if not file or not file.filename:
        raise BusinessError.bad_request("Invalid file")

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    ext = IMAGE_EXTENSIONS.get(content_type)
    if not ext:
        raise BusinessError.bad_request(
            "Only image files are allowed! Please upload JPG, JPEG, PNG, GIF, or WEBP files."
        )

    folder = folder_for(field_name)
    disk_dir = Path(settings.UPLOAD_DIR).resolve() / folder
    disk_dir.mkdir(parents=True, exist_ok=True)

    fname = f"{field_name}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"
    disk_path = disk_dir / fname

    written = 0
    try:
        with disk_path.open("wb") as out:
            while True:
                chunk = file.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > settings.MAX_UPLOAD_BYTES:
                    break
                out.write(chunk)
    finally:
        file.file.close()

    if written > settings.MAX_UPLOAD_BYTES:
        disk_path.unlink(missing_ok=True)
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise BusinessError.bad_request(f"File too large. Maximum size allowed is {limit_mb}MB.")

    logger.info(f"Stored upload {folder}/{fname} ({written} bytes)")
    return f"{settings.UPLOAD_URL.strip('/')}/{folder}/{fname}"


def delete_upload(public_path: str) -> None:
    """Remove a previously stored file; missing files are ignored."""
    if not public_path:
        return
    prefix = settings.UPLOAD_URL.strip("/") + "/"
    relative = public_path[len(prefix):] if public_path.startswith(prefix) else public_path
    root = Path(settings.UPLOAD_DIR).resolve()
    target = (root / relative).resolve()
    if root not in target.parents:
        logger.warning(f"Refusing to delete path outside upload dir: {public_path}")
        return
    target.unlink(missing_ok=True)
