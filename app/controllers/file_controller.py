import logging
import mimetypes
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from app.core.config import get_settings
from app.models.enums import DocumentSlot

logger = logging.getLogger("license.files")

ALLOWED_MIME_TYPES = {
    DocumentSlot.IDENTITY_PROOF: {"application/pdf", "image/jpeg", "image/png"},
    DocumentSlot.PHOTOGRAPH: {"image/jpeg", "image/png"},
    DocumentSlot.SIGNATURE: {"image/jpeg", "image/png"},
}

ALLOWED_LABELS = {
    DocumentSlot.IDENTITY_PROOF: "PDF, JPEG, or PNG",
    DocumentSlot.PHOTOGRAPH: "JPEG or PNG",
    DocumentSlot.SIGNATURE: "JPEG or PNG",
}

# multipart part names
FIELD_NAMES = {
    DocumentSlot.IDENTITY_PROOF: "identityProof",
    DocumentSlot.PHOTOGRAPH: "photograph",
    DocumentSlot.SIGNATURE: "signature",
}

_MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}


@dataclass
class IncomingDocument:
    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def mime_type(self) -> str:
        declared = (self.content_type or "").split(";")[0].strip().lower()
        if not declared or declared == "application/octet-stream":
            declared = mimetypes.guess_type(self.filename)[0] or ""
        return _MIME_ALIASES.get(declared, declared)


class StorageError(Exception):
    pass


def validate_documents(files: dict[DocumentSlot, IncomingDocument | None], max_bytes: int) -> list[dict]:
    errors: list[dict] = []
    max_mb = max_bytes / (1024 * 1024)
    for slot in DocumentSlot:
        field = FIELD_NAMES[slot]
        doc = files.get(slot)
        if doc is None or doc.size == 0:
            errors.append({"field": field, "message": f"{field} file is required"})
            continue
        if doc.size > max_bytes:
            errors.append({"field": field, "message": f"{field} file size must not exceed {max_mb:g}MB"})
        if doc.mime_type not in ALLOWED_MIME_TYPES[slot]:
            errors.append({"field": field, "message": f"{field} must be a {ALLOWED_LABELS[slot]} file"})
    return errors


def _safe_name(original_name: str) -> str:
    safe_name = os.path.basename(original_name or "file")
    return re.sub(r"[^A-Za-z0-9._-]", "_", safe_name) or "file"


class LocalFileStage:
    """Blob storage on the local filesystem, addressed by storage key."""

    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def resolve(self, storage_key: str) -> Path:
        path = (self.root / storage_key).resolve()
        if self.root not in path.parents:
            raise StorageError("Storage key escapes the upload root")
        return path

    def store(
        self,
        file_bytes: bytes,
        mime_type: str,
        slot: DocumentSlot,
        submission_id: str,
        original_name: str,
    ) -> dict:
        ts = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S%f")
        storage_key = f"{submission_id}/{slot.value}_{ts}_{_safe_name(original_name)}"
        full_path = self.resolve(storage_key)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(file_bytes)
        except OSError as exc:
            if full_path.exists():
                full_path.unlink()
            raise StorageError(f"Failed to store {slot.value}") from exc

        return {
            "url": f"{self.public_base_url}/files/{storage_key}",
            "storage_key": storage_key,
            "original_name": original_name or "file",
            "size": len(file_bytes),
            "mime_type": mime_type,
            "uploaded_at": datetime.now(timezone.utc),
        }

    def delete(self, storage_key: str) -> bool:
        try:
            path = self.resolve(storage_key)
            path.unlink()
        except FileNotFoundError:
            logger.warning("stored file already missing storage_key=%s", storage_key)
            return False
        except (OSError, StorageError):
            logger.exception("failed to delete stored file storage_key=%s", storage_key)
            return False
        parent = path.parent
        if parent != self.root and not any(parent.iterdir()):
            parent.rmdir()
        return True


def get_file_stage() -> LocalFileStage:
    settings = get_settings()
    return LocalFileStage(settings.upload_dir, settings.public_base_url)
