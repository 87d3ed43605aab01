"""
Object storage for identity documents, stock photos and purchase bills.

Objects live under STORAGE_ROOT/<bucket>/<path>. Paths always start with the
owner's user id, which the API layer checks before calling in here.
Signed URLs carry a short-lived HS256 token naming bucket, path and expiry;
GET /storage/files serves the object for a valid token.
"""
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional, Tuple
from urllib.parse import urlencode

import jwt

from jewelshop.core.config import settings

logger = logging.getLogger(__name__)

IDENTITY_DOCS_BUCKET = "identity_docs"
STOCK_IMAGES_BUCKET = "stock_item_images"
PURCHASE_INVOICES_BUCKET = "purchase-invoices"
BUCKETS = (IDENTITY_DOCS_BUCKET, STOCK_IMAGES_BUCKET, PURCHASE_INVOICES_BUCKET)

_TOKEN_PURPOSE = "storage"


class StorageError(Exception):
    """Blob store failure. Message is safe to show to the owner."""


class ObjectExistsError(StorageError):
    pass


class LocalBlobStore:
    """Filesystem blob store with token-signed download URLs."""

    def __init__(self, root: str, public_base_url: str, secret: str, algorithm: str = "HS256"):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self._secret = secret
        self._algorithm = algorithm

    def _resolve(self, bucket: str, path: str) -> Path:
        if bucket not in BUCKETS:
            raise StorageError(f"Unknown bucket: {bucket}")
        bucket_root = (self.root / bucket).resolve()
        target = (bucket_root / path).resolve()
        # No escaping the bucket with ../ or absolute paths
        if bucket_root not in target.parents:
            raise StorageError("Invalid storage path")
        return target

    def upload(self, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(bucket, path)
        if target.exists():
            raise ObjectExistsError("The resource already exists")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info(f"Stored {len(content)} bytes at {bucket}/{path} ({content_type or 'unknown type'})")
        return path

    def remove(self, bucket: str, paths: Iterable[str]) -> None:
        for path in paths:
            target = self._resolve(bucket, path)
            if target.exists():
                target.unlink()
                logger.info(f"Removed {bucket}/{path}")

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        self._resolve(bucket, path)
        payload = {
            "purpose": _TOKEN_PURPOSE,
            "bucket": bucket,
            "path": path,
            "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return f"{self.public_base_url}/storage/files?{urlencode({'token': token})}"

    def open_signed(self, token: str) -> Tuple[Path, str]:
        """Return (file path, object path) for a valid token. Raises StorageError otherwise."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm], options={"require": ["exp"]})
        except jwt.ExpiredSignatureError:
            raise StorageError("Signed URL has expired")
        except jwt.InvalidTokenError:
            raise StorageError("Invalid signed URL")
        if payload.get("purpose") != _TOKEN_PURPOSE:
            raise StorageError("Invalid signed URL")
        target = self._resolve(payload.get("bucket", ""), payload.get("path", ""))
        if not target.is_file():
            raise StorageError("Object not found")
        return target, payload["path"]


def is_owned_path(user_id: str, path: Optional[str]) -> bool:
    return bool(path) and path.startswith(f"{user_id}/")


def remove_quietly(store, bucket: str, paths: Iterable[str], user_id: str) -> None:
    """Best-effort cleanup after a failed or deleted record. Never raises.

    Only objects under the owner's folder are removed.
    """
    paths = [p for p in paths if p]
    foreign = [p for p in paths if not is_owned_path(user_id, p)]
    if foreign:
        logger.warning(f"Skipping cleanup of {bucket} objects outside {user_id}/: {foreign}")
        paths = [p for p in paths if p not in foreign]
    if not paths:
        return
    try:
        store.remove(bucket, paths)
    except Exception as e:
        logger.error(f"Error cleaning up {bucket} objects {paths}: {e}")


def get_local_blob_store() -> LocalBlobStore:
    return LocalBlobStore(
        root=settings.STORAGE_ROOT,
        public_base_url=settings.STORAGE_PUBLIC_BASE_URL,
        secret=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
    )
