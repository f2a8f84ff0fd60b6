"""Image uploads for item pictures, restricted to the site host secret."""

import hmac
import logging
import os
import re
from uuid import uuid4

from django.core.files.storage import Storage, default_storage
from django.core.files.uploadedfile import UploadedFile

from auctions.domain.errors import AuthorizationError, ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w.\-]+")


def secret_matches(candidate: object, secret: str) -> bool:
    """Exact string comparison against a configured secret."""
    if not secret or candidate is None:
        return False
    return hmac.compare_digest(str(candidate).encode(), secret.encode())


def storage_name(original_name: str | None) -> str:
    safe_base = _UNSAFE_CHARS.sub("_", original_name or "photo")
    extension = os.path.splitext(safe_base)[1] or ".jpg"
    return f"{uuid4().hex}{extension}"


def store_upload(
    upload: UploadedFile | None,
    admin_token: object,
    secret: str,
    storage: Storage = default_storage,
) -> str:
    """Save the upload and return its public URL.

    Raises:
        AuthorizationError: If the admin token does not match. Nothing is stored.
        ValidationError: If no file was sent.
    """
    if not secret_matches(admin_token, secret):
        raise AuthorizationError("Unauthorized")
    if upload is None:
        raise ValidationError("No file")
    saved_name = storage.save(storage_name(upload.name), upload)
    logger.info("Stored upload %s (%d bytes)", saved_name, upload.size or 0)
    return storage.url(saved_name)
