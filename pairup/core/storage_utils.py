# pairup/core/storage_utils.py
import time
import uuid
from dataclasses import dataclass

from pairup.core.supabase_client import supabase_admin


def _bucket(bucket: str):
    return supabase_admin().storage.from_(bucket)


def upload_to_storage(
    bucket: str,
    path: str,
    file_bytes: bytes,
    content_type: str,
    upsert: bool = False,
) -> str:
    """
    Upload raw bytes to Supabase Storage and return the object path.

    With `upsert=False` the upload is rejected if an object already exists
    at `path`; with `upsert=True` it is overwritten.

    Args:
        bucket: Storage bucket name, e.g. "pairings".
        path: Full object path inside the bucket.
              Example: "<user_uuid>/1718000000000.jpg"
        file_bytes: File content in bytes.
        content_type: MIME type stored with the object.
        upsert: Whether to overwrite an existing object.

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    _bucket(bucket).upload(
        path,
        file_bytes,
        {
            "content-type": content_type,
            "cache-control": "3600",
            "upsert": "true" if upsert else "false",
        },
    )
    return path


def get_public_url(bucket: str, path: str) -> str:
    """Resolve the public URL for an object in a public bucket."""
    return _bucket(bucket).get_public_url(path)


def delete_from_storage(bucket: str, path: str) -> None:
    """
    Delete a file from Supabase Storage by its object path.

    Example path (relative to bucket):
        '<user_uuid>/1718000000000.jpg'
    """
    # Supabase Python client expects a list of paths.
    _bucket(bucket).remove([path])


def extract_path_from_public_url(bucket: str, url: str) -> str | None:
    """
    Given a public URL, extract the object path relative to the bucket.

    Example:
        https://<proj>.supabase.co/storage/v1/object/public/avatars/u/1.png
        -> 'u/1.png'
    """
    marker = f"/storage/v1/object/public/{bucket}/"
    idx = url.find(marker)
    if idx == -1:
        return None
    return url[idx + len(marker) :]


def generate_object_path(owner_id: uuid.UUID, ext: str) -> str:
    """
    Build a storage key scoped under the owner.

    Returns:
        A path like "<owner_uuid>/<epoch_ms>.<ext>"
    """
    return f"{owner_id}/{int(time.time() * 1000)}.{ext}"


# --- Image config ---

ALLOWED_IMAGE_CONTENT_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
    "image/heif": "heif",
}


@dataclass
class ImageUpload:
    """An uploaded image, read fully into memory."""

    filename: str | None
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def image_extension(image: ImageUpload) -> str | None:
    """
    Pick the storage extension for an image.

    Known content types map directly; other image/* types fall back to the
    uploaded filename's extension. Returns None for non-images.
    """
    content_type = (image.content_type or "").lower()
    if content_type in ALLOWED_IMAGE_CONTENT_TYPES:
        return ALLOWED_IMAGE_CONTENT_TYPES[content_type]
    if content_type.startswith("image/") and image.filename and "." in image.filename:
        ext = image.filename.rsplit(".", 1)[1].lower()
        if ext.isalnum():
            return ext
    return None
