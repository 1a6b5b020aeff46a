"""Supabase Storage-backed image store."""

from dataclasses import dataclass

import httpx
from supabase import Client

from nutrisnap.errors import StageTimeoutError, StorageError
from nutrisnap.services.ingestion import BlobStore


@dataclass
class SupabaseBlobStore(BlobStore):
    """Stores food images in a Supabase Storage bucket."""

    client: Client
    bucket: str = "food-images"

    def put(self, key: str, image_bytes: bytes, content_type: str) -> str:
        """Upload image bytes to the object path ``key``."""
        try:
            self.client.storage.from_(self.bucket).upload(
                key, image_bytes, {"content-type": content_type, "upsert": "true"}
            )
        except httpx.TimeoutException as exc:
            raise StageTimeoutError(f"Upload of {key} timed out") from exc
        except Exception as exc:
            raise StorageError(f"Failed to upload image {key}: {exc}") from exc
        return key

    def url_of(self, image_ref: str) -> str:
        """Return the public URL of a stored image."""
        return self.client.storage.from_(self.bucket).get_public_url(image_ref)

    def remove(self, image_ref: str) -> None:
        """Delete a stored image."""
        try:
            self.client.storage.from_(self.bucket).remove([image_ref])
        except Exception as exc:
            raise StorageError(f"Failed to remove image {image_ref}: {exc}") from exc
