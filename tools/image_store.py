"""Image storage collaborator for garment photos.

The core only keeps an opaque ``image_ref``; this module owns the bytes.
"""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from uuid import uuid4

from models.errors import NotFound, PersistenceFailure


def decode_base64_image(payload: str) -> bytes:
    """Decode raw base64 or a ``data:image/...;base64,`` URI."""

    if not payload or not payload.strip():
        raise ValueError("image payload is empty")
    data = payload.strip()
    if data.startswith("data:"):
        _, _, data = data.partition(",")
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("image payload is not valid base64") from exc


class ImageStore:
    """Interface for the external image store."""

    def save(self, user_id: str, data: bytes) -> str:
        raise NotImplementedError

    def load(self, image_ref: str) -> bytes:
        raise NotImplementedError

    def delete(self, image_ref: str) -> bool:
        raise NotImplementedError


class LocalImageStore(ImageStore):
    """Filesystem-backed image store writing ``<base_dir>/<user>/<uuid>.jpg``."""

    def __init__(self, base_dir: str | Path = "data/images") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, image_ref: str) -> Path:
        root = self.base_dir.resolve()
        path = (root / image_ref).resolve()
        if root not in path.parents:
            raise ValueError(f"image_ref escapes the image directory: {image_ref}")
        return path

    def save(self, user_id: str, data: bytes) -> str:
        safe_user = "".join(ch for ch in user_id if ch.isalnum() or ch in "-_") or "anonymous"
        image_ref = f"{safe_user}/{uuid4().hex}.jpg"
        path = self._path(image_ref)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise PersistenceFailure(f"Failed to store image: {exc}") from exc
        return image_ref

    def load(self, image_ref: str) -> bytes:
        path = self._path(image_ref)
        if not path.exists():
            raise NotFound(f"Unknown image {image_ref}", {"image_ref": image_ref})
        return path.read_bytes()

    def delete(self, image_ref: str) -> bool:
        path = self._path(image_ref)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as exc:
            raise PersistenceFailure(f"Failed to delete image: {exc}") from exc
        return True


__all__ = ["ImageStore", "LocalImageStore", "decode_base64_image"]
