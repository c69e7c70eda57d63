"""Garment CRUD operations shared by the app and the HTTP layer."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from models.errors import ClosetError, NotFound
from models.garment import Garment, from_raw_metadata
from tools.garment_store import GarmentStore
from tools.image_store import ImageStore, decode_base64_image
from tools.observability import instrument_operation

_EDITABLE_FIELDS = {"name", "category", "comfort_temperature"}


class GarmentTools:
    """Thin pass-through from callers to garment and image persistence."""

    def __init__(self, store: GarmentStore, image_store: Optional[ImageStore] = None) -> None:
        self.store = store
        self.image_store = image_store

    @instrument_operation("add_garment")
    def add_garment(self, user_id: str, garment_data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {**garment_data, "user_id": user_id}
        image = payload.pop("image", None)
        # Validate metadata before writing any image bytes.
        garment = from_raw_metadata(payload)
        if image and self.image_store:
            garment.image_ref = self.image_store.save(user_id, decode_base64_image(image))
        try:
            stored = self.store.create_garment(garment)
        except ClosetError:
            if garment.image_ref and self.image_store:
                self.image_store.delete(garment.image_ref)
            raise
        return stored.to_dict()

    @instrument_operation("get_garment")
    def get_garment(self, user_id: str, garment_id: str) -> Dict[str, Any]:
        return self._require(user_id, garment_id).to_dict()

    @instrument_operation("list_garments")
    def list_garments(self, user_id: str, category: Optional[str] = None) -> List[Dict[str, Any]]:
        return [garment.to_dict() for garment in self.store.list_garments_for_user(user_id, category=category)]

    @instrument_operation("update_garment")
    def update_garment(self, user_id: str, garment_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        unknown = sorted(set(fields) - _EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields cannot be edited: {unknown}")
        updated = self.store.update_garment(user_id, garment_id, fields)
        if updated is None:
            raise NotFound(f"Unknown garment {garment_id}", {"garment_id": garment_id})
        return updated.to_dict()

    @instrument_operation("delete_garment")
    def delete_garment(self, user_id: str, garment_id: str) -> Dict[str, Any]:
        deleted = self.store.delete_garment(user_id, garment_id)
        if deleted is None:
            raise NotFound(f"Unknown garment {garment_id}", {"garment_id": garment_id})
        image_deleted = False
        if deleted.image_ref and self.image_store:
            image_deleted = self.image_store.delete(deleted.image_ref)
        return {"garment_id": deleted.garment_id, "deleted": True, "image_deleted": image_deleted}

    def _require(self, user_id: str, garment_id: str) -> Garment:
        garment = self.store.get_garment(user_id, garment_id)
        if garment is None:
            raise NotFound(f"Unknown garment {garment_id}", {"garment_id": garment_id})
        return garment


__all__ = ["GarmentTools"]
