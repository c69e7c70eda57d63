"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.garment import Garment, from_raw_metadata
from models.outfit import AdjustmentResult, Feedback, GarmentAdjustment, OutfitSession

__all__ = [
    "AdjustmentResult",
    "Feedback",
    "Garment",
    "GarmentAdjustment",
    "OutfitSession",
    "from_raw_metadata",
]
