"""Recommends garments for a target temperature, grouped by category."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from agents.weather_agent import WeatherAgent
from closet_app.config import DEFAULT_TOLERANCE_DEGREES
from closet_app.logging_config import get_logger, log_event, operation_context
from logic.suitability import CategoryGroup, build_selection, group_by_category
from models.garment import round_half_away_from_zero
from tools.garment_store import GarmentStore

LOGGER = get_logger(__name__)


def _serialise_groups(groups: List[CategoryGroup]) -> List[Dict[str, Any]]:
    return [
        {
            "category": group.category,
            "label": group.label,
            "garments": [garment.to_dict() for garment in group.garments],
        }
        for group in groups
    ]


class OutfitRecommender:
    """Narrows a wardrobe to the garments suited to today's temperature."""

    def __init__(
        self,
        garment_store: GarmentStore,
        weather_agent: Optional[WeatherAgent] = None,
        tolerance_degrees: int = DEFAULT_TOLERANCE_DEGREES,
    ) -> None:
        self.garment_store = garment_store
        self.weather_agent = weather_agent
        self.tolerance_degrees = tolerance_degrees

    def resolve_target(
        self,
        target_temperature: Optional[float] = None,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
    ) -> tuple[Optional[int], str]:
        """Manual input wins over a weather lookup; returns (target, source)."""

        if target_temperature is not None:
            return round_half_away_from_zero(target_temperature), "manual"
        if lat is not None and lon is not None and self.weather_agent is not None:
            return self.weather_agent.target_temperature(lat, lon), "weather"
        return None, "none"

    def recommend(
        self,
        user_id: str,
        target_temperature: Optional[float] = None,
        lat: Optional[float] = None,
        lon: Optional[float] = None,
        tolerance: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Return candidates grouped by category.

        Without a usable target the whole wardrobe is returned grouped and
        unfiltered, with ``status`` set to ``"no_target"``.
        """

        with operation_context("agent:recommender.recommend") as correlation_id:
            window = self.tolerance_degrees if tolerance is None else tolerance
            if window < 0:
                raise ValueError("tolerance must be a non-negative number")
            target, source = self.resolve_target(target_temperature, lat, lon)

            if target is None:
                garments = self.garment_store.list_garments_for_user(user_id)
                log_event(
                    LOGGER,
                    logging.INFO,
                    "recommendation_without_target",
                    user_id=user_id,
                    source=source,
                    garment_count=len(garments),
                    correlation_id=correlation_id,
                )
                return {
                    "status": "no_target",
                    "target_temperature": None,
                    "tolerance": window,
                    "source": source,
                    "groups": _serialise_groups(group_by_category(garments)),
                }

            pool = self.garment_store.list_in_temperature_range(user_id, target - window, target + window)
            selection = build_selection(pool, target, window)
            log_event(
                LOGGER,
                logging.INFO,
                "recommendation_built",
                user_id=user_id,
                source=source,
                target_temperature=target,
                debug=selection.debug,
                correlation_id=correlation_id,
            )
            return {
                "status": "ok",
                "target_temperature": target,
                "tolerance": window,
                "source": source,
                "groups": _serialise_groups(selection.groups),
                "candidate_ids": [garment.garment_id for garment in selection.candidates],
            }


__all__ = ["OutfitRecommender"]
