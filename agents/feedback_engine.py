"""Feedback adaptation: nudge worn garments' comfort temperatures."""

from __future__ import annotations

import logging
from datetime import date, datetime

from closet_app.logging_config import get_logger, log_event, operation_context
from logic.adaptation import adjustment_factor, plan_adjustment, validate_rating
from memory.feedback_log import FeedbackLog
from memory.locks import KeyedLocks
from memory.outfit_sessions import OutfitSessionManager
from models.errors import DuplicateFeedback, NoOutfitForDate, PersistenceFailure
from models.outfit import AdjustmentResult, Feedback
from models.taxonomy import CategoryWeightTable
from tools.garment_store import GarmentStore

LOGGER = get_logger(__name__)


class FeedbackEngine:
    """Applies one feedback rating to every garment of the day's outfit.

    Each garment is read and updated independently: a garment deleted since
    the outfit was registered is skipped, and a storage failure on one garment
    is recorded without stopping the rest. The outfit session itself is never
    changed.
    """

    def __init__(
        self,
        session_manager: OutfitSessionManager,
        garment_store: GarmentStore,
        feedback_log: FeedbackLog,
        weights: CategoryWeightTable | None = None,
        policy: str = "accumulate",
        locks: KeyedLocks | None = None,
    ) -> None:
        if policy not in {"accumulate", "once_per_day"}:
            raise ValueError(f"Unsupported feedback policy '{policy}'")
        self.session_manager = session_manager
        self.garment_store = garment_store
        self.feedback_log = feedback_log
        self.weights = weights or CategoryWeightTable()
        self.policy = policy
        self.locks = locks if locks is not None else KeyedLocks()

    def apply_feedback(self, user_id: str, day: date | datetime | str, rating: int) -> AdjustmentResult:
        with operation_context("agent:feedback.apply_feedback") as correlation_id:
            checked_rating = validate_rating(rating)
            target_day = self.session_manager.calendar_day(day)

            # Serialise submissions for one day so the duplicate check holds.
            with self.locks.hold(("feedback", user_id, target_day)):
                session = self.session_manager.find_session(user_id, target_day)
                if session is None:
                    raise NoOutfitForDate(
                        f"No outfit registered for {target_day.isoformat()}",
                        {"date": target_day.isoformat()},
                    )
                if self.policy == "once_per_day" and self.feedback_log.count_for_day(user_id, target_day):
                    raise DuplicateFeedback(
                        f"Feedback already recorded for {target_day.isoformat()}",
                        {"date": target_day.isoformat()},
                    )

                self.feedback_log.append(Feedback(user_id=user_id, date=target_day, rating=checked_rating))
                result = AdjustmentResult(
                    user_id=user_id,
                    date=target_day,
                    rating=checked_rating,
                    adjustment_factor=adjustment_factor(checked_rating),
                )
                for garment_id in session.garment_ids:
                    self._adjust_one(user_id, garment_id, checked_rating, result)

            log_event(
                LOGGER,
                logging.INFO if result.status == "ok" else logging.WARNING,
                "feedback_applied",
                user_id=user_id,
                date=target_day,
                rating=checked_rating,
                status=result.status,
                updated_count=len(result.updated),
                skipped_count=len(result.skipped),
                failed_count=len(result.failed),
                correlation_id=correlation_id,
            )
            return result

    def _adjust_one(self, user_id: str, garment_id: str, rating: int, result: AdjustmentResult) -> None:
        try:
            garment = self.garment_store.get_garment(user_id, garment_id)
            if garment is None:
                result.skipped.append(garment_id)
                return
            adjustment = plan_adjustment(garment, rating, self.weights)
            if adjustment.delta:
                stored = self.garment_store.adjust_comfort_temperature(user_id, garment_id, adjustment.delta)
                if stored is None:
                    result.skipped.append(garment_id)
                    return
            result.updated.append(garment_id)
            result.adjustments.append(adjustment)
        except PersistenceFailure as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "garment_adjustment_failed",
                garment_id=garment_id,
                error=exc.message,
            )
            result.failed[garment_id] = exc.message


__all__ = ["FeedbackEngine"]
