# File: prepigo_srs/modules/scheduling/engine/processor.py
from __future__ import annotations
import datetime
import logging
from dataclasses import replace
from typing import Optional, Tuple, Dict

from prepigo_srs.modules.settings.schemas import EffectiveSettings, SchedulerType
from prepigo_srs.utils.time_utils import ensure_utc, utcnow
from ..config import SchedulingDefaultConfig
from ..logics.leech import LeechDetector
from ..schemas import (
    Rating, CardState, StudyItem, ReviewLog, RatingOutcome, ProcessResult,
)
from .fsrs_engine import FsrsEngine
from .sm2_engine import Sm2Engine

logger = logging.getLogger(__name__)


class RatingProcessor:
    """Algorithm-agnostic facade over the SM-2 and FSRS engines."""

    @staticmethod
    def process(
        item: StudyItem,
        rating,
        settings: EffectiveSettings,
        now: datetime.datetime,
        duration_ms: int = 0
    ) -> Tuple[StudyItem, ReviewLog]:
        result = RatingProcessor.process_with_outcome(item, rating, settings, now, duration_ms)
        return result.item, result.review_log

    @staticmethod
    def process_with_outcome(
        item: StudyItem,
        rating,
        settings: EffectiveSettings,
        now: datetime.datetime,
        duration_ms: int = 0
    ) -> ProcessResult:
        """
        Rate an item and return the updated item, its review log and the outcome.

        A missing sub-state for the configured scheduler is treated as a New
        item. Raises InvalidRatingError for anything but Again/Hard/Good/Easy.
        """
        # 1. Validate input
        rating = Rating.coerce(rating)
        now = ensure_utc(now)
        scheduler = settings.scheduler

        # 2. Dispatch to the active algorithm
        sub = item.srs.active(scheduler)
        prior_state = sub.state if sub is not None else CardState.NEW
        if scheduler == SchedulerType.SM2:
            new_sub = Sm2Engine.review(sub, rating, settings, now)
            scheduled_days = new_sub.interval if new_sub.state == CardState.REVIEW else None
        else:
            new_sub = FsrsEngine.from_settings(settings).review(sub, rating, now)
            scheduled_days = new_sub.scheduled_days

        delay_minutes = (new_sub.due - now).total_seconds() / 60.0
        if scheduled_days is None:
            scheduled_days = delay_minutes / SchedulingDefaultConfig.MINUTES_PER_DAY

        updated = replace(item, srs=item.srs.with_sub_state(scheduler, new_sub))

        # 3. Leech detection
        is_lapse = prior_state == CardState.REVIEW and rating == Rating.AGAIN
        updated, leech_triggered = LeechDetector.apply(updated, new_sub.lapses, is_lapse, settings)

        # 4. Review log
        review_log = ReviewLog(
            item_id=item.id,
            rating=rating,
            review_timestamp=now,
            duration_ms=int(duration_ms or 0),
            resulting_state=new_sub.state,
            previous_state=prior_state,
            scheduler=scheduler,
            scheduled_days=float(scheduled_days),
        )
        outcome = RatingOutcome(
            prior_state=prior_state,
            resulting_state=new_sub.state,
            delay_minutes=delay_minutes,
            is_lapse=is_lapse,
            leech_triggered=leech_triggered,
        )

        logger.debug(
            f"[RATING] item={item.id} scheduler={scheduler.value} rating={rating.name} "
            f"{prior_state.name}->{new_sub.state.name} delay={delay_minutes:.1f}m"
        )
        return ProcessResult(item=updated, review_log=review_log, outcome=outcome)

    @staticmethod
    def preview(item: StudyItem, settings: EffectiveSettings, now: Optional[datetime.datetime] = None) -> Dict[Rating, float]:
        """
        Predict the next interval (in days) for each answer button.
        """
        now = ensure_utc(now) if now else utcnow()
        sub = item.srs.active(settings.scheduler)
        if settings.scheduler == SchedulerType.SM2:
            outcomes = {
                rating: Sm2Engine.review(sub, rating, settings, now)
                for rating in (Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.EASY)
            }
        else:
            outcomes = FsrsEngine.from_settings(settings).next_states(sub, now)
        return {
            rating: (state.due - now).total_seconds() / 86400.0
            for rating, state in outcomes.items()
        }

    @staticmethod
    def format_interval(days: float) -> str:
        days = float(days)
        if days < 1.0:
            mins = round(days * SchedulingDefaultConfig.MINUTES_PER_DAY)
            return f"{mins}m"
        if days >= 30.0:
            return f"{round(days / 30.0, 1)}mo"
        return f"{round(days, 1)}d"
