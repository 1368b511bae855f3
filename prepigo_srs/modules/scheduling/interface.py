# File: prepigo_srs/modules/scheduling/interface.py
import datetime
from typing import Dict, List, Optional, Tuple

from prepigo_srs.modules.settings.schemas import EffectiveSettings, SchedulerType
from .engine.fsrs_engine import FsrsEngine
from .engine.processor import RatingProcessor
from .logics.item_status import get_item_status
from .logics.step_parser import StepParser
from .schemas import ItemStatus, ProcessResult, Rating, ReviewLog, StudyItem


class SchedulingInterface:
    """Public API for the scheduling module."""

    @staticmethod
    def process_review(
        item: StudyItem,
        rating,
        settings: EffectiveSettings,
        now: datetime.datetime,
        duration_ms: int = 0
    ) -> Tuple[StudyItem, ReviewLog]:
        """Rate an item and return (updated_item, review_log)."""
        return RatingProcessor.process(item, rating, settings, now, duration_ms)

    @staticmethod
    def process_with_outcome(item: StudyItem, rating, settings: EffectiveSettings,
                             now: datetime.datetime, duration_ms: int = 0) -> ProcessResult:
        return RatingProcessor.process_with_outcome(item, rating, settings, now, duration_ms)

    @staticmethod
    def predict_next_intervals(item: StudyItem, settings: EffectiveSettings,
                               now: Optional[datetime.datetime] = None) -> Dict[Rating, str]:
        """Answer-button labels, e.g. {Rating.GOOD: '10m'}."""
        return {
            rating: RatingProcessor.format_interval(days)
            for rating, days in RatingProcessor.preview(item, settings, now).items()
        }

    @staticmethod
    def get_retrievability(item: StudyItem, settings: EffectiveSettings, now: datetime.datetime) -> Optional[float]:
        """Current recall probability, or None under SM-2."""
        if settings.scheduler == SchedulerType.SM2:
            return None
        return FsrsEngine.from_settings(settings).retrievability(item.srs.active(settings.scheduler), now)

    @staticmethod
    def get_item_status(item: StudyItem, settings: EffectiveSettings) -> ItemStatus:
        return get_item_status(item, settings)

    @staticmethod
    def parse_steps(steps: str) -> List[int]:
        return StepParser.parse(steps)
