# File: prepigo_srs/modules/session/interface.py
import datetime
from typing import Iterable, List, Optional

from prepigo_srs.modules.scheduling.schemas import ReviewLog, StudyItem
from prepigo_srs.modules.settings.schemas import EffectiveSettings
from .engine.queue_builder import QueueBuilder
from .logics.filters import recently_failed_item_ids
from .schemas import DueCounts, SessionState, SessionStep
from .services.session_service import StudySessionService


class SessionInterface:
    """Public API for study sessions."""

    @staticmethod
    def build_queue(items: Iterable[StudyItem], settings: EffectiveSettings, now: datetime.datetime,
                    buried_ids: Iterable[str] = (), introduced_today_ids: Iterable[str] = ()) -> List[StudyItem]:
        return QueueBuilder.build(items, settings, now, buried_ids, introduced_today_ids)

    @staticmethod
    def get_due_counts(items: Iterable[StudyItem], settings: EffectiveSettings, now: datetime.datetime,
                       introduced_today_ids: Iterable[str] = ()) -> DueCounts:
        return QueueBuilder.due_counts(items, settings, now, introduced_today_ids)

    @staticmethod
    def start_session(items: Iterable[StudyItem], settings: EffectiveSettings, now: datetime.datetime,
                      introduced_today_ids: Iterable[str] = (), kind=None) -> SessionState:
        return StudySessionService.start(items, settings, now, introduced_today_ids=introduced_today_ids, kind=kind)

    @staticmethod
    def current_item_id(state: SessionState) -> Optional[str]:
        return StudySessionService.current_item_id(state)

    @staticmethod
    def rate_current(state: SessionState, items, item_id: str, rating, settings: EffectiveSettings,
                     now: datetime.datetime, duration_ms: int = 0) -> SessionStep:
        return StudySessionService.rate(state, items, item_id, rating, settings, now, duration_ms)

    @staticmethod
    def get_recently_failed(logs: Iterable[ReviewLog], now: datetime.datetime, within_days: float = 1) -> List[str]:
        return recently_failed_item_ids(logs, now, within_days)
