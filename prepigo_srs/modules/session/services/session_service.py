"""
Study Session Service

Orchestrates one study run: builds the queue, tracks the cursor and the
buried set, rates the current item and publishes session signals.
The engines it calls stay pure; this is the only place signals are sent.
"""

import datetime
import logging
from dataclasses import replace
from typing import Dict, Iterable, Mapping, Optional, Union

from prepigo_srs.core.signals import (
    card_rated, leech_detected, siblings_buried, queue_built, session_completed,
)
from prepigo_srs.modules.scheduling.config import SchedulingDefaultConfig
from prepigo_srs.modules.scheduling.engine.processor import RatingProcessor
from prepigo_srs.modules.scheduling.schemas import StudyItem
from prepigo_srs.modules.settings.schemas import EffectiveSettings, ItemKind
from ..engine.queue_builder import QueueBuilder
from ..exceptions import ItemNotInSessionError
from ..logics.bury_manager import BuryManager
from ..schemas import SessionState, SessionStep

logger = logging.getLogger(__name__)

ItemCollection = Union[Mapping[str, StudyItem], Iterable[StudyItem]]


def _index_items(items: ItemCollection) -> Dict[str, StudyItem]:
    if isinstance(items, Mapping):
        return dict(items)
    return {item.id: item for item in items}


class StudySessionService:
    """Service managing the lifecycle of a study session."""

    @staticmethod
    def start(
        items: Iterable[StudyItem],
        settings: EffectiveSettings,
        now: datetime.datetime,
        buried_ids: Iterable[str] = (),
        introduced_today_ids: Iterable[str] = (),
        kind: Optional[ItemKind] = None
    ) -> SessionState:
        """
        Build a fresh session. A new session starts with an empty buried set
        unless the caller passes one explicitly.
        """
        if kind is not None:
            settings = settings.for_item_kind(kind)
        items = list(items)
        buckets = QueueBuilder.categorize(items, settings, now, buried_ids, introduced_today_ids)
        queue = QueueBuilder.build(items, settings, now, buried_ids, introduced_today_ids)
        state = SessionState(queue=tuple(item.id for item in queue), cursor=0, buried=frozenset(buried_ids))

        queued = set(state.queue)
        queue_built.send(
            None,
            queue_size=len(state.queue),
            new_count=sum(1 for item in buckets.new if item.id in queued),
            learning_count=sum(1 for item in buckets.intraday_learning + buckets.interday_learning if item.id in queued),
            review_count=sum(1 for item in buckets.review if item.id in queued),
        )
        logger.info(f"[SESSION] Started session with {len(state.queue)} items")
        return state

    @staticmethod
    def _current_index(state: SessionState) -> Optional[int]:
        for index in range(state.cursor, len(state.queue)):
            if state.queue[index] not in state.buried:
                return index
        return None

    @staticmethod
    def current_item_id(state: SessionState) -> Optional[str]:
        """First unburied item at or after the cursor, or None when done."""
        index = StudySessionService._current_index(state)
        return None if index is None else state.queue[index]

    @staticmethod
    def is_finished(state: SessionState) -> bool:
        return StudySessionService._current_index(state) is None

    @staticmethod
    def remaining(state: SessionState) -> int:
        return sum(1 for item_id in state.queue[state.cursor:] if item_id not in state.buried)

    @staticmethod
    def rate(
        state: SessionState,
        items: ItemCollection,
        item_id: str,
        rating,
        settings: EffectiveSettings,
        now: datetime.datetime,
        duration_ms: int = 0
    ) -> SessionStep:
        """
        Rate the current item of the session.

        Args:
            state: Current session state
            items: Items of the session (list or id -> item mapping)
            item_id: Id of the item being answered; must be the current item
            rating: Again/Hard/Good/Easy
            settings: Effective settings (MCQ overrides are applied per item)
            now: Time of the answer
            duration_ms: Time spent on the answer

        Returns:
            SessionStep with the new state, updated item, review log and outcome.
            The caller persists the item and the log.
        """
        items_by_id = _index_items(items)
        index = StudySessionService._current_index(state)
        if index is None or state.queue[index] != item_id:
            raise ItemNotInSessionError(f"Item {item_id} is not the current item of the session")
        if item_id not in items_by_id:
            raise ItemNotInSessionError(f"Item {item_id} is missing from the session items")

        item = items_by_id[item_id]
        item_settings = settings.for_item_kind(item.kind)

        # 1. Rate
        result = RatingProcessor.process_with_outcome(item, rating, item_settings, now, duration_ms)
        items_by_id[item_id] = result.item

        # 2. Bury siblings
        new_state = state
        buried_ids = frozenset()
        if BuryManager.should_bury(item, result.outcome, item_settings):
            new_state = BuryManager.bury(state, item, items_by_id.values())
            buried_ids = new_state.buried - state.buried

        # 3. Advance; items on a sub-day step come back later in this session
        queue = new_state.queue
        if (result.outcome.resulting_state.is_learning
                and result.outcome.delay_minutes < SchedulingDefaultConfig.MINUTES_PER_DAY
                and not result.item.srs.is_suspended):
            queue = queue + (item_id,)
        new_state = replace(new_state, queue=queue, cursor=index + 1)

        # 4. Signals
        card_rated.send(None, item_id=item_id, rating=result.review_log.rating,
                        review_log=result.review_log, outcome=result.outcome)
        if result.outcome.leech_triggered:
            leech_detected.send(None, item_id=item_id, lapses=result.item.srs.active(item_settings.scheduler).lapses,
                                action=item_settings.leech_action.value)
        if buried_ids:
            siblings_buried.send(None, item_id=item_id, note_id=item.note_id, buried_ids=buried_ids)

        next_item_id = StudySessionService.current_item_id(new_state)
        if next_item_id is None:
            session_completed.send(None, queue_size=len(new_state.queue), buried_count=len(new_state.buried))
            logger.info("[SESSION] Session completed")

        return SessionStep(
            state=new_state,
            item=result.item,
            review_log=result.review_log,
            outcome=result.outcome,
            buried_ids=buried_ids,
            next_item_id=next_item_id,
        )
