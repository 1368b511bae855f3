"""
Queue Builder - the daily session algorithm.

Turns the items in scope plus EffectiveSettings into the ordered list shown
in a study run: intraday learning first, then new cards, interday learning
and reviews interleaved according to the display-order settings.
"""

import datetime
import logging
import random
from collections import OrderedDict
from typing import Iterable, List

from prepigo_srs.modules.scheduling.config import SchedulingDefaultConfig
from prepigo_srs.modules.scheduling.logics.step_parser import StepParser
from prepigo_srs.modules.scheduling.schemas import CardState, Sm2SubState, StudyItem
from prepigo_srs.modules.settings.schemas import (
    EffectiveSettings, InterleaveOrder, NewCardGatherOrder, NewCardSortOrder, ReviewSortOrder,
)
from prepigo_srs.utils.time_utils import ensure_utc, local_day
from ..schemas import DueCounts, QueueBuckets

logger = logging.getLogger(__name__)

# Items without a due date count as due since the epoch.
_NO_DUE = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def _shuffled(items: List[StudyItem]) -> List[StudyItem]:
    items = list(items)
    random.shuffle(items)
    return items


def _group_by_note(items: List[StudyItem]) -> "OrderedDict[str, List[StudyItem]]":
    groups = OrderedDict()
    for item in items:
        groups.setdefault(item.note_id or item.id, []).append(item)
    return groups


class QueueBuilder:
    """Pure queue construction. All inputs are snapshots; nothing is mutated."""

    # === Classification ===

    @staticmethod
    def is_due(sub, now: datetime.datetime) -> bool:
        return sub.due is None or ensure_utc(sub.due) <= now

    @staticmethod
    def step_delay_minutes(sub, settings: EffectiveSettings) -> float:
        """
        Delay of the step a Learning/Relearning item is waiting on. SM-2 states
        stored before step_minutes existed fall back to the configured step.
        """
        if isinstance(sub, Sm2SubState):
            if sub.step_minutes is not None:
                return sub.step_minutes
            raw = settings.relearning_steps if sub.state == CardState.RELEARNING else settings.learning_steps
            return StepParser.delay_for(StepParser.parse(raw), sub.learning_step)
        return sub.scheduled_days * SchedulingDefaultConfig.MINUTES_PER_DAY

    @staticmethod
    def categorize(
        items: Iterable[StudyItem],
        settings: EffectiveSettings,
        now: datetime.datetime,
        buried_ids: Iterable[str] = (),
        introduced_today_ids: Iterable[str] = ()
    ) -> QueueBuckets:
        """
        Split items into intraday learning, interday learning, due reviews
        and new items. Suspended and buried items are dropped; items already
        introduced today are not offered as new again.
        """
        now = ensure_utc(now)
        buried = set(buried_ids)
        introduced = set(introduced_today_ids)
        buckets = QueueBuckets()

        for item in items:
            if item.srs.is_suspended or item.id in buried:
                continue
            sub = item.srs.active(settings.scheduler)
            if sub is None or sub.state == CardState.NEW:
                if item.id not in introduced:
                    buckets.new.append(item)
                continue
            if not QueueBuilder.is_due(sub, now):
                continue
            if sub.state == CardState.REVIEW:
                buckets.review.append(item)
            elif QueueBuilder.step_delay_minutes(sub, settings) < SchedulingDefaultConfig.MINUTES_PER_DAY:
                buckets.intraday_learning.append(item)
            else:
                buckets.interday_learning.append(item)
        return buckets

    # === New cards ===

    @staticmethod
    def gather_new(items: List[StudyItem], order: NewCardGatherOrder) -> List[StudyItem]:
        if order == NewCardGatherOrder.ASCENDING:
            return sorted(items, key=lambda i: i.srs.new_card_order)
        if order == NewCardGatherOrder.DESCENDING:
            return sorted(items, key=lambda i: i.srs.new_card_order, reverse=True)
        if order == NewCardGatherOrder.RANDOM_CARDS:
            return _shuffled(items)
        if order == NewCardGatherOrder.RANDOM_NOTES:
            groups = list(_group_by_note(items).values())
            random.shuffle(groups)
            return [item for group in groups for item in sorted(group, key=lambda i: i.srs.new_card_order)]
        # Deck order is the order the caller supplied.
        return list(items)

    @staticmethod
    def sort_new(items: List[StudyItem], order: NewCardSortOrder) -> List[StudyItem]:
        if order == NewCardSortOrder.TYPE_THEN_GATHERED:
            return sorted(items, key=lambda i: i.card_type or '')
        if order == NewCardSortOrder.TYPE_THEN_RANDOM:
            return sorted(_shuffled(items), key=lambda i: i.card_type or '')
        if order == NewCardSortOrder.RANDOM_NOTE:
            groups = list(_group_by_note(items).values())
            random.shuffle(groups)
            return [item for group in groups for item in group]
        if order == NewCardSortOrder.RANDOM:
            return _shuffled(items)
        return list(items)

    # === Reviews ===

    @staticmethod
    def _due(item: StudyItem, settings: EffectiveSettings) -> datetime.datetime:
        sub = item.srs.active(settings.scheduler)
        return ensure_utc(sub.due) if sub is not None and sub.due else _NO_DUE

    @staticmethod
    def relative_overdueness(item: StudyItem, settings: EffectiveSettings, now: datetime.datetime) -> float:
        sub = item.srs.active(settings.scheduler)
        interval = sub.interval if isinstance(sub, Sm2SubState) else sub.scheduled_days
        overdue_days = (now - QueueBuilder._due(item, settings)).total_seconds() / 86400.0
        return overdue_days / max(1.0, interval)

    @staticmethod
    def sort_reviews(items: List[StudyItem], settings: EffectiveSettings, now: datetime.datetime) -> List[StudyItem]:
        order = settings.review_sort_order
        if order == ReviewSortOrder.OVERDUE:
            return sorted(items, key=lambda i: QueueBuilder.relative_overdueness(i, settings, now), reverse=True)
        if order == ReviewSortOrder.DUE_DATE_DECK:
            return sorted(items, key=lambda i: local_day(QueueBuilder._due(i, settings)))
        # Due date, random within the same day.
        return sorted(_shuffled(items), key=lambda i: local_day(QueueBuilder._due(i, settings)))

    # === Interleaving ===

    @staticmethod
    def interleave(first: List[StudyItem], reviews: List[StudyItem], order: InterleaveOrder) -> List[StudyItem]:
        """
        Combine a group with the reviews. BEFORE puts the group first, AFTER
        puts it last, MIX shuffles both lists together.
        """
        if order == InterleaveOrder.BEFORE:
            return list(first) + list(reviews)
        if order == InterleaveOrder.AFTER:
            return list(reviews) + list(first)
        return _shuffled(list(first) + list(reviews))

    # === Public API ===

    @staticmethod
    def new_card_budget(settings: EffectiveSettings, introduced_today_ids: Iterable[str] = ()) -> int:
        return max(0, settings.new_cards_per_day - len(set(introduced_today_ids)))

    @staticmethod
    def build(
        items: Iterable[StudyItem],
        settings: EffectiveSettings,
        now: datetime.datetime,
        buried_ids: Iterable[str] = (),
        introduced_today_ids: Iterable[str] = ()
    ) -> List[StudyItem]:
        """
        Build the ordered session queue.

        Args:
            items: All non-deleted items in scope
            settings: Effective settings for the scope
            now: Reference time for due checks
            buried_ids: Item ids already buried in this session
            introduced_today_ids: Items first studied earlier today

        Returns:
            Ordered list of items; empty when nothing is due.
        """
        now = ensure_utc(now)
        introduced_today_ids = set(introduced_today_ids)
        buckets = QueueBuilder.categorize(items, settings, now, buried_ids, introduced_today_ids)

        budget = QueueBuilder.new_card_budget(settings, introduced_today_ids)
        new_cards = QueueBuilder.gather_new(buckets.new, settings.new_card_gather_order)[:budget]
        new_cards = QueueBuilder.sort_new(new_cards, settings.new_card_sort_order)

        reviews = QueueBuilder.sort_reviews(buckets.review, settings, now)[:settings.max_reviews_per_day]

        intraday = sorted(buckets.intraday_learning, key=lambda i: QueueBuilder._due(i, settings))
        interday = sorted(buckets.interday_learning, key=lambda i: QueueBuilder._due(i, settings))

        combined = QueueBuilder.interleave(interday, reviews, settings.interday_learning_review_order)
        combined = QueueBuilder.interleave(new_cards, combined, settings.new_review_order)
        queue = intraday + combined

        logger.debug(
            f"[QUEUE] built {len(queue)} items: learning={len(intraday) + len(interday)} "
            f"review={len(reviews)} new={len(new_cards)}"
        )
        return queue

    @staticmethod
    def due_counts(
        items: Iterable[StudyItem],
        settings: EffectiveSettings,
        now: datetime.datetime,
        introduced_today_ids: Iterable[str] = ()
    ) -> DueCounts:
        """Deck counters (new / learning / review) after daily limits."""
        buckets = QueueBuilder.categorize(items, settings, now, (), introduced_today_ids)
        return DueCounts(
            new=min(len(buckets.new), QueueBuilder.new_card_budget(settings, introduced_today_ids)),
            learning=len(buckets.intraday_learning) + len(buckets.interday_learning),
            review=min(len(buckets.review), settings.max_reviews_per_day),
        )
