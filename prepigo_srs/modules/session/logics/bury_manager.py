import logging
from dataclasses import replace
from typing import FrozenSet, Iterable

from prepigo_srs.modules.scheduling.schemas import CardState, RatingOutcome, StudyItem
from prepigo_srs.modules.settings.schemas import EffectiveSettings
from ..schemas import SessionState

logger = logging.getLogger(__name__)


class BuryManager:
    """Session-local sibling burying. Nothing here is persisted."""

    @staticmethod
    def should_bury(item: StudyItem, outcome: RatingOutcome, settings: EffectiveSettings) -> bool:
        """
        Decide whether rating `item` buries its siblings.

        New and Review items follow their flags directly. Learning and
        Relearning items only bury when the next step is a day or more away.
        """
        if not item.note_id:
            return False
        if outcome.prior_state == CardState.NEW:
            return settings.bury_new_siblings
        if outcome.prior_state == CardState.REVIEW:
            return settings.bury_review_siblings
        if outcome.prior_state.is_learning:
            return settings.bury_interday_learning_siblings and outcome.is_interday
        return False

    @staticmethod
    def sibling_ids(item: StudyItem, items: Iterable[StudyItem]) -> FrozenSet[str]:
        """Ids of the other items sharing item.note_id."""
        if not item.note_id:
            return frozenset()
        return frozenset(
            other.id for other in items
            if other.note_id == item.note_id and other.id != item.id
        )

    @staticmethod
    def bury(state: SessionState, item: StudyItem, items: Iterable[StudyItem]) -> SessionState:
        """Add the item's siblings to the buried set; the set only grows."""
        siblings = BuryManager.sibling_ids(item, items)
        if not siblings:
            return state
        logger.debug(f"[BURY] note={item.note_id} buried={sorted(siblings)}")
        return replace(state, buried=state.buried | siblings)
