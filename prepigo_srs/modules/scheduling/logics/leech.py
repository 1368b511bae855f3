import logging
from dataclasses import replace
from typing import Tuple

from prepigo_srs.modules.settings.schemas import EffectiveSettings, LeechAction
from ..config import SchedulingDefaultConfig
from ..schemas import StudyItem

logger = logging.getLogger(__name__)


class LeechDetector:
    """Flags items that keep lapsing."""

    @staticmethod
    def is_leech(lapses: int, is_lapse: bool, settings: EffectiveSettings) -> bool:
        return is_lapse and lapses >= settings.leech_threshold

    @staticmethod
    def apply(item: StudyItem, lapses: int, is_lapse: bool, settings: EffectiveSettings) -> Tuple[StudyItem, bool]:
        """
        Apply the leech action when a lapse brings the item to the threshold.

        Returns:
            (item, triggered). `tag` adds the leech tag once; `suspend` sets
            the suspension flag. Nothing changes when not triggered.
        """
        if not LeechDetector.is_leech(lapses, is_lapse, settings):
            return item, False

        logger.info(f"[LEECH] Item {item.id} reached {lapses} lapses, action={settings.leech_action.value}")
        if settings.leech_action == LeechAction.SUSPEND:
            return replace(item, srs=replace(item.srs, is_suspended=True)), True
        return replace(item, tags=item.tags | {SchedulingDefaultConfig.LEECH_TAG}), True
