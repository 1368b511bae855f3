from prepigo_srs.modules.settings.schemas import EffectiveSettings, SchedulerType
from ..schemas import StudyItem, ItemStatus, CardState


def get_item_status(item: StudyItem, settings: EffectiveSettings) -> ItemStatus:
    """
    Display status of an item under the configured scheduler.
    Maturity uses FSRS stability or the SM-2 interval.
    """
    if item.srs.is_suspended:
        return ItemStatus.SUSPENDED

    sub = item.srs.active(settings.scheduler)
    if sub is None or sub.state == CardState.NEW:
        return ItemStatus.NEW
    if sub.state == CardState.LEARNING:
        return ItemStatus.LEARNING
    if sub.state == CardState.RELEARNING:
        return ItemStatus.RELEARNING

    if settings.scheduler == SchedulerType.SM2:
        strength = sub.interval
    else:
        strength = sub.stability
    if strength >= settings.maturity_threshold_days:
        return ItemStatus.MATURE
    return ItemStatus.YOUNG
