import datetime
from typing import Iterable, List

from prepigo_srs.modules.scheduling.schemas import Rating, ReviewLog
from prepigo_srs.utils.time_utils import ensure_utc


def recently_failed_item_ids(logs: Iterable[ReviewLog], now: datetime.datetime, within_days: float = 1) -> List[str]:
    """
    Ids of items rated Again within the last `within_days`, most recent failure first.
    Used to build mistake-review sessions.
    """
    now = ensure_utc(now)
    cutoff = now - datetime.timedelta(days=within_days)
    latest = {}
    for log in logs:
        if log.rating != Rating.AGAIN:
            continue
        ts = ensure_utc(log.review_timestamp)
        if cutoff <= ts <= now and (log.item_id not in latest or ts > latest[log.item_id]):
            latest[log.item_id] = ts
    return sorted(latest, key=lambda item_id: latest[item_id], reverse=True)
