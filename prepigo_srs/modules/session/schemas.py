# File: prepigo_srs/modules/session/schemas.py
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from prepigo_srs.modules.scheduling.schemas import StudyItem, ReviewLog, RatingOutcome


@dataclass(frozen=True)
class SessionState:
    """
    In-memory state of one study run.

    queue holds item ids in presentation order; cursor points at the next
    position to scan; buried holds item ids skipped for the rest of the run.
    Burying never removes ids from the queue.
    """
    queue: Tuple[str, ...] = ()
    cursor: int = 0
    buried: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'queue': list(self.queue),
            'cursor': self.cursor,
            'buried': sorted(self.buried),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionState':
        return cls(
            queue=tuple(data.get('queue', ())),
            cursor=int(data.get('cursor', 0)),
            buried=frozenset(data.get('buried', ())),
        )


@dataclass
class QueueBuckets:
    """Items split by where they sit in the learning cycle."""
    intraday_learning: List[StudyItem] = field(default_factory=list)
    interday_learning: List[StudyItem] = field(default_factory=list)
    review: List[StudyItem] = field(default_factory=list)
    new: List[StudyItem] = field(default_factory=list)


@dataclass(frozen=True)
class DueCounts:
    new: int = 0
    learning: int = 0
    review: int = 0

    @property
    def total(self) -> int:
        return self.new + self.learning + self.review


@dataclass(frozen=True)
class SessionStep:
    """Result of rating the current item of a session."""
    state: SessionState
    item: StudyItem
    review_log: ReviewLog
    outcome: RatingOutcome
    buried_ids: FrozenSet[str] = frozenset()
    next_item_id: Optional[str] = None
