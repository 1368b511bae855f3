# File: prepigo_srs/modules/scheduling/schemas.py
import datetime
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Optional, Dict, Any, FrozenSet

from prepigo_srs.modules.settings.schemas import SchedulerType, ItemKind
from prepigo_srs.utils.time_utils import parse_datetime, format_datetime
from .exceptions import InvalidRatingError


class Rating(IntEnum):
    """
    Answer buttons. The numbers double as the keyboard shortcuts 1-4.
    MANUAL is only an internal SM-2 quality marker and never a valid answer.
    """
    MANUAL = 0
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4

    @classmethod
    def coerce(cls, value) -> 'Rating':
        """Validate a user-facing rating; raises InvalidRatingError otherwise."""
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise InvalidRatingError(f"Invalid rating: {value!r}")
        try:
            rating = cls(int(value))
        except (TypeError, ValueError):
            raise InvalidRatingError(f"Invalid rating: {value!r}") from None
        if rating == cls.MANUAL:
            raise InvalidRatingError("Rating MANUAL (0) cannot be used to answer an item")
        return rating

    @classmethod
    def from_key(cls, key: str) -> 'Rating':
        if str(key).strip() not in ('1', '2', '3', '4'):
            raise InvalidRatingError(f"Unknown rating key: {key!r}")
        return cls(int(key))


# FSRS Math State Constants
class CardState(IntEnum):
    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3

    @property
    def is_learning(self) -> bool:
        return self in (CardState.LEARNING, CardState.RELEARNING)

    @classmethod
    def parse(cls, value) -> 'CardState':
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and not value.isdigit():
            return cls[value.strip().upper()]
        return cls(int(value))


class ItemStatus(str, Enum):
    """Presentation-only classification; not part of the state machine."""
    NEW = 'New'
    LEARNING = 'Learning'
    RELEARNING = 'Relearning'
    YOUNG = 'Young'
    MATURE = 'Mature'
    SUSPENDED = 'Suspended'


@dataclass(frozen=True)
class Sm2SubState:
    state: CardState = CardState.NEW
    due: Optional[datetime.datetime] = None
    repetitions: int = 0
    lapses: int = 0
    easiness_factor: float = 2.5
    interval: float = 0.0       # days
    learning_step: Optional[int] = None
    step_minutes: Optional[float] = None  # delay scheduled for the current step

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.name.lower(),
            'due': format_datetime(self.due),
            'repetitions': self.repetitions,
            'lapses': self.lapses,
            'easiness_factor': self.easiness_factor,
            'interval': self.interval,
            'learning_step': self.learning_step,
            'step_minutes': self.step_minutes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sm2SubState':
        step = data.get('learning_step')
        step_minutes = data.get('step_minutes')
        return cls(
            state=CardState.parse(data.get('state') or CardState.NEW),
            due=parse_datetime(data.get('due')),
            repetitions=int(data.get('repetitions', 0)),
            lapses=int(data.get('lapses', 0)),
            easiness_factor=float(data.get('easiness_factor', 2.5)),
            interval=float(data.get('interval', 0.0)),
            learning_step=None if step is None else int(step),
            step_minutes=None if step_minutes is None else float(step_minutes),
        )


@dataclass(frozen=True)
class FsrsSubState:
    """Memory state of one item under FSRS (4.5/5 or 6)."""
    state: CardState = CardState.NEW
    due: Optional[datetime.datetime] = None
    stability: float = 0.0      # FSRS S (days)
    difficulty: float = 0.0     # FSRS D (1-10)
    elapsed_days: float = 0.0
    scheduled_days: float = 0.0 # Interval in days
    reps: int = 0
    lapses: int = 0
    last_review: Optional[datetime.datetime] = None
    learning_step: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.name.lower(),
            'due': format_datetime(self.due),
            'stability': self.stability,
            'difficulty': self.difficulty,
            'elapsed_days': self.elapsed_days,
            'scheduled_days': self.scheduled_days,
            'reps': self.reps,
            'lapses': self.lapses,
            'last_review': format_datetime(self.last_review),
            'learning_step': self.learning_step,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FsrsSubState':
        step = data.get('learning_step')
        return cls(
            state=CardState.parse(data.get('state') or CardState.NEW),
            due=parse_datetime(data.get('due')),
            stability=float(data.get('stability', 0.0)),
            difficulty=float(data.get('difficulty', 0.0)),
            elapsed_days=float(data.get('elapsed_days', 0.0)),
            scheduled_days=float(data.get('scheduled_days', 0.0)),
            reps=int(data.get('reps', 0)),
            lapses=int(data.get('lapses', 0)),
            last_review=parse_datetime(data.get('last_review')),
            learning_step=None if step is None else int(step),
        )


_SUB_STATE_TYPES = {
    SchedulerType.SM2: Sm2SubState,
    SchedulerType.FSRS: FsrsSubState,
    SchedulerType.FSRS6: FsrsSubState,
}


@dataclass(frozen=True)
class SrsState:
    """
    Scheduling metadata of an item: one slot per algorithm family.

    Only the slot matching the configured scheduler is authoritative. The
    others are kept so switching back restores their history. last_scheduler
    tags the slot written most recently (None = never rated).
    """
    sm2: Optional[Sm2SubState] = None
    fsrs: Optional[FsrsSubState] = None
    fsrs6: Optional[FsrsSubState] = None
    is_suspended: bool = False
    new_card_order: int = 0
    last_scheduler: Optional[SchedulerType] = None

    def active(self, scheduler):
        """Sub-state for the scheduler, or None (treated as New by the engines)."""
        return getattr(self, SchedulerType(scheduler).value)

    def with_sub_state(self, scheduler, sub_state) -> 'SrsState':
        scheduler = SchedulerType(scheduler)
        expected = _SUB_STATE_TYPES[scheduler]
        if not isinstance(sub_state, expected):
            raise TypeError(f"{scheduler.value} expects {expected.__name__}, got {type(sub_state).__name__}")
        return replace(self, **{scheduler.value: sub_state}, last_scheduler=scheduler)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sm2': self.sm2.to_dict() if self.sm2 else None,
            'fsrs': self.fsrs.to_dict() if self.fsrs else None,
            'fsrs6': self.fsrs6.to_dict() if self.fsrs6 else None,
            'is_suspended': self.is_suspended,
            'new_card_order': self.new_card_order,
            'last_scheduler': self.last_scheduler.value if self.last_scheduler else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SrsState':
        if not data:
            return cls()
        last = data.get('last_scheduler')
        return cls(
            sm2=Sm2SubState.from_dict(data['sm2']) if data.get('sm2') else None,
            fsrs=FsrsSubState.from_dict(data['fsrs']) if data.get('fsrs') else None,
            fsrs6=FsrsSubState.from_dict(data['fsrs6']) if data.get('fsrs6') else None,
            is_suspended=bool(data.get('is_suspended', False)),
            new_card_order=int(data.get('new_card_order', 0)),
            last_scheduler=SchedulerType(last) if last else None,
        )


@dataclass(frozen=True)
class StudyItem:
    """A flashcard or MCQ. content is opaque to the engine."""
    id: str
    note_id: Optional[str] = None
    tags: FrozenSet[str] = frozenset()
    srs: SrsState = field(default_factory=SrsState)
    kind: ItemKind = ItemKind.FLASHCARD
    card_type: Optional[str] = None
    content: Any = field(default=None, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'note_id': self.note_id,
            'tags': sorted(self.tags),
            'srs': self.srs.to_dict(),
            'kind': self.kind.value,
            'card_type': self.card_type,
            'content': self.content,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StudyItem':
        return cls(
            id=str(data['id']),
            note_id=data.get('note_id'),
            tags=frozenset(data.get('tags') or ()),
            srs=SrsState.from_dict(data.get('srs')),
            kind=ItemKind(data.get('kind') or ItemKind.FLASHCARD),
            card_type=data.get('card_type'),
            content=data.get('content'),
        )


@dataclass(frozen=True)
class ReviewLog:
    """Append-only record of one rating event."""
    item_id: str
    rating: Rating
    review_timestamp: datetime.datetime
    duration_ms: int
    resulting_state: CardState
    previous_state: CardState = CardState.NEW
    scheduler: SchedulerType = SchedulerType.FSRS
    scheduled_days: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'item_id': self.item_id,
            'rating': int(self.rating),
            'review_timestamp': format_datetime(self.review_timestamp),
            'duration_ms': self.duration_ms,
            'resulting_state': self.resulting_state.name.lower(),
            'previous_state': self.previous_state.name.lower(),
            'scheduler': self.scheduler.value,
            'scheduled_days': self.scheduled_days,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReviewLog':
        return cls(
            item_id=str(data['item_id']),
            rating=Rating(int(data['rating'])),
            review_timestamp=parse_datetime(data['review_timestamp']),
            duration_ms=int(data.get('duration_ms', 0)),
            resulting_state=CardState.parse(data['resulting_state']),
            previous_state=CardState.parse(data.get('previous_state', CardState.NEW)),
            scheduler=SchedulerType(data.get('scheduler', SchedulerType.FSRS.value)),
            scheduled_days=float(data.get('scheduled_days', 0.0)),
        )


@dataclass(frozen=True)
class RatingOutcome:
    """What a rating did to an item; consumed by the bury policy."""
    prior_state: CardState
    resulting_state: CardState
    delay_minutes: float
    is_lapse: bool = False
    leech_triggered: bool = False

    @property
    def is_interday(self) -> bool:
        return self.delay_minutes >= 1440


@dataclass(frozen=True)
class ProcessResult:
    item: StudyItem
    review_log: ReviewLog
    outcome: RatingOutcome
