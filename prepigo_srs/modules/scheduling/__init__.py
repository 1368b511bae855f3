# Scheduling module: SM-2 / FSRS engines, rating processor and leech policy.
from .schemas import (
    Rating, CardState, ItemStatus, Sm2SubState, FsrsSubState, SrsState, StudyItem,
    ReviewLog, RatingOutcome, ProcessResult,
)
from .exceptions import SchedulingError, InvalidRatingError, EngineCalculationError
from .interface import SchedulingInterface

__all__ = [
    'Rating', 'CardState', 'ItemStatus', 'Sm2SubState', 'FsrsSubState', 'SrsState',
    'StudyItem', 'ReviewLog', 'RatingOutcome', 'ProcessResult', 'SchedulingError',
    'InvalidRatingError', 'EngineCalculationError', 'SchedulingInterface',
]
