# Session module: queue building, sibling burying and session orchestration.
from .schemas import SessionState, QueueBuckets, DueCounts, SessionStep
from .exceptions import SessionError, ItemNotInSessionError
from .interface import SessionInterface

__all__ = [
    'SessionState', 'QueueBuckets', 'DueCounts', 'SessionStep', 'SessionError',
    'ItemNotInSessionError', 'SessionInterface',
]
