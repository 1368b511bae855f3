"""Prepigo spaced-repetition scheduling engine."""

__version__ = '1.0.0'

from .core.logging_config import setup_logging, get_logger
from .modules.settings.schemas import EffectiveSettings, FsrsParameters, DeckNode, SchedulerType, ItemKind
from .modules.settings.services.settings_service import SettingsResolver
from .modules.scheduling.schemas import (
    Rating, CardState, ItemStatus, Sm2SubState, FsrsSubState, SrsState, StudyItem, ReviewLog,
    RatingOutcome, ProcessResult,
)
from .modules.scheduling.exceptions import SchedulingError, InvalidRatingError, EngineCalculationError
from .modules.scheduling.logics.step_parser import StepParser
from .modules.scheduling.logics.leech import LeechDetector
from .modules.scheduling.logics.item_status import get_item_status
from .modules.scheduling.engine.sm2_engine import Sm2Engine
from .modules.scheduling.engine.fsrs_engine import FsrsEngine
from .modules.scheduling.engine.processor import RatingProcessor
from .modules.session.schemas import SessionState, DueCounts, SessionStep
from .modules.session.exceptions import SessionError, ItemNotInSessionError
from .modules.session.engine.queue_builder import QueueBuilder
from .modules.session.logics.bury_manager import BuryManager
from .modules.session.logics.filters import recently_failed_item_ids
from .modules.session.services.session_service import StudySessionService
