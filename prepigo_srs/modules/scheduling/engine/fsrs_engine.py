from __future__ import annotations
import datetime
import logging
import random
from dataclasses import replace
from typing import Optional, Dict, List, Sequence, Union

from fsrs_rs_python import FSRS, MemoryState, DEFAULT_PARAMETERS

from prepigo_srs.core.defaults import FSRS_DEFAULT_WEIGHTS, FSRS6_DEFAULT_WEIGHTS
from prepigo_srs.modules.settings.schemas import EffectiveSettings, FsrsParameters, SchedulerType
from prepigo_srs.utils.time_utils import ensure_utc
from ..config import SchedulingDefaultConfig
from ..exceptions import EngineCalculationError
from ..logics.step_parser import StepParser
from ..schemas import Rating, CardState, FsrsSubState

logger = logging.getLogger(__name__)

_VALID_LENGTHS = {
    SchedulerType.FSRS: (17, 19),
    SchedulerType.FSRS6: (21,),
}


class FsrsEngine:
    """
    FSRS engine (4.5/5 and 6 parameter sets) using fsrs-rs-python.
    Pure Logic Layer: the library owns the memory math, this class owns the
    settings mapping, learning steps and the choice of rating branch.
    """

    def __init__(
        self,
        parameters: Optional[FsrsParameters] = None,
        version: Union[SchedulerType, str] = SchedulerType.FSRS,
        learning_steps: Union[str, Sequence[int], None] = '',
        relearning_steps: Union[str, Sequence[int], None] = '',
    ):
        self.version = SchedulerType(version)
        if self.version == SchedulerType.SM2:
            raise ValueError("FsrsEngine cannot run the sm2 scheduler")
        self.parameters = parameters or FsrsParameters(w=tuple(self._default_weights(self.version)))
        self.weights = self._validated_weights(self.parameters.w, self.version)
        self.learning_steps = StepParser.parse(learning_steps)
        self.relearning_steps = StepParser.parse(relearning_steps)
        self.fsrs = self._build_model(self.weights)

    @classmethod
    def from_settings(cls, settings: EffectiveSettings) -> 'FsrsEngine':
        version = SchedulerType.FSRS6 if settings.scheduler == SchedulerType.FSRS6 else SchedulerType.FSRS
        return cls(
            parameters=settings.active_fsrs_parameters,
            version=version,
            learning_steps=settings.learning_steps,
            relearning_steps=settings.relearning_steps,
        )

    # === Parameter mapping ===

    @staticmethod
    def _default_weights(version: SchedulerType) -> List[float]:
        if version == SchedulerType.FSRS6:
            return list(FSRS6_DEFAULT_WEIGHTS)
        return list(FSRS_DEFAULT_WEIGHTS)

    @staticmethod
    def _validated_weights(weights: Sequence[float], version: SchedulerType) -> List[float]:
        weights = list(weights or [])
        if len(weights) not in _VALID_LENGTHS[version]:
            logger.warning(
                f"[FSRS ENGINE] {version.value} expects {_VALID_LENGTHS[version]} weights, "
                f"got {len(weights)}. Using defaults."
            )
            return FsrsEngine._default_weights(version)
        return weights

    @staticmethod
    def _build_model(weights: List[float]):
        try:
            return FSRS(parameters=weights)
        except Exception as e:
            logger.warning(f"[FSRS ENGINE] Library rejected weights ({e}). Using library defaults.")
        try:
            return FSRS(parameters=list(DEFAULT_PARAMETERS))
        except Exception as e:
            logger.error(f"[FSRS ENGINE] Could not build FSRS model: {e}")
            raise EngineCalculationError(str(e)) from e

    @property
    def decay(self) -> float:
        if self.version == SchedulerType.FSRS6 and len(self.weights) >= 21:
            return self.weights[20]
        return SchedulingDefaultConfig.FSRS_DEFAULT_DECAY

    # === Library calls ===

    @staticmethod
    def _to_memory_state(sub: FsrsSubState):
        if sub.state == CardState.NEW or sub.stability <= 0:
            return None
        return MemoryState(
            stability=max(0.1, float(sub.stability)),
            difficulty=max(1.0, min(10.0, float(sub.difficulty)))
        )

    @staticmethod
    def _elapsed_days(sub: FsrsSubState, now: datetime.datetime) -> float:
        if not sub.last_review or sub.state == CardState.NEW:
            return 0.0
        return max(0.0, (now - ensure_utc(sub.last_review)).total_seconds() / 86400.0)

    def _library_next_states(self, sub: FsrsSubState, elapsed: float):
        try:
            return self.fsrs.next_states(
                self._to_memory_state(sub),
                self.parameters.request_retention,
                max(0, round(elapsed))
            )
        except Exception as e:
            logger.error(f"[FSRS ENGINE] next_states error: {e}")
            raise EngineCalculationError(str(e)) from e

    # === Public API ===

    def review(self, sub: Optional[FsrsSubState], rating, now: datetime.datetime) -> FsrsSubState:
        """
        Process one answer and return the new sub-state (input untouched).
        Fuzz is applied to review intervals when enabled in the parameters.
        """
        rating = Rating.coerce(rating)
        now = ensure_utc(now)
        sub = sub or FsrsSubState()
        elapsed = self._elapsed_days(sub, now)
        states = self._library_next_states(sub, elapsed)
        return self._apply(sub, rating, now, states, elapsed, fuzz=self.parameters.enable_fuzz)

    def next_states(self, sub: Optional[FsrsSubState], now: datetime.datetime) -> Dict[Rating, FsrsSubState]:
        """Predict the outcome of all four ratings without fuzz."""
        now = ensure_utc(now)
        sub = sub or FsrsSubState()
        elapsed = self._elapsed_days(sub, now)
        states = self._library_next_states(sub, elapsed)
        return {
            rating: self._apply(sub, rating, now, states, elapsed, fuzz=False)
            for rating in (Rating.AGAIN, Rating.HARD, Rating.GOOD, Rating.EASY)
        }

    def retrievability(self, sub: Optional[FsrsSubState], now: datetime.datetime) -> float:
        """Probability of recall right now (0.0 for New items)."""
        if sub is None or sub.state == CardState.NEW or sub.stability <= 0:
            return 0.0
        if not sub.last_review:
            return 1.0
        elapsed = self._elapsed_days(sub, ensure_utc(now))
        if elapsed <= 0:
            return 1.0
        decay = self.decay
        factor = 0.9 ** (-1.0 / decay) - 1.0
        try:
            return (1.0 + factor * elapsed / sub.stability) ** (-decay)
        except (ZeroDivisionError, OverflowError):
            return 0.0

    # === Branch selection ===

    def _clamp_days(self, days: float) -> float:
        return float(min(self.parameters.maximum_interval, max(1, round(days))))

    def _review_intervals(self, states) -> Dict[Rating, float]:
        again = self._clamp_days(states.again.interval)
        hard = self._clamp_days(states.hard.interval)
        good = self._clamp_days(states.good.interval)
        easy = self._clamp_days(states.easy.interval)
        hard = min(hard, good)
        good = min(self.parameters.maximum_interval, max(good, hard + 1))
        easy = min(self.parameters.maximum_interval, max(easy, good + 1))
        return {Rating.AGAIN: again, Rating.HARD: hard, Rating.GOOD: float(good), Rating.EASY: float(easy)}

    def _fuzz(self, interval: float) -> float:
        if interval <= SchedulingDefaultConfig.FSRS_FUZZ_THRESHOLD:
            return interval
        low, high = SchedulingDefaultConfig.FSRS_FUZZ_RANGE
        fuzzed = round(interval * random.uniform(low, high))
        return self._clamp_days(max(SchedulingDefaultConfig.FSRS_FUZZ_THRESHOLD, fuzzed))

    def _apply(self, sub: FsrsSubState, rating: Rating, now: datetime.datetime, states,
               elapsed: float, fuzz: bool) -> FsrsSubState:
        branch = {
            Rating.AGAIN: states.again,
            Rating.HARD: states.hard,
            Rating.GOOD: states.good,
            Rating.EASY: states.easy,
        }[rating]
        prior = sub.state
        stability = float(branch.memory.stability)
        difficulty = max(1.0, min(10.0, float(branch.memory.difficulty)))

        if prior == CardState.REVIEW and rating != Rating.AGAIN:
            stability = max(stability, sub.stability)

        lapses = sub.lapses
        if prior == CardState.REVIEW and rating == Rating.AGAIN:
            lapses += 1

        base = replace(
            sub,
            stability=stability,
            difficulty=difficulty,
            elapsed_days=elapsed,
            reps=sub.reps + 1,
            lapses=lapses,
            last_review=now,
        )

        if prior == CardState.REVIEW:
            if rating == Rating.AGAIN and self.relearning_steps:
                return self._schedule_step(base, CardState.RELEARNING, 0, self.relearning_steps[0], now)
            return self._schedule_review(base, self._review_intervals(states)[rating], now, fuzz)

        # New / Learning / Relearning walk the configured steps.
        in_relearning = prior == CardState.RELEARNING
        steps = self.relearning_steps if in_relearning else self.learning_steps
        step_state = CardState.RELEARNING if in_relearning else CardState.LEARNING
        current = -1 if sub.learning_step is None or prior == CardState.NEW else sub.learning_step

        if rating == Rating.AGAIN:
            return self._schedule_step(base, step_state, 0, StepParser.delay_for(steps, 0), now)
        if rating == Rating.EASY or not steps:
            return self._schedule_review(base, self._review_intervals(states)[rating], now, fuzz)
        if rating == Rating.HARD:
            step = max(0, current)
            return self._schedule_step(base, step_state, step, StepParser.hard_delay(steps, step), now)

        step = current + 1
        if step >= len(steps):
            return self._schedule_review(base, self._review_intervals(states)[Rating.GOOD], now, fuzz)
        return self._schedule_step(base, step_state, step, steps[step], now)

    @staticmethod
    def _schedule_step(sub: FsrsSubState, state: CardState, step: int, delay_minutes: float,
                       now: datetime.datetime) -> FsrsSubState:
        return replace(
            sub,
            state=state,
            learning_step=step,
            scheduled_days=delay_minutes / SchedulingDefaultConfig.MINUTES_PER_DAY,
            due=now + datetime.timedelta(minutes=delay_minutes),
        )

    def _schedule_review(self, sub: FsrsSubState, interval: float, now: datetime.datetime, fuzz: bool) -> FsrsSubState:
        if fuzz:
            interval = self._fuzz(interval)
        return replace(
            sub,
            state=CardState.REVIEW,
            learning_step=None,
            scheduled_days=interval,
            due=now + datetime.timedelta(days=interval),
        )
