"""
SM-2 Engine - Pure Spaced Repetition Logic

Pure functions for the SM-2 variant used by Prepigo.
No I/O - only calculations based on inputs.

This engine provides:
- New / Learning / Relearning step walking
- Graduation (normal, lapsed and easy paths)
- Review interval and easiness-factor updates
"""

import datetime
import logging
from dataclasses import replace
from typing import Optional

from prepigo_srs.modules.settings.schemas import EffectiveSettings
from ..config import SchedulingDefaultConfig
from ..logics.step_parser import StepParser
from ..schemas import Rating, CardState, Sm2SubState
from prepigo_srs.utils.time_utils import ensure_utc

logger = logging.getLogger(__name__)


class Sm2Constants:
    """Constants for the SM-2 algorithm"""
    EASE_ADJUSTMENT = {
        Rating.AGAIN: SchedulingDefaultConfig.SM2_EASE_AGAIN,
        Rating.HARD: SchedulingDefaultConfig.SM2_EASE_HARD,
        Rating.GOOD: SchedulingDefaultConfig.SM2_EASE_GOOD,
        Rating.EASY: SchedulingDefaultConfig.SM2_EASE_EASY,
    }
    # Classic SM-2 answer quality (0-5).
    QUALITY = {
        Rating.MANUAL: 0,
        Rating.AGAIN: 0,
        Rating.HARD: 3,
        Rating.GOOD: 4,
        Rating.EASY: 5,
    }


class Sm2Engine:
    """
    Pure calculation engine for SM-2.
    All methods are static and use only provided inputs.
    """

    @staticmethod
    def new_state(settings: EffectiveSettings) -> Sm2SubState:
        """Fresh 'New' sub-state for an item that was never rated under SM-2."""
        return Sm2SubState(
            state=CardState.NEW,
            easiness_factor=settings.sm2_starting_ease,
        )

    @staticmethod
    def quality_for(rating) -> int:
        return Sm2Constants.QUALITY[Rating(rating)]

    @staticmethod
    def review(
        sub: Optional[Sm2SubState],
        rating,
        settings: EffectiveSettings,
        now: datetime.datetime
    ) -> Sm2SubState:
        """
        Compute the next SM-2 state for one answer.

        Args:
            sub: Current sub-state, or None for an item never rated under SM-2
            rating: Again/Hard/Good/Easy
            settings: Effective settings of the item's deck
            now: Time of the answer

        Returns:
            The new Sm2SubState (the input is never modified)
        """
        rating = Rating.coerce(rating)
        now = ensure_utc(now)
        if sub is None:
            sub = Sm2Engine.new_state(settings)

        if sub.state == CardState.REVIEW:
            return Sm2Engine._answer_review(sub, rating, settings, now)
        return Sm2Engine._answer_learning(sub, rating, settings, now)

    # === Intervals ===

    @staticmethod
    def clamp_interval(interval: float, settings: EffectiveSettings) -> float:
        upper = max(settings.sm2_minimum_interval, settings.sm2_maximum_interval)
        return float(min(upper, max(settings.sm2_minimum_interval, interval)))

    @staticmethod
    def graduating_interval(sub: Sm2SubState, settings: EffectiveSettings) -> float:
        """
        First review interval when leaving the steps with Good.
        Items with review history (lapsed) shrink their old interval instead.
        """
        if sub.interval > 0:
            lapsed = sub.interval * settings.sm2_lapsed_interval_multiplier
            return Sm2Engine.clamp_interval(max(settings.sm2_minimum_interval, lapsed), settings)
        return Sm2Engine.clamp_interval(settings.sm2_graduating_interval, settings)

    @staticmethod
    def review_interval(sub: Sm2SubState, rating: Rating, settings: EffectiveSettings) -> float:
        if rating == Rating.HARD:
            base = sub.interval * settings.sm2_hard_interval_multiplier
        elif rating == Rating.EASY:
            base = sub.interval * sub.easiness_factor * settings.sm2_easy_bonus
        else:
            base = sub.interval * sub.easiness_factor
        return Sm2Engine.clamp_interval(base * settings.sm2_interval_modifier, settings)

    # === Transitions ===

    @staticmethod
    def _relearn(sub: Sm2SubState, settings: EffectiveSettings, now: datetime.datetime, **changes) -> Sm2SubState:
        relearning_steps = StepParser.parse(settings.relearning_steps)
        delay = StepParser.delay_for(relearning_steps, 0)
        return replace(
            sub,
            state=CardState.RELEARNING,
            learning_step=0,
            step_minutes=delay,
            repetitions=0,
            due=now + datetime.timedelta(minutes=delay),
            **changes
        )

    @staticmethod
    def _graduate(sub: Sm2SubState, interval: float, now: datetime.datetime, ease: float) -> Sm2SubState:
        return replace(
            sub,
            state=CardState.REVIEW,
            learning_step=None,
            step_minutes=None,
            interval=interval,
            easiness_factor=ease,
            repetitions=sub.repetitions + 1,
            due=now + datetime.timedelta(days=interval),
        )

    @staticmethod
    def _answer_learning(sub: Sm2SubState, rating: Rating, settings: EffectiveSettings, now: datetime.datetime) -> Sm2SubState:
        ease = sub.easiness_factor
        if sub.state == CardState.NEW:
            ease = settings.sm2_starting_ease

        if rating == Rating.AGAIN:
            # Lapses only count from Review; see _answer_review.
            return Sm2Engine._relearn(sub, settings, now, easiness_factor=ease)

        if rating == Rating.EASY:
            interval = max(Sm2Engine.graduating_interval(sub, settings),
                           Sm2Engine.clamp_interval(settings.sm2_easy_interval, settings))
            return Sm2Engine._graduate(sub, interval, now, ease)

        in_relearning = sub.state == CardState.RELEARNING
        steps = StepParser.parse(settings.relearning_steps if in_relearning else settings.learning_steps)
        current = -1 if sub.learning_step is None else sub.learning_step
        next_state = CardState.LEARNING if sub.state == CardState.NEW else sub.state

        if rating == Rating.HARD:
            if not steps:
                return Sm2Engine._graduate(sub, Sm2Engine.graduating_interval(sub, settings), now, ease)
            step = max(0, current)
            delay = StepParser.hard_delay(steps, step)
            return replace(sub, state=next_state, learning_step=step, step_minutes=delay, easiness_factor=ease,
                           due=now + datetime.timedelta(minutes=delay))

        # Good
        step = current + 1
        if step >= len(steps):
            return Sm2Engine._graduate(sub, Sm2Engine.graduating_interval(sub, settings), now, ease)
        return replace(sub, state=next_state, learning_step=step, step_minutes=steps[step], easiness_factor=ease,
                       due=now + datetime.timedelta(minutes=steps[step]))

    @staticmethod
    def _answer_review(sub: Sm2SubState, rating: Rating, settings: EffectiveSettings, now: datetime.datetime) -> Sm2SubState:
        new_ease = max(settings.sm2_min_easiness_factor,
                       sub.easiness_factor + Sm2Constants.EASE_ADJUSTMENT[rating])

        if rating == Rating.AGAIN:
            # Interval is kept so graduation can apply the lapse multiplier.
            return Sm2Engine._relearn(sub, settings, now, lapses=sub.lapses + 1, easiness_factor=new_ease)

        interval = Sm2Engine.review_interval(sub, rating, settings)
        return replace(
            sub,
            interval=interval,
            easiness_factor=new_ease,
            repetitions=sub.repetitions + 1,
            learning_step=None,
            step_minutes=None,
            due=now + datetime.timedelta(days=interval),
        )
