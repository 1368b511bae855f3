import datetime
import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from prepigo_srs.modules.scheduling.schemas import (
    CardState, FsrsSubState, Sm2SubState, SrsState, StudyItem,
)
from prepigo_srs.modules.settings.schemas import EffectiveSettings, ItemKind, SchedulerType


@pytest.fixture
def now():
    return datetime.datetime(2024, 5, 1, 9, 0, tzinfo=datetime.timezone.utc)


@pytest.fixture
def settings():
    """Global defaults under FSRS."""
    return EffectiveSettings.from_dict({})


@pytest.fixture
def sm2_settings():
    return EffectiveSettings.from_dict({'scheduler': 'sm2'})


@pytest.fixture
def make_item():
    """Factory for StudyItems with an optional sub-state for one scheduler."""
    def _make(item_id, scheduler=None, sub=None, note_id=None, order=0, suspended=False,
              tags=(), card_type=None, kind='flashcard'):
        srs = SrsState(is_suspended=suspended, new_card_order=order)
        if sub is not None:
            srs = srs.with_sub_state(scheduler or SchedulerType.FSRS, sub)
        return StudyItem(id=item_id, note_id=note_id, tags=frozenset(tags), srs=srs,
                         card_type=card_type, kind=ItemKind(kind))
    return _make


@pytest.fixture
def sm2_review(now):
    """SM-2 review sub-state due now with a 10 day interval."""
    return Sm2SubState(state=CardState.REVIEW, due=now, repetitions=3, lapses=0,
                       easiness_factor=2.5, interval=10.0)


@pytest.fixture
def fsrs_review(now):
    """FSRS review sub-state last seen 10 days ago."""
    return FsrsSubState(state=CardState.REVIEW, due=now, stability=10.0, difficulty=5.0,
                        elapsed_days=0.0, scheduled_days=10.0, reps=4, lapses=0,
                        last_review=now - datetime.timedelta(days=10))
