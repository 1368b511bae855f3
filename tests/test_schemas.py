"""
Tests for persisted shapes, filters and the ambient helpers.
"""

import datetime
import logging
import logging.handlers

import pytest

from prepigo_srs.core.logging_config import ROOT_LOGGER_NAME, setup_logging
from prepigo_srs.modules.scheduling.exceptions import InvalidRatingError
from prepigo_srs.modules.scheduling.schemas import (
    CardState, FsrsSubState, Rating, ReviewLog, Sm2SubState, SrsState, StudyItem,
)
from prepigo_srs.modules.session.logics.filters import recently_failed_item_ids
from prepigo_srs.modules.session.schemas import SessionState
from prepigo_srs.modules.settings.schemas import ItemKind, SchedulerType
from prepigo_srs.utils.time_utils import local_day, parse_datetime


class TestRatingAndState:

    def test_from_key(self):
        assert Rating.from_key('3') == Rating.GOOD
        with pytest.raises(InvalidRatingError):
            Rating.from_key('0')

    def test_coerce_accepts_whole_numbers_only(self):
        assert Rating.coerce(3.0) == Rating.GOOD
        assert Rating.coerce('4') == Rating.EASY
        for value in (3.7, 2.5, float('inf')):
            with pytest.raises(InvalidRatingError):
                Rating.coerce(value)

    def test_card_state_parse(self):
        assert CardState.parse('relearning') == CardState.RELEARNING
        assert CardState.parse('2') == CardState.REVIEW
        assert CardState.parse(1) == CardState.LEARNING
        assert CardState.LEARNING.is_learning and not CardState.REVIEW.is_learning


class TestSrsStateSerialization:

    def test_item_round_trip(self, now):
        srs = SrsState(new_card_order=4).with_sub_state(
            SchedulerType.SM2,
            Sm2SubState(state=CardState.RELEARNING, due=now, lapses=2, interval=6.0, learning_step=0,
                        step_minutes=10.0),
        ).with_sub_state(
            SchedulerType.FSRS,
            FsrsSubState(state=CardState.REVIEW, due=now, stability=12.5, difficulty=4.2, last_review=now),
        )
        item = StudyItem(id='c1', note_id='n1', tags=frozenset({'leech'}), srs=srs,
                         kind=ItemKind.MCQ, content={'question': 'Q?'})
        data = item.to_dict()
        assert data['srs']['sm2']['state'] == 'relearning'
        assert data['srs']['last_scheduler'] == 'fsrs'
        restored = StudyItem.from_dict(data)
        assert restored == item
        assert restored.content == {'question': 'Q?'}

    def test_missing_srs_is_new(self):
        item = StudyItem.from_dict({'id': 'c1'})
        assert item.srs == SrsState()
        assert item.srs.active(SchedulerType.FSRS) is None

    def test_wrong_sub_state_type_rejected(self):
        with pytest.raises(TypeError):
            SrsState().with_sub_state(SchedulerType.SM2, FsrsSubState())

    def test_review_log_round_trip(self, now):
        log = ReviewLog(item_id='c1', rating=Rating.HARD, review_timestamp=now, duration_ms=900,
                        resulting_state=CardState.REVIEW, previous_state=CardState.REVIEW,
                        scheduler=SchedulerType.FSRS6, scheduled_days=12.0)
        assert ReviewLog.from_dict(log.to_dict()) == log

    def test_session_state_round_trip(self):
        state = SessionState(queue=('a', 'b', 'a'), cursor=2, buried=frozenset({'b'}))
        assert SessionState.from_dict(state.to_dict()) == state


class TestRecentlyFailed:

    def test_most_recent_failure_first(self, now):
        def log(item_id, rating, hours_ago):
            return ReviewLog(item_id=item_id, rating=rating, duration_ms=0,
                             review_timestamp=now - datetime.timedelta(hours=hours_ago),
                             resulting_state=CardState.RELEARNING)
        logs = [
            log('old', Rating.AGAIN, 30),
            log('a', Rating.AGAIN, 5),
            log('b', Rating.AGAIN, 2),
            log('a', Rating.AGAIN, 1),
            log('passed', Rating.GOOD, 1),
        ]
        assert recently_failed_item_ids(logs, now) == ['a', 'b']
        assert recently_failed_item_ids(logs, now, within_days=2) == ['a', 'b', 'old']


class TestTimeUtils:

    def test_parse_z_suffix(self):
        assert parse_datetime('2024-05-01T09:00:00Z') == datetime.datetime(
            2024, 5, 1, 9, 0, tzinfo=datetime.timezone.utc)

    def test_local_day_uses_timezone(self):
        late_utc = datetime.datetime(2024, 5, 1, 23, 30, tzinfo=datetime.timezone.utc)
        assert local_day(late_utc, 'UTC') == datetime.date(2024, 5, 1)
        assert local_day(late_utc, 'Asia/Ho_Chi_Minh') == datetime.date(2024, 5, 2)


@pytest.fixture
def package_logger():
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestLoggingConfig:

    def test_console_only(self, package_logger):
        logger = setup_logging(log_level='warning', log_dir='', json_format=False)
        assert logger is package_logger
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1

    def test_rotating_file(self, package_logger, tmp_path):
        logger = setup_logging(log_level='DEBUG', log_dir=str(tmp_path), json_format=True)
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers)
        for handler in logger.handlers:
            handler.close()
        assert (tmp_path / 'prepigo_srs.log').exists()
