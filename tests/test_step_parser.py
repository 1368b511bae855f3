"""
Tests for StepParser - learning/relearning step strings.
"""

import logging

from prepigo_srs.modules.scheduling.logics.step_parser import StepParser


class TestStepParserParse:

    def test_bare_numbers_are_minutes(self):
        assert StepParser.parse("1 10") == [1, 10]

    def test_units(self):
        assert StepParser.parse("1m 10m 1h 1d") == [1, 10, 60, 1440]

    def test_seconds_round_up_to_a_minute(self):
        assert StepParser.parse("30s 90s") == [1, 2]

    def test_decimal_values(self):
        assert StepParser.parse("1.5h 0.5d") == [90, 720]

    def test_extra_whitespace(self):
        assert StepParser.parse("  1   10\t1d ") == [1, 10, 1440]

    def test_empty_input(self):
        assert StepParser.parse("") == []
        assert StepParser.parse("   ") == []
        assert StepParser.parse(None) == []

    def test_unparsable_token_defaults_to_one_minute(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = StepParser.parse("5 abc 10")
        assert result == [5, 1, 10]
        assert "abc" in caplog.text

    def test_list_input(self):
        assert StepParser.parse(["1", "1d"]) == [1, 1440]

    def test_upper_case_unit(self):
        assert StepParser.parse("2H") == [120]


class TestStepParserDelays:

    def test_delay_for_index(self):
        assert StepParser.delay_for([1, 10], 1) == 10

    def test_delay_for_clamps_index(self):
        assert StepParser.delay_for([1, 10], 5) == 10
        assert StepParser.delay_for([1, 10], None) == 1

    def test_delay_for_empty_steps(self):
        assert StepParser.delay_for([], 0) == 1

    def test_hard_delay_first_of_two_steps_is_mean(self):
        assert StepParser.hard_delay([1, 10], 0) == 5.5

    def test_hard_delay_single_step(self):
        assert StepParser.hard_delay([10], 0) == 15

    def test_hard_delay_single_long_step_capped(self):
        # 1.5 * 3d would be 4.5d; capped at step + 1 day.
        assert StepParser.hard_delay([4320], 0) == 4320 + 1440

    def test_hard_delay_later_step_repeats_it(self):
        assert StepParser.hard_delay([1, 10, 60], 2) == 60
