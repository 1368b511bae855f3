"""
Tests for EffectiveSettings parsing and the per-deck SettingsResolver.
"""

import logging

import pytest

from prepigo_srs.core.config import Config
from prepigo_srs.core.defaults import DEFAULT_SRS_SETTINGS, FSRS6_DEFAULT_WEIGHTS
from prepigo_srs.modules.settings.schemas import (
    DeckNode, EffectiveSettings, InterleaveOrder, ItemKind, LeechAction,
    NewCardGatherOrder, NewCardSortOrder, ReviewSortOrder, SchedulerType,
)
from prepigo_srs.modules.settings.services.settings_service import SettingsResolver


class TestEffectiveSettingsDefaults:

    def test_defaults(self):
        s = EffectiveSettings.from_dict({})
        assert s.scheduler == SchedulerType.FSRS
        assert s.new_cards_per_day == 20
        assert s.max_reviews_per_day == 200
        assert s.learning_steps == "1 10"
        assert s.relearning_steps == "10"
        assert s.sm2_starting_ease == 2.5
        assert s.leech_threshold == 8
        assert s.leech_action == LeechAction.TAG
        assert s.fsrs_parameters.request_retention == 0.9
        assert s.mcq_fsrs_parameters.request_retention == 0.82
        assert s.mcq_fsrs_parameters.maximum_interval == 365
        assert s.fsrs6_parameters.w == tuple(FSRS6_DEFAULT_WEIGHTS)

    def test_camel_case_keys(self):
        s = EffectiveSettings.from_dict({
            'scheduler': 'sm2',
            'newCardsPerDay': 5,
            'sm2StartingEase': 2.3,
            'buryNewSiblings': True,
            'newCardSortOrder': 'typeThenRandom',
            'reviewSortOrder': 'dueDateDeck',
            'newReviewOrder': 'before',
            'fsrsParameters': {'request_retention': 0.85, 'maximum_interval': 1000, 'w': [0.1] * 19},
        })
        assert s.scheduler == SchedulerType.SM2
        assert s.new_cards_per_day == 5
        assert s.sm2_starting_ease == 2.3
        assert s.bury_new_siblings is True
        assert s.new_card_sort_order == NewCardSortOrder.TYPE_THEN_RANDOM
        assert s.review_sort_order == ReviewSortOrder.DUE_DATE_DECK
        assert s.new_review_order == InterleaveOrder.BEFORE
        assert s.fsrs_parameters.request_retention == 0.85
        assert s.fsrs_parameters.maximum_interval == 1000

    @pytest.mark.parametrize("raw, expected", [
        ('sequential-ascending', NewCardGatherOrder.ASCENDING),
        ('sequential-descending', NewCardGatherOrder.DESCENDING),
        ('random', NewCardGatherOrder.RANDOM_CARDS),
        ('randomNotes', NewCardGatherOrder.RANDOM_NOTES),
    ])
    def test_gather_order_aliases(self, raw, expected):
        assert EffectiveSettings.from_dict({'new_card_gather_order': raw}).new_card_gather_order == expected


class TestEffectiveSettingsSoftDefaults:

    def test_bad_number_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            s = EffectiveSettings.from_dict({'new_cards_per_day': 'lots'})
        assert s.new_cards_per_day == DEFAULT_SRS_SETTINGS['new_cards_per_day']
        assert 'new_cards_per_day' in caplog.text

    def test_out_of_range_falls_back(self):
        s = EffectiveSettings.from_dict({'sm2_starting_ease': 0.5, 'sm2_lapsed_interval_multiplier': 3})
        assert s.sm2_starting_ease == 2.5
        assert s.sm2_lapsed_interval_multiplier == 0.6

    def test_unknown_enum_falls_back(self):
        s = EffectiveSettings.from_dict({'scheduler': 'anki', 'leech_action': 'delete'})
        assert s.scheduler == SchedulerType.FSRS
        assert s.leech_action == LeechAction.TAG

    def test_bad_weights_fall_back(self):
        s = EffectiveSettings.from_dict({'fsrs_parameters': {'w': ['x', None]}})
        assert s.fsrs_parameters.w == tuple(DEFAULT_SRS_SETTINGS['fsrs_parameters']['w'])

    def test_env_default_scheduler(self, monkeypatch):
        monkeypatch.setattr(Config, 'DEFAULT_SCHEDULER', 'sm2')
        assert EffectiveSettings.from_dict({}).scheduler == SchedulerType.SM2
        assert EffectiveSettings.from_dict({'scheduler': 'fsrs6'}).scheduler == SchedulerType.FSRS6

    @pytest.mark.parametrize("data, field, expected", [
        ({'newCardsPerDay': 'inf'}, 'new_cards_per_day', 20),
        ({'maxReviewsPerDay': float('inf')}, 'max_reviews_per_day', 200),
        ({'sm2_starting_ease': float('nan')}, 'sm2_starting_ease', 2.5),
        ({'leech_threshold': 1e400}, 'leech_threshold', 8),
    ])
    def test_non_finite_numbers_fall_back(self, data, field, expected):
        assert getattr(EffectiveSettings.from_dict(data), field) == expected

    def test_non_finite_parameter_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING):
            s = EffectiveSettings.from_dict({'fsrs_parameters': {'maximum_interval': 1e400}})
        assert s.fsrs_parameters.maximum_interval == 36500
        assert 'fsrs_parameters.maximum_interval' in caplog.text

    def test_parameter_set_keeps_its_own_defaults(self):
        s = EffectiveSettings.from_dict({'mcq_fsrs_parameters': {'request_retention': 'bad'}})
        assert s.mcq_fsrs_parameters.request_retention == 0.82
        assert s.mcq_fsrs_parameters.maximum_interval == 365

    def test_non_mapping_parameter_set_falls_back(self):
        s = EffectiveSettings.from_dict({'fsrs6_parameters': 'fast'})
        assert s.fsrs6_parameters == EffectiveSettings().fsrs6_parameters

    def test_constructor_uses_env_default_scheduler(self, monkeypatch):
        monkeypatch.setattr(Config, 'DEFAULT_SCHEDULER', 'sm2')
        assert EffectiveSettings().scheduler == SchedulerType.SM2
        assert EffectiveSettings().scheduler == EffectiveSettings.from_dict({}).scheduler

    def test_bad_env_default_scheduler(self, monkeypatch):
        monkeypatch.setattr(Config, 'DEFAULT_SCHEDULER', 'anki')
        assert EffectiveSettings().scheduler == SchedulerType.FSRS

    def test_to_dict_round_trip(self):
        s = EffectiveSettings.from_dict({'scheduler': 'fsrs6', 'leech_action': 'suspend', 'learning_steps': '1m 1d'})
        assert EffectiveSettings.from_dict(s.to_dict()) == s


class TestEffectiveSettingsForItemKind:

    def test_flashcard_unchanged(self):
        s = EffectiveSettings.from_dict({})
        assert s.for_item_kind(ItemKind.FLASHCARD) is s

    def test_mcq_swaps_parameters_and_caps(self):
        s = EffectiveSettings.from_dict({'mcq_new_cards_per_day': 7, 'mcq_max_reviews_per_day': 30})
        mcq = s.for_item_kind('mcq')
        assert mcq.fsrs_parameters == s.mcq_fsrs_parameters
        assert mcq.fsrs6_parameters == s.mcq_fsrs6_parameters
        assert mcq.new_cards_per_day == 7
        assert mcq.max_reviews_per_day == 30


@pytest.fixture
def deck_tree():
    override = EffectiveSettings.from_dict({'new_cards_per_day': 5})
    leaf_override = EffectiveSettings.from_dict({'new_cards_per_day': 1})
    return [
        DeckNode(id='root', name='Medicine', has_custom_settings=True, settings=override, children=[
            DeckNode(id='cardio', name='Cardiology', children=[
                DeckNode(id='ecg', name='ECG'),
            ]),
            DeckNode(id='neuro', name='Neurology', has_custom_settings=True, settings=leaf_override),
            DeckNode(id='flag-only', name='Flag only', has_custom_settings=True, settings=None),
        ]),
        DeckNode(id='other', name='Other', settings=leaf_override),
    ]


class TestSettingsResolver:

    def test_find_with_ancestors(self, deck_tree):
        deck, ancestors = SettingsResolver.find_with_ancestors(deck_tree, 'ecg')
        assert deck.name == 'ECG'
        assert [a.id for a in ancestors] == ['root', 'cardio']

    def test_find_missing(self, deck_tree):
        assert SettingsResolver.find_with_ancestors(deck_tree, 'nope') is None

    def test_inherits_nearest_ancestor(self, deck_tree, settings):
        resolved, source = SettingsResolver.resolve_with_source(deck_tree, 'ecg', settings)
        assert resolved.new_cards_per_day == 5
        assert source == 'Medicine'

    def test_own_override_wins(self, deck_tree, settings):
        resolved, source = SettingsResolver.resolve_with_source(deck_tree, 'neuro', settings)
        assert resolved.new_cards_per_day == 1
        assert source == 'Neurology'

    def test_flag_without_settings_is_skipped(self, deck_tree, settings):
        _, source = SettingsResolver.resolve_with_source(deck_tree, 'flag-only', settings)
        assert source == 'Medicine'

    def test_settings_without_flag_are_ignored(self, deck_tree, settings):
        resolved, source = SettingsResolver.resolve_with_source(deck_tree, 'other', settings)
        assert resolved is settings
        assert source == 'Global'

    def test_unknown_deck_uses_global(self, deck_tree, settings):
        assert SettingsResolver.resolve(deck_tree, 'missing', settings) is settings
        assert SettingsResolver.resolve(deck_tree, None, settings) is settings

    def test_deck_node_from_dict(self, settings):
        decks = [DeckNode.from_dict({
            'id': 'a', 'name': 'A', 'hasCustomSettings': True,
            'srsSettings': {'newCardsPerDay': 3},
            'subDecks': [{'id': 'b', 'name': 'B'}],
        })]
        resolved, source = SettingsResolver.resolve_with_source(decks, 'b', settings)
        assert resolved.new_cards_per_day == 3
        assert source == 'A'
