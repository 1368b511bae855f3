"""
Centralized Default Configuration for the Prepigo scheduling engine.

This file is the "Source of Truth" for every scheduling setting.
These values are used as fallbacks whenever a setting is missing or
malformed in the global settings or in a deck/bank override.
"""

# FSRS-5 weights (19). Lists of 17 (FSRS-4.5) are accepted as well.
FSRS_DEFAULT_WEIGHTS = [
    0.40255, 1.18385, 3.173, 15.69105, 7.1949, 0.5345, 1.4604, 0.0046, 1.54575,
    0.1192, 1.01925, 1.9395, 0.11, 0.29605, 2.2698, 0.2315, 2.9898, 0.51655, 0.6621,
]

# FSRS-6 weights (21). The last one is the forgetting-curve decay.
FSRS6_DEFAULT_WEIGHTS = [
    0.212, 1.2931, 2.3065, 8.2956, 6.4133, 0.8334, 3.0194, 0.001, 1.8722, 0.1666,
    0.796, 1.4835, 0.0614, 0.2629, 1.6483, 0.6014, 1.8729, 0.5425, 0.0912, 0.0658,
    0.1542,
]

DEFAULT_SRS_SETTINGS = {
    # --- Scheduler selection ---
    'scheduler': 'fsrs',

    # --- FSRS parameter sets ---
    'fsrs_parameters': {
        'request_retention': 0.9,
        'maximum_interval': 36500,
        'w': list(FSRS_DEFAULT_WEIGHTS),
        'enable_fuzz': False,
    },
    'fsrs6_parameters': {
        'request_retention': 0.9,
        'maximum_interval': 36500,
        'w': list(FSRS6_DEFAULT_WEIGHTS),
        'enable_fuzz': False,
    },
    'mcq_fsrs_parameters': {
        'request_retention': 0.82,
        'maximum_interval': 365,
        'w': list(FSRS_DEFAULT_WEIGHTS),
        'enable_fuzz': False,
    },
    'mcq_fsrs6_parameters': {
        'request_retention': 0.82,
        'maximum_interval': 365,
        'w': list(FSRS6_DEFAULT_WEIGHTS),
        'enable_fuzz': False,
    },

    # --- SM-2 ---
    'sm2_starting_ease': 2.5,
    'sm2_min_easiness_factor': 1.3,
    'sm2_easy_bonus': 1.3,
    'sm2_interval_modifier': 1.0,
    'sm2_hard_interval_multiplier': 1.2,
    'sm2_lapsed_interval_multiplier': 0.6,
    'sm2_maximum_interval': 365,
    'sm2_graduating_interval': 1,
    'sm2_easy_interval': 4,
    'sm2_minimum_interval': 1,

    # --- Steps (minutes unless suffixed) ---
    'learning_steps': '1 10',
    'relearning_steps': '10',

    # --- Leeches ---
    'leech_threshold': 8,
    'leech_action': 'tag',

    # --- Daily limits ---
    'new_cards_per_day': 20,
    'max_reviews_per_day': 200,
    'mcq_new_cards_per_day': 20,
    'mcq_max_reviews_per_day': 200,

    # --- Display order ---
    'new_card_gather_order': 'deck',
    'new_card_sort_order': 'type_then_gathered',
    'new_review_order': 'mix',
    'interday_learning_review_order': 'mix',
    'review_sort_order': 'due_date_random',

    # --- Burying ---
    'bury_new_siblings': False,
    'bury_review_siblings': False,
    'bury_interday_learning_siblings': False,

    # --- Presentation ---
    'maturity_threshold_days': 21,
}
