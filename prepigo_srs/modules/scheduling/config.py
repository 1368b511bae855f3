# modules/scheduling/config.py

class SchedulingDefaultConfig:
    MINUTES_PER_DAY = 1440

    # Fallback step when a step list is empty.
    DEFAULT_STEP_MINUTES = 1

    # SM-2 easiness-factor adjustments per rating.
    SM2_EASE_AGAIN = -0.20
    SM2_EASE_HARD = -0.15
    SM2_EASE_GOOD = 0.0
    SM2_EASE_EASY = 0.15

    # Hard on the only learning step: 1.5x the step, at most one day more.
    HARD_SINGLE_STEP_FACTOR = 1.5

    FSRS_FUZZ_THRESHOLD = 3.0
    FSRS_FUZZ_RANGE = (0.95, 1.05)

    # FSRS-4.5/5 forgetting curve decay; FSRS-6 reads it from w[20].
    FSRS_DEFAULT_DECAY = 0.5

    LEECH_TAG = 'leech'
