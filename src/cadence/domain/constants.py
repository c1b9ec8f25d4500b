"""Centralized constants for the Cadence scheduler.

All magic numbers and parameter defaults live here so every engine
imports from a single source of truth.
"""

# ---------- Review input ----------
MIN_CONFIDENCE = 1
MAX_CONFIDENCE = 5

# ---------- Shared state defaults ----------
DEFAULT_INTERVAL = 1  # days
DEFAULT_EASE_FACTOR = 2.5
SECONDS_PER_DAY = 86400

# ---------- SM-2 ----------
SM2_MIN_EASE_FACTOR = 1.3
SM2_PASSING_QUALITY = 3
SM2_FIRST_INTERVAL = 1
SM2_SECOND_INTERVAL = 6
SM2_DEFAULT_QUALITY = 3  # correct answer with confidence 1-2
SM2_QUALITY_BY_CONFIDENCE = {3: 2, 4: 4, 5: 5}

# ---------- Leitner ----------
LEITNER_BOX_INTERVALS = (1, 2, 4, 8, 16)  # boxes 1-5
LEITNER_PROMOTION_CONFIDENCE = 3

# ---------- FSRS ----------
FSRS_INITIAL_STABILITY = 0.4
FSRS_INITIAL_DIFFICULTY = 0.3
FSRS_LAPSE_STABILITY = 0.2  # new/learning card forgotten
FSRS_RELAPSE_RETENTION = 0.15  # review card forgotten
FSRS_MIN_STABILITY = 0.1
FSRS_MIN_DIFFICULTY = 0.1
FSRS_MAX_DIFFICULTY = 1.0
FSRS_DIFFICULTY_RATE = 0.15
FSRS_RECALL_THRESHOLD = 0.5
FSRS_GROWTH_BIAS = -8.0
FSRS_GROWTH_DIFFICULTY_WEIGHT = 12.0
FSRS_GROWTH_RECALL_WEIGHT = -3.0
FSRS_GROWTH_BONUS_EXPONENT = -6.0

# ---------- ELO ----------
DEFAULT_ELO = 1500
DEFAULT_K_FACTOR = 32
MIN_ELO = 0
MAX_ELO = 3000
ELO_SCALE = 400
ELO_LOW_RATING = 1200
ELO_HIGH_RATING = 2000
ELO_LOW_K_MULTIPLIER = 1.5
ELO_HIGH_K_MULTIPLIER = 0.5
ELO_TREND_WINDOW = 10
ELO_TREND_NORMALIZER = 500

# ---------- Mastery ----------
MASTERY_STABILITY_HORIZON = 365  # days
MASTERY_STABILITY_WEIGHT = 0.7
MASTERY_DIFFICULTY_WEIGHT = 0.3
MASTERY_REPETITION_TARGET = 10
MASTERY_REPETITION_WEIGHT = 0.6
MASTERY_EASE_WEIGHT = 0.4

# ---------- Review service ----------
DEFAULT_HISTORY_LIMIT = 200
