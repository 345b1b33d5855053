# src/rallyrank/rating/constants.py

"""Tuning constants for the rating engine.

Ratings live on a 1.0 - 16.5 scale. A player with no qualifying history is
rated at DEFAULT_RATING.
"""

DEFAULT_RATING = 5.0
MIN_RATING = 1.0
MAX_RATING = 16.5

# Smaller divisor => sharper win probability for the same rating gap
RATING_DIFF_DIVISOR = 2.5

# How far one match's performance differential moves its match rating
ADJUSTMENT_FACTOR = 8.0

# Aggregation window
MAX_MATCHES_TO_CONSIDER = 30
MATCH_AGE_LIMIT_DAYS = 365

# Match weight: competitiveness factor
COMPETITIVENESS_FLOOR = 0.5
COMPETITIVENESS_GAME_DIVISOR = 12.0

# Match weight: format factor
FORMAT_BASE = 0.5
FORMAT_GAME_DIVISOR = 20.0
FORMAT_CAP = 1.5

# Predictor assumptions
AVG_GAMES_PER_SET = 10
GAMES_TO_WIN_SET = 6
PREDICTED_SET_COUNT = 3


def clamp_rating(rating: float) -> float:
    """Clamp a rating into [MIN_RATING, MAX_RATING]."""
    return max(MIN_RATING, min(MAX_RATING, rating))
