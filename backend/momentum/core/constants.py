"""Shared application constants.

Centralizes values used across the streak engine and the API so we can
document and adjust them in one place.
"""

# A week always has seven calendar days, Monday..Sunday
DAYS_PER_WEEK = 7

# Weekly goal counts non-rest workouts; the upper bound is configurable
MIN_WEEKLY_GOAL = 1

# Keys of a calendar marking directive, as consumed by the mobile calendar
MARK_MARKED = "marked"
MARK_DOT_COLOR = "dotColor"
MARK_STARTING_DAY = "startingDay"
MARK_ENDING_DAY = "endingDay"
MARK_COLOR = "color"
MARK_TEXT_COLOR = "textColor"
