"""
Availability calculation algorithms.

Key components:
- TimeRange: half-open interval with the single overlap test used everywhere
- generate_slots: turns weekly windows into concrete bookable slots
- timezone_utils: DST-aware local-to-UTC conversion for window times
"""

from .slot_generator import generate_slots, group_slots_by_date, is_within_any_window
from .time_range import BusyInterval, CandidateSlot, MeetingRules, TimeRange, WindowSpec

__all__ = [
    "BusyInterval",
    "CandidateSlot",
    "MeetingRules",
    "TimeRange",
    "WindowSpec",
    "generate_slots",
    "group_slots_by_date",
    "is_within_any_window",
]
