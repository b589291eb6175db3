# apps/meetingapp/tests/test_slot_generator.py
from datetime import date, datetime, time, timedelta

import pytz
from django.test import SimpleTestCase

from algorithms.availability.slot_generator import (
    generate_slots,
    group_slots_by_date,
    has_conflict,
    is_within_any_window,
    window_bounds_utc,
)
from algorithms.availability.time_range import (
    BusyInterval,
    MeetingRules,
    TimeRange,
    WindowSpec,
    conflicts_with_buffers,
)
from algorithms.availability.timezone_utils import local_to_utc
from core.exceptions import InputError, InvalidTimezoneError, SlotRangeError

UTC = pytz.UTC
NEW_YORK = "America/New_York"

# 2025-01-06 and 2025-07-07 are Mondays
WINTER_MONDAY = date(2025, 1, 6)
SUMMER_MONDAY = date(2025, 7, 7)
NOW = datetime(2025, 1, 1, tzinfo=UTC)


def utc(*args):
    return datetime(*args, tzinfo=UTC)


def monday_window(start=time(9, 0), end=time(12, 0), tz_name="UTC", window_id="w1"):
    return WindowSpec(weekday=0, start_time=start, end_time=end, timezone=tz_name, window_id=window_id)


def starts(slots):
    return [slot.start_utc for slot in slots]


class TimeRangeTest(SimpleTestCase):
    """Test cases for the half-open interval helpers"""

    def test_touching_ranges_do_not_overlap(self):
        first = TimeRange(utc(2025, 1, 6, 9), utc(2025, 1, 6, 10))
        second = TimeRange(utc(2025, 1, 6, 10), utc(2025, 1, 6, 11))

        self.assertFalse(first.overlaps(second))
        self.assertFalse(second.overlaps(first))

    def test_overlapping_ranges(self):
        first = TimeRange(utc(2025, 1, 6, 9), utc(2025, 1, 6, 10))
        second = TimeRange(utc(2025, 1, 6, 9, 59), utc(2025, 1, 6, 11))

        self.assertTrue(first.overlaps(second))
        self.assertTrue(second.overlaps(first))

    def test_buffers_apply_on_both_sides(self):
        busy = TimeRange(utc(2025, 1, 6, 10), utc(2025, 1, 6, 10, 30))

        # Ends exactly when the busy interval starts, but needs 15 minutes after
        before = TimeRange(utc(2025, 1, 6, 9, 30), utc(2025, 1, 6, 10))
        self.assertTrue(conflicts_with_buffers(before, busy, buffer_after=15))
        self.assertFalse(conflicts_with_buffers(before, busy))

        # Starts right after the busy interval, but the busy one needs 15 minutes after
        after = TimeRange(utc(2025, 1, 6, 10, 30), utc(2025, 1, 6, 11))
        self.assertTrue(conflicts_with_buffers(after, busy, buffer_after=15))
        self.assertFalse(
            conflicts_with_buffers(
                TimeRange(utc(2025, 1, 6, 10, 45), utc(2025, 1, 6, 11, 15)), busy, buffer_after=15
            )
        )

    def test_meeting_rules_reject_bad_values(self):
        with self.assertRaises(ValueError):
            MeetingRules(duration=0)
        with self.assertRaises(ValueError):
            MeetingRules(duration=30, buffer_before=-5)


class TimezoneConversionTest(SimpleTestCase):
    """Window boundaries follow the DST rules of the window's own timezone"""

    def test_winter_window_uses_standard_offset(self):
        bounds = window_bounds_utc(monday_window(time(9, 0), time(17, 0), NEW_YORK), WINTER_MONDAY)

        self.assertEqual(bounds.start, utc(2025, 1, 6, 14, 0))
        self.assertEqual(bounds.end, utc(2025, 1, 6, 22, 0))

    def test_summer_window_uses_daylight_offset(self):
        bounds = window_bounds_utc(monday_window(time(9, 0), time(17, 0), NEW_YORK), SUMMER_MONDAY)

        self.assertEqual(bounds.start, utc(2025, 7, 7, 13, 0))
        self.assertEqual(bounds.end, utc(2025, 7, 7, 21, 0))

    def test_nonexistent_local_time_shifts_forward(self):
        # 02:30 does not exist on 2025-03-09 in New York; it becomes 03:30 EDT
        self.assertEqual(local_to_utc(date(2025, 3, 9), time(2, 30), NEW_YORK), utc(2025, 3, 9, 7, 30))

    def test_ambiguous_local_time_takes_first_occurrence(self):
        # 01:30 happens twice on 2025-11-02 in New York; the EDT one comes first
        self.assertEqual(local_to_utc(date(2025, 11, 2), time(1, 30), NEW_YORK), utc(2025, 11, 2, 5, 30))


class GenerateSlotsTest(SimpleTestCase):
    """Test cases for generate_slots"""

    def setUp(self):
        self.rules = MeetingRules(duration=30)

    def generate(self, windows=None, busy=(), rules=None, start=WINTER_MONDAY, end=None, **kwargs):
        options = {"granularity_minutes": 30, "viewer_timezone": "UTC", "now": NOW}
        options.update(kwargs)
        return generate_slots(
            windows if windows is not None else [monday_window()],
            list(busy),
            rules or self.rules,
            start,
            end or start,
            **options,
        )

    def test_empty_calendar_yields_six_half_hour_slots(self):
        slots = self.generate()

        self.assertEqual(
            starts(slots),
            [utc(2025, 1, 6, 9, 0) + timedelta(minutes=30 * i) for i in range(6)],
        )
        self.assertTrue(all(s.end_utc - s.start_utc == timedelta(minutes=30) for s in slots))

    def test_existing_booking_removes_exactly_its_slot(self):
        busy = [BusyInterval(utc(2025, 1, 6, 10, 0), utc(2025, 1, 6, 10, 30))]

        slots = self.generate(busy=busy)

        self.assertEqual(len(slots), 5)
        self.assertNotIn(utc(2025, 1, 6, 10, 0), starts(slots))

    def test_buffer_after_pushes_next_slot(self):
        busy = [BusyInterval(utc(2025, 1, 6, 10, 0), utc(2025, 1, 6, 10, 30))]
        rules = MeetingRules(duration=30, buffer_after=15)

        slot_starts = starts(self.generate(busy=busy, rules=rules, granularity_minutes=15))

        self.assertNotIn(utc(2025, 1, 6, 10, 30), slot_starts)
        self.assertIn(utc(2025, 1, 6, 10, 45), slot_starts)
        self.assertEqual(
            [s for s in slot_starts if s > utc(2025, 1, 6, 10, 0)][0], utc(2025, 1, 6, 10, 45)
        )

    def test_buffers_erode_window_edges(self):
        rules = MeetingRules(duration=30, buffer_before=10, buffer_after=20)

        slot_starts = starts(self.generate(rules=rules, granularity_minutes=10))

        self.assertEqual(slot_starts[0], utc(2025, 1, 6, 9, 10))
        # 11:10 + 30 + 20 = 12:00
        self.assertEqual(slot_starts[-1], utc(2025, 1, 6, 11, 10))

    def test_buffers_filter_the_grid_without_shifting_it(self):
        rules = MeetingRules(duration=30, buffer_before=15)

        slot_starts = starts(self.generate(rules=rules))

        # 09:00 is dropped by its buffer; the remaining starts stay on the 30 minute grid
        self.assertEqual(
            slot_starts,
            [utc(2025, 1, 6, 9, 30) + timedelta(minutes=30 * i) for i in range(5)],
        )

    def test_blocked_time_is_busy(self):
        busy = [
            BusyInterval(utc(2025, 1, 6, 9, 0), utc(2025, 1, 6, 11, 0), source="blocked_time"),
        ]

        self.assertEqual(starts(self.generate(busy=busy)), [utc(2025, 1, 6, 11, 0), utc(2025, 1, 6, 11, 30)])

    def test_winter_and_summer_slots_in_new_york(self):
        window = monday_window(time(9, 0), time(17, 0), NEW_YORK)
        rules = MeetingRules(duration=60)

        winter = self.generate([window], rules=rules, granularity_minutes=60, viewer_timezone=NEW_YORK)
        summer = self.generate(
            [window], rules=rules, start=SUMMER_MONDAY, granularity_minutes=60, viewer_timezone=NEW_YORK
        )

        self.assertEqual(winter[0].start_utc, utc(2025, 1, 6, 14, 0))
        self.assertEqual(winter[-1].end_utc, utc(2025, 1, 6, 22, 0))
        self.assertEqual(summer[0].start_utc, utc(2025, 7, 7, 13, 0))
        self.assertEqual(summer[-1].end_utc, utc(2025, 7, 7, 21, 0))
        self.assertEqual(winter[0].start_local.isoformat(), "2025-01-06T09:00:00-05:00")
        self.assertEqual(summer[0].start_local.isoformat(), "2025-07-07T09:00:00-04:00")
        self.assertEqual(len(winter), 8)
        self.assertEqual(len(summer), 8)

    def test_spring_forward_window_is_shortened(self):
        # Sunday 01:00-04:00 loses the 02:00 hour on 2025-03-09
        window = WindowSpec(weekday=6, start_time=time(1, 0), end_time=time(4, 0), timezone=NEW_YORK)

        slots = self.generate(
            [window], rules=MeetingRules(duration=60), start=date(2025, 3, 9), granularity_minutes=60
        )

        self.assertEqual(starts(slots), [utc(2025, 3, 9, 6, 0), utc(2025, 3, 9, 7, 0)])

    def test_slots_are_rendered_in_viewer_timezone(self):
        slots = self.generate(viewer_timezone="Asia/Tokyo")

        self.assertEqual(slots[0].start_utc, utc(2025, 1, 6, 9, 0))
        self.assertEqual(slots[0].start_local.isoformat(), "2025-01-06T18:00:00+09:00")
        self.assertEqual(slots[0].to_dict()["start_utc"], "2025-01-06T09:00:00+00:00")

    def test_range_dates_are_viewer_local(self):
        # 22:00 UTC on Monday is already Tuesday morning in Tokyo
        window = monday_window(time(22, 0), time(23, 0))

        tuesday = self.generate([window], start=date(2025, 1, 7), viewer_timezone="Asia/Tokyo")
        monday = self.generate([window], start=WINTER_MONDAY, viewer_timezone="Asia/Tokyo")

        self.assertEqual(starts(tuesday), [utc(2025, 1, 6, 22, 0), utc(2025, 1, 6, 22, 30)])
        self.assertEqual(monday, [])

    def test_window_two_dates_away_from_viewer(self):
        # Monday 23:00 in Pago Pago (-11) is Wednesday 00:00 in Kiritimati (+14)
        window = monday_window(time(23, 0), time(23, 59), "Pacific/Pago_Pago")

        slots = self.generate(
            [window],
            rules=MeetingRules(duration=30),
            start=date(2025, 1, 8),
            viewer_timezone="Pacific/Kiritimati",
        )

        self.assertEqual(starts(slots), [utc(2025, 1, 7, 10, 0)])
        self.assertEqual(slots[0].start_local.isoformat(), "2025-01-08T00:00:00+14:00")

    def test_malformed_windows_are_skipped(self):
        windows = [
            monday_window(time(12, 0), time(9, 0), window_id="reversed"),
            monday_window(tz_name="Mars/Olympus_Mons", window_id="bad-zone"),
            WindowSpec(weekday=9, start_time=time(9, 0), end_time=time(12, 0), timezone="UTC"),
            monday_window(),
        ]

        self.assertEqual(len(self.generate(windows)), 6)

    def test_overlapping_windows_do_not_duplicate_slots(self):
        windows = [monday_window(window_id="a"), monday_window(time(10, 0), time(13, 0), window_id="b")]

        slot_starts = starts(self.generate(windows))

        self.assertEqual(len(slot_starts), len(set(slot_starts)))
        self.assertEqual(slot_starts, sorted(slot_starts))
        self.assertEqual(len(slot_starts), 8)

    def test_output_is_sorted_across_windows(self):
        windows = [monday_window(time(14, 0), time(15, 0)), monday_window(time(9, 0), time(10, 0))]

        slot_starts = starts(self.generate(windows))

        self.assertEqual(slot_starts, sorted(slot_starts))
        self.assertEqual(slot_starts[0], utc(2025, 1, 6, 9, 0))

    def test_minimum_notice_drops_early_slots(self):
        rules = MeetingRules(duration=30, min_notice_minutes=30)

        slots = self.generate(rules=rules, now=utc(2025, 1, 6, 9, 40))

        self.assertEqual(
            starts(slots), [utc(2025, 1, 6, 10, 30), utc(2025, 1, 6, 11, 0), utc(2025, 1, 6, 11, 30)]
        )

    def test_past_slots_are_dropped(self):
        self.assertEqual(self.generate(now=utc(2025, 1, 7, 0, 0)), [])

    def test_max_advance_days_limits_horizon(self):
        rules = MeetingRules(duration=30, max_advance_days=3)

        self.assertEqual(self.generate(rules=rules), [])

    def test_multi_day_range(self):
        windows = [
            WindowSpec(weekday=day, start_time=time(9, 0), end_time=time(10, 0), timezone="UTC")
            for day in range(7)
        ]

        slots = self.generate(windows, end=WINTER_MONDAY + timedelta(days=6))

        self.assertEqual(len(slots), 14)
        grouped = group_slots_by_date(slots)
        self.assertEqual(list(grouped)[0], "2025-01-06")
        self.assertEqual(list(grouped)[-1], "2025-01-12")
        self.assertTrue(all(len(day_slots) == 2 for day_slots in grouped.values()))

    def test_slots_stay_inside_windows_with_buffers(self):
        window = monday_window(time(9, 0), time(17, 0), NEW_YORK)
        busy = [BusyInterval(utc(2025, 1, 6, 16, 0), utc(2025, 1, 6, 17, 10))]

        for granularity in (5, 7, 15, 45):
            for rules in (MeetingRules(duration=25), MeetingRules(duration=50, buffer_before=5, buffer_after=10)):
                slots = self.generate(
                    [window], busy=busy, rules=rules, granularity_minutes=granularity, viewer_timezone=NEW_YORK
                )
                bounds = window_bounds_utc(window, WINTER_MONDAY)
                for slot in slots:
                    padded = slot.range.padded(rules.buffer_before, rules.buffer_after)
                    self.assertTrue(bounds.contains_range(padded))
                    self.assertTrue(is_within_any_window(slot.range, [window], rules))
                    self.assertFalse(has_conflict(slot.range, [b.range for b in busy], rules))

    def test_invalid_range_is_rejected(self):
        with self.assertRaises(SlotRangeError):
            self.generate(start=WINTER_MONDAY, end=WINTER_MONDAY - timedelta(days=1))
        with self.assertRaises(SlotRangeError):
            self.generate(start=WINTER_MONDAY, end=WINTER_MONDAY + timedelta(days=90))

    def test_longest_allowed_range(self):
        slots = self.generate(start=WINTER_MONDAY, end=WINTER_MONDAY + timedelta(days=89))

        # 13 Mondays in 90 days starting on a Monday
        self.assertEqual(len(slots), 13 * 6)

    def test_invalid_granularity_is_rejected(self):
        for granularity in (0, 4, 1441, "30", True):
            with self.assertRaises(InputError):
                self.generate(granularity_minutes=granularity)

    def test_unknown_viewer_timezone_is_rejected(self):
        with self.assertRaises(InvalidTimezoneError):
            self.generate(viewer_timezone="Not/AZone")

    def test_naive_now_is_rejected(self):
        with self.assertRaises(ValueError):
            self.generate(now=datetime(2025, 1, 1))


class WindowContainmentTest(SimpleTestCase):
    """Test cases for re-validating a concrete interval against windows"""

    def test_interval_inside_window(self):
        rules = MeetingRules(duration=30)
        candidate = TimeRange(utc(2025, 1, 6, 11, 30), utc(2025, 1, 6, 12, 0))

        self.assertTrue(is_within_any_window(candidate, [monday_window()], rules))

    def test_interval_crossing_window_end(self):
        rules = MeetingRules(duration=30)
        candidate = TimeRange(utc(2025, 1, 6, 11, 45), utc(2025, 1, 6, 12, 15))

        self.assertFalse(is_within_any_window(candidate, [monday_window()], rules))

    def test_buffer_must_fit_inside_window(self):
        rules = MeetingRules(duration=30, buffer_before=10)
        candidate = TimeRange(utc(2025, 1, 6, 9, 0), utc(2025, 1, 6, 9, 30))

        self.assertFalse(is_within_any_window(candidate, [monday_window()], rules))

    def test_wrong_weekday(self):
        rules = MeetingRules(duration=30)
        candidate = TimeRange(utc(2025, 1, 7, 9, 0), utc(2025, 1, 7, 9, 30))

        self.assertFalse(is_within_any_window(candidate, [monday_window()], rules))
