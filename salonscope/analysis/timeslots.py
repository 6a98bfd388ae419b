"""Day-of-week and time-slot bucketing.

The one place that defines how an appointment datetime maps to a weekday
bucket and a daily time slot. Used by the no-show predictor and by anything
that renders those buckets.
"""

from datetime import datetime

from salonscope.analysis.models import DayOfWeek, TimeSlot

DAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday",
    "Friday", "Saturday", "Sunday",
)

# (end hour exclusive, label). Hours before 09:00 land in the first slot,
# hours from 21:00 on land in the last one.
TIME_SLOTS = (
    (11, "09:00-11:00"),
    (14, "11:00-14:00"),
    (17, "14:00-17:00"),
    (21, "17:00-21:00"),
)


def day_of_week(dt: datetime) -> DayOfWeek:
    """0 = Monday ... 6 = Sunday."""
    return DayOfWeek(dt.weekday())


def day_name(day: int) -> str:
    return DAY_NAMES[day]


def time_slot(dt: datetime) -> TimeSlot:
    for index, (end_hour, _) in enumerate(TIME_SLOTS[:-1]):
        if dt.hour < end_hour:
            return TimeSlot(index)
    return TimeSlot(len(TIME_SLOTS) - 1)


def slot_label(slot: int) -> str:
    return TIME_SLOTS[slot][1]


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def wall_time(moment: datetime) -> datetime:
    """Drop any UTC offset, keeping the local clock reading."""
    return moment.replace(tzinfo=None)
