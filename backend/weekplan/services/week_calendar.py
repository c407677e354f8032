from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
import re

from weekplan.services.schedule_types import DayOfWeek

logger = logging.getLogger(__name__)

MONTH_DAY_PATTERN = re.compile(r"(\d{1,2})\s*/\s*(\d{1,2})")


def _as_date(value: date | datetime) -> date:
    # datetime is a date subclass; drop the time-of-day explicitly.
    if isinstance(value, datetime):
        return value.date()
    return value


def week_start_of(value: date | datetime) -> date:
    day = _as_date(value)
    return day - timedelta(days=day.weekday())


def previous_week_start(week_start: date) -> date:
    return week_start - timedelta(days=7)


def next_week_start(week_start: date) -> date:
    return week_start + timedelta(days=7)


def day_date(week_start: date, day: DayOfWeek) -> date:
    return week_start + timedelta(days=day.order)


def week_days(week_start: date) -> list[tuple[DayOfWeek, date]]:
    return [(day, day_date(week_start, day)) for day in DayOfWeek]


def parse_administrative_range_label(text: object, today: date | None = None) -> date | None:
    """Snap the first ``M/D`` found in an admin label (e.g. ``"7/19~7/24"``) to its Monday.

    The year is taken from ``today``. Anything unusable yields None; this never raises.
    """
    if not isinstance(text, str) or not text.strip():
        return None
    match = MONTH_DAY_PATTERN.search(text)
    if match is None:
        return None
    year = (today or date.today()).year
    try:
        anchor = date(year, int(match.group(1)), int(match.group(2)))
    except ValueError:
        logger.info("Week label %r does not name a real date", text)
        return None
    return week_start_of(anchor)


def resolve_target_week(
    label: str | None,
    requested: date | None = None,
    today: date | None = None,
) -> date:
    today = today or date.today()
    from_label = parse_administrative_range_label(label, today=today)
    if from_label is not None:
        return from_label
    if requested is not None:
        return week_start_of(requested)
    return week_start_of(today)
