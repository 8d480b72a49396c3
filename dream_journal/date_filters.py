from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, List, Optional

from .analytics import local_date
from .schemas import DreamRecord


class DateFilterType(str, Enum):
    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "this-week"
    THIS_MONTH = "this-month"
    LAST_7_DAYS = "last-7-days"
    LAST_30_DAYS = "last-30-days"
    LAST_90_DAYS = "last-90-days"
    THIS_YEAR = "this-year"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= _naive_local(moment) <= self.end


def _naive_local(moment: datetime) -> datetime:
    return moment.astimezone().replace(tzinfo=None) if moment.tzinfo else moment


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _end_of_day(day: date) -> datetime:
    return datetime.combine(day, time.max)


def get_date_range_for_filter(
    filter_type: DateFilterType,
    custom_range: Optional[DateRange] = None,
    now: Optional[datetime] = None,
) -> Optional[DateRange]:
    """Range covered by a filter preset, or None when nothing is filtered."""
    now = _naive_local(now or datetime.now())
    today = now.date()

    if filter_type == DateFilterType.TODAY:
        return DateRange(_start_of_day(today), _end_of_day(today))
    if filter_type == DateFilterType.THIS_WEEK:
        # weeks start on Sunday
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return DateRange(_start_of_day(start), _end_of_day(start + timedelta(days=6)))
    if filter_type == DateFilterType.THIS_MONTH:
        start = today.replace(day=1)
        next_month = (start + timedelta(days=32)).replace(day=1)
        return DateRange(_start_of_day(start), _end_of_day(next_month - timedelta(days=1)))
    if filter_type == DateFilterType.LAST_7_DAYS:
        return DateRange(now - timedelta(days=7), now)
    if filter_type == DateFilterType.LAST_30_DAYS:
        return DateRange(now - timedelta(days=30), now)
    if filter_type == DateFilterType.LAST_90_DAYS:
        return DateRange(now - timedelta(days=90), now)
    if filter_type == DateFilterType.THIS_YEAR:
        return DateRange(
            _start_of_day(today.replace(month=1, day=1)),
            _end_of_day(today.replace(month=12, day=31)),
        )
    if filter_type == DateFilterType.CUSTOM:
        return custom_range
    return None


def filter_dreams_by_date(
    records: Iterable[DreamRecord],
    filter_type: DateFilterType,
    custom_range: Optional[DateRange] = None,
    now: Optional[datetime] = None,
) -> List[DreamRecord]:
    date_range = get_date_range_for_filter(filter_type, custom_range, now)
    if date_range is None:
        return list(records)
    return [record for record in records if date_range.contains(record.created_at)]


def get_dreams_for_date(records: Iterable[DreamRecord], day: date) -> List[DreamRecord]:
    return [record for record in records if local_date(record.created_at) == day]


def get_season(day: date) -> str:
    # Northern hemisphere
    if 3 <= day.month <= 5:
        return "Spring"
    if 6 <= day.month <= 8:
        return "Summer"
    if 9 <= day.month <= 11:
        return "Fall"
    return "Winter"


def filter_dreams_by_season(records: Iterable[DreamRecord], season: str) -> List[DreamRecord]:
    wanted = season.capitalize()
    return [record for record in records if get_season(local_date(record.created_at)) == wanted]


def get_anniversary_dreams(records: Iterable[DreamRecord], today: Optional[date] = None) -> List[DreamRecord]:
    """Dreams recorded on this calendar day one year ago."""
    today = today or date.today()
    try:
        one_year_ago = today.replace(year=today.year - 1)
    except ValueError:
        # Feb 29 has no counterpart in the previous year
        one_year_ago = today.replace(year=today.year - 1, day=28)
    return get_dreams_for_date(records, one_year_ago)
