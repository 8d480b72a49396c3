"""
Derived statistics over the stored dreams.

Every function here recomputes from the full record list it is given;
nothing is cached between calls.
"""

import calendar
from collections import Counter, defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Sequence

from .schemas import (
    CalendarDay,
    DreamRecord,
    EmotionCount,
    StreakBadge,
    StreakData,
    SymbolCount,
    TimeSeriesPoint,
    TrendsReport,
    emotion_value,
    get_emotion_color,
)

# (minimum streak, emoji, label), highest first
STREAK_MILESTONES = [
    (365, "\U0001F3C6", "Dream Master"),
    (180, "\U0001F48E", "Dream Adept"),
    (100, "\U0001F31F", "Century Club"),
    (50, "⭐", "Dream Devotee"),
    (30, "\U0001F525", "On Fire"),
    (14, "\U0001F4AA", "Two Weeks Strong"),
    (7, "✨", "Week Warrior"),
    (3, "\U0001F331", "Starting Strong"),
]


def local_date(moment: datetime) -> date:
    """Calendar day of a timestamp in the server's local time zone."""
    return moment.astimezone().date() if moment.tzinfo else moment.date()


def date_key(moment: datetime) -> str:
    return local_date(moment).isoformat()


def calculate_streak(records: Sequence[DreamRecord], today: Optional[date] = None) -> StreakData:
    """Consecutive days with at least one dream, current and longest."""
    if not records:
        return StreakData()

    today = today or date.today()
    unique_dates = sorted({local_date(record.created_at) for record in records})
    last_date = unique_dates[-1]

    current_dates: List[date] = []
    # The streak is only alive if the last dream was today or yesterday
    if (today - last_date).days <= 1:
        current_dates.append(last_date)
        for previous in reversed(unique_dates[:-1]):
            if (current_dates[0] - previous).days == 1:
                current_dates.insert(0, previous)
            else:
                break

    longest = 1
    run = 1
    for previous, current in zip(unique_dates, unique_dates[1:]):
        if (current - previous).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1

    return StreakData(
        current_streak=len(current_dates),
        longest_streak=max(longest, len(current_dates)),
        total_dreams=len(records),
        last_dream_date=last_date.isoformat(),
        streak_dates=[day.isoformat() for day in current_dates],
    )


def get_streak_badge(streak: int) -> Optional[StreakBadge]:
    for minimum, emoji, label in STREAK_MILESTONES:
        if streak >= minimum:
            return StreakBadge(emoji=emoji, label=label)
    return None


def get_streak_message(streak: StreakData) -> str:
    current = streak.current_streak
    if current == 0:
        return "Record a dream to start your streak!"
    if current == 1:
        return "Great start! Come back tomorrow to build your streak."
    if current >= streak.longest_streak and current >= 7:
        return f"New personal record! {current} days and counting! \U0001F389"
    if current >= 30:
        return "Incredible dedication to your dream practice! \U0001F4AB"
    if current >= 7:
        return f"Amazing! {current} days in a row! Keep it going! \U0001F525"
    return f"{current} day streak! You're building a powerful habit! ⭐"


def dominant_emotion(records: Iterable[DreamRecord]) -> str:
    """
    Most frequent primary emotion.

    Ties go to the emotion encountered first while iterating ``records``.
    An empty input gives "other".
    """
    counts = Counter(emotion_value(record.primary_emotion) or "other" for record in records)
    if not counts:
        return "other"
    return counts.most_common(1)[0][0]


def group_by_date(records: Iterable[DreamRecord]) -> Dict[str, List[DreamRecord]]:
    groups: Dict[str, List[DreamRecord]] = defaultdict(list)
    for record in records:
        groups[date_key(record.created_at)].append(record)
    return dict(groups)


def _calendar_day(key: str, day_records: List[DreamRecord]) -> CalendarDay:
    emotion = dominant_emotion(day_records)
    return CalendarDay(
        date=key,
        count=len(day_records),
        dominant_emotion=emotion,
        color=get_emotion_color(emotion),
        dream_ids=[record.id for record in day_records],
    )


def build_calendar(records: Iterable[DreamRecord]) -> List[CalendarDay]:
    """One entry per date that has dreams, ascending."""
    groups = group_by_date(records)
    return [_calendar_day(key, groups[key]) for key in sorted(groups)]


def calendar_month(records: Iterable[DreamRecord], year: int, month: int) -> List[CalendarDay]:
    """Every day of the month, empty days included, for the heatmap grid."""
    groups = group_by_date(records)
    _, days_in_month = calendar.monthrange(year, month)

    days = []
    for day_number in range(1, days_in_month + 1):
        key = date(year, month, day_number).isoformat()
        if key in groups:
            days.append(_calendar_day(key, groups[key]))
        else:
            days.append(CalendarDay(date=key))
    return days


def aggregate_time_series(records: Iterable[DreamRecord]) -> List[TimeSeriesPoint]:
    groups = group_by_date(records)
    points = []
    for key in sorted(groups):
        day_records = groups[key]
        total_wake = sum(record.wake_feeling or 0 for record in day_records)
        points.append(
            TimeSeriesPoint(
                date=key,
                count=len(day_records),
                average_wake_feeling=total_wake / max(1, len(day_records)),
            )
        )
    return points


def aggregate_emotions(records: Iterable[DreamRecord]) -> List[EmotionCount]:
    counts = Counter((emotion_value(record.primary_emotion) or "other").lower() for record in records)
    return [EmotionCount(emotion=emotion, value=value) for emotion, value in counts.items()]


def aggregate_symbols(records: Iterable[DreamRecord], limit: int = 8) -> List[SymbolCount]:
    counts: Counter = Counter()
    for record in records:
        for key_symbol in record.psychological_report.key_symbols:
            symbol = key_symbol.symbol.strip().lower()
            if symbol:
                counts[symbol] += 1
    return [SymbolCount(symbol=symbol, value=value) for symbol, value in counts.most_common(limit)]


def build_trends(records: Sequence[DreamRecord]) -> TrendsReport:
    return TrendsReport(
        emotions=aggregate_emotions(records),
        symbols=aggregate_symbols(records),
        time_series=aggregate_time_series(records),
    )
