"""
Moon phase for a calendar date, and how recorded dreams line up with it.

Phase is the fraction of the synodic month elapsed since the new moon of
2000-01-06: 0 is new, 0.5 is full.
"""

import math
from collections import Counter
from datetime import date, datetime
from typing import Iterable, Union

from .schemas import DreamRecord, MoonInsights, MoonPhase, emotion_value

SYNODIC_MONTH = 29.53058867
REFERENCE_NEW_MOON_JD = 2451549.5  # 2000-01-06 00:00
JULIAN_DAY_OFFSET = 1721424.5  # date.toordinal() -> Julian day at midnight

FULL_MOON_WINDOW = (0.4375, 0.5625)
NEW_MOON_EDGE = 0.0625

# (upper bound, name, emoji)
PHASE_BUCKETS = [
    (0.0625, "New Moon", "\U0001F311"),
    (0.1875, "Waxing Crescent", "\U0001F312"),
    (0.3125, "First Quarter", "\U0001F313"),
    (0.4375, "Waxing Gibbous", "\U0001F314"),
    (0.5625, "Full Moon", "\U0001F315"),
    (0.6875, "Waning Gibbous", "\U0001F316"),
    (0.8125, "Last Quarter", "\U0001F317"),
    (0.9375, "Waning Crescent", "\U0001F318"),
]


def julian_day(day: date) -> float:
    return day.toordinal() + JULIAN_DAY_OFFSET


def _calendar_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.astimezone().date() if value.tzinfo else value.date()
    return value


def phase_fraction(value: Union[date, datetime]) -> float:
    days_since_new = julian_day(_calendar_date(value)) - REFERENCE_NEW_MOON_JD
    return (days_since_new % SYNODIC_MONTH) / SYNODIC_MONTH


def _bucket(phase: float):
    for upper, name, emoji in PHASE_BUCKETS:
        if phase < upper:
            return name, emoji
    return "New Moon", "\U0001F311"


def get_moon_name(phase: float) -> str:
    return _bucket(phase)[0]


def get_moon_emoji(phase: float) -> str:
    return _bucket(phase)[1]


def illumination_percent(phase: float) -> int:
    return round((1 - math.cos(2 * math.pi * phase)) / 2 * 100)


def get_moon_phase(value: Union[date, datetime]) -> MoonPhase:
    phase = phase_fraction(value)
    name, emoji = _bucket(phase)
    return MoonPhase(phase=phase, emoji=emoji, name=name, illumination=illumination_percent(phase))


def is_full_moon(phase: float) -> bool:
    low, high = FULL_MOON_WINDOW
    return low <= phase <= high


def is_new_moon(phase: float) -> bool:
    return phase < NEW_MOON_EDGE or phase > 1 - NEW_MOON_EDGE


def get_moon_insights(records: Iterable[DreamRecord]) -> MoonInsights:
    phase_counts: Counter = Counter()
    full_moon_emotions: Counter = Counter()
    full_moon_count = 0
    new_moon_count = 0

    for record in records:
        moon = get_moon_phase(record.created_at)
        phase_counts[moon.name] += 1

        if is_full_moon(moon.phase):
            full_moon_count += 1
            full_moon_emotions[emotion_value(record.primary_emotion)] += 1
        if is_new_moon(moon.phase):
            new_moon_count += 1

    # most_common() keeps insertion order between equal counts
    most_common_phase = phase_counts.most_common(1)[0][0] if phase_counts else "Unknown"
    dominant = full_moon_emotions.most_common(1)[0][0] if full_moon_emotions else None

    return MoonInsights(
        full_moon_dreams=full_moon_count,
        new_moon_dreams=new_moon_count,
        most_common_phase=most_common_phase,
        full_moon_emotions=dict(full_moon_emotions),
        dominant_full_moon_emotion=dominant,
    )
