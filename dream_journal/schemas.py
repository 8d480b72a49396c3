from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Emotion types offered by the primary emotion selector
class EmotionType(str, Enum):
    CURIOUS = "curious"
    AFRAID = "afraid"
    CONFUSED = "confused"
    PEACEFUL = "peaceful"
    ANXIOUS = "anxious"
    EXCITED = "excited"
    SAD = "sad"
    OTHER = "other"


# Emotion color mapping used by the calendar heatmap
EMOTION_COLORS = {
    EmotionType.CURIOUS: "#6D5A9E",
    EmotionType.AFRAID: "#9E3B3B",
    EmotionType.CONFUSED: "#D67F00",
    EmotionType.PEACEFUL: "#F3C623",
    EmotionType.ANXIOUS: "#E05A9E",
    EmotionType.EXCITED: "#5AAE9E",
    EmotionType.SAD: "#5A9EE0",
    EmotionType.OTHER: "#B0B0B0",
}


def get_emotion_color(emotion: str) -> str:
    try:
        return EMOTION_COLORS[EmotionType(emotion)]
    except ValueError:
        return "#808080"


NonEmptyStr = Annotated[str, Field(min_length=1)]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DreamRequest(CamelModel):
    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = Field(default=None, description="optional title given by the dreamer")
    dream_cues: str = Field(description="remembered fragments of the dream")
    is_recurring: bool = False
    primary_emotion: EmotionType = Field(description="dominant emotion felt during the dream")
    wake_feeling: int = Field(ge=1, le=5, description="1 = unsettled, 5 = refreshed")
    additional_emotions: Optional[str] = None


class KeySymbol(CamelModel):
    model_config = ConfigDict(frozen=True)

    symbol: NonEmptyStr = Field(description="name of the dream element")
    icon: NonEmptyStr = Field(description="a Remix icon name, e.g. 'plant-line'")
    meaning: NonEmptyStr = Field(description="psychological interpretation of the symbol")


class PsychologicalReport(CamelModel):
    model_config = ConfigDict(frozen=True)

    key_symbols: List[KeySymbol] = Field(min_length=3, max_length=5)
    analysis_summary: NonEmptyStr
    reflection_questions: List[NonEmptyStr] = Field(min_length=4, max_length=4)


class DreamAnalysis(CamelModel):
    model_config = ConfigDict(frozen=True)

    title: NonEmptyStr = Field(description="creative title for the dream")
    dream_narrative: NonEmptyStr = Field(description="full dream narrative")
    psychological_report: PsychologicalReport


class DreamRecord(CamelModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: int
    created_at: datetime
    title: str
    dream_cues: str
    is_recurring: bool = False
    primary_emotion: EmotionType
    wake_feeling: int = Field(ge=1, le=5)
    additional_emotions: Optional[str] = None
    dream_narrative: str
    psychological_report: PsychologicalReport

    @classmethod
    def from_submission(
        cls,
        dream_id: int,
        created_at: datetime,
        request: DreamRequest,
        analysis: DreamAnalysis,
    ) -> "DreamRecord":
        title = request.title.strip() if request.title and request.title.strip() else analysis.title
        return cls(
            id=dream_id,
            created_at=created_at,
            title=title,
            dream_cues=request.dream_cues,
            is_recurring=request.is_recurring,
            primary_emotion=request.primary_emotion,
            wake_feeling=request.wake_feeling,
            additional_emotions=request.additional_emotions or None,
            dream_narrative=analysis.dream_narrative,
            psychological_report=analysis.psychological_report,
        )


class StreakData(CamelModel):
    current_streak: int = 0
    longest_streak: int = 0
    total_dreams: int = 0
    last_dream_date: Optional[str] = None
    streak_dates: List[str] = []


class StreakBadge(CamelModel):
    emoji: str
    label: str


class StreakSummary(CamelModel):
    streak: StreakData
    badge: Optional[StreakBadge] = None
    message: str


class MoonPhase(CamelModel):
    phase: float = Field(description="0 = new moon, 0.5 = full moon")
    emoji: str
    name: str
    illumination: int = Field(description="0-100 percent")


class MoonInsights(CamelModel):
    full_moon_dreams: int = 0
    new_moon_dreams: int = 0
    most_common_phase: str = "Unknown"
    full_moon_emotions: Dict[str, int] = {}
    dominant_full_moon_emotion: Optional[str] = None


class CalendarDay(CamelModel):
    date: str
    count: int = 0
    dominant_emotion: Optional[str] = None
    color: Optional[str] = None
    dream_ids: List[int] = []


class TimeSeriesPoint(CamelModel):
    date: str
    count: int
    average_wake_feeling: float


class EmotionCount(CamelModel):
    emotion: str
    value: int


class SymbolCount(CamelModel):
    symbol: str
    value: int


class TrendsReport(CamelModel):
    emotions: List[EmotionCount]
    symbols: List[SymbolCount]
    time_series: List[TimeSeriesPoint]


class ReflectionNote(CamelModel):
    dream_id: int
    text: str
    updated_at: datetime


class ReflectionNoteUpdate(CamelModel):
    text: str


def emotion_value(emotion) -> str:
    """Plain string for an emotion whether it arrives as an enum or a str."""
    return emotion.value if isinstance(emotion, Enum) else str(emotion)
