"""
Offline dream analyzer used whenever the remote generator is unavailable.

Everything is template based. Pass a seeded ``random.Random`` to get the
same analysis for the same request, which is what the tests rely on.
"""

import logging
import random
import re
from typing import List, Optional

from .schemas import DreamAnalysis, DreamRequest, KeySymbol, PsychologicalReport, emotion_value

logger = logging.getLogger(__name__)

# Emotion -> theme. Keys cover the app's own emotions plus the wider
# vocabulary dreamers tend to type into the "other" field.
EMOTION_THEMES = {
    "joy": "fulfillment and happiness",
    "fear": "anxiety and insecurity",
    "sadness": "loss and grief",
    "anger": "frustration and boundaries",
    "surprise": "unexpected change",
    "disgust": "rejection and aversion",
    "anticipation": "expectation and preparation",
    "trust": "security and relationships",
    "confusion": "uncertainty and decision-making",
    "anxiety": "worries and stress",
    "love": "connection and intimacy",
    "nostalgia": "past and memory",
    "awe": "wonder and transcendence",
    "guilt": "responsibility and regret",
    "shame": "self-image and acceptance",
    "pride": "accomplishment and recognition",
    "contentment": "peace and satisfaction",
    "curious": "exploration and discovery",
    "afraid": "anxiety and insecurity",
    "confused": "uncertainty and decision-making",
    "peaceful": "peace and satisfaction",
    "anxious": "worries and stress",
    "excited": "expectation and new possibilities",
    "sad": "loss and grief",
}
DEFAULT_THEME = "personal growth and change"

ICON_OPTIONS = [
    "moon-line", "star-line", "cloud-line", "home-4-line", "map-pin-line",
    "door-open-line", "key-line", "compass-line", "flashlight-line", "eye-line",
    "heart-line", "user-line", "group-line", "plant-line", "leaf-line",
    "fire-line", "water-flash-line", "mountain-line", "road-map-line", "building-line",
]

# Used when the cues are too short to yield three distinct symbols
GENERIC_SYMBOLS = ["Journey", "Emotions", "Transformation", "Threshold", "Light"]

MIN_SYMBOLS = 3
MAX_SYMBOLS = 5
QUESTION_COUNT = 4

_CUE_DELIMITERS = re.compile(r"[,.;]")
_EDGE_PUNCTUATION = "\"'()[]{}!?:;,.-"


def get_theme_from_emotion(emotion: str) -> str:
    return EMOTION_THEMES.get(emotion.lower(), DEFAULT_THEME)


def capitalize_first_letter(text: str) -> str:
    return text[:1].upper() + text[1:]


def split_cue_fragments(dream_cues: str) -> List[str]:
    return [cue.strip() for cue in _CUE_DELIMITERS.split(dream_cues) if cue.strip()]


def split_cue_words(dream_cues: str) -> List[str]:
    words = (word.strip(_EDGE_PUNCTUATION) for word in dream_cues.split())
    return [word for word in words if len(word) > 3]


def symbol_count_for(token_count: int) -> int:
    return min(max(MIN_SYMBOLS, token_count // 3), MAX_SYMBOLS)


class FallbackAnalyzer:
    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def analyze_locally(self, request: DreamRequest) -> DreamAnalysis:
        """Build a complete analysis from templates. Never fails."""
        emotion = emotion_value(request.primary_emotion)
        theme = get_theme_from_emotion(emotion)
        is_positive = request.wake_feeling > 3

        analysis = DreamAnalysis(
            title=self.generate_title(request.dream_cues, emotion),
            dream_narrative=self.generate_narrative(
                request.dream_cues, emotion, is_positive, request.is_recurring
            ),
            psychological_report=PsychologicalReport(
                key_symbols=self.extract_key_symbols(request.dream_cues),
                analysis_summary=self.generate_summary(
                    request.dream_cues, emotion, is_positive, request.is_recurring
                ),
                reflection_questions=self.generate_reflection_questions(
                    request.dream_cues, emotion, theme
                ),
            ),
        )
        logger.debug("Local analysis produced title %r", analysis.title)
        return analysis

    def _random_cue_word(self, dream_cues: str, default: str) -> str:
        words = split_cue_words(dream_cues)
        return self.rng.choice(words) if words else default

    def generate_title(self, dream_cues: str, emotion: str) -> str:
        cue = capitalize_first_letter(self._random_cue_word(dream_cues, "Journey"))
        feeling = capitalize_first_letter(emotion)

        title_formats = [
            f"The {cue} of {feeling}",
            f"{feeling}'s Whisper",
            f"Beyond the {cue}",
            f"Shadows of {cue}",
            f"The {feeling} Labyrinth",
            f"Echoes of {cue}",
            f"When {cue} Meets {feeling}",
            f"The {cue} Within",
            f"{feeling}'s Reflection",
            f"The Hidden {cue}",
        ]
        return self.rng.choice(title_formats)

    def generate_narrative(
        self, dream_cues: str, emotion: str, is_positive: bool, is_recurring: bool
    ) -> str:
        fragments = split_cue_fragments(dream_cues)
        feeling = emotion.lower()

        def cue(index: int, fallback: str) -> str:
            return fragments[index] if index < len(fragments) else fallback

        intro = (
            f"I found myself in a strange yet familiar place. "
            f"{cue(0, 'The surroundings were hazy at first')}. "
            f"As my awareness grew, I noticed {cue(1, 'unusual details around me')}."
        )
        middle = (
            f"{'As in previous dreams, I recognized ' if is_recurring else 'I was surprised to see '}"
            f"{cue(2, 'elements that seemed significant')}. "
            f"The atmosphere was filled with a sense of {feeling}. "
            f"{cue(3, 'I moved through this dreamscape with curiosity')}."
        )
        development = (
            f"{cue(4, 'As the dream continued')}, I experienced "
            f"{'a growing sense of clarity' if is_positive else 'increasing uncertainty'}. "
            f"{cue(5, 'The symbols around me seemed to carry meaning')}. "
            f"I felt drawn to {cue(6, 'explore further into this symbolic landscape')}."
        )
        climax = (
            f"Then, something shifted. {cue(7, 'The entire scene transformed in an instant')}. "
            f"I felt an overwhelming sense of {feeling} as "
            f"{cue(8, 'the true nature of the dream revealed itself')}. "
            f"{'This revelation brought a sense of peace' if is_positive else 'This realization was unsettling'}."
        )
        if is_recurring:
            significance = "this recurring dream was trying to convey something important"
        else:
            significance = "this unique experience held significance for my waking life"
        resolution = (
            f"As the dream began to fade, {cue(9, 'I tried to hold onto the essential meaning')}. "
            f"There was a feeling that {significance}. "
            f"The last thing I remember before waking was "
            f"{cue(10, 'a sense that this experience would stay with me')}."
        )
        return "\n\n".join([intro, middle, development, climax, resolution])

    def extract_key_symbols(self, dream_cues: str) -> List[KeySymbol]:
        words = split_cue_words(dream_cues)
        count = symbol_count_for(len(words))

        # "Woods" and "woods" are one symbol; the first spelling wins
        unique_words = []
        seen = set()
        for word in words:
            if word.lower() not in seen:
                seen.add(word.lower())
                unique_words.append(word)
        chosen = self.rng.sample(unique_words, min(count, len(unique_words)))
        taken = {word.lower() for word in chosen}
        for generic in GENERIC_SYMBOLS:
            if len(chosen) >= count:
                break
            if generic.lower() not in taken:
                chosen.append(generic)

        symbols = []
        used_icons = set()
        for word in chosen:
            remaining = [icon for icon in ICON_OPTIONS if icon not in used_icons]
            icon = self.rng.choice(remaining or ICON_OPTIONS)
            used_icons.add(icon)

            meanings = [
                f"Represents your inner {word} and how it influences your life choices.",
                f"Symbolizes a {word} that you're trying to understand or integrate.",
                f"The {word} points to unresolved feelings or thoughts in your subconscious.",
                f"This {word} represents a transition or transformation you're experiencing.",
                f"The presence of {word} suggests a need for acknowledgment or attention.",
            ]
            symbols.append(
                KeySymbol(
                    symbol=capitalize_first_letter(word),
                    icon=icon,
                    meaning=self.rng.choice(meanings),
                )
            )
        return symbols

    def generate_summary(
        self, dream_cues: str, emotion: str, is_positive: bool, is_recurring: bool
    ) -> str:
        theme = get_theme_from_emotion(emotion)
        opening_words = " ".join(dream_cues.split()[:3])

        summary = f"Your dream reveals themes connected to {theme}. "
        summary += (
            f"The emotional landscape of {emotion.lower()} suggests that you are "
            f"processing feelings related to {theme}. "
        )
        if is_recurring:
            summary += (
                "As a recurring dream, this suggests that your mind is repeatedly "
                "trying to process or resolve something important. "
            )
        else:
            summary += (
                "This dream appears to be responding to recent experiences or "
                "thoughts in your waking life. "
            )
        summary += "\n\nThe symbols in your dream act as metaphors for aspects of your inner world. "
        summary += (
            f"Your {'positive' if is_positive else 'challenging'} feeling upon waking "
            f"({'refreshed' if is_positive else 'unsettled'}) indicates that this dream experience is "
            f"{'helping you integrate these emotions' if is_positive else 'highlighting unresolved tensions'}. "
        )
        summary += (
            f"\n\nFrom a psychological perspective, dreams about {opening_words}... often "
            "connect to how we navigate our relationships, challenges, and self-perception. "
            "Your subconscious may be working through feelings or situations that you "
            "haven't fully processed in your waking life."
        )
        return summary

    def generate_reflection_questions(self, dream_cues: str, emotion: str, theme: str) -> List[str]:
        cue = self._random_cue_word(dream_cues, "element")

        question_bank = [
            f"How does the feeling of {emotion.lower()} in your dream relate to your current life circumstances?",
            f"What does the {cue} in your dream remind you of in your waking life?",
            "If you could change one aspect of this dream, what would it be and why?",
            f"How might this dream be offering guidance related to {theme}?",
            "What parts of yourself might the different characters or elements in this dream represent?",
            "What unresolved situation might this dream be processing for you?",
            "How do the symbols in this dream connect to your past experiences?",
            "What boundary or limitation in your life might this dream be addressing?",
            "What change or transition in your life could this dream be reflecting?",
            "How might acknowledging the message of this dream benefit your waking life?",
        ]
        self.rng.shuffle(question_bank)
        return question_bank[:QUESTION_COUNT]
