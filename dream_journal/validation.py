"""
Meaningfulness checks applied to every free-text field before a dream is
sent anywhere near a generator.

The rules are simple pattern heuristics: at least two words, at least one
vowel, not just one unbroken run of 15+ letters, and no letter repeated
four or more times in a row.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from .exceptions import DreamValidationError
from .schemas import DreamRequest, EmotionType

MIN_WORDS = 2
MIN_CUES_LENGTH = 10
MAX_CUES_LENGTH = 2000

_VOWEL = re.compile(r"[aeiou]", re.IGNORECASE)
_LETTER_RUN = re.compile(r"[a-z]{15,}", re.IGNORECASE)
_REPEATED_LETTER = re.compile(r"([a-z])\1{3,}", re.IGNORECASE)

NOT_REAL_WORDS = "Please provide a meaningful description of your dream with real words."
RANDOM_CHARACTERS = (
    "Your description appears to contain random characters. "
    "Please describe your dream using meaningful words."
)
CUES_MISSING = "Please describe what you remember from your dream"
CUES_NOT_TEXT = "Your dream description must be text"
CUES_TOO_SHORT = "Please provide at least 10 characters about your dream"
CUES_TOO_LONG = "Dream description is too long. Please keep it under 2000 characters."


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def accepted(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: str) -> "ValidationResult":
        return cls(ok=False, reason=reason)


def validate(text: str) -> ValidationResult:
    """Decide whether free text looks like real words."""
    word_count = len(text.split())
    if word_count < MIN_WORDS or not _VOWEL.search(text):
        return ValidationResult.rejected(NOT_REAL_WORDS)

    if _REPEATED_LETTER.search(text) or _LETTER_RUN.fullmatch(text.strip()):
        return ValidationResult.rejected(RANDOM_CHARACTERS)

    return ValidationResult.accepted()


def validate_optional(text: Optional[str]) -> ValidationResult:
    # Blank optional fields are never checked
    if text is None or not text.strip():
        return ValidationResult.accepted()
    return validate(text)


def validate_dream_cues(text: str) -> ValidationResult:
    if len(text) < MIN_CUES_LENGTH:
        return ValidationResult.rejected(CUES_TOO_SHORT)
    if len(text) > MAX_CUES_LENGTH:
        return ValidationResult.rejected(CUES_TOO_LONG)
    return validate(text)


def validate_dream_request(request: DreamRequest) -> None:
    """Raise DreamValidationError with the first rejection reason, if any."""
    checks = (
        validate_optional(request.title),
        validate_dream_cues(request.dream_cues),
        validate_optional(request.additional_emotions),
    )
    for result in checks:
        if not result.ok:
            raise DreamValidationError(result.reason)


def describe_schema_error(error) -> str:
    """Turn the first pydantic error into a sentence a user can act on."""
    first = error.errors()[0]
    field = str(first["loc"][-1]) if first.get("loc") else ""

    if field in ("primaryEmotion", "primary_emotion"):
        return "Please select an emotion"
    if field in ("wakeFeeling", "wake_feeling"):
        return "Please rate how you felt on waking from 1 (unsettled) to 5 (refreshed)"
    if field in ("dreamCues", "dream_cues"):
        if first.get("type") == "missing":
            return CUES_MISSING
        if first.get("type") == "string_type":
            return CUES_NOT_TEXT
        return CUES_TOO_SHORT
    if field:
        return f"Invalid value for {field}: {first['msg']}"
    return first["msg"]


def parse_dream_request(raw: Union[DreamRequest, Mapping[str, Any]]) -> DreamRequest:
    if isinstance(raw, DreamRequest):
        return raw
    try:
        return DreamRequest.model_validate(raw)
    except ValidationError as e:
        raise DreamValidationError(describe_schema_error(e)) from e


def allowed_emotions() -> list:
    return [emotion.value for emotion in EmotionType]
