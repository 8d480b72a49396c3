"""Shared fixtures: request and record factories, seeded analyzer."""

import random
from datetime import datetime

import pytest

from dream_journal.fallback import FallbackAnalyzer
from dream_journal.schemas import DreamRecord, DreamRequest, KeySymbol, PsychologicalReport

FLYING_DREAM = "I was flying over a dark forest, feeling afraid."


def make_request(**overrides) -> DreamRequest:
    fields = {
        "dream_cues": FLYING_DREAM,
        "primary_emotion": "afraid",
        "wake_feeling": 2,
        "is_recurring": False,
    }
    fields.update(overrides)
    return DreamRequest(**fields)


def make_report(symbols=("Forest", "Flying", "Darkness")) -> PsychologicalReport:
    return PsychologicalReport(
        key_symbols=[
            KeySymbol(symbol=name, icon="moon-line", meaning=f"The {name} stands for something.")
            for name in symbols
        ],
        analysis_summary="A summary.",
        reflection_questions=["One?", "Two?", "Three?", "Four?"],
    )


def make_record(created_at: datetime, emotion: str = "curious", wake_feeling: int = 3,
                dream_id: int = 1, symbols=("Forest", "Flying", "Darkness")) -> DreamRecord:
    return DreamRecord(
        id=dream_id,
        created_at=created_at,
        title="A dream",
        dream_cues=FLYING_DREAM,
        primary_emotion=emotion,
        wake_feeling=wake_feeling,
        dream_narrative="x" * 120,
        psychological_report=make_report(symbols),
    )


@pytest.fixture
def dream_request():
    return make_request()


@pytest.fixture
def seeded_analyzer():
    return FallbackAnalyzer(random.Random(42))
