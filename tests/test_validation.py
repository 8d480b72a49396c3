"""Tests for the meaningfulness checks and request parsing."""

import pytest

from dream_journal.exceptions import DreamValidationError
from dream_journal.validation import (
    CUES_MISSING,
    CUES_NOT_TEXT,
    CUES_TOO_LONG,
    CUES_TOO_SHORT,
    NOT_REAL_WORDS,
    RANDOM_CHARACTERS,
    parse_dream_request,
    validate,
    validate_dream_cues,
    validate_dream_request,
    validate_optional,
)
from tests.conftest import make_request


class TestValidate:
    def test_accepts_ordinary_sentence(self):
        result = validate("I was flying over a dark forest, feeling afraid.")
        assert result.ok
        assert result.reason is None

    @pytest.mark.parametrize("text", ["dream", "   forest   ", ""])
    def test_rejects_fewer_than_two_words(self, text):
        result = validate(text)
        assert not result.ok
        assert result.reason == NOT_REAL_WORDS

    @pytest.mark.parametrize("text", ["tsk psst", "BRR HMM shh", "xyz qrst"])
    def test_rejects_text_without_vowels(self, text):
        result = validate(text)
        assert not result.ok
        assert result.reason == NOT_REAL_WORDS

    def test_rejects_single_long_letter_run(self):
        result = validate("qwertzuiopasdfghjklm")
        assert not result.ok

    @pytest.mark.parametrize(
        "text",
        [
            "The forest was extraordinarily quiet and I felt afraid.",
            "Something incomprehensible was written on the wall",
            "I forgot all my responsibilities",
        ],
    )
    def test_long_real_word_inside_sentence_is_allowed(self, text):
        assert validate(text).ok
        assert validate_dream_cues(text).ok

    def test_fourteen_letter_word_is_allowed(self):
        assert validate("strange understandings here").ok

    @pytest.mark.parametrize("text", ["aaaa is here", "I saw a loooong road", "the ZZZZ sound"])
    def test_rejects_four_repeated_letters(self, text):
        result = validate(text)
        assert not result.ok
        assert result.reason == RANDOM_CHARACTERS

    def test_three_repeated_letters_are_fine(self):
        assert validate("a shhh moment in the woods").ok


class TestOptionalFields:
    @pytest.mark.parametrize("text", [None, "", "    "])
    def test_blank_optional_field_passes(self, text):
        assert validate_optional(text).ok

    def test_non_blank_optional_field_is_checked(self):
        assert not validate_optional("zzzz").ok


class TestDreamCues:
    def test_too_short(self):
        result = validate_dream_cues("a cat")
        assert result.reason == CUES_TOO_SHORT

    def test_too_long(self):
        result = validate_dream_cues("we ran " * 400)
        assert result.reason == CUES_TOO_LONG

    def test_length_checked_before_meaningfulness(self):
        # would also fail the word count rule
        assert validate_dream_cues("aaaa").reason == CUES_TOO_SHORT

    def test_repeated_letters_rejected_after_length(self):
        assert validate_dream_cues("aaaaaaaaaaaaaaaaaaaa").reason == NOT_REAL_WORDS


class TestValidateDreamRequest:
    def test_valid_request_passes(self):
        validate_dream_request(make_request(title="Night flight", additional_emotions="a little lonely"))

    def test_gibberish_title_rejected_first(self):
        request = make_request(title="asdfghjklqwertyu", dream_cues="aaaaaaaaaaaaaaaaaaaa")
        with pytest.raises(DreamValidationError) as exc_info:
            validate_dream_request(request)
        assert exc_info.value.message == NOT_REAL_WORDS

    def test_gibberish_additional_emotions_rejected(self):
        request = make_request(additional_emotions="a mmmm feeling")
        with pytest.raises(DreamValidationError) as exc_info:
            validate_dream_request(request)
        assert exc_info.value.message == RANDOM_CHARACTERS

    def test_blank_title_ignored(self):
        validate_dream_request(make_request(title="   "))


class TestParseDreamRequest:
    def test_accepts_camel_case_mapping(self):
        request = parse_dream_request(
            {
                "dreamCues": "I was flying over a dark forest.",
                "primaryEmotion": "curious",
                "wakeFeeling": 4,
                "isRecurring": True,
            }
        )
        assert request.dream_cues == "I was flying over a dark forest."
        assert request.primary_emotion == "curious"
        assert request.is_recurring is True

    def test_unknown_emotion(self):
        with pytest.raises(DreamValidationError) as exc_info:
            parse_dream_request({"dreamCues": "a long dream here", "primaryEmotion": "bored", "wakeFeeling": 3})
        assert exc_info.value.message == "Please select an emotion"

    @pytest.mark.parametrize("wake_feeling", [0, 6])
    def test_wake_feeling_out_of_range(self, wake_feeling):
        with pytest.raises(DreamValidationError) as exc_info:
            parse_dream_request(
                {"dreamCues": "a long dream here", "primaryEmotion": "sad", "wakeFeeling": wake_feeling}
            )
        assert "1 (unsettled) to 5 (refreshed)" in exc_info.value.message

    def test_missing_cues(self):
        with pytest.raises(DreamValidationError) as exc_info:
            parse_dream_request({"primaryEmotion": "sad", "wakeFeeling": 3})
        assert exc_info.value.message == CUES_MISSING

    def test_cues_that_are_not_text(self):
        with pytest.raises(DreamValidationError) as exc_info:
            parse_dream_request({"dreamCues": 12345, "primaryEmotion": "sad", "wakeFeeling": 3})
        assert exc_info.value.message == CUES_NOT_TEXT

    def test_request_instance_passes_through(self):
        request = make_request()
        assert parse_dream_request(request) is request
