"""HTTP surface tests; the service is swapped in through dependency overrides."""

import random
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from dream_journal.fallback import FallbackAnalyzer
from dream_journal.orchestrator import DreamJournalService
from dream_journal.validation import CUES_MISSING, NOT_REAL_WORDS
from main import app, get_service

DREAM = {
    "dreamCues": "I was flying over a dark forest, feeling afraid.",
    "primaryEmotion": "afraid",
    "wakeFeeling": 2,
    "isRecurring": False,
}


@pytest.fixture
def client():
    journal_service = DreamJournalService(fallback=FallbackAnalyzer(random.Random(5)))
    app.dependency_overrides[get_service] = lambda: journal_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def submit(client, **overrides):
    response = client.post("/api/dreams/analyze", json={**DREAM, **overrides})
    assert response.status_code == 200, response.text
    return response.json()


class TestMeta:
    def test_root(self, client):
        assert client.get("/").json()["message"] == "Dream Journal Analysis API"

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "healthy"

    def test_emotions(self, client):
        assert client.get("/emotions").json() == [
            "curious", "afraid", "confused", "peaceful", "anxious", "excited", "sad", "other",
        ]


class TestAnalyzeDream:
    def test_submission_returns_record(self, client):
        record = submit(client)

        assert record["id"] == 1
        assert record["title"]
        assert record["primaryEmotion"] == "afraid"
        assert "afraid" in record["dreamNarrative"]
        report = record["psychologicalReport"]
        assert len(report["reflectionQuestions"]) == 4
        assert 3 <= len(report["keySymbols"]) <= 5

    def test_user_title_is_kept(self, client):
        assert submit(client, title="Over the trees")["title"] == "Over the trees"

    def test_gibberish_is_rejected(self, client):
        response = client.post("/api/dreams/analyze", json={**DREAM, "dreamCues": "aaaaaaaaaaaaaaaaaaaa"})

        assert response.status_code == 400
        assert response.json() == {"message": NOT_REAL_WORDS}
        assert client.get("/api/dreams").json() == []

    def test_missing_emotion_is_a_readable_400(self, client):
        body = {key: value for key, value in DREAM.items() if key != "primaryEmotion"}
        response = client.post("/api/dreams/analyze", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Please select an emotion"

    def test_missing_cues_message(self, client):
        body = {key: value for key, value in DREAM.items() if key != "dreamCues"}
        response = client.post("/api/dreams/analyze", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == CUES_MISSING

    def test_wake_feeling_out_of_range(self, client):
        response = client.post("/api/dreams/analyze", json={**DREAM, "wakeFeeling": 9})
        assert response.status_code == 400
        assert "1 (unsettled) to 5 (refreshed)" in response.json()["message"]


class TestDreams:
    def test_list_most_recent_first(self, client):
        submit(client)
        submit(client, dreamCues="A long hallway full of doors and whispers.")

        assert [record["id"] for record in client.get("/api/dreams").json()] == [2, 1]

    def test_get_one(self, client):
        submit(client)
        assert client.get("/api/dreams/1").json()["id"] == 1

    def test_unknown_dream(self, client):
        response = client.get("/api/dreams/7")
        assert response.status_code == 404
        assert response.json() == {"message": "Dream not found"}

    def test_today_filter(self, client):
        submit(client)
        assert len(client.get("/api/dreams", params={"filter": "today"}).json()) == 1

    def test_custom_filter_needs_both_dates(self, client):
        response = client.get("/api/dreams", params={"filter": "custom", "start": "2024-01-01"})
        assert response.status_code == 400

    def test_custom_filter(self, client):
        submit(client)
        response = client.get(
            "/api/dreams", params={"filter": "custom", "start": "2000-01-01", "end": "2000-12-31"}
        )
        assert response.json() == []

    def test_unknown_filter(self, client):
        assert client.get("/api/dreams", params={"filter": "someday"}).status_code == 400

    def test_anniversary(self, client):
        submit(client)
        assert client.get("/api/dreams/anniversary").json() == []


class TestNotes:
    def test_note_round_trip(self, client):
        submit(client)
        assert client.get("/api/dreams/1/notes").json() is None

        client.put("/api/dreams/1/notes", json={"text": "first"})
        response = client.put("/api/dreams/1/notes", json={"text": "It was about my new job."})

        assert response.status_code == 200
        assert response.json()["dreamId"] == 1
        assert client.get("/api/dreams/1/notes").json()["text"] == "It was about my new job."

    def test_note_for_unknown_dream(self, client):
        assert client.put("/api/dreams/3/notes", json={"text": "hm"}).status_code == 404


class TestAnalytics:
    def test_streak(self, client):
        submit(client)
        body = client.get("/api/analytics/streak").json()

        assert body["streak"]["currentStreak"] == 1
        assert body["streak"]["totalDreams"] == 1
        assert body["badge"] is None
        assert body["message"].startswith("Great start!")

    def test_trends(self, client):
        submit(client)
        submit(client, primaryEmotion="sad")
        body = client.get("/api/analytics/trends").json()

        assert {item["emotion"]: item["value"] for item in body["emotions"]} == {"afraid": 1, "sad": 1}
        assert body["timeSeries"][0]["count"] == 2

    def test_calendar(self, client):
        submit(client)
        days = client.get("/api/analytics/calendar").json()

        assert len(days) == 1
        assert days[0]["dominantEmotion"] == "afraid"
        assert days[0]["dreamIds"] == [1]

    def test_calendar_month(self, client):
        days = client.get("/api/analytics/calendar", params={"year": 2024, "month": 4}).json()
        assert len(days) == 30

    @pytest.mark.parametrize("params", [{"year": 2024}, {"month": 4}])
    def test_calendar_needs_year_and_month_together(self, client, params):
        response = client.get("/api/analytics/calendar", params=params)
        assert response.status_code == 400
        assert "year and a month" in response.json()["message"]

    def test_calendar_rejects_bad_month(self, client):
        response = client.get("/api/analytics/calendar", params={"year": 2024, "month": 13})
        assert response.status_code == 400

    def test_moon_insights_empty(self, client):
        assert client.get("/api/analytics/moon").json()["mostCommonPhase"] == "Unknown"

    def test_moon_phase_for_date(self, client):
        body = client.get("/api/moon", params={"date": "2000-01-06"}).json()
        assert body["name"] == "New Moon"
        assert body["illumination"] == 0


class TestUnexpectedErrors:
    def test_unhandled_error_is_a_json_500(self):
        journal_service = DreamJournalService(fallback=FallbackAnalyzer(random.Random(5)))
        journal_service.trends = AsyncMock(side_effect=RuntimeError("analytics exploded"))
        app.dependency_overrides[get_service] = lambda: journal_service
        try:
            response = TestClient(app, raise_server_exceptions=False).get("/api/analytics/trends")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json() == {"message": "Something went wrong", "error": "analytics exploded"}
