"""
Tests for the scheduling API routes
"""

from unittest.mock import AsyncMock

import pytest
from conftest import TUESDAY
from fastapi.testclient import TestClient

from voicetask_scheduler.api import create_app
from voicetask_scheduler.models import Task

HEADERS = {"X-User-Id": "u1"}


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


class TestBestSlotEndpoint:
    def test_best_slot(self, client):
        response = client.get("/api/schedule/best-slot", params={"duration": 60}, headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["bestSlot"]["date"] == "2025-06-02"
        assert data["bestSlot"]["startTime"] == "2025-06-02T09:00:00"
        assert data["bestSlot"]["metrics"]["freeTimePercentage"] == 300
        assert data["hasConflicts"] is False
        assert data["isFallback"] is False
        assert len(data["alternatives"]) == 3

    def test_missing_user_header(self, client):
        response = client.get("/api/schedule/best-slot")

        assert response.status_code == 401
        data = response.json()
        assert data["error_code"] == "AUTHENTICATION_MISSING"
        assert "path" in data

    def test_invalid_duration(self, client):
        response = client.get("/api/schedule/best-slot", params={"duration": 0}, headers=HEADERS)
        assert response.status_code == 422


class TestRankingEndpoints:
    def test_ranked_days(self, client, data_source):
        data_source.add_task("u1", Task(id="t1", scheduled_date=TUESDAY, difficulty=5))

        response = client.get(
            "/api/schedule/ranked-days",
            params={"start": "2025-06-01", "end": "2025-06-07"},
            headers=HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 7
        assert data[0]["date"] == "2025-06-03"
        assert data[0]["formattedDate"] == "Tuesday, June 3"
        assert data[0]["busynessScore"] == 11.5

    def test_busiest_and_least_busy(self, client, data_source):
        data_source.add_task("u1", Task(id="t1", scheduled_date=TUESDAY))
        params = {"start": "2025-06-01", "end": "2025-06-07"}

        busiest = client.get("/api/schedule/busiest-day", params=params, headers=HEADERS)
        least = client.get("/api/schedule/least-busy-day", params=params, headers=HEADERS)

        assert busiest.json()["date"] == "2025-06-03"
        assert least.json()["date"] == "2025-06-07"

    def test_reversed_range(self, client):
        response = client.get(
            "/api/schedule/ranked-days",
            params={"start": "2025-06-07", "end": "2025-06-01"},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_collaborator_failure(self, client, data_source):
        data_source.fetch_tasks = AsyncMock(side_effect=RuntimeError("db down"))

        response = client.get(
            "/api/schedule/ranked-days",
            params={"start": "2025-06-01", "end": "2025-06-07"},
            headers=HEADERS,
        )

        assert response.status_code == 503
        assert response.json()["error_code"] == "DATA_FETCH_FAILURE"

    def test_summary(self, client, data_source):
        data_source.add_task("u1", Task(id="t1", title="Demo", scheduled_date=TUESDAY))
        params = {"start": "2025-06-01", "end": "2025-06-07"}

        busiest = client.get("/api/schedule/summary", params=params, headers=HEADERS)
        least = client.get(
            "/api/schedule/summary",
            params={**params, "leastBusy": "true"},
            headers=HEADERS,
        )

        assert busiest.status_code == 200
        assert busiest.json()["summary"].startswith("You're busiest on Tuesday, June 3.")
        assert "- Demo (60 minutes, difficulty: 3)" in busiest.json()["summary"]
        assert least.json()["summary"].startswith("You're least busy on Saturday, June 7.")


class TestPreferencesEndpoints:
    def test_get_defaults(self, client):
        response = client.get("/api/schedule/preferences", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["workHours"] == {"start": "09:00", "end": "17:00"}
        assert data["workDays"] == [1, 2, 3, 4, 5]
        assert data["breakTimes"][0]["label"] == "Lunch"

    def test_patch(self, client):
        response = client.patch(
            "/api/schedule/preferences",
            json={"workHours": {"start": "08:00", "end": "16:00"}},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["workHours"] == {"start": "08:00", "end": "16:00"}

    def test_patch_with_invalid_merge(self, client):
        response = client.patch(
            "/api/schedule/preferences",
            json={"workDays": [9]},
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_metrics(client):
    client.get("/api/schedule/best-slot", headers=HEADERS)

    response = client.get("/api/schedule/metrics")

    assert response.status_code == 200
    data = response.json()
    assert data["scheduling"]["total"] == 1
    assert data["caches"]["schedule"]["size"] == 1
