"""
Tests for the page, submission and admin routes.

Run with: python -m pytest tests/test_api.py
"""

import asyncio
import json

from audit_service import AuditLogger
from bear_store import StoreUnavailable
from conftest import T1, T2
from logic.geocoder import GeocodeUnavailable, GeocoderClient
from test_geocoder import FakeSession


def updates_for(store, bear_id):
    return asyncio.run(store.list_updates(bear_id))


class TestSubmission:
    def test_paris_france_is_stored(self, client, store, add_bear, geocoder):
        add_bear("finlay-1")

        response = client.post(
            "/api/bears/finlay-1/updates",
            json={"city": "Paris", "country": "France", "message": "Found by the river"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["latitude"] == 48.8566
        assert data["longitude"] == 2.3522
        assert data["created_at"]
        assert geocoder.queries == ["Paris, France"]

        stored = updates_for(store, "finlay-1")
        assert len(stored) == 1
        assert stored[0]["message"] == "Found by the river"

        logs = AuditLogger.get_logs(bear_id="finlay-1")
        assert [log["outcome"] for log in logs] == ["accepted"]

    def test_landmark_is_rejected(self, client, store, add_bear):
        add_bear("finlay-1")

        response = client.post("/api/bears/finlay-1/updates", json={"city": "Eiffel Tower", "country": "France"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "WrongPlaceKind"
        assert updates_for(store, "finlay-1") == []
        assert AuditLogger.get_logs(bear_id="finlay-1")[0]["outcome"] == "WrongPlaceKind"

    def test_country_mismatch_is_rejected(self, client, store, add_bear):
        add_bear("finlay-1")

        response = client.post("/api/bears/finlay-1/updates", json={"city": "Paris", "country": "Germany"})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "CountryMismatch"
        assert detail["message"]
        assert updates_for(store, "finlay-1") == []

    def test_unknown_place_is_no_candidate(self, client, store, add_bear):
        add_bear("finlay-1")

        response = client.post("/api/bears/finlay-1/updates", json={"city": "Atlantis", "country": "Nowhere"})

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "NoCandidate"

    def test_geocoder_unavailable(self, client, store, add_bear, geocoder):
        add_bear("finlay-1")
        geocoder.error = GeocodeUnavailable("timeout")

        response = client.post("/api/bears/finlay-1/updates", json={"city": "Paris", "country": "France"})

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "GeocodeUnavailable"
        assert updates_for(store, "finlay-1") == []

    def test_missing_country_rejected_before_lookup(self, client, add_bear, geocoder):
        add_bear("finlay-1")

        response = client.post("/api/bears/finlay-1/updates", json={"city": "Paris", "country": "  "})

        assert response.status_code == 400
        assert geocoder.queries == []

    def test_unknown_bear(self, client, geocoder):
        response = client.post("/api/bears/nobody/updates", json={"city": "Paris", "country": "France"})

        assert response.status_code == 404
        assert geocoder.queries == []

    def test_geocoder_timeout_is_bad_gateway(self, client, store, add_bear):
        from main import app
        from server.dependencies import get_geocoder

        add_bear("finlay-1")
        session = FakeSession(error=asyncio.TimeoutError())
        app.dependency_overrides[get_geocoder] = lambda: GeocoderClient(
            access_token="test-token", base_url="https://geo.test/places", session=session
        )

        response = client.post("/api/bears/finlay-1/updates", json={"city": "Paris", "country": "France"})

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "GeocodeUnavailable"
        assert updates_for(store, "finlay-1") == []
        assert AuditLogger.get_logs(bear_id="finlay-1")[0]["outcome"] == "GeocodeUnavailable"

    def test_store_failure_on_insert(self, client, store, add_bear, monkeypatch):
        add_bear("finlay-1")

        async def fail(*args, **kwargs):
            raise StoreUnavailable("disk full")

        monkeypatch.setattr(store, "insert_update", fail)
        response = client.post("/api/bears/finlay-1/updates", json={"city": "Paris", "country": "France"})

        assert response.status_code == 503


class TestReadApi:
    def test_journey_orders_by_timestamp(self, client, add_bear, add_update):
        add_bear("finlay-1", lat=0, lon=0)
        add_update("finlay-1", 2, 2, T2)
        add_update("finlay-1", 1, 1, T1)

        response = client.get("/api/bears/finlay-1/journey")

        assert response.status_code == 200
        assert response.json()["points"] == [[0, 0], [1, 1], [2, 2]]
        assert response.json()["current"] == [2, 2]

    def test_bear_updates_most_recent_first(self, client, add_bear, add_update):
        add_bear("finlay-1")
        add_update("finlay-1", 1, 1, T1, city="First")
        add_update("finlay-1", 2, 2, T2, city="Second")

        data = client.get("/api/bears/finlay-1").json()

        assert data["bear"]["id"] == "finlay-1"
        assert [u["city"] for u in data["updates"]] == ["Second", "First"]

    def test_list_bears_with_current_location(self, client, add_bear, add_update):
        add_bear("finlay-1", city="London")
        add_bear("finlay-2", name="Aimee", lat=10, lon=20, city="Rome", country="Italy")
        add_update("finlay-1", 48.85, 2.35, T1, city="Paris", country="France", message="Bonjour")

        bears = {b["id"]: b for b in client.get("/api/bears").json()}

        assert bears["finlay-1"]["latest_city"] == "Paris"
        assert bears["finlay-1"]["current_latitude"] == 48.85
        assert bears["finlay-1"]["latest_message"] == "Bonjour"
        assert bears["finlay-2"]["latest_city"] == "Rome"
        assert bears["finlay-2"]["current_longitude"] == 20

    def test_unknown_bear(self, client):
        assert client.get("/api/bears/nobody").status_code == 404
        assert client.get("/api/bears/nobody/journey").status_code == 404


class TestPages:
    def test_index_page(self, client, add_bear):
        add_bear("finlay-1", name="Finlay")

        response = client.get("/")

        assert response.status_code == 200
        assert "Around the World" in response.text
        assert "/bear/finlay-1" in response.text

    def test_journey_page(self, client, add_bear, add_update):
        add_bear("finlay-1", name="Finlay")
        add_update("finlay-1", 48.85, 2.35, T1, city="Paris", country="France")

        response = client.get("/bear/finlay-1")

        assert response.status_code == 200
        assert "Finlay's Journey" in response.text
        assert 'action="/bear/finlay-1/update"' in response.text
        assert "Back to All Bears" in response.text

    def test_store_failure_shows_loading(self, client, store, monkeypatch):
        async def fail(*args, **kwargs):
            raise StoreUnavailable("down")

        monkeypatch.setattr(store, "get_bear", fail)
        response = client.get("/bear/finlay-1")

        assert response.status_code == 200
        assert "Loading..." in response.text

    def test_unknown_bear_page(self, client):
        assert client.get("/bear/nobody").status_code == 404

    def test_form_submission_redirects(self, client, store, add_bear):
        add_bear("finlay-1")

        response = client.post(
            "/bear/finlay-1/update",
            data={"city": "Paris", "country": "France", "message": ""},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/bear/finlay-1"
        assert len(updates_for(store, "finlay-1")) == 1

    def test_form_rejection_shows_message_and_keeps_input(self, client, store, add_bear):
        add_bear("finlay-1")

        response = client.post(
            "/bear/finlay-1/update",
            data={"city": "Paris", "country": "Germany", "message": "hi"},
        )

        assert response.status_code == 400
        assert "does not seem to be in the country" in response.text
        assert 'value="Germany"' in response.text
        assert updates_for(store, "finlay-1") == []


class TestAdmin:
    def test_create_bear(self, client, store):
        payload = {
            "id": "finlay-4",
            "name": "Pamela's Bear",
            "initial_latitude": 55.95,
            "initial_longitude": -3.19,
            "city": "Edinburgh",
            "country": "United Kingdom",
        }

        response = client.post("/api/admin/bears", json=payload)
        assert response.status_code == 201
        assert asyncio.run(store.get_bear("finlay-4"))["city"] == "Edinburgh"

        assert client.post("/api/admin/bears", json=payload).status_code == 409

    def test_create_bear_rejects_bad_coordinates(self, client):
        payload = {
            "id": "finlay-5",
            "name": "Bear",
            "initial_latitude": 123,
            "initial_longitude": 0,
            "city": "X",
            "country": "Y",
        }
        assert client.post("/api/admin/bears", json=payload).status_code == 400

    def test_config_roundtrip(self, client, config_path):
        response = client.post(
            "/api/admin/config",
            json={"content": json.dumps({"bear_colors": {"finlay-1": "#00ff00"}})},
        )
        assert response.status_code == 200

        saved = json.loads(client.get("/api/admin/config").json()["content"])
        assert saved["bear_colors"] == {"finlay-1": "#00ff00"}
        assert saved["geocoder"]["place_types"] == "place"

    def test_config_replaces_malformed_tables(self, client, config_path):
        content = json.dumps({"country_aliases": "United Kingdom", "bear_colors": ["#00ff00"]})
        assert client.post("/api/admin/config", json={"content": content}).status_code == 200

        saved = json.loads(client.get("/api/admin/config").json()["content"])
        assert saved["country_aliases"] == {}
        assert saved["bear_colors"] == {}

    def test_config_invalid_json(self, client, config_path):
        response = client.post("/api/admin/config", json={"content": '{"bear_colors": [}'})
        assert response.status_code == 400
        assert "Invalid JSON" in response.json()["detail"]

    def test_missing_config_file(self, client, config_path):
        assert client.get("/api/admin/config").status_code == 404

    def test_audit_log(self, client, add_bear):
        add_bear("finlay-1")
        client.post(
            "/api/bears/finlay-1/updates",
            json={"city": "Paris", "country": "Germany"},
            headers={"X-User-ID": "tester"},
        )

        logs = client.get("/api/admin/audit", params={"bear_id": "finlay-1"}).json()

        assert logs[0]["user"] == "tester"
        assert logs[0]["outcome"] == "CountryMismatch"
        assert "CountryMismatch" in client.get("/api/admin/audit.csv").text
