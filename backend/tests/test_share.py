"""Tests for the share deep links."""

from datetime import datetime
from types import SimpleNamespace
from urllib.parse import parse_qs, urlparse

from mishmaat import share


class TestShareText:
    """Message bodies."""

    def test_roster_text(self):
        soldiers = [
            SimpleNamespace(full_name="Avi", status="Base"),
            SimpleNamespace(full_name="Ben", status="Home"),
            SimpleNamespace(full_name="Dana", status="Base"),
        ]
        text = share.roster_text(soldiers, datetime(2024, 3, 1, 8, 0), unit_name="Alpha")
        assert text.startswith("Friday (01.03.24)\nAlpha\n")
        assert "On base (2):\n• Avi\n• Dana" in text
        assert "At home (1):\n• Ben" in text

    def test_share_url_encodes_text(self):
        url = share.share_url("On base & home\n2/3")
        assert url.startswith("https://wa.me/?text=")
        assert parse_qs(urlparse(url).query)["text"] == ["On base & home\n2/3"]


class TestShareApi:
    """GET /share/..."""

    def test_roster(self, client):
        client.post("/soldiers", json={"full_name": "Avi"})
        body = client.get("/share/roster").json()
        assert "• Avi" in body["text"]
        assert body["url"] == share.share_url(body["text"])

    def test_roster_of_unknown_platoon(self, client):
        assert client.get("/share/roster", params={"platoon_id": "nope"}).status_code == 404

    def test_event(self, client):
        soldier = client.post("/soldiers", json={"full_name": "Avi"}).json()
        event = client.post(
            "/events",
            json={"title": "Clinic", "category": "Medical", "soldier_id": soldier["id"], "description": "knee"},
        ).json()
        body = client.get(f"/share/events/{event['id']}").json()
        assert body["text"].startswith("Clinic\nCategory: Medical")
        assert "Soldier: Avi" in body["text"]
        assert "knee" in body["text"]
        assert client.get("/share/events/nope").status_code == 404
