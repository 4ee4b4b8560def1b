"""API tests for the soldier self-service link."""

import pytest


@pytest.fixture
def soldier(client):
    return client.post("/soldiers", json={"full_name": "Avi Cohen", "status": "Home"}).json()


class TestSelfService:
    """/s/{soldier_id}"""

    def test_page(self, client, soldier):
        client.post("/news", json={"title": "Drill", "content": "Friday"})
        client.post("/events", json={"title": "Clinic", "category": "Medical", "soldier_id": soldier["id"]})
        client.post("/events", json={"title": "Unrelated", "category": "Personal"})

        page = client.get(f"/s/{soldier['id']}").json()
        assert page["soldier"]["full_name"] == "Avi Cohen"
        assert [e["title"] for e in page["events"]] == ["Clinic"]
        assert [n["title"] for n in page["news"]] == ["Drill"]

    def test_unknown_link(self, client):
        assert client.get("/s/not-a-soldier").status_code == 404
        resp = client.post("/s/not-a-soldier/requests", json={"title": "x", "category": "Personal"})
        assert resp.status_code == 404

    def test_profile_edit_cannot_touch_status(self, client, soldier):
        resp = client.patch(
            f"/s/{soldier['id']}",
            json={"full_name": " Avi C. ", "civilian_job": "  ", "status": "Base"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["full_name"] == "Avi C."
        assert body["civilian_job"] is None
        assert body["status"] == "Home"

    def test_profile_requires_name(self, client, soldier):
        assert client.patch(f"/s/{soldier['id']}", json={"full_name": "  "}).status_code == 422

    def test_request_is_marked_as_soldier_source(self, client, soldier):
        resp = client.post(
            f"/s/{soldier['id']}/requests",
            json={"title": "Leave", "category": "Leaves", "description": "wedding"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["source"] == "soldier"
        assert body["soldier_id"] == soldier["id"]
        assert body["creator_id"] is None
