"""Tests for playlist endpoints."""

import pytest


@pytest.fixture
def playlist(listener):
    response = listener.post("/api/playlists", json={"name": "Road trip"})
    assert response.status_code == 201
    return response.json()


def layout(playlist):
    return [(entry["trackId"], entry["position"]) for entry in playlist["tracks"]]


class TestOrdering:
    def test_insert_at_front_then_remove(self, listener, playlist, catalog):
        a, b, _ = catalog["tracks"]
        url = f"/api/playlists/{playlist['id']}/tracks"

        listener.post(url, json={"trackId": a.id, "position": 0})
        data = listener.post(url, json={"trackId": b.id, "position": 0}).json()
        assert layout(data) == [(b.id, 0), (a.id, 1)]

        data = listener.delete(f"{url}/{a.id}").json()
        assert layout(data) == [(b.id, 0)]

    def test_entries_include_track(self, listener, playlist, catalog):
        track = catalog["tracks"][0]

        data = listener.post(
            f"/api/playlists/{playlist['id']}/tracks", json={"trackId": track.id}
        ).json()

        assert data["tracks"][0]["track"]["title"] == "Neon Streets"

    def test_positions_survive_catalog_deletion(self, listener, admin, playlist, catalog):
        url = f"/api/playlists/{playlist['id']}/tracks"
        for position, track in enumerate(catalog["tracks"]):
            listener.post(url, json={"trackId": track.id, "position": position})

        admin.delete(f"/api/tracks/{catalog['tracks'][0].id}")

        data = listener.get(f"/api/playlists/{playlist['id']}").json()
        assert [e["position"] for e in data["tracks"]] == [0, 1]


class TestVisibility:
    def test_private_playlist_hidden_from_others(self, client, other_listener, playlist):
        assert other_listener.get(f"/api/playlists/{playlist['id']}").status_code == 403
        assert client.get(f"/api/playlists/{playlist['id']}").status_code == 403

    def test_public_playlist_readable_by_anyone(self, listener, client, playlist):
        listener.put(f"/api/playlists/{playlist['id']}", json={"isPublic": True})

        response = client.get(f"/api/playlists/{playlist['id']}")

        assert response.status_code == 200
        assert response.json()["isPublic"] is True

    def test_owner_lists_own_playlists(self, listener, other_listener, playlist):
        other_listener.post("/api/playlists", json={"name": "Theirs"})

        names = [p["name"] for p in listener.get("/api/me/playlists").json()]

        assert names == ["Road trip"]


class TestOwnership:
    def test_only_owner_edits(self, other_listener, playlist, catalog):
        url = f"/api/playlists/{playlist['id']}"

        assert other_listener.put(url, json={"name": "Mine now"}).status_code == 403
        assert other_listener.delete(url).status_code == 403
        response = other_listener.post(f"{url}/tracks", json={"trackId": catalog["tracks"][0].id})
        assert response.status_code == 403

    def test_delete(self, listener, playlist):
        url = f"/api/playlists/{playlist['id']}"

        assert listener.delete(url).status_code == 200
        assert listener.get(url).status_code == 404
        assert listener.delete(url).status_code == 404

    def test_blank_name_rejected(self, listener):
        response = listener.post("/api/playlists", json={"name": "   "})

        assert response.status_code == 400
        assert response.json() == {"message": "Playlist name is required"}

    def test_null_name_rejected_on_update(self, listener, playlist):
        url = f"/api/playlists/{playlist['id']}"

        response = listener.put(url, json={"name": None})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid request"
        assert listener.get(url).json()["name"] == "Road trip"

    def test_anonymous_cannot_create(self, client):
        assert client.post("/api/playlists", json={"name": "Mix"}).status_code == 401
