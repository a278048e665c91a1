"""Tests for the server-held player endpoints."""

import pytest


@pytest.fixture
def subscriber(listener, store):
    """Listener on a paid tier, so nothing plays as a preview."""
    store.update_user(listener.user["id"], subscription_tier="premium")
    return listener


def play(client, **body):
    response = client.post("/api/player/play", json=body)
    assert response.status_code == 200, response.text
    return response.json()


def event(client, type_, **fields):
    response = client.post("/api/player/events", json={"type": type_, **fields})
    assert response.status_code == 200, response.text
    return response.json()


def state(client):
    return client.get("/api/player/state").json()


class TestTransport:
    def test_requires_login(self, client):
        assert client.get("/api/player/state").status_code == 401

    def test_initially_idle(self, listener):
        data = state(listener)

        assert data["transport"] == "idle"
        assert data["currentTrack"] is None
        assert data["element"]["paused"] is True

    def test_resume_without_track(self, listener):
        result = play(listener)

        assert result["ok"] is False
        assert result["kind"] == "no_track"

    def test_play_track_list(self, subscriber, catalog):
        ids = [t.id for t in catalog["tracks"]]

        result = play(subscriber, trackIds=ids, startIndex=1)

        assert result == {"ok": True, "trackId": ids[1], "kind": None, "message": None}
        data = state(subscriber)
        assert data["transport"] == "playing"
        assert data["element"]["src"] == "/audio/afterglow.mp3"
        assert data["element"]["paused"] is False
        assert [t["id"] for t in data["queue"]] == [ids[2], ids[0]]

    def test_pause_and_toggle(self, subscriber, catalog):
        play(subscriber, trackId=catalog["tracks"][0].id)

        assert subscriber.post("/api/player/pause").json()["transport"] == "paused"
        assert subscriber.post("/api/player/toggle").json()["ok"] is True
        assert state(subscriber)["transport"] == "playing"

    def test_toggle_without_track(self, listener):
        assert listener.post("/api/player/toggle").status_code == 400

    def test_play_album(self, subscriber, catalog):
        play(subscriber, albumId=catalog["album"].id)

        data = state(subscriber)
        assert data["currentTrack"]["title"] == "Neon Streets"
        assert [t["title"] for t in data["queue"]] == ["Afterglow"]

    def test_start_index_out_of_range(self, subscriber, catalog):
        response = subscriber.post(
            "/api/player/play", json={"trackIds": [catalog["tracks"][0].id], "startIndex": 3}
        )

        assert response.status_code == 400

    def test_private_playlist_of_someone_else(self, listener, other_listener, catalog):
        playlist = other_listener.post("/api/playlists", json={"name": "Secret"}).json()
        other_listener.post(
            f"/api/playlists/{playlist['id']}/tracks", json={"trackId": catalog["tracks"][0].id}
        )

        response = listener.post("/api/player/play", json={"playlistId": playlist["id"]})

        assert response.status_code == 403

    def test_sessions_are_per_user(self, subscriber, other_listener, catalog):
        play(subscriber, trackId=catalog["tracks"][0].id)

        assert state(other_listener)["transport"] == "idle"

    def test_streams_are_recorded(self, subscriber, store, catalog):
        play(subscriber, trackIds=[t.id for t in catalog["tracks"][:2]])
        subscriber.post("/api/player/next")

        analytics = store.get_artist_analytics(catalog["artist"].id)
        assert analytics.stream_count == 2


class TestPreview:
    def test_free_listener_hits_preview_limit(self, listener, catalog, config):
        limit = config.player.preview_duration
        play(listener, trackId=catalog["tracks"][0].id)
        assert state(listener)["isPreviewMode"] is True

        event(listener, "timeupdate", currentTime=10)
        event(listener, "timeupdate", currentTime=limit + 1)
        event(listener, "timeupdate", currentTime=limit + 2)

        data = state(listener)
        assert data["transport"] == "paused"
        assert data["progress"] == limit
        assert data["previewLimitReached"] is True
        assert data["notifications"] == [
            {
                "trackId": catalog["tracks"][0].id,
                "limit": limit,
                "purchasable": True,
                "purchasePrice": 129,
            }
        ]
        # Notifications are delivered once
        assert state(listener)["notifications"] == []

        result = play(listener)
        assert result["ok"] is False
        assert result["kind"] == "preview_limit"

    def test_purchased_track_plays_in_full(self, listener, catalog):
        track_id = catalog["tracks"][0].id
        listener.post("/api/me/purchases", json={"items": [{"itemType": "track", "itemId": track_id}]})

        play(listener, trackId=track_id)

        assert state(listener)["isPreviewMode"] is False

    def test_seek_capped_in_preview(self, listener, catalog, config):
        play(listener, trackId=catalog["tracks"][0].id)

        data = listener.post("/api/player/seek", json={"position": 120}).json()

        assert data["progress"] == config.player.preview_duration

    def test_exit_preview(self, listener, catalog):
        play(listener, trackId=catalog["tracks"][0].id)

        data = listener.post("/api/player/preview/exit").json()

        assert data["isPreviewMode"] is False


class TestNavigation:
    def test_repeat_one_restarts_on_end(self, subscriber, catalog):
        ids = [t.id for t in catalog["tracks"]]
        play(subscriber, trackIds=ids)
        event(subscriber, "timeupdate", currentTime=150)
        subscriber.post("/api/player/repeat", json={"mode": "one"})

        data = event(subscriber, "ended")

        assert data["currentTrack"]["id"] == ids[0]
        assert data["progress"] == 0
        assert data["element"]["currentTime"] == 0
        assert data["transport"] == "playing"

    def test_end_of_queue_pauses(self, subscriber, catalog):
        play(subscriber, trackIds=[catalog["tracks"][0].id])

        data = event(subscriber, "ended")

        assert data["transport"] == "paused"
        assert data["element"]["paused"] is True

    def test_repeat_cycles_without_mode(self, subscriber):
        assert subscriber.post("/api/player/repeat").json()["repeatMode"] == "all"
        assert subscriber.post("/api/player/repeat", json={}).json()["repeatMode"] == "one"

    def test_previous_goes_back(self, subscriber, catalog):
        ids = [t.id for t in catalog["tracks"]]
        play(subscriber, trackIds=ids)
        subscriber.post("/api/player/next")

        data = subscriber.post("/api/player/previous").json()

        assert data["currentTrack"]["id"] == ids[0]

    def test_shuffle_keeps_queue_membership(self, subscriber, catalog):
        ids = [t.id for t in catalog["tracks"]]
        play(subscriber, trackIds=ids)

        data = subscriber.post("/api/player/shuffle").json()

        assert data["isShuffled"] is True
        assert sorted(t["id"] for t in data["queue"]) == sorted(ids[1:])


class TestVolumeAndQueue:
    def test_volume_and_mute(self, listener):
        data = listener.post("/api/player/volume", json={"volume": 0.4}).json()
        assert data["effectiveVolume"] == 0.4
        assert data["element"]["volume"] == 0.4

        data = listener.post("/api/player/mute").json()
        assert data["isMuted"] is True
        assert data["effectiveVolume"] == 0
        assert data["volume"] == 0.4

    def test_volume_clamped(self, listener):
        assert listener.post("/api/player/volume", json={"volume": 3}).json()["volume"] == 1.0

    def test_queue_editing(self, subscriber, catalog):
        first, second, third = catalog["tracks"]
        play(subscriber, trackId=first.id)

        subscriber.post("/api/player/queue", json={"trackId": second.id})
        data = subscriber.post("/api/player/queue", json={"trackId": third.id}).json()
        assert [t["id"] for t in data["queue"]] == [second.id, third.id]

        data = subscriber.delete("/api/player/queue/0").json()
        assert [t["id"] for t in data["queue"]] == [third.id]

        assert subscriber.delete("/api/player/queue/5").status_code == 404
        assert subscriber.delete("/api/player/queue").json()["queue"] == []

    def test_queue_unknown_track(self, subscriber):
        assert subscriber.post("/api/player/queue", json={"trackId": 999}).status_code == 404


class TestElementEvents:
    def test_timeupdate_requires_current_time(self, subscriber, catalog):
        play(subscriber, trackId=catalog["tracks"][0].id)

        response = subscriber.post("/api/player/events", json={"type": "timeupdate"})

        assert response.status_code == 400

    def test_drag_not_overwritten(self, subscriber, catalog):
        play(subscriber, trackId=catalog["tracks"][0].id)

        event(subscriber, "seekstart")
        subscriber.post("/api/player/seek", json={"position": 90})
        data = event(subscriber, "timeupdate", currentTime=5)
        assert data["progress"] == 90

        data = event(subscriber, "seekend", currentTime=95)
        assert data["progress"] == 95
        assert data["isSeeking"] is False

    def test_media_error_reported_once(self, subscriber, catalog):
        play(subscriber, trackId=catalog["tracks"][0].id)

        event(subscriber, "error", message="decode failed")

        data = state(subscriber)
        assert data["transport"] == "paused"
        assert [(e["kind"], e["message"]) for e in data["errors"]] == [
            ("media_error", "decode failed")
        ]
        assert state(subscriber)["errors"] == []

    def test_next_track_deleted_from_catalog(self, subscriber, catalog, store):
        first, second = catalog["tracks"][:2]
        play(subscriber, trackIds=[first.id, second.id])
        store.delete_track(second.id)

        response = subscriber.post("/api/player/next")

        assert response.status_code == 200
        data = state(subscriber)
        assert data["transport"] == "paused"
        assert data["element"]["paused"] is True
        assert [e["kind"] for e in data["errors"]] == ["load_failed"]

    def test_loaded_metadata_sets_duration(self, subscriber, catalog):
        play(subscriber, trackId=catalog["tracks"][0].id)

        assert event(subscriber, "loadedmetadata", duration=201.5)["duration"] == 201.5
