"""Tests for the playback controller state machine."""

import pytest

from tunestream.domain.playback import (
    PlaybackController,
    PlaybackError,
    PlaybackOk,
    TransportState,
)

pytestmark = pytest.mark.anyio


class FakeAudioElement:
    """Records what the controller writes and how often it plays/pauses."""

    def __init__(self, fail_with: Exception = None):
        self.src = None
        self.current_time = 0.0
        self.volume = 1.0
        self.fail_with = fail_with
        self.play_calls = 0
        self.pause_calls = 0
        self.on_play = None

    async def play(self) -> None:
        self.play_calls += 1
        if self.on_play:
            self.on_play()
        if self.fail_with:
            raise self.fail_with

    def pause(self) -> None:
        self.pause_calls += 1


@pytest.fixture
def element():
    return FakeAudioElement()


@pytest.fixture
def errors():
    return []


@pytest.fixture
def notices():
    return []


@pytest.fixture
def controller(element, errors, notices):
    return PlaybackController(
        element,
        preview_duration=30,
        restart_threshold=3,
        on_error=errors.append,
        on_notify=notices.append,
    )


@pytest.fixture
def tracks(make_track):
    return [make_track(1), make_track(2), make_track(3)]


class TestTransport:
    async def test_idle_without_track(self, controller):
        """Play with nothing loaded stays idle and reports the problem."""
        result = await controller.play()

        assert isinstance(result, PlaybackError)
        assert result.kind == "no_track"
        assert controller.transport == TransportState.IDLE

    async def test_play_tracks_starts_playing(self, controller, element, tracks):
        result = await controller.play_tracks(tracks, 0)

        assert result == PlaybackOk(track_id=1)
        assert controller.transport == TransportState.PLAYING
        assert element.src == "/audio/1.mp3"
        assert element.play_calls == 1

    async def test_loading_while_play_pending(self, controller, element, tracks):
        """Transport is Loading while the element's play request is in flight."""
        seen = []
        element.on_play = lambda: seen.append(controller.transport)

        await controller.play_tracks(tracks, 0)

        assert seen == [TransportState.LOADING]
        assert controller.transport == TransportState.PLAYING

    async def test_play_failure_reverts_to_paused(self, controller, element, errors, tracks):
        element.fail_with = RuntimeError("autoplay blocked")

        result = await controller.play_tracks(tracks, 0)

        assert isinstance(result, PlaybackError)
        assert result.kind == "play_failed"
        assert result.message == "autoplay blocked"
        assert controller.transport == TransportState.PAUSED
        assert controller.snapshot().is_loading is False
        assert errors == [result]

    async def test_pause_and_toggle(self, controller, element, tracks):
        await controller.play_tracks(tracks, 0)
        pauses_before = element.pause_calls

        controller.pause()
        assert controller.transport == TransportState.PAUSED
        assert element.pause_calls - pauses_before == 1

        result = await controller.toggle()
        assert result.ok
        assert controller.transport == TransportState.PLAYING

        await controller.toggle()
        assert controller.transport == TransportState.PAUSED

    async def test_media_error_pauses(self, controller, errors, tracks):
        await controller.play_tracks(tracks, 0)

        error = controller.on_element_error("decode error")

        assert error.kind == "media_error"
        assert controller.transport == TransportState.PAUSED
        assert errors == [error]

    async def test_load_without_autoplay(self, controller, element, make_track):
        result = await controller.load(make_track(7), autoplay=False)

        assert result is None
        assert element.src == "/audio/7.mp3"
        assert element.play_calls == 0
        assert controller.transport == TransportState.PAUSED


class TestVolume:
    @pytest.mark.parametrize("volume", [0.0, 0.1, 0.5, 0.99, 1.0])
    @pytest.mark.parametrize("muted", [False, True])
    async def test_effective_volume(self, controller, element, volume, muted):
        """Output is 0 exactly when muted, else the stored volume."""
        controller.set_volume(volume)
        if muted:
            controller.toggle_mute()

        expected = 0.0 if muted else volume
        assert controller.effective_volume == expected
        assert element.volume == expected
        assert controller.snapshot().volume == volume

    async def test_unmute_restores_volume(self, controller, element):
        controller.set_volume(0.4)
        controller.toggle_mute()
        controller.toggle_mute()

        assert element.volume == 0.4

    async def test_volume_is_clamped(self, controller):
        assert controller.set_volume(1.7) == 1.0
        assert controller.set_volume(-0.2) == 0.0


class TestPreviewMode:
    async def test_limit_pauses_exactly_once(self, controller, element, notices, make_track):
        track = make_track(5, duration=200, purchase_price=129, purchase_available=True)
        await controller.load(track, preview=True)
        pauses_before = element.pause_calls

        for t in (5.0, 29.5, 30.0, 30.5, 31.0, 45.0):
            controller.on_time_update(t)

        assert element.pause_calls - pauses_before == 1
        assert controller.progress == 30
        assert controller.transport == TransportState.PAUSED
        assert len(notices) == 1
        assert notices[0].track_id == 5
        assert notices[0].purchasable is True

    async def test_play_after_limit_is_refused(self, controller, element, make_track):
        await controller.load(make_track(5, duration=200), preview=True)
        controller.on_time_update(30)
        plays_before = element.play_calls

        result = await controller.play()

        assert isinstance(result, PlaybackError)
        assert result.kind == "preview_limit"
        assert element.play_calls == plays_before

    async def test_seek_capped_at_preview_limit(self, controller, make_track):
        await controller.load(make_track(5, duration=200), preview=True)

        assert controller.seek(120) == 30

    async def test_exit_preview_lifts_limit(self, controller, make_track):
        await controller.load(make_track(5, duration=200), preview=True)
        controller.on_time_update(30)

        controller.exit_preview_mode()
        result = await controller.play()

        assert result.ok
        controller.on_time_update(60)
        assert controller.progress == 60

    async def test_new_track_resets_limit(self, controller, make_track):
        await controller.play_tracks([make_track(1, 200), make_track(2, 200)], 0, preview=True)
        controller.on_time_update(30)

        result = await controller.next_track()

        assert result.ok
        assert controller.snapshot().preview_limit_reached is False

    async def test_preview_policy_decides_per_track(self, element, make_track):
        controller = PlaybackController(
            element, preview_duration=30, preview_policy=lambda track: track.id == 2
        )

        await controller.play_tracks([make_track(1), make_track(2)], 0)
        assert controller.snapshot().is_preview_mode is False

        await controller.next_track()
        assert controller.snapshot().is_preview_mode is True


class TestSeeking:
    async def test_seek_clamps_to_track(self, controller, element, tracks):
        await controller.play_tracks(tracks, 0)

        assert controller.seek(-10) == 0
        assert controller.seek(500) == 120
        assert element.current_time == 120

    async def test_drag_not_overwritten_by_time_update(self, controller, tracks):
        await controller.play_tracks(tracks, 0)
        controller.on_time_update(10)

        controller.begin_seek()
        controller.seek(80)
        controller.on_time_update(11)
        controller.on_time_update(12)

        assert controller.progress == 80

        controller.end_seek(80)
        controller.on_time_update(81)
        assert controller.progress == 81

    async def test_seek_without_track_is_noop(self, controller, element):
        assert controller.seek(10) == 0
        assert element.current_time == 0


class TestNavigation:
    async def test_repeat_one_restarts_same_track(self, controller, element, tracks):
        await controller.play_tracks(tracks, 0)
        controller.on_time_update(95)
        controller.set_repeat_mode("one")

        result = await controller.on_track_end()

        assert result == PlaybackOk(track_id=1)
        assert controller.current_track.id == 1
        assert controller.progress == 0
        assert element.current_time == 0
        assert controller.transport == TransportState.PLAYING

    async def test_repeat_off_advances_in_order(self, controller, tracks):
        await controller.play_tracks(tracks, 0)

        await controller.on_track_end()
        assert controller.current_track.id == 2

        await controller.on_track_end()
        assert controller.current_track.id == 3

    async def test_end_of_queue_pauses(self, controller, tracks):
        await controller.play_tracks(tracks, 2)
        await controller.on_track_end()
        await controller.on_track_end()
        await controller.on_track_end()

        result = await controller.on_track_end()

        assert result is None
        assert controller.transport == TransportState.PAUSED

    async def test_repeat_all_wraps(self, controller, tracks):
        await controller.play_tracks(tracks, 0)
        controller.set_repeat_mode("all")

        for _ in range(3):
            await controller.on_track_end()

        assert controller.current_track.id == 1
        assert [t.id for t in controller.snapshot().queue] == [2, 3]

    async def test_previous_restarts_after_threshold(self, controller, tracks):
        await controller.play_tracks(tracks, 0)
        await controller.next_track()
        controller.on_time_update(10)

        await controller.prev_track()

        assert controller.current_track.id == 2
        assert controller.progress == 0

    async def test_previous_goes_back_early_in_track(self, controller, tracks):
        await controller.play_tracks(tracks, 0)
        await controller.next_track()
        controller.on_time_update(2)

        await controller.prev_track()

        assert controller.current_track.id == 1
        assert [t.id for t in controller.snapshot().queue] == [2, 3]

    async def test_track_change_callback(self, element, tracks):
        started = []
        controller = PlaybackController(element, on_track_change=started.append)

        await controller.play_tracks(tracks, 0)
        await controller.next_track()

        assert [t.id for t in started] == [1, 2]

    async def test_failing_track_change_leaves_paused(self, element, errors, tracks):
        def reject_second(track):
            if track.id == 2:
                raise LookupError("Track not found")

        controller = PlaybackController(
            element, on_track_change=reject_second, on_error=errors.append
        )
        await controller.play_tracks(tracks, 0)
        plays_before = element.play_calls

        result = await controller.next_track()

        assert isinstance(result, PlaybackError)
        assert result.kind == "load_failed"
        assert result.track_id == 2
        assert errors == [result]
        assert controller.transport == TransportState.PAUSED
        assert element.play_calls == plays_before

    async def test_cycle_repeat_mode(self, controller):
        assert controller.cycle_repeat_mode() == "all"
        assert controller.cycle_repeat_mode() == "one"
        assert controller.cycle_repeat_mode() == "off"

    async def test_invalid_repeat_mode(self, controller):
        with pytest.raises(ValueError):
            controller.set_repeat_mode("forever")


class TestElementEvents:
    async def test_loaded_metadata_sets_duration(self, controller, tracks):
        await controller.play_tracks(tracks, 0)

        controller.on_loaded_metadata(321.5)

        assert controller.snapshot().duration == 321.5

    async def test_load_start_marks_loading_while_playing(self, controller, tracks):
        await controller.play_tracks(tracks, 0)

        controller.on_load_start()
        assert controller.transport == TransportState.LOADING

        controller.on_time_update(0.5)
        assert controller.transport == TransportState.PLAYING
