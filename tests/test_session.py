import pytest
from conftest import FakeRenderer

from dlna_playlist.errors import ConfigurationError
from dlna_playlist.models import PlaybackItem
from dlna_playlist.session import Outcome, PlaybackOptions, Session, play

SONG = PlaybackItem(id="7", url="http://x/7.mp3", title="Song")


def test_plays_until_renderer_stops(sleeps):
    renderer = FakeRenderer(["TRANSITIONING", "PLAYING", "PLAYING", "STOPPED"])

    assert play(renderer, SONG, PlaybackOptions(), sleep=sleeps) is Outcome.SUCCESS
    assert renderer.calls[:2] == ["SetAVTransportURI", "Play"]
    assert renderer.uri == "http://x/7.mp3"
    assert renderer.count("Play") == 1
    assert renderer.count("GetMediaInfo") == 4
    assert renderer.count("GetPositionInfo") == 4
    # settle delay, then one interval after each poll that did not end the session
    assert sleeps.recorded == [1, 1, 1, 1]


def test_metadata_carries_escaped_title(sleeps):
    renderer = FakeRenderer(["PLAYING", "STOPPED"])
    item = PlaybackItem(id="1", url="http://x/a.mp3?x=1&y=2", title='Tom & Jerry <"live">')

    play(renderer, item, PlaybackOptions(), sleep=sleeps)

    assert "<dc:title>Tom &amp; Jerry &lt;&quot;live&quot;&gt;</dc:title>" in renderer.metadata
    assert "http://x/a.mp3?x=1&amp;y=2" in renderer.metadata
    assert "object.item.audioItem" in renderer.metadata


def test_title_option_overrides_item_title(sleeps):
    renderer = FakeRenderer(["PLAYING", "STOPPED"])

    play(renderer, SONG, PlaybackOptions(title="Other"), sleep=sleeps)

    assert "<dc:title>Other</dc:title>" in renderer.metadata


def test_start_retry_reissues_play(sleeps):
    renderer = FakeRenderer(["STOPPED", "STOPPED", "STOPPED", "PLAYING", "STOPPED"])

    outcome = play(renderer, SONG, PlaybackOptions(max_start_retries=10), sleep=sleeps)

    assert outcome is Outcome.SUCCESS
    # the initial Play plus exactly three reissues
    assert renderer.count("Play") == 4


def test_start_timeout_after_retries_exhausted(sleeps):
    renderer = FakeRenderer(["STOPPED"] * 11)

    outcome = play(renderer, SONG, PlaybackOptions(max_start_retries=10), sleep=sleeps)

    assert outcome is Outcome.START_TIMEOUT
    assert renderer.count("Play") == 11
    assert renderer.states == []


def test_pause_limit_stops_on_sixth_paused_poll(sleeps):
    renderer = FakeRenderer(["PLAYING"] + ["PAUSED_PLAYBACK"] * 6)

    outcome = play(renderer, SONG, PlaybackOptions(pause_limit_polls=5), sleep=sleeps)

    assert outcome is Outcome.PAUSE_LIMIT_EXCEEDED
    assert renderer.count("Stop") == 1
    assert renderer.calls[-1] == "Stop"
    assert renderer.states == []


def test_pause_limit_counts_consecutive_pauses_only(sleeps):
    renderer = FakeRenderer(
        ["PLAYING"] + ["PAUSED_PLAYBACK"] * 5 + ["PLAYING"] + ["PAUSED_PLAYBACK"] * 5 + ["STOPPED"]
    )

    outcome = play(renderer, SONG, PlaybackOptions(pause_limit_polls=5), sleep=sleeps)

    assert outcome is Outcome.SUCCESS
    assert renderer.count("Stop") == 0


def test_other_states_reset_the_pause_count(sleeps):
    renderer = FakeRenderer(
        ["PLAYING"] + ["PAUSED_PLAYBACK"] * 5 + ["TRANSITIONING"] + ["PAUSED_PLAYBACK"] * 5 + ["STOPPED"]
    )

    outcome = play(renderer, SONG, PlaybackOptions(pause_limit_polls=5), sleep=sleeps)

    assert outcome is Outcome.SUCCESS
    assert renderer.count("Stop") == 0
    assert renderer.states == []


def test_pause_refresh_resumes_and_repauses(sleeps):
    renderer = FakeRenderer(
        [
            "PLAYING",
            "PAUSED_PLAYBACK",
            "PAUSED_PLAYBACK",
            "PAUSED_PLAYBACK",
            # refresh: waiting for PLAYING, then for PAUSED_PLAYBACK
            "TRANSITIONING",
            "PLAYING",
            "PAUSED_PLAYBACK",
            # monitoring again
            "PAUSED_PLAYBACK",
            "PLAYING",
            "STOPPED",
        ]
    )

    outcome = play(renderer, SONG, PlaybackOptions(pause_refresh_polls=2), sleep=sleeps)

    assert outcome is Outcome.SUCCESS
    assert renderer.count("Pause") == 1
    assert renderer.count("Play") == 2
    assert renderer.count("Stop") == 0


def test_pause_refresh_fails_when_renderer_stays_paused(sleeps):
    renderer = FakeRenderer(["PLAYING", "PAUSED_PLAYBACK", "PAUSED_PLAYBACK"] + ["PAUSED_PLAYBACK"] * 20)

    outcome = play(renderer, SONG, PlaybackOptions(pause_refresh_polls=1), sleep=sleeps)

    assert outcome is Outcome.UNPAUSE_FAILED
    assert renderer.count("Pause") == 0


def test_pause_refresh_fails_when_renderer_does_not_pause_again(sleeps):
    renderer = FakeRenderer(["PLAYING", "PAUSED_PLAYBACK", "PAUSED_PLAYBACK", "PLAYING"] + ["PLAYING"] * 20)

    outcome = play(renderer, SONG, PlaybackOptions(pause_refresh_polls=1), sleep=sleeps)

    assert outcome is Outcome.REPAUSE_FAILED
    assert renderer.count("Pause") == 1


def test_transport_status_fault_ends_session(sleeps):
    renderer = FakeRenderer(["PLAYING", ("PLAYING", "ERROR_OCCURRED")])

    assert play(renderer, SONG, PlaybackOptions(), sleep=sleeps) is Outcome.TRANSPORT_FAULT


@pytest.mark.parametrize(
    "script",
    [
        [("STOPPED", "ERROR_OCCURRED")],
        ["PLAYING", ("STOPPED", "ERROR_OCCURRED")],
        ["PLAYING", ("PAUSED_PLAYBACK", "ERROR_OCCURRED")],
    ],
)
def test_transport_status_fault_wins_over_state(sleeps, script):
    renderer = FakeRenderer(script)

    assert play(renderer, SONG, PlaybackOptions(pause_limit_polls=0), sleep=sleeps) is Outcome.TRANSPORT_FAULT
    assert renderer.count("Play") == 1
    assert renderer.count("Stop") == 0


def test_set_uri_failure_is_action_error(sleeps):
    renderer = FakeRenderer([], failing={"SetAVTransportURI"})

    assert play(renderer, SONG, PlaybackOptions(), sleep=sleeps) is Outcome.ACTION_ERROR
    assert renderer.calls == ["SetAVTransportURI"]


def test_play_failure_is_action_error(sleeps):
    renderer = FakeRenderer([], failing={"Play"})

    assert play(renderer, SONG, PlaybackOptions(), sleep=sleeps) is Outcome.ACTION_ERROR


def test_monitor_failure_is_action_error(sleeps):
    renderer = FakeRenderer(["PLAYING"], failing={"GetPositionInfo"})

    assert play(renderer, SONG, PlaybackOptions(), sleep=sleeps) is Outcome.ACTION_ERROR


def test_stop_only_ignores_errors(sleeps):
    renderer = FakeRenderer([], failing={"Stop"})

    assert play(renderer, SONG, PlaybackOptions(stop_only=True), sleep=sleeps) is Outcome.STOPPED
    assert renderer.calls == ["Stop"]


def test_pause_options_are_exclusive():
    with pytest.raises(ConfigurationError):
        PlaybackOptions(pause_limit_polls=5, pause_refresh_polls=3)


def test_outcome_ok():
    assert Outcome.SUCCESS.ok
    assert Outcome.STOPPED.ok
    assert not Outcome.START_TIMEOUT.ok
    assert not Outcome.CONFIGURATION_ERROR.ok


def test_session_counts_paused_polls():
    session = Session(item=SONG, poll_count=8, pause_start=5)
    assert session.paused_polls == 3
    session.pause_start = None
    assert session.paused_polls == 0


@pytest.mark.parametrize(
    "options", [{"poll_interval": -1}, {"max_start_retries": -2}, {"pause_limit_polls": -1}, {"settle_delay": -0.5}]
)
def test_negative_options_are_rejected(options):
    with pytest.raises(ConfigurationError):
        PlaybackOptions(**options)
