import pytest

from dlna_playlist.models import ContentNode, NodeKind
from dlna_playlist.soap import ActionResult


def item(item_id, title=None, url=None, parent_id=""):
    return ContentNode(
        id=item_id,
        title=title or f"Track {item_id}",
        kind=NodeKind.ITEM,
        parent_id=parent_id,
        upnp_class="object.item.audioItem.musicTrack",
        url=url or f"http://server/{item_id}.mp3",
        content_type="audio/mpeg",
    )


def container(container_id, title=None, parent_id=""):
    return ContentNode(
        id=container_id,
        title=title or f"Folder {container_id}",
        kind=NodeKind.CONTAINER,
        parent_id=parent_id,
        upnp_class="object.container.storageFolder",
    )


class FakeServer:
    """ContentDirectory stand-in backed by a dict of container id to children."""

    def __init__(self, tree):
        self.tree = tree
        self.browsed = []

    def browse(self, container_id):
        self.browsed.append(container_id)
        return list(self.tree.get(container_id, []))


class FakeRenderer:
    """AVTransport stand-in replaying a scripted sequence of transport states.

    Each GetTransportInfo call consumes the next state. A state may be a
    ``(state, status)`` tuple to report a non-OK transport status. Running
    past the end of the script is a test error, so a broken loop fails
    instead of hanging.
    """

    def __init__(self, states, failing=()):
        self.states = list(states)
        self.failing = set(failing)
        self.calls = []
        self.uri = None
        self.metadata = None

    def _result(self, action, fields=None):
        self.calls.append(action)
        if action in self.failing:
            return ActionResult(500, error_code="701", error_description="Transition not available")
        return ActionResult(200, fields)

    def set_av_transport_uri(self, instance_id, uri, metadata=""):
        self.uri = uri
        self.metadata = metadata
        return self._result("SetAVTransportURI")

    def play(self, instance_id, speed="1"):
        return self._result("Play")

    def pause(self, instance_id):
        return self._result("Pause")

    def stop(self, instance_id):
        return self._result("Stop")

    def get_transport_info(self, instance_id):
        if not self.states:
            raise RuntimeError("renderer script exhausted")
        state = self.states.pop(0)
        status = "OK"
        if isinstance(state, tuple):
            state, status = state
        return self._result(
            "GetTransportInfo",
            {"CurrentTransportState": state, "CurrentTransportStatus": status, "CurrentSpeed": "1"},
        )

    def get_media_info(self, instance_id):
        return self._result("GetMediaInfo", {"NrTracks": "1", "MediaDuration": "00:03:00"})

    def get_position_info(self, instance_id):
        return self._result("GetPositionInfo", {"Track": "1", "RelTime": "00:00:01", "TrackDuration": "00:03:00"})

    def count(self, action):
        return self.calls.count(action)


@pytest.fixture
def sleeps():
    """A sleep replacement recording the requested delays."""
    recorded = []

    def sleep(seconds):
        recorded.append(seconds)

    sleep.recorded = recorded
    return sleep


@pytest.fixture
def music_tree():
    """Root with a loose track, an album with a nested disc folder, and a trailing track."""
    return FakeServer(
        {
            "0": [item("1"), container("10", "Album"), item("4")],
            "10": [item("2"), container("11", "Disc 2"), item("3")],
            "11": [item("21"), item("22")],
        }
    )
