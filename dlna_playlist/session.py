"""
Playback session controller.

play() drives one renderer through one item: it loads the item with
SetAVTransportURI, starts it, then polls the AVTransport service once per
poll interval until the renderer stops after having played, or until one of
the failure policies ends the session. The result is always an Outcome; the
controller never raises for remote failures.

Policies applied while polling:
- start retry: a renderer still STOPPED before playback was ever observed
  gets Play reissued, up to max_start_retries times
- pause limit: a pause longer than pause_limit_polls stops the renderer
- pause refresh: a pause longer than pause_refresh_polls is refreshed by a
  short Play/Pause cycle, for renderers that drop long pauses on their own
"""

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .avtransport import STATE_PAUSED, STATE_PLAYING, STATE_STOPPED, STATUS_OK, build_didl_lite_metadata
from .errors import ConfigurationError
from .models import PlaybackItem

logger = logging.getLogger(__name__)

# Pause refresh waits this many one-second polls for each state change
REFRESH_POLLS = 20
REFRESH_INTERVAL = 1


class Outcome(enum.Enum):
    SUCCESS = "success"
    STOPPED = "stopped"
    START_TIMEOUT = "start-timeout"
    PAUSE_LIMIT_EXCEEDED = "pause-limit-exceeded"
    UNPAUSE_FAILED = "unpause-failed"
    REPAUSE_FAILED = "repause-failed"
    TRANSPORT_FAULT = "transport-fault"
    ACTION_ERROR = "action-error"
    CONFIGURATION_ERROR = "configuration-error"

    @property
    def ok(self) -> bool:
        return self in (Outcome.SUCCESS, Outcome.STOPPED)


@dataclass(frozen=True)
class PlaybackOptions:
    settle_delay: float = 1
    poll_interval: float = 1
    max_start_retries: int = 10
    pause_refresh_polls: Optional[int] = None
    pause_limit_polls: Optional[int] = None
    title: Optional[str] = None
    stop_only: bool = False
    instance_id: int = 0

    def __post_init__(self):
        if self.pause_refresh_polls is not None and self.pause_limit_polls is not None:
            raise ConfigurationError("pause refresh and pause limit cannot be used together")
        for name in ("settle_delay", "poll_interval", "max_start_retries", "pause_refresh_polls", "pause_limit_polls"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigurationError(f"{name} must not be negative, got {value}")


@dataclass
class Session:
    """Mutable state of one playback attempt."""

    item: PlaybackItem
    instance_id: int = 0
    transport_state: str = ""
    confirmed_started: bool = False
    # poll count at which the current pause began, None while not paused
    pause_start: Optional[int] = None
    poll_count: int = 0
    start_retries: int = 0

    @property
    def paused_polls(self) -> int:
        if self.pause_start is None:
            return 0
        return self.poll_count - self.pause_start


def _wait_for_state(transport, instance_id: int, wanted: str, sleep: Callable[[float], None]) -> bool:
    for _ in range(REFRESH_POLLS):
        info = transport.get_transport_info(instance_id)
        if info.ok and info.get("CurrentTransportState") == wanted:
            return True
        sleep(REFRESH_INTERVAL)
    return False


def _refresh_pause(transport, session: Session, sleep: Callable[[float], None]) -> Optional[Outcome]:
    """Briefly resume and re-pause the renderer. Returns an Outcome on failure."""
    logger.info("Refreshing pause after %d polls", session.paused_polls)
    if not transport.play(session.instance_id).ok or not _wait_for_state(
        transport, session.instance_id, STATE_PLAYING, sleep
    ):
        logger.error("Renderer did not resume during pause refresh")
        return Outcome.UNPAUSE_FAILED
    if not transport.pause(session.instance_id).ok or not _wait_for_state(
        transport, session.instance_id, STATE_PAUSED, sleep
    ):
        logger.error("Renderer did not pause again during pause refresh")
        return Outcome.REPAUSE_FAILED
    session.pause_start = session.poll_count
    return None


def _poll(transport, session: Session, options: PlaybackOptions, sleep: Callable[[float], None]) -> Optional[Outcome]:
    """Run one monitor iteration. Returns an Outcome once the session is over."""
    instance_id = session.instance_id
    session.poll_count += 1

    transport_info = transport.get_transport_info(instance_id)
    media_info = transport.get_media_info(instance_id)
    position_info = transport.get_position_info(instance_id)
    for name, result in (
        ("GetTransportInfo", transport_info),
        ("GetMediaInfo", media_info),
        ("GetPositionInfo", position_info),
    ):
        if not result.ok:
            logger.error("Monitoring failed: %s returned status %s", name, result.status)
            return Outcome.ACTION_ERROR

    status = transport_info.get("CurrentTransportStatus")
    if status != STATUS_OK:
        logger.error("Renderer reports transport status %s", status)
        return Outcome.TRANSPORT_FAULT

    state = transport_info.get("CurrentTransportState")
    session.transport_state = state
    logger.debug(
        "Poll %d: %s %s/%s",
        session.poll_count,
        state,
        position_info.get("RelTime"),
        position_info.get("TrackDuration") or media_info.get("MediaDuration"),
    )

    if state == STATE_STOPPED:
        if session.confirmed_started:
            return Outcome.SUCCESS
        session.start_retries += 1
        if session.start_retries > options.max_start_retries:
            logger.error("Renderer did not start after %d retries", options.max_start_retries)
            return Outcome.START_TIMEOUT
        logger.info("Renderer still stopped, reissuing Play (%d/%d)", session.start_retries, options.max_start_retries)
        if not transport.play(instance_id).ok:
            return Outcome.ACTION_ERROR
    elif state == STATE_PLAYING:
        session.confirmed_started = True
        session.pause_start = None
    elif state == STATE_PAUSED:
        if session.pause_start is None:
            # the pause began after the previous poll
            session.pause_start = session.poll_count - 1
        if options.pause_limit_polls is not None and session.paused_polls > options.pause_limit_polls:
            logger.warning("Paused for %d polls, stopping renderer", session.paused_polls)
            transport.stop(instance_id)
            return Outcome.PAUSE_LIMIT_EXCEEDED
        if options.pause_refresh_polls is not None and session.paused_polls > options.pause_refresh_polls:
            return _refresh_pause(transport, session, sleep)
    else:
        session.pause_start = None
    return None


def play(
    transport,
    item: PlaybackItem,
    options: Optional[PlaybackOptions] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Outcome:
    """Play ``item`` on the renderer behind ``transport`` until it finishes.

    Args:
        transport: AVTransport client, normally a DLNAController
        item: the item to play
        options: timing and policy settings
        sleep: called for every wait; replaced in tests

    Returns:
        The terminal Outcome of the session.
    """
    if options is None:
        options = PlaybackOptions()
    instance_id = options.instance_id

    if options.stop_only:
        transport.stop(instance_id)
        return Outcome.STOPPED

    title = options.title or item.title
    metadata = build_didl_lite_metadata(item.url, title)
    result = transport.set_av_transport_uri(instance_id, item.url, metadata)
    if not result.ok:
        logger.error("SetAVTransportURI failed for %s: status %s", item.url, result.status)
        return Outcome.ACTION_ERROR
    if not transport.play(instance_id).ok:
        logger.error("Play failed for %s", item.url)
        return Outcome.ACTION_ERROR
    logger.info("Playing %s", title)

    sleep(options.settle_delay)
    session = Session(item=item, instance_id=instance_id)
    while True:
        outcome = _poll(transport, session, options, sleep)
        if outcome is not None:
            logger.info("Finished %s: %s after %d polls", title, outcome.value, session.poll_count)
            return outcome
        sleep(options.poll_interval)
