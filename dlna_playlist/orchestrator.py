"""
Playlist orchestration: walk a MediaServer subtree and act on every item.

PlaylistOrchestrator.run() resolves the starting node, walks it in server
order and, depending on the output mode, plays each item through a player,
prints a (possibly extended) playlist, or only reports what it would do.

In EXECUTE mode the id of each item is written to the checkpoint before
it is played, and the checkpoint is emptied once the walk is exhausted. A
later run with ``resume=True`` skips every item up to the checkpointed one
and restarts that item from its beginning. A failed item ends the run; its
id stays in the checkpoint.
"""

import enum
import logging
import shlex
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from .checkpoint import CheckpointStore
from .content_directory import ROOT_CONTAINER_ID
from .errors import ConfigurationError, PathNotFound
from .models import ContainerDone, PlaybackItem
from .playlist import playlist_lines
from .session import Outcome, PlaybackOptions, play
from .walker import Browse, ResumeState, WalkEvent, find_node, resolve_path, walk

logger = logging.getLogger(__name__)

HISTORY_LOGGER = "dlna_playlist.history"

Player = Callable[[PlaybackItem], Outcome]


class OutputMode(enum.Enum):
    EXECUTE = "execute"
    PLAYLIST = "playlist"
    EXTENDED_PLAYLIST = "extended-playlist"
    DRY_RUN = "dry-run"


@dataclass(frozen=True)
class StartSpec:
    """Where the walk starts: an object id, a name to search for, or a path of globs."""

    object_id: Optional[str] = None
    name: Optional[str] = None
    path: Optional[str] = None
    root_id: str = ROOT_CONTAINER_ID

    def __post_init__(self):
        given = [v for v in (self.object_id, self.name, self.path) if v is not None]
        if len(given) > 1:
            raise ConfigurationError("only one of object id, name and path may be given")


@dataclass
class RunResult:
    outcome: Outcome = Outcome.SUCCESS
    played: int = 0
    skipped: int = 0
    resume_not_found: bool = False
    strict_resume: bool = False

    @property
    def ok(self) -> bool:
        if self.strict_resume and self.resume_not_found:
            return False
        return self.outcome.ok


def open_history(path: str, append: bool = False) -> logging.Logger:
    """Return the history logger, writing timestamped lines to ``path``."""
    history = logging.getLogger(HISTORY_LOGGER)
    for handler in list(history.handlers):
        history.removeHandler(handler)
        handler.close()
    handler = logging.FileHandler(path, mode="a" if append else "w", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s"))
    history.addHandler(handler)
    history.setLevel(logging.INFO)
    history.propagate = False
    return history


class RendererPlayer:
    """Plays items on a renderer with the local session controller."""

    def __init__(self, transport, options: Optional[PlaybackOptions] = None, sleep=None):
        self.transport = transport
        self.options = options or PlaybackOptions()
        self.sleep = sleep

    def __call__(self, item: PlaybackItem) -> Outcome:
        if self.sleep is None:
            return play(self.transport, item, self.options)
        return play(self.transport, item, self.options, sleep=self.sleep)


class CommandPlayer:
    """Plays items by running an external command, one process per item.

    The command line is the configured command, then ``title_option title``
    when a title option is set, then the item URL. Exit status 0 counts as
    SUCCESS, anything else as ACTION_ERROR.
    """

    def __init__(self, command: str, title_option: Optional[str] = None):
        self.argv = shlex.split(command)
        if not self.argv:
            raise ConfigurationError("empty player command")
        self.title_option = title_option

    def command_line(self, item: PlaybackItem) -> list:
        argv = list(self.argv)
        if self.title_option:
            argv += [self.title_option, item.title]
        argv.append(item.url)
        return argv

    def __call__(self, item: PlaybackItem) -> Outcome:
        argv = self.command_line(item)
        logger.debug("Running %s", argv)
        try:
            completed = subprocess.run(argv)
        except OSError as e:
            logger.error("Cannot run %s: %s", argv[0], e)
            return Outcome.ACTION_ERROR
        if completed.returncode != 0:
            logger.error("%s exited with status %d", argv[0], completed.returncode)
            return Outcome.ACTION_ERROR
        return Outcome.SUCCESS


class PlaylistOrchestrator:
    """Walks a content tree and dispatches every item to the chosen output.

    Args:
        browse: ``browse(container_id)`` callable, normally ContentDirectory.browse
        output: stream receiving playlist lines and dry-run messages
        checkpoint: resume checkpoint; without it nothing is persisted
        history: logger receiving one line per finished item and container
    """

    def __init__(
        self,
        browse: Browse,
        output=None,
        checkpoint: Optional[CheckpointStore] = None,
        history: Optional[logging.Logger] = None,
    ):
        self.browse = browse
        self.output = output if output is not None else sys.stdout
        self.checkpoint = checkpoint
        self.history = history

    def _events(self, start: StartSpec) -> Iterator[WalkEvent]:
        if start.object_id is not None:
            return walk(self.browse, start.object_id)
        if start.name is not None:
            node = find_node(self.browse, start.root_id, start.name)
            if node is None:
                raise PathNotFound(start.name, start.name)
        elif start.path is not None:
            node = resolve_path(self.browse, start.root_id, start.path)
        else:
            return walk(self.browse, start.root_id)
        logger.info("Starting at %s (%s)", node.title, node.id)
        if node.is_container:
            return walk(self.browse, node.id)
        if not node.url:
            raise ConfigurationError(f"{node.title!r} has no playable resource")
        return iter([PlaybackItem.from_node(node)])

    def _resume_state(self, resume: bool) -> ResumeState:
        if not resume:
            return ResumeState()
        stored = self.checkpoint.read() if self.checkpoint is not None else None
        if not stored:
            logger.info("No checkpoint found, starting from the beginning")
            return ResumeState()
        logger.info("Resuming at item %s", stored)
        return ResumeState.from_checkpoint(stored)

    def _record(self, message: str, *args) -> None:
        if self.history is not None:
            self.history.info(message, *args)

    def _emit(self, line: str) -> None:
        self.output.write(line + "\n")
        self.output.flush()

    def _handle_item(self, item: PlaybackItem, mode: OutputMode, player: Optional[Player]) -> Outcome:
        if mode is OutputMode.EXECUTE:
            if self.checkpoint is not None:
                self.checkpoint.write(item.id)
            return player(item)
        if mode is OutputMode.DRY_RUN:
            self._emit(f"Would play {item.title} [{item.id}] {item.url}")
        else:
            for line in playlist_lines(item, extended=mode is OutputMode.EXTENDED_PLAYLIST):
                self._emit(line)
        return Outcome.SUCCESS

    def run(
        self,
        start: Optional[StartSpec] = None,
        mode: OutputMode = OutputMode.EXECUTE,
        player: Optional[Player] = None,
        resume: bool = False,
        strict_resume: bool = False,
    ) -> RunResult:
        """Walk from ``start`` and act on every item according to ``mode``.

        Raises:
            ConfigurationError: for EXECUTE without a player
            PathNotFound: if the start name or path cannot be resolved
            ActionError: if browsing the server fails
        """
        if mode is OutputMode.EXECUTE and player is None:
            raise ConfigurationError("execute mode needs a player")
        if start is None:
            start = StartSpec()

        state = self._resume_state(resume)
        result = RunResult(strict_resume=strict_resume)

        for event in self._events(start):
            if isinstance(event, ContainerDone):
                if not state.armed:
                    self._record("Finished container %s [%s]", event.node.title, event.node.id)
                continue

            state, admitted = state.admit(event.id)
            if not admitted:
                logger.info("Skipping %s [%s]", event.title, event.id)
                result.skipped += 1
                continue

            outcome = self._handle_item(event, mode, player)
            if not outcome.ok:
                logger.error("Stopping playlist: %s ended with %s", event.title, outcome.value)
                result.outcome = outcome
                return result
            result.played += 1
            self._record("Finished %s [%s] %s", event.title, event.id, event.url)

        if mode is OutputMode.EXECUTE and self.checkpoint is not None:
            self.checkpoint.clear()
        if state.armed:
            logger.warning("Checkpointed item %s was not found; nothing was played", state.target)
            result.resume_not_found = True
        return result
