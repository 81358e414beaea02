"""
Command-line entry points.

dlna-play       play one URL, or the entries of a playlist file, on a renderer
dlna-playlist   play, list or preview every item below a MediaServer container
"""

import argparse
import logging
import sys
from typing import List

from .avtransport import AVTRANSPORT_SERVICE_TYPE, DLNAController
from .checkpoint import CheckpointStore
from .config import cfg
from .content_directory import CONTENT_DIRECTORY_SERVICE_TYPE, ContentDirectory
from .device import find_devices, locate
from .errors import ConfigurationError, DiscoveryError, DlnaError
from .models import PlaybackItem
from .orchestrator import CommandPlayer, OutputMode, PlaylistOrchestrator, RendererPlayer, StartSpec, open_history
from .playlist import read_playlist
from .session import Outcome, PlaybackOptions, play

logger = logging.getLogger("dlna_playlist")

DEFAULT_CHECKPOINT = "~/.cache/dlna-playlist/checkpoint"


def _setup_logging(args) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="log warnings and errors only")
    parser.add_argument(
        "--timeout",
        type=float,
        default=cfg("discovery", "timeout", default=2.0),
        help="seconds to wait for SSDP answers (default: %(default)s)",
    )


def _add_playback_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("playback")
    group.add_argument(
        "--settle",
        type=float,
        default=cfg("playback", "settle_delay", default=1),
        help="seconds to wait after Play before polling (default: %(default)s)",
    )
    group.add_argument(
        "--interval",
        type=float,
        default=cfg("playback", "poll_interval", default=1),
        help="seconds between status polls (default: %(default)s)",
    )
    group.add_argument(
        "--max-retries",
        type=int,
        default=cfg("playback", "max_start_retries", default=10),
        help="times Play is reissued while the renderer stays stopped (default: %(default)s)",
    )
    pause = group.add_mutually_exclusive_group()
    pause.add_argument(
        "--pause-refresh",
        type=int,
        metavar="POLLS",
        help="briefly resume and re-pause a renderer paused for more than POLLS polls",
    )
    pause.add_argument(
        "--pause-limit",
        type=int,
        metavar="POLLS",
        help="stop a renderer paused for more than POLLS polls and fail",
    )


def _playback_options(args, title=None, stop_only=False) -> PlaybackOptions:
    return PlaybackOptions(
        settle_delay=args.settle,
        poll_interval=args.interval,
        max_start_retries=args.max_retries,
        pause_refresh_polls=args.pause_refresh,
        pause_limit_polls=args.pause_limit,
        title=title,
        stop_only=stop_only,
    )


def _control_url(device, service_type: str) -> str:
    url = device.control_url(service_type)
    if not url:
        raise DiscoveryError(f"{device.friendly_name} has no control URL for {service_type}")
    return url


def _renderer_transport(args) -> DLNAController:
    renderer = locate(
        AVTRANSPORT_SERVICE_TYPE,
        args.renderer or cfg("renderer", "name", default="*"),
        timeout=args.timeout,
        location=args.renderer_location or cfg("renderer", "location"),
    )
    return DLNAController(_control_url(renderer, AVTRANSPORT_SERVICE_TYPE))


def _list_devices(service_type: str, timeout: float) -> int:
    devices = find_devices(service_type, timeout=timeout)
    for device in devices:
        print(f"{device.friendly_name}\t{device.device_type}\t{device.location}")
    if not devices:
        logger.warning("No device offering %s answered", service_type)
        return 1
    return 0


def build_play_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dlna-play", description="Play a URL on a DLNA renderer and wait until it has finished"
    )
    parser.add_argument("url", nargs="?", help="media URL reachable by the renderer")
    parser.add_argument("--list", action="store_true", help="list renderers and exit")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--renderer", metavar="GLOB", help="friendly name of the renderer")
    target.add_argument("--renderer-location", metavar="URL", help="device description URL, skips SSDP")
    parser.add_argument("--title", help="title announced to the renderer for URL")
    parser.add_argument(
        "--from-playlist",
        metavar="FILE",
        help="play every entry of a plain or extended playlist file in order ('-' reads stdin)",
    )
    parser.add_argument("--stop", action="store_true", help="stop the renderer and exit")
    _add_playback_args(parser)
    _add_common_args(parser)
    return parser


def _exit_status(outcome: Outcome) -> int:
    if outcome.ok:
        return 0
    logger.error("Playback failed: %s", outcome.value)
    return 1


def _read_items(path: str) -> List[PlaybackItem]:
    if path == "-":
        lines = sys.stdin.readlines()
    else:
        with open(path, encoding="utf-8") as f:
            lines = f.readlines()
    try:
        return list(read_playlist(lines))
    except (KeyError, ValueError) as e:
        raise ConfigurationError(f"{path} is not a readable playlist: {e}") from e


def _play_items(transport, items: List[PlaybackItem], options: PlaybackOptions) -> Outcome:
    outcome = Outcome.SUCCESS
    for position, item in enumerate(items, 1):
        logger.info("Item %d of %d: %s", position, len(items), item.title)
        outcome = play(transport, item, options)
        if not outcome.ok:
            break
    return outcome


def play_main(argv=None) -> int:
    parser = build_play_parser()
    args = parser.parse_args(argv)
    _setup_logging(args)

    if args.list:
        return _list_devices(AVTRANSPORT_SERVICE_TYPE, args.timeout)
    if args.url and args.from_playlist:
        parser.error("a URL cannot be combined with --from-playlist")
    if not args.url and not args.stop and not args.from_playlist:
        parser.error("a URL is required unless --stop, --list or --from-playlist is given")

    try:
        options = _playback_options(args, title=None if args.from_playlist else args.title, stop_only=args.stop)
        if args.from_playlist and not args.stop:
            items = _read_items(args.from_playlist)
        else:
            items = [PlaybackItem(id=args.url or "", url=args.url or "", title=args.title or args.url or "")]
    except ConfigurationError as e:
        logger.error("%s", e)
        return _exit_status(Outcome.CONFIGURATION_ERROR)
    except OSError as e:
        logger.error("Cannot read playlist: %s", e)
        return 1

    try:
        transport = _renderer_transport(args)
        outcome = _play_items(transport, items, options)
    except DlnaError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        return 130
    return _exit_status(outcome)


def build_playlist_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dlna-playlist", description="Play or list every item below a DLNA MediaServer container"
    )
    server = parser.add_mutually_exclusive_group()
    server.add_argument("--server", metavar="GLOB", help="friendly name of the MediaServer")
    server.add_argument("--server-location", metavar="URL", help="device description URL, skips SSDP")

    start = parser.add_mutually_exclusive_group()
    start.add_argument("--id", dest="object_id", help="object id of the starting container")
    start.add_argument("--name", metavar="GLOB", help="first container or item with a matching title")
    start.add_argument("--path", metavar="PATH", help="slash separated globs, one per level")

    output = parser.add_mutually_exclusive_group()
    output.add_argument("--renderer", metavar="GLOB", help="play on the renderer with this friendly name")
    output.add_argument("--renderer-location", metavar="URL", help="play on the renderer described at URL")
    output.add_argument("--execute", metavar="CMD", help="run CMD with each item URL appended")
    output.add_argument("--playlist", action="store_true", help="print a playlist of URLs")
    output.add_argument("--extended-playlist", action="store_true", help="print URLs preceded by JSON metadata")
    output.add_argument("--dry-run", action="store_true", help="only report what would be played")
    parser.add_argument("--title-option", metavar="OPT", help="option passing the item title to --execute CMD")
    parser.add_argument("-o", "--output", metavar="FILE", help="write playlist output to FILE instead of stdout")

    parser.add_argument("--resume", action="store_true", help="skip items before the checkpointed one")
    parser.add_argument(
        "--strict-resume", action="store_true", help="fail when the checkpointed item is not found"
    )
    parser.add_argument(
        "--checkpoint",
        metavar="FILE",
        default=cfg("playlist", "checkpoint", default=DEFAULT_CHECKPOINT),
        help="checkpoint file (default: %(default)s)",
    )
    log = parser.add_mutually_exclusive_group()
    log.add_argument("--log", metavar="FILE", help="write a history line per item to FILE, overwriting it")
    log.add_argument("--log-append", metavar="FILE", help="append history lines to FILE")

    _add_playback_args(parser)
    _add_common_args(parser)
    return parser


def _output_mode(args) -> OutputMode:
    if args.playlist:
        return OutputMode.PLAYLIST
    if args.extended_playlist:
        return OutputMode.EXTENDED_PLAYLIST
    if args.dry_run:
        return OutputMode.DRY_RUN
    return OutputMode.EXECUTE


def _run_playlist(args, mode: OutputMode, output) -> int:
    player = None
    if mode is OutputMode.EXECUTE:
        options = _playback_options(args)
        if args.execute:
            player = CommandPlayer(args.execute, title_option=args.title_option)
        else:
            player = RendererPlayer(_renderer_transport(args), options)

    server = locate(
        CONTENT_DIRECTORY_SERVICE_TYPE,
        args.server or cfg("server", "name", default="*"),
        timeout=args.timeout,
        location=args.server_location or cfg("server", "location"),
    )
    directory = ContentDirectory(_control_url(server, CONTENT_DIRECTORY_SERVICE_TYPE))

    history = None
    if args.log or args.log_append:
        history = open_history(args.log or args.log_append, append=bool(args.log_append))

    orchestrator = PlaylistOrchestrator(
        directory.browse,
        output=output,
        checkpoint=CheckpointStore(args.checkpoint) if args.checkpoint else None,
        history=history,
    )
    result = orchestrator.run(
        StartSpec(object_id=args.object_id, name=args.name, path=args.path),
        mode,
        player=player,
        resume=args.resume,
        strict_resume=args.strict_resume,
    )
    logger.info("Played %d items, skipped %d", result.played, result.skipped)
    if not result.ok:
        if result.outcome is not Outcome.SUCCESS:
            logger.error("Playlist aborted: %s", result.outcome.value)
        return 1
    return 0


def playlist_main(argv=None) -> int:
    parser = build_playlist_parser()
    args = parser.parse_args(argv)
    _setup_logging(args)
    if args.title_option and not args.execute:
        parser.error("--title-option requires --execute")

    mode = _output_mode(args)
    output = sys.stdout
    try:
        if args.output:
            output = open(args.output, "w", encoding="utf-8")
        return _run_playlist(args, mode, output)
    except ConfigurationError as e:
        logger.error("%s", e)
        return _exit_status(Outcome.CONFIGURATION_ERROR)
    except DlnaError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        # output file, history log or checkpoint
        logger.error("File error: %s", e)
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        if output is not sys.stdout:
            output.close()


if __name__ == "__main__":
    sys.exit(playlist_main())
