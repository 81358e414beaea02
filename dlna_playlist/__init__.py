"""
DLNA Playlist - play whole MediaServer folders on a DLNA renderer, resumably.

This package discovers UPnP MediaServers and MediaRenderers, walks a server's
content tree in server order and plays every item on a renderer, one at a
time, waiting for each to finish. The id of the item being played is kept in
a checkpoint file so that an interrupted run can be resumed where it stopped.

Key modules:
- ssdp: SSDP M-SEARCH discovery
- device: UPnP device description parsing and device selection
- content_directory: ContentDirectory Browse client
- avtransport: DLNA AVTransport service client
- session: playback session controller (start, poll, pause policies)
- walker: depth-first content tree walk and resume state
- orchestrator: playlist runs with checkpointing and history log
- cli: dlna-play and dlna-playlist command-line tools

Example usage:
    from dlna_playlist.avtransport import AVTRANSPORT_SERVICE_TYPE, DLNAController
    from dlna_playlist.content_directory import CONTENT_DIRECTORY_SERVICE_TYPE, ContentDirectory
    from dlna_playlist.device import locate
    from dlna_playlist.orchestrator import PlaylistOrchestrator, RendererPlayer, StartSpec

    server = locate(CONTENT_DIRECTORY_SERVICE_TYPE, "MiniDLNA*")
    renderer = locate(AVTRANSPORT_SERVICE_TYPE, "Kitchen*")
    directory = ContentDirectory(server.control_url(CONTENT_DIRECTORY_SERVICE_TYPE))
    player = RendererPlayer(DLNAController(renderer.control_url(AVTRANSPORT_SERVICE_TYPE)))
    PlaylistOrchestrator(directory.browse).run(StartSpec(path="Music/Albums/Blue*"), player=player)
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Core functionality exports
from .avtransport import DLNAController
from .content_directory import ContentDirectory
from .device import Device, fetch_description, locate
from .errors import ActionError, ConfigurationError, DiscoveryError, DlnaError, PathNotFound
from .models import ContainerDone, ContentNode, NodeKind, PlaybackItem
from .orchestrator import CommandPlayer, OutputMode, PlaylistOrchestrator, RendererPlayer, RunResult, StartSpec
from .session import Outcome, PlaybackOptions, play
from .ssdp import discover
from .walker import ResumeState, traverse, walk

__all__ = [
    "discover",
    "Device",
    "fetch_description",
    "locate",
    "DLNAController",
    "ContentDirectory",
    "ContentNode",
    "NodeKind",
    "PlaybackItem",
    "ContainerDone",
    "walk",
    "traverse",
    "ResumeState",
    "play",
    "Outcome",
    "PlaybackOptions",
    "PlaylistOrchestrator",
    "StartSpec",
    "OutputMode",
    "RunResult",
    "RendererPlayer",
    "CommandPlayer",
    "DlnaError",
    "ConfigurationError",
    "DiscoveryError",
    "ActionError",
    "PathNotFound",
]
