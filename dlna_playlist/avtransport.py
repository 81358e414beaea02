import mimetypes

from .soap import ActionResult, SoapService, _escape_xml

AVTRANSPORT_SERVICE_TYPE = "urn:schemas-upnp-org:service:AVTransport:1"

# Transport states and status reported by GetTransportInfo
STATE_STOPPED = "STOPPED"
STATE_PLAYING = "PLAYING"
STATE_PAUSED = "PAUSED_PLAYBACK"
STATUS_OK = "OK"


def build_didl_lite_metadata(content_url: str, title: str, mime_type: str = "") -> str:
    """Return a minimal DIDL-Lite item metadata string for the media resource.

    The upnp:class is chosen from the MIME type (guessed from the URL when
    not given); unknown types are announced as a generic audio item.
    """
    if not mime_type:
        mime_type = mimetypes.guess_type(content_url)[0] or ""

    if mime_type.startswith("video/"):
        upnp_class = "object.item.videoItem"
    elif mime_type.startswith("image/"):
        upnp_class = "object.item.imageItem"
    else:
        upnp_class = "object.item.audioItem"

    protocol_info = f"http-get:*:{mime_type or '*'}:*"

    esc_title = _escape_xml(title)
    esc_url = _escape_xml(content_url)

    didl = (
        '<DIDL-Lite xmlns="urn:schemas-upnp-org:metadata-1-0/DIDL-Lite/" '
        'xmlns:dc="http://purl.org/dc/elements/1.1/" '
        'xmlns:upnp="urn:schemas-upnp-org:metadata-1-0/upnp/">'
        '<item id="0" parentID="0" restricted="1">'
        f"<dc:title>{esc_title}</dc:title>"
        f"<upnp:class>{upnp_class}</upnp:class>"
        f'<res protocolInfo="{protocol_info}">{esc_url}</res>'
        "</item>"
        "</DIDL-Lite>"
    )
    return didl


class DLNAController(SoapService):
    """Minimal client for the DLNA AVTransport service."""

    service_type = AVTRANSPORT_SERVICE_TYPE

    def set_av_transport_uri(self, instance_id: int, current_uri: str, current_uri_metadata: str = "") -> ActionResult:
        """Set the URI to play and optional DIDL-Lite metadata for the item."""
        return self._call(
            "SetAVTransportURI",
            InstanceID=instance_id,
            CurrentURI=current_uri,
            CurrentURIMetaData=current_uri_metadata,
        )

    def play(self, instance_id: int, speed: str = "1") -> ActionResult:
        """Start playback at the given speed (usually '1')."""
        return self._call("Play", InstanceID=instance_id, Speed=speed)

    def pause(self, instance_id: int) -> ActionResult:
        return self._call("Pause", InstanceID=instance_id)

    def stop(self, instance_id: int) -> ActionResult:
        return self._call("Stop", InstanceID=instance_id)

    def get_transport_info(self, instance_id: int) -> ActionResult:
        """GetTransportInfo: CurrentTransportState, CurrentTransportStatus, CurrentSpeed."""
        return self._call("GetTransportInfo", InstanceID=instance_id)

    def get_media_info(self, instance_id: int) -> ActionResult:
        """GetMediaInfo: NrTracks, MediaDuration, CurrentURI and friends."""
        return self._call("GetMediaInfo", InstanceID=instance_id)

    def get_position_info(self, instance_id: int) -> ActionResult:
        """GetPositionInfo: Track, TrackDuration, RelTime and friends."""
        return self._call("GetPositionInfo", InstanceID=instance_id)
