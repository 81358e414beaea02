"""
ContentDirectory client: browse the children of a MediaServer container.

Browse results arrive as an escaped DIDL-Lite document inside the SOAP
response. parse_didl() turns that document into ContentNode values in the
order the server listed them.
"""

import logging
import xml.etree.ElementTree as ET
from typing import List
from xml.sax.saxutils import unescape

from .errors import ActionError
from .models import ContentNode, NodeKind
from .soap import SoapService

logger = logging.getLogger(__name__)

CONTENT_DIRECTORY_SERVICE_TYPE = "urn:schemas-upnp-org:service:ContentDirectory:1"
ROOT_CONTAINER_ID = "0"

# Servers may return fewer than requested; paging continues until TotalMatches
BROWSE_PAGE_SIZE = 200


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _node_from_element(elem: ET.Element) -> ContentNode:
    kind = NodeKind.CONTAINER if _local_name(elem.tag) == "container" else NodeKind.ITEM
    title = elem.findtext("{*}title") or ""
    upnp_class = elem.findtext("{*}class") or ""
    url = None
    content_type = None
    date = None
    if kind is NodeKind.ITEM:
        date = elem.findtext("{*}date")
        res = elem.find("{*}res")
        if res is not None and res.text:
            url = res.text.strip()
            # protocolInfo is "<protocol>:<network>:<contentFormat>:<additionalInfo>"
            parts = (res.get("protocolInfo") or "").split(":")
            if len(parts) >= 3 and parts[2] not in ("", "*"):
                content_type = parts[2]
    return ContentNode(
        id=elem.get("id", ""),
        title=title,
        kind=kind,
        parent_id=elem.get("parentID", ""),
        upnp_class=upnp_class,
        url=url,
        content_type=content_type,
        date=date,
    )


def parse_didl(didl: str) -> List[ContentNode]:
    """Parse a DIDL-Lite document into nodes, keeping document order.

    Some servers escape the document twice; a document that does not parse
    is retried once with one level of entity escaping removed.

    Raises:
        xml.etree.ElementTree.ParseError: if neither form is well-formed XML
    """
    if not didl.strip():
        return []
    try:
        root = ET.fromstring(didl)
    except ET.ParseError:
        root = ET.fromstring(unescape(didl, {"&quot;": '"', "&apos;": "'"}))
    return [
        _node_from_element(elem) for elem in root if _local_name(elem.tag) in ("container", "item")
    ]


class ContentDirectory(SoapService):
    """Minimal client for the ContentDirectory service."""

    service_type = CONTENT_DIRECTORY_SERVICE_TYPE

    def browse_page(self, object_id: str, starting_index: int = 0, requested_count: int = BROWSE_PAGE_SIZE):
        return self._call(
            "Browse",
            ObjectID=object_id,
            BrowseFlag="BrowseDirectChildren",
            Filter="*",
            StartingIndex=starting_index,
            RequestedCount=requested_count,
            SortCriteria="",
        )

    def browse(self, object_id: str) -> List[ContentNode]:
        """Return every child of ``object_id`` in server order.

        Raises:
            ActionError: if any Browse request fails or returns malformed DIDL-Lite
        """
        children: List[ContentNode] = []
        while True:
            result = self.browse_page(object_id, starting_index=len(children))
            if not result.ok:
                raise ActionError("Browse", result)
            try:
                page = parse_didl(result.get("Result"))
            except ET.ParseError as e:
                raise ActionError("Browse", result, reason=f"malformed DIDL-Lite for {object_id}: {e}") from e
            children.extend(page)
            try:
                total = int(result.get("TotalMatches", "0"))
            except ValueError:
                total = 0
            if not page or len(children) >= total:
                break
        logger.debug("Browsed %s: %d children", object_id, len(children))
        return children
