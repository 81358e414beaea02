"""
SSDP (Simple Service Discovery Protocol) search for UPnP devices.

Sends multicast M-SEARCH requests and collects the unicast responses that
arrive within the wait window. Only the response headers are interpreted
here; the device description behind each LOCATION is fetched by
dlna_playlist.device.

Example usage:
    from dlna_playlist.ssdp import search

    for location in search("urn:schemas-upnp-org:service:AVTransport:1", max_wait=3):
        print(location)
"""

import logging
import socket
import time
from typing import Dict, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)

SSDP_MCAST_ADDR = "239.255.255.250"
SSDP_PORT = 1900


class SSDPResponse:
    """Headers of one M-SEARCH response.

    Attributes:
        location (str): URL of the device description XML document
        st (str): Search Target the device answered for
        usn (str): Unique Service Name, root UUID plus optional suffix
        server (str): Server header, empty when absent
    """

    def __init__(self, location: str, st: str, usn: str, server: str = ""):
        self.location = location
        self.st = st
        self.usn = usn
        self.server = server

    def __repr__(self) -> str:
        return f"SSDPResponse(st={self.st!r}, usn={self.usn!r}, location={self.location!r})"


def parse_headers(data: bytes) -> Dict[str, str]:
    """Parse raw response bytes into a dictionary keyed by lowercase header name."""
    text = data.decode("utf-8", errors="ignore")
    headers = {}
    for line in text.split("\r\n")[1:]:
        if ":" in line:
            k, v = line.split(":", 1)
            headers[k.strip().lower()] = v.strip()
    return headers


def _msearch(st: str, mx: int) -> bytes:
    return (
        "M-SEARCH * HTTP/1.1\r\n"
        f"HOST: {SSDP_MCAST_ADDR}:{SSDP_PORT}\r\n"
        'MAN: "ssdp:discover"\r\n'
        f"MX: {mx}\r\n"
        f"ST: {st}\r\n\r\n"
    ).encode("utf-8")


def discover(timeout: float = 2.0, mx: int = 1, st_list: Optional[List[str]] = None) -> List[SSDPResponse]:
    """Send one M-SEARCH per search target and collect responses.

    Args:
        timeout: listen window per search target in seconds
        mx: maximum wait (MX) advertised in the request
        st_list: search targets; defaults to ``["ssdp:all"]``

    Returns:
        Responses in arrival order, deduplicated by (location, USN).
    """
    if st_list is None:
        st_list = ["ssdp:all"]

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
    sock.settimeout(timeout)

    responses: List[SSDPResponse] = []
    seen: Set[Tuple[str, str]] = set()

    try:
        for st in st_list:
            try:
                sock.sendto(_msearch(st, mx), (SSDP_MCAST_ADDR, SSDP_PORT))
            except OSError as e:
                logger.warning("M-SEARCH for %s could not be sent: %s", st, e)
                continue

            start = time.monotonic()
            while time.monotonic() - start < timeout:
                try:
                    data, _ = sock.recvfrom(65535)
                except socket.timeout:
                    break
                headers = parse_headers(data)
                location = headers.get("location")
                if not location:
                    continue
                usn = headers.get("usn", "")
                key = (location, usn)
                if key in seen:
                    continue
                seen.add(key)
                responses.append(
                    SSDPResponse(location=location, st=headers.get("st", st), usn=usn, server=headers.get("server", ""))
                )
    finally:
        sock.close()

    logger.debug("SSDP search %s found %d responses", st_list, len(responses))
    return responses


def search(service_type: str, max_wait: float = 2.0) -> List[str]:
    """Return the distinct description locations answering for ``service_type``."""
    locations: List[str] = []
    for response in discover(timeout=max_wait, mx=max(1, int(max_wait)), st_list=[service_type]):
        if response.location not in locations:
            locations.append(response.location)
    return locations
