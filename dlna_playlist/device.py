"""
UPnP device descriptions and device selection.

This module fetches and parses UPnP device description documents into
immutable Device values, and locates a device by glob pattern on its
friendly name plus the presence of a required service, either through SSDP
search or directly from a known description URL.

Key components:
- Device: parsed device description
- fetch_description(): fetch and parse one description document
- locate(): find the first device matching a name and a service

Example usage:
    from dlna_playlist.device import locate
    from dlna_playlist.avtransport import AVTRANSPORT_SERVICE_TYPE

    renderer = locate(AVTRANSPORT_SERVICE_TYPE, "Living*")
    print(renderer.friendly_name, renderer.control_url(AVTRANSPORT_SERVICE_TYPE))
"""

import fnmatch
import logging
import urllib.error
import urllib.parse
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from . import ssdp
from .errors import DiscoveryError

logger = logging.getLogger(__name__)

DESCRIPTION_TIMEOUT = 5


def _base_type(service_type: str) -> str:
    """Strip the trailing ``:version`` from a UPnP type URN."""
    head, sep, tail = service_type.rpartition(":")
    return head if sep and tail.isdigit() else service_type


@dataclass(frozen=True)
class Device:
    """Parsed UPnP device description.

    Attributes:
        friendly_name: human-readable device name
        device_type: deviceType URN of the root device
        location: URL the description was fetched from
        services: serviceType URNs offered by the device and its embedded devices
        control_urls: absolute control URL per serviceType
    """

    friendly_name: str
    device_type: str
    location: str
    services: FrozenSet[str] = frozenset()
    control_urls: Dict[str, str] = field(default_factory=dict, compare=False)

    def _find_service(self, service_type: str) -> Optional[str]:
        if service_type in self.services:
            return service_type
        wanted = _base_type(service_type)
        for offered in sorted(self.services):
            if _base_type(offered) == wanted:
                return offered
        return None

    def has_service(self, service_type: str) -> bool:
        """True if the device offers ``service_type`` in any version."""
        return self._find_service(service_type) is not None

    def control_url(self, service_type: str) -> Optional[str]:
        offered = self._find_service(service_type)
        return self.control_urls.get(offered) if offered else None

    def matches(self, name_pattern: str, service_type: Optional[str] = None) -> bool:
        """Glob-match the friendly name and check for the required service."""
        if not fnmatch.fnmatchcase(self.friendly_name, name_pattern):
            return False
        return service_type is None or self.has_service(service_type)


def parse_description(xml_data: bytes, location_url: str) -> Device:
    """Parse a device description document into a Device.

    Relative control URLs are resolved against URLBase when present, else
    against the description location.
    """
    root = ET.fromstring(xml_data)
    # UPnP does not always include XML namespaces uniformly; parse loosely
    friendly_name = root.findtext(".//{*}friendlyName") or "Unknown Device"
    device_type = root.findtext(".//{*}deviceType") or ""
    base_url = root.findtext(".//{*}URLBase") or location_url

    services = set()
    control_urls = {}
    for service in root.findall(".//{*}service"):
        service_type = (service.findtext("{*}serviceType") or "").strip()
        if not service_type:
            continue
        services.add(service_type)
        ctrl = (service.findtext("{*}controlURL") or "").strip()
        if ctrl and service_type not in control_urls:
            control_urls[service_type] = urllib.parse.urljoin(base_url, ctrl)

    return Device(
        friendly_name=friendly_name.strip(),
        device_type=device_type.strip(),
        location=location_url,
        services=frozenset(services),
        control_urls=control_urls,
    )


def fetch_description(location_url: str) -> Device:
    """Fetch and parse the device description at ``location_url``.

    Raises:
        urllib.error.URLError: if the description cannot be fetched
        xml.etree.ElementTree.ParseError: if the XML cannot be parsed
    """
    with urllib.request.urlopen(location_url, timeout=DESCRIPTION_TIMEOUT) as resp:
        xml_data = resp.read()
    return parse_description(xml_data, location_url)


def find_devices(service_type: str, timeout: float = 2.0) -> List[Device]:
    """Search the network and return every reachable device offering ``service_type``."""
    devices = []
    for location in ssdp.search(service_type, max_wait=timeout):
        try:
            device = fetch_description(location)
        except (urllib.error.URLError, OSError, ET.ParseError) as e:
            logger.warning("Skipping device at %s: %s", location, e)
            continue
        if device.has_service(service_type):
            devices.append(device)
    return devices


def select_device(devices: Iterable[Device], name_pattern: str, service_type: str) -> Optional[Device]:
    for device in devices:
        if device.matches(name_pattern, service_type):
            return device
    return None


def locate(
    service_type: str,
    name_pattern: str = "*",
    timeout: float = 2.0,
    location: Optional[str] = None,
) -> Device:
    """Return the first device named like ``name_pattern`` that offers ``service_type``.

    With ``location`` the description is fetched directly and SSDP is skipped.

    Raises:
        DiscoveryError: if no device matches within the wait budget
    """
    if location:
        try:
            devices = [fetch_description(location)]
        except (urllib.error.URLError, OSError, ET.ParseError) as e:
            raise DiscoveryError(f"Cannot read device description at {location}: {e}") from e
    else:
        devices = find_devices(service_type, timeout=timeout)

    device = select_device(devices, name_pattern, service_type)
    if device is None:
        raise DiscoveryError(f"No device matching {name_pattern!r} offers {service_type}")
    logger.info("Using %s (%s)", device.friendly_name, device.location)
    return device
