"""
Minimal SOAP transport shared by the UPnP service clients.

Every action call returns an ActionResult instead of raising, so callers can
branch on the status the way the UPnP control protocol reports it: HTTP 200
is success, anything else (including a connection failure, reported as
status 0) is a failure, optionally carrying a UPnP errorCode from the SOAP
fault body.
"""

import http.client
import logging
import urllib.parse
import xml.etree.ElementTree as ET
from typing import Dict, Optional

logger = logging.getLogger(__name__)

SOAP_ENV = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_TIMEOUT = 10

# Status reported when the request never produced an HTTP response
STATUS_UNREACHABLE = 0


def _escape_xml(text: str) -> str:
    """Escape XML special characters in a minimal, safe way."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


class ActionResult:
    """Outcome of one SOAP action.

    Attributes:
        status (int): HTTP status code, or 0 when the device was unreachable
        fields (Dict[str, str]): output arguments of the action response
        error_code (Optional[str]): UPnP errorCode from a SOAP fault
        error_description (Optional[str]): UPnP errorDescription, or the
            network error message
    """

    def __init__(
        self,
        status: int,
        fields: Optional[Dict[str, str]] = None,
        error_code: Optional[str] = None,
        error_description: Optional[str] = None,
    ):
        self.status = status
        self.fields = fields or {}
        self.error_code = error_code
        self.error_description = error_description

    @property
    def ok(self) -> bool:
        return self.status == http.client.OK

    def get(self, name: str, default: str = "") -> str:
        return self.fields.get(name, default)

    def __repr__(self) -> str:
        return f"ActionResult(status={self.status!r}, fields={self.fields!r}, error_code={self.error_code!r})"


def parse_response(action: str, status: int, body: str) -> ActionResult:
    """Turn a SOAP response body into an ActionResult.

    Output arguments are read from the ``<{action}Response>`` element. For
    failed calls the UPnPError detail of the SOAP fault is extracted when
    present.
    """
    try:
        root = ET.fromstring(body) if body.strip() else None
    except ET.ParseError:
        logger.debug("Unparseable %s response: %r", action, body[:200])
        root = None

    if status != http.client.OK:
        error_code = None
        error_description = None
        if root is not None:
            error_code = root.findtext(".//{*}UPnPError/{*}errorCode")
            error_description = root.findtext(".//{*}UPnPError/{*}errorDescription")
            if error_description is None:
                error_description = root.findtext(".//faultstring")
        return ActionResult(status, error_code=error_code, error_description=error_description)

    fields: Dict[str, str] = {}
    if root is not None:
        response = None
        for elem in root.iter():
            if _local_name(elem.tag) == f"{action}Response":
                response = elem
                break
        if response is not None:
            for child in response:
                fields[_local_name(child.tag)] = child.text or ""
    return ActionResult(status, fields)


class SoapService:
    """Base client for one UPnP service reachable at a control URL."""

    service_type = ""

    def __init__(self, control_url: str, timeout: float = SOAP_TIMEOUT):
        self.control_url = control_url
        parsed = urllib.parse.urlparse(control_url)
        self.host = parsed.hostname
        self.port = parsed.port or (443 if parsed.scheme == "https" else 80)
        self.path = parsed.path or "/"
        if parsed.query:
            self.path += "?" + parsed.query
        self.scheme = parsed.scheme
        self.timeout = timeout

    def _connect(self) -> http.client.HTTPConnection:
        if self.scheme == "https":
            return http.client.HTTPSConnection(self.host, self.port, timeout=self.timeout)
        return http.client.HTTPConnection(self.host, self.port, timeout=self.timeout)

    def _post_soap(self, action: str, body_xml: str) -> ActionResult:
        """Send a SOAP action to the control URL and return its ActionResult."""
        soap_action = f'"{self.service_type}#{action}"'
        envelope = f'''<?xml version="1.0" encoding="utf-8"?>
            <s:Envelope xmlns:s="{SOAP_ENV}" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
                <s:Body>
                    {body_xml}
                </s:Body>
            </s:Envelope>'''
        headers = {
            "Content-Type": 'text/xml; charset="utf-8"',
            "SOAPACTION": soap_action,
        }
        conn = self._connect()
        try:
            conn.request("POST", self.path, body=envelope.encode("utf-8"), headers=headers)
            resp = conn.getresponse()
            data = resp.read()
        except (OSError, http.client.HTTPException) as e:
            logger.warning("%s to %s failed: %s", action, self.control_url, e)
            return ActionResult(STATUS_UNREACHABLE, error_description=str(e))
        finally:
            conn.close()
        result = parse_response(action, resp.status, data.decode("utf-8", errors="ignore"))
        if not result.ok:
            logger.debug("%s returned %r", action, result)
        return result

    def _call(self, action: str, **arguments) -> ActionResult:
        """Invoke ``action`` with the given in-arguments, in keyword order."""
        args_xml = "".join(f"<{name}>{_escape_xml(str(value))}</{name}>" for name, value in arguments.items())
        body = f'<u:{action} xmlns:u="{self.service_type}">{args_xml}</u:{action}>'
        return self._post_soap(action, body)
