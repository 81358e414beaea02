"""Exception hierarchy shared by the DLNA playlist tools."""


class DlnaError(Exception):
    """Base class for every fatal condition raised by this package."""


class ConfigurationError(DlnaError):
    """Conflicting or missing options, detected before any network action."""


class DiscoveryError(DlnaError):
    """No device matched the requested name and service."""


class ActionError(DlnaError):
    """A UPnP action returned a non-success status or an unreadable response."""

    def __init__(self, action: str, result=None, reason: str = ""):
        self.action = action
        self.result = result
        self.reason = reason
        detail = ""
        if result is not None:
            detail = f" (status {result.status}"
            if result.error_code:
                detail += f", UPnP error {result.error_code}"
            if result.error_description:
                detail += f": {result.error_description}"
            detail += ")"
        if reason:
            detail += f": {reason}"
        super().__init__(f"{action} failed{detail}")


class PathNotFound(DlnaError):
    """A component of a content path matched no child of its container."""

    def __init__(self, path: str, component: str):
        self.path = path
        self.component = component
        super().__init__(f"No match for {component!r} while resolving {path!r}")
