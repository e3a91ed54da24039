"""
Exception hierarchy for device sessions and protocols.
"""

from __future__ import annotations


class MV7Error(Exception):
    """Base exception for microphone control errors."""

    pass


class DeviceNotFound(MV7Error):
    """No device matching the profile's vendor/product id is connected."""

    pass


class ConfigurationError(MV7Error):
    """The device's active configuration could not be set."""

    pass


class ResourceAcquisitionError(MV7Error):
    """Claiming an interface (or preparing it) failed during open."""

    def __init__(self, message: str, interface: int, step: str = ""):
        super().__init__(message)
        self.interface = interface
        self.step = step


class TransportError(MV7Error):
    """A control or interrupt transfer failed."""

    def __init__(self, message: str, errno: int | None = None):
        super().__init__(message)
        self.errno = errno


class TransferTimeout(TransportError):
    """A transfer did not complete within its timeout."""

    pass


class ProtocolError(MV7Error):
    """The device answered with a malformed or unrecognized response."""

    def __init__(self, message: str, response: str | None = None):
        super().__init__(message)
        self.response = response


class StaleHandleUse(MV7Error):
    """An operation was attempted on a closed or reset session."""

    pass
