"""
Device layer.

Session lifecycle, USB transport binding, and the mute and mic
position protocols.
"""

from mv7ctl.device.constants import (
    MV7,
    PROFILES,
    DeviceProfile,
    FeatureControl,
    Timing,
    UACRequest,
    get_profile,
)
from mv7ctl.device.errors import (
    ConfigurationError,
    DeviceNotFound,
    MV7Error,
    ProtocolError,
    ResourceAcquisitionError,
    StaleHandleUse,
    TransferTimeout,
    TransportError,
)
from mv7ctl.device.mute import FeatureAddress
from mv7ctl.device.position import MicPosition
from mv7ctl.device.session import DeviceSession, DeviceStatus
from mv7ctl.device.transport import PyUSBTransport

__all__ = [
    # Constants
    "MV7",
    "PROFILES",
    "DeviceProfile",
    "FeatureControl",
    "Timing",
    "UACRequest",
    "get_profile",
    # Errors
    "ConfigurationError",
    "DeviceNotFound",
    "MV7Error",
    "ProtocolError",
    "ResourceAcquisitionError",
    "StaleHandleUse",
    "TransferTimeout",
    "TransportError",
    # Protocols
    "FeatureAddress",
    "MicPosition",
    # Session
    "DeviceSession",
    "DeviceStatus",
    "PyUSBTransport",
]
