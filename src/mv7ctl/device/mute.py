"""
Mute control over USB Audio Class control transfers.

The mute switch is a Feature Unit control. Class-specific requests
address it with::

    wValue = control selector << 8 | channel number
    wIndex = entity (unit) id << 8 | interface number
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import usb.util

from mv7ctl.device.constants import (
    CONTROL_TIMEOUT_MS,
    DeviceProfile,
    FeatureControl,
    UACRequest,
)
from mv7ctl.device.errors import ProtocolError


logger = logging.getLogger(__name__)


REQUEST_TYPE_OUT = usb.util.build_request_type(
    usb.util.CTRL_OUT, usb.util.CTRL_TYPE_CLASS, usb.util.CTRL_RECIPIENT_INTERFACE
)
REQUEST_TYPE_IN = usb.util.build_request_type(
    usb.util.CTRL_IN, usb.util.CTRL_TYPE_CLASS, usb.util.CTRL_RECIPIENT_INTERFACE
)


@dataclass(frozen=True)
class FeatureAddress:
    """Address of one Feature Unit control."""

    unit_id: int
    control: int
    channel: int = 0
    interface: int = 0

    @property
    def value(self) -> int:
        """wValue field."""
        return (self.control << 8) | self.channel

    @property
    def index(self) -> int:
        """wIndex field."""
        return (self.unit_id << 8) | self.interface

    @classmethod
    def mute_of(cls, profile: DeviceProfile) -> FeatureAddress:
        """Mute control address for a device profile."""
        return cls(
            unit_id=profile.feature_unit,
            control=FeatureControl.MUTE,
            channel=profile.mute_channel,
            interface=profile.control_interface,
        )


def get_mute(
    transport: Any,
    address: FeatureAddress,
    timeout_ms: int = CONTROL_TIMEOUT_MS,
) -> bool:
    """
    Read the current mute state (GET_CUR).

    Args:
        transport: Open transport
        address: Mute control address
        timeout_ms: Transfer timeout

    Returns:
        True if muted.

    Raises:
        TransportError: If the transfer fails
        ProtocolError: If the device returns no data
    """
    data = transport.control_transfer(
        REQUEST_TYPE_IN,
        UACRequest.GET_CUR,
        address.value,
        address.index,
        1,
        timeout_ms,
    )
    if not data:
        raise ProtocolError("Empty GET_CUR response for mute control")

    muted = data[0] != 0
    logger.debug("GET_CUR mute -> %02x (%s)", data[0], "muted" if muted else "unmuted")
    return muted


def set_mute(
    transport: Any,
    muted: bool,
    address: FeatureAddress,
    timeout_ms: int = CONTROL_TIMEOUT_MS,
) -> None:
    """
    Set the mute state (SET_CUR).

    The device is not read back afterwards; call get_mute() to confirm.

    Args:
        transport: Open transport
        muted: True to mute, False to unmute
        address: Mute control address
        timeout_ms: Transfer timeout

    Raises:
        TransportError: If the transfer fails
    """
    payload = bytes([1 if muted else 0])
    logger.debug("SET_CUR mute <- %02x", payload[0])
    transport.control_transfer(
        REQUEST_TYPE_OUT,
        UACRequest.SET_CUR,
        address.value,
        address.index,
        payload,
        timeout_ms,
    )
