"""
Device addressing constants and reference data.

USB identifiers, interface numbers, endpoint addresses and USB Audio
Class codes for supported microphones, kept in one table so protocol
code never carries literal addresses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class UACRequest(IntEnum):
    """USB Audio Class 1.0 class-specific request codes."""

    SET_CUR = 0x01
    SET_MIN = 0x02
    SET_MAX = 0x03
    SET_RES = 0x04
    GET_CUR = 0x81
    GET_MIN = 0x82
    GET_MAX = 0x83
    GET_RES = 0x84


class FeatureControl(IntEnum):
    """Feature Unit control selectors."""

    MUTE = 0x01
    VOLUME = 0x02
    BASS = 0x03
    MID = 0x04
    TREBLE = 0x05
    GRAPHIC_EQUALIZER = 0x06
    AUTOMATIC_GAIN = 0x07
    DELAY = 0x08
    BASS_BOOST = 0x09
    LOUDNESS = 0x0A


# Interrupt channel frame size (bytes)
FRAME_SIZE = 64

# Default transfer timeouts (milliseconds)
CONTROL_TIMEOUT_MS = 100
WRITE_TIMEOUT_MS = 100
READ_TIMEOUT_MS = 200
DRAIN_TIMEOUT_MS = 50

DRAIN_MAX_READS = 5

# Seconds to wait after claiming before flushing startup chatter
SETTLE_DELAY = 0.1


@dataclass
class Timing:
    """Transfer timeouts and drain behavior for a session."""

    control_timeout_ms: int = CONTROL_TIMEOUT_MS
    write_timeout_ms: int = WRITE_TIMEOUT_MS
    read_timeout_ms: int = READ_TIMEOUT_MS
    drain_timeout_ms: int = DRAIN_TIMEOUT_MS
    drain_max_reads: int = DRAIN_MAX_READS
    settle_delay: float = SETTLE_DELAY


@dataclass(frozen=True)
class DeviceProfile:
    """Static addressing table for one device model."""

    name: str
    vendor_id: int
    product_id: int
    configuration: int
    control_interface: int  # Audio Control
    hid_interface: int
    feature_unit: int
    mute_channel: int
    endpoint_out: int
    endpoint_in: int

    @property
    def interfaces(self) -> tuple[int, ...]:
        """Interfaces claimed for a session, in claim order."""
        return (self.control_interface, self.hid_interface)

    @property
    def usb_id(self) -> str:
        """Get VID:PID as a lsusb-style string."""
        return f"{self.vendor_id:04x}:{self.product_id:04x}"


# Shure MV7
# Interface 0: Audio Control
# Interface 1: Audio Streaming (monitor mix out)
# Interface 2: Audio Streaming (microphone in)
# Interface 3: HID
MV7 = DeviceProfile(
    name="Shure MV7",
    vendor_id=0x14ED,
    product_id=0x1012,
    configuration=1,
    control_interface=0,
    hid_interface=3,
    feature_unit=6,
    mute_channel=0,
    endpoint_out=0x05,
    endpoint_in=0x84,
)

PROFILES: dict[str, DeviceProfile] = {
    "mv7": MV7,
}


def get_profile(name: str) -> DeviceProfile:
    """
    Look up a device profile by name.

    Args:
        name: Profile key (case-insensitive)

    Returns:
        Matching DeviceProfile

    Raises:
        KeyError: If no profile has that name
    """
    key = name.lower()
    if key not in PROFILES:
        raise KeyError(
            f"Unknown device profile '{name}'. "
            f"Known profiles: {', '.join(sorted(PROFILES))}"
        )
    return PROFILES[key]
