"""
DSP mode ("mic position") command protocol.

The firmware accepts ASCII commands over the HID interrupt OUT endpoint
and answers on the IN endpoint. Every frame is 64 bytes: NUL-terminated
text padded with zero bytes.

Commands::

    dspMode          query the current mode
    dspMode <code>   select a mode

Both are answered with ``dspMode=<code>``. The channel carries no
request/response correlation, so buffered frames are drained before each
exchange.
"""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Any

from mv7ctl.device.constants import FRAME_SIZE, DeviceProfile, Timing
from mv7ctl.device.errors import ProtocolError, TransferTimeout, TransportError


logger = logging.getLogger(__name__)


DSP_MODE_COMMAND = "dspMode"
DSP_MODE_PREFIX = "dspMode="


class MicPosition(IntEnum):
    """DSP operating mode, by its firmware code."""

    NEAR = 2
    FAR = 5

    def __str__(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_code(cls, code: int) -> MicPosition:
        """
        Map a firmware mode code to a position.

        Raises:
            ProtocolError: If the code is not a known position
        """
        try:
            return cls(code)
        except ValueError:
            raise ProtocolError(f"Unrecognized mode {code}") from None

    @classmethod
    def from_name(cls, name: str) -> MicPosition:
        """Look up a position by name (case-insensitive)."""
        return cls[name.upper()]


def encode_command(text: str) -> bytes:
    """
    Build an outbound frame.

    Args:
        text: ASCII command, shorter than the frame so a NUL fits

    Returns:
        FRAME_SIZE bytes
    """
    raw = text.encode("ascii")
    if len(raw) >= FRAME_SIZE:
        raise ValueError(
            f"Command is {len(raw)} bytes, must be under {FRAME_SIZE}"
        )
    return raw.ljust(FRAME_SIZE, b"\x00")


def decode_response(data: bytes) -> str:
    """Extract the response text from the bytes of one inbound frame."""
    text = data.split(b"\x00", 1)[0].decode("ascii", errors="replace")
    return text.rstrip()


def parse_mode_response(text: str) -> MicPosition:
    """
    Parse a ``dspMode=<code>`` response.

    Only the leading run of digits after the prefix is used, so
    ``dspMode=2;ok`` is NEAR.

    Raises:
        ProtocolError: If the prefix or digits are missing, the code does
            not fit in a byte, or it is not a known position
    """
    if not text.startswith(DSP_MODE_PREFIX):
        raise ProtocolError(f"Unexpected response: {text!r}", response=text)

    rest = text[len(DSP_MODE_PREFIX):]
    digits = ""
    for ch in rest:
        if ch not in "0123456789":
            break
        digits += ch

    if not digits:
        raise ProtocolError(f"No mode code in response: {text!r}", response=text)

    code = int(digits)
    if code > 0xFF:
        raise ProtocolError(f"Mode code out of range: {code}", response=text)

    try:
        return MicPosition.from_code(code)
    except ProtocolError as e:
        e.response = text
        raise


def drain(
    transport: Any,
    endpoint: int,
    max_reads: int,
    timeout_ms: int,
) -> int:
    """
    Discard frames buffered on an IN endpoint.

    Reads until the first timeout or max_reads frames. A timeout means
    the channel is empty and is not an error.

    Returns:
        Number of frames discarded.

    Raises:
        TransportError: On any failure other than a timeout
    """
    discarded = 0
    for _ in range(max_reads):
        try:
            data = transport.read(endpoint, FRAME_SIZE, timeout_ms)
        except TransferTimeout:
            break
        discarded += 1
        logger.debug("Drained stale frame: %r", decode_response(data))
    return discarded


def _exchange(transport: Any, command: str, profile: DeviceProfile, timing: Timing) -> str:
    """Drain, send one command and return the text of the next frame."""
    drain(
        transport, profile.endpoint_in, timing.drain_max_reads, timing.drain_timeout_ms
    )

    logger.debug("Sending %r", command)
    written = transport.write(
        profile.endpoint_out, encode_command(command), timing.write_timeout_ms
    )
    if written < FRAME_SIZE:
        raise TransportError(
            f"Short write to endpoint {profile.endpoint_out:#04x}: "
            f"{written} of {FRAME_SIZE} bytes"
        )

    data = transport.read(profile.endpoint_in, FRAME_SIZE, timing.read_timeout_ms)
    text = decode_response(data)
    logger.debug("Received %r", text)
    return text


def get_mic_position(transport: Any, profile: DeviceProfile, timing: Timing) -> MicPosition:
    """
    Query the current mic position.

    Raises:
        TransportError: If a transfer fails (including a response timeout)
        ProtocolError: If the response is malformed or names an unknown mode
    """
    text = _exchange(transport, DSP_MODE_COMMAND, profile, timing)
    return parse_mode_response(text)


def set_mic_position(
    transport: Any,
    position: MicPosition,
    profile: DeviceProfile,
    timing: Timing,
) -> None:
    """
    Select a mic position.

    One response frame is read as acknowledgment. Its content is not
    checked against the requested mode; query with get_mic_position()
    to confirm.

    Raises:
        TransportError: If a transfer fails (including a response timeout)
    """
    command = f"{DSP_MODE_COMMAND} {int(position)}"
    ack = _exchange(transport, command, profile, timing)
    logger.debug("Acknowledgment for %s: %r", position, ack)
