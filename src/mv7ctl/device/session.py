"""
Device session.

Owns exclusive access to one microphone's USB interfaces for the
lifetime of the session, and exposes the mute and mic position
operations on top of it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from mv7ctl.device import mute, position
from mv7ctl.device.constants import MV7, DeviceProfile, Timing
from mv7ctl.device.errors import (
    ConfigurationError,
    ResourceAcquisitionError,
    StaleHandleUse,
    TransportError,
)
from mv7ctl.device.mute import FeatureAddress
from mv7ctl.device.position import MicPosition
from mv7ctl.device.transport import PyUSBTransport


logger = logging.getLogger(__name__)


@dataclass
class DeviceStatus:
    """Snapshot of the device's settings."""

    muted: bool
    position: MicPosition

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "muted": self.muted,
            "position": str(self.position),
        }


class DeviceSession:
    """
    Exclusive session on one device.

    Use as a context manager so interfaces are always released::

        with DeviceSession.open() as mic:
            mic.set_mute(True)

    After close() or reset() every operation raises StaleHandleUse.
    """

    def __init__(
        self,
        transport: Any,
        profile: DeviceProfile = MV7,
        timing: Timing | None = None,
    ) -> None:
        """
        Wrap an already-found transport. Use open() to acquire a device.

        Args:
            transport: Transport bound to the device
            profile: Addressing table for the device
            timing: Transfer timeouts
        """
        self._transport = transport
        self.profile = profile
        self.timing = timing or Timing()
        self._mute_address = FeatureAddress.mute_of(profile)

        # Interface number -> kernel driver was bound when claimed
        self._claimed: dict[int, bool] = {}
        self._closed = False

    @classmethod
    def open(
        cls,
        profile: DeviceProfile = MV7,
        timing: Timing | None = None,
        transport: Any = None,
    ) -> DeviceSession:
        """
        Open the first connected device and claim its interfaces.

        Args:
            profile: Addressing table for the device
            timing: Transfer timeouts
            transport: Transport to use instead of looking the device up

        Returns:
            Open DeviceSession

        Raises:
            DeviceNotFound: If no matching device is connected
            ConfigurationError: If the configuration cannot be selected
            ResourceAcquisitionError: If an interface cannot be claimed
            TransportError: If flushing stale input fails
        """
        if transport is None:
            transport = PyUSBTransport.find(profile.vendor_id, profile.product_id)

        session = cls(transport, profile, timing)
        try:
            session._acquire()
        except BaseException:
            session._release_all()
            session._dispose()
            session._closed = True
            raise

        logger.info("Opened %s (%s)", profile.name, profile.usb_id)
        return session

    def _acquire(self) -> None:
        """Run the open sequence. Claims are recorded as they succeed."""
        transport = self._transport

        active = transport.get_configuration()
        if active != self.profile.configuration:
            logger.debug(
                "Active configuration is %s, selecting %d",
                active, self.profile.configuration,
            )
            try:
                transport.set_configuration(self.profile.configuration)
            except TransportError as e:
                raise ConfigurationError(
                    f"Cannot set configuration {self.profile.configuration}: {e}"
                ) from e

        for interface in self.profile.interfaces:
            self._claim(interface)

        time.sleep(self.timing.settle_delay)

        flushed = position.drain(
            transport,
            self.profile.endpoint_in,
            self.timing.drain_max_reads,
            self.timing.drain_timeout_ms,
        )
        if flushed:
            logger.debug("Discarded %d startup frame(s)", flushed)

    def _claim(self, interface: int) -> None:
        """Detach the kernel driver from, claim and reset one interface."""
        transport = self._transport
        step = "query kernel driver"
        detached = False
        try:
            attached = transport.is_kernel_driver_active(interface)
            if attached:
                step = "detach kernel driver"
                transport.detach_kernel_driver(interface)
                detached = True
                logger.debug("Detached kernel driver from interface %d", interface)

            step = "claim"
            transport.claim_interface(interface)
        except TransportError as e:
            if detached:
                self._reattach(interface)
            raise ResourceAcquisitionError(
                f"Interface {interface}: {step} failed: {e}",
                interface=interface,
                step=step,
            ) from e

        self._claimed[interface] = attached

        try:
            transport.set_alternate_setting(interface, 0)
        except TransportError as e:
            raise ResourceAcquisitionError(
                f"Interface {interface}: set alternate setting failed: {e}",
                interface=interface,
                step="set alternate setting",
            ) from e

    def _reattach(self, interface: int) -> None:
        try:
            self._transport.attach_kernel_driver(interface)
            logger.debug("Reattached kernel driver to interface %d", interface)
        except Exception as e:
            logger.warning(
                "Failed to reattach kernel driver to interface %d: %s", interface, e
            )

    def _release_all(self) -> None:
        """Release every claimed interface. Failures are logged, not raised."""
        claimed, self._claimed = self._claimed, {}
        for interface, attached in claimed.items():
            try:
                self._transport.release_interface(interface)
            except Exception as e:
                logger.warning("Failed to release interface %d: %s", interface, e)
            if attached:
                self._reattach(interface)

    def _dispose(self) -> None:
        try:
            self._transport.dispose()
        except Exception as e:
            logger.warning("Failed to free USB resources: %s", e)

    @property
    def is_open(self) -> bool:
        """Whether the session can still be used."""
        return not self._closed

    def _require_open(self) -> Any:
        if self._closed:
            raise StaleHandleUse("Device session is closed")
        return self._transport

    def close(self) -> None:
        """
        Release all interfaces and reattach kernel drivers.

        Every step is attempted even if earlier ones fail. Calling close()
        again, or after reset(), does nothing.
        """
        if self._closed:
            return
        self._closed = True
        self._release_all()
        self._dispose()
        logger.info("Closed %s", self.profile.name)

    def reset(self) -> None:
        """
        Reset the device.

        The session is unusable afterwards, whether or not the reset
        succeeded. Interfaces are not released since the handle is gone.

        Raises:
            StaleHandleUse: If the session is already closed
            TransportError: If the reset request fails
        """
        transport = self._require_open()
        self._closed = True
        self._claimed = {}
        try:
            transport.reset()
            logger.info("Reset %s", self.profile.name)
        finally:
            self._dispose()

    def __enter__(self) -> DeviceSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<DeviceSession {self.profile.usb_id} {state}>"

    # Mute

    def get_mute(self) -> bool:
        """Read the mute state from the device."""
        return mute.get_mute(
            self._require_open(), self._mute_address, self.timing.control_timeout_ms
        )

    def set_mute(self, muted: bool) -> None:
        """Mute or unmute. Not read back."""
        mute.set_mute(
            self._require_open(), muted, self._mute_address, self.timing.control_timeout_ms
        )

    # Mic position

    def get_mic_position(self) -> MicPosition:
        """Query the DSP mic position."""
        return position.get_mic_position(self._require_open(), self.profile, self.timing)

    def set_mic_position(self, mic_position: MicPosition) -> None:
        """Select the DSP mic position. The acknowledgment is not verified."""
        position.set_mic_position(
            self._require_open(), mic_position, self.profile, self.timing
        )

    def status(self) -> DeviceStatus:
        """
        Query mute state, then mic position.

        The first failure aborts the query.
        """
        muted = self.get_mute()
        return DeviceStatus(muted=muted, position=self.get_mic_position())
