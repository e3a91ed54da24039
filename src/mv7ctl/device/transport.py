"""
USB transport binding using libusb/PyUSB.

Wraps a single ``usb.core.Device`` behind the narrow set of operations a
device session needs, translating PyUSB exceptions into the package's
error hierarchy.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import usb.core
import usb.util

from mv7ctl.device.errors import DeviceNotFound, TransferTimeout, TransportError


logger = logging.getLogger(__name__)


@contextmanager
def _translate(operation: str) -> Iterator[None]:
    """Re-raise PyUSB errors from *operation* as TransportError."""
    try:
        yield
    except usb.core.USBTimeoutError as e:
        raise TransferTimeout(f"{operation} timed out", errno=e.errno) from e
    except usb.core.USBError as e:
        raise TransportError(f"{operation} failed: {e}", errno=e.errno) from e


class PyUSBTransport:
    """
    Transport over one PyUSB device handle.

    Timeouts are in milliseconds, as PyUSB expects.
    """

    def __init__(self, device: usb.core.Device) -> None:
        self.device = device

    @classmethod
    def find(cls, vendor_id: int, product_id: int) -> PyUSBTransport:
        """
        Open the first device matching VID:PID.

        Args:
            vendor_id: USB vendor ID
            product_id: USB product ID

        Returns:
            Transport bound to the device

        Raises:
            DeviceNotFound: If no matching device is connected
            TransportError: If no libusb backend is available
        """
        try:
            dev = usb.core.find(idVendor=vendor_id, idProduct=product_id)
        except usb.core.NoBackendError as e:
            logger.error("No USB backend available. Install libusb.")
            raise TransportError("No USB backend available") from e

        if dev is None:
            raise DeviceNotFound(
                f"No device found with VID={vendor_id:#06x} PID={product_id:#06x}"
            )

        logger.debug(
            "Found device %04x:%04x on bus %s address %s",
            vendor_id, product_id, dev.bus, dev.address,
        )
        return cls(dev)

    # Configuration and interfaces

    def get_configuration(self) -> int | None:
        """Get the active configuration value, or None if unconfigured."""
        try:
            cfg = self.device.get_active_configuration()
        except usb.core.USBError as e:
            logger.debug("No active configuration: %s", e)
            return None
        return cfg.bConfigurationValue

    def set_configuration(self, value: int) -> None:
        with _translate(f"set_configuration({value})"):
            self.device.set_configuration(value)

    def is_kernel_driver_active(self, interface: int) -> bool:
        """Check for a bound kernel driver. Always False where unsupported."""
        try:
            with _translate(f"is_kernel_driver_active({interface})"):
                return bool(self.device.is_kernel_driver_active(interface))
        except NotImplementedError:
            return False

    def detach_kernel_driver(self, interface: int) -> None:
        with _translate(f"detach_kernel_driver({interface})"):
            self.device.detach_kernel_driver(interface)

    def attach_kernel_driver(self, interface: int) -> None:
        with _translate(f"attach_kernel_driver({interface})"):
            self.device.attach_kernel_driver(interface)

    def claim_interface(self, interface: int) -> None:
        with _translate(f"claim_interface({interface})"):
            usb.util.claim_interface(self.device, interface)

    def release_interface(self, interface: int) -> None:
        with _translate(f"release_interface({interface})"):
            usb.util.release_interface(self.device, interface)

    def set_alternate_setting(self, interface: int, alternate_setting: int) -> None:
        with _translate(f"set_alternate_setting({interface}, {alternate_setting})"):
            self.device.set_interface_altsetting(
                interface=interface, alternate_setting=alternate_setting
            )

    # Transfers

    def control_transfer(
        self,
        request_type: int,
        request: int,
        value: int,
        index: int,
        data_or_length: bytes | int,
        timeout_ms: int,
    ) -> bytes | int:
        """
        Issue a control transfer.

        Args:
            request_type: bmRequestType
            request: bRequest
            value: wValue
            index: wIndex
            data_or_length: Payload for OUT transfers, byte count for IN
            timeout_ms: Transfer timeout

        Returns:
            Bytes read for IN transfers, byte count written for OUT.
        """
        with _translate(f"control transfer {request:#04x}"):
            result = self.device.ctrl_transfer(
                request_type, request, value, index, data_or_length, timeout_ms
            )
        if isinstance(result, int):
            return result
        return bytes(result)

    def write(self, endpoint: int, data: bytes, timeout_ms: int) -> int:
        """Interrupt OUT transfer. Returns bytes written."""
        with _translate(f"write to endpoint {endpoint:#04x}"):
            return self.device.write(endpoint, data, timeout_ms)

    def read(self, endpoint: int, size: int, timeout_ms: int) -> bytes:
        """Interrupt IN transfer. Returns only the bytes actually received."""
        with _translate(f"read from endpoint {endpoint:#04x}"):
            data = self.device.read(endpoint, size, timeout_ms)
        return bytes(data)

    # Device lifecycle

    def reset(self) -> None:
        with _translate("device reset"):
            self.device.reset()

    def dispose(self) -> None:
        """Free libusb resources held for the device."""
        usb.util.dispose_resources(self.device)
