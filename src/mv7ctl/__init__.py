"""
mv7ctl - Shure MV7 microphone control over USB.

Reads and sets the mute switch through USB Audio Class control requests
and the DSP mic position through the HID command channel.
"""

__version__ = "0.1.0"

from mv7ctl.config import MV7Config, load_config
from mv7ctl.device import DeviceSession, MicPosition

__all__ = ["DeviceSession", "MicPosition", "MV7Config", "load_config", "__version__"]
