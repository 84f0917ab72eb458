"""Core abstractions: devices and register locking."""

from .device import Device, default_device, device
from .locks import FairLock

__all__ = ["Device", "device", "default_device", "FairLock"]
