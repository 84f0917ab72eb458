"""Devices: where register amplitudes live and in which precision."""

from __future__ import annotations

from typing import Dict, Tuple

import torch


class Device:
    """
    A named simulation target: a torch device plus the dtypes used on it.

    Register amplitude vectors are allocated on ``torch_device`` with
    ``complex_dtype``; probabilities use ``dtype``. Treat instances as
    read-only.
    """

    def __init__(
        self,
        name: str,
        torch_device: torch.device,
        dtype: torch.dtype = torch.float64,
        complex_dtype: torch.dtype = torch.complex128,
    ) -> None:
        """
        Args:
            name: Device name as accepted by :func:`device`.
            torch_device: Device amplitudes are stored on.
            dtype: Real dtype for probabilities.
            complex_dtype: Complex dtype for amplitudes.
        """
        self.name = name
        self.torch_device = torch_device
        self.dtype = dtype
        self.complex_dtype = complex_dtype

    def __repr__(self) -> str:
        return (
            f"Device(name={self.name!r}, torch_device={self.torch_device}, "
            f"complex_dtype={self.complex_dtype})"
        )

    def as_torch_device(self) -> torch.device:
        """The torch device registers allocate on."""
        return self.torch_device


# name -> (torch device type, real dtype, complex dtype)
_DEVICES: Dict[str, Tuple[str, torch.dtype, torch.dtype]] = {
    "sv_cpu": ("cpu", torch.float64, torch.complex128),
    "sv_cpu_single": ("cpu", torch.float32, torch.complex64),
    "sv_cuda": ("cuda", torch.float64, torch.complex128),
}


def device(name: str) -> Device:
    """
    Look up a device by name.

    Known names are ``"sv_cpu"`` (complex128, the default),
    ``"sv_cpu_single"`` (complex64) and ``"sv_cuda"`` (complex128 on the
    current CUDA device).

    Raises:
        RuntimeError: If "sv_cuda" is requested but CUDA is not available.
        ValueError: If the device name is not supported.
    """
    try:
        device_type, dtype, complex_dtype = _DEVICES[name]
    except KeyError:
        raise ValueError(
            f"Unsupported device name: {name!r}. Supported devices: {sorted(_DEVICES)}"
        ) from None

    if device_type == "cuda" and not torch.cuda.is_available():
        raise RuntimeError(f"Device {name!r} needs CUDA, which is not available")

    return Device(
        name=name,
        torch_device=torch.device(device_type),
        dtype=dtype,
        complex_dtype=complex_dtype,
    )


def default_device() -> Device:
    """The double-precision CPU device."""
    return device("sv_cpu")
