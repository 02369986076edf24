"""
CUDA device probing for backend selection.

Every solve runs in double precision, so a GPU only pays off when it runs
FP64 at full rate. Consumer cards run it at 1/32 or 1/64 of their FP32
rate and lose to LAPACK on the CPU.
"""

from dataclasses import dataclass
from typing import Optional


# Substrings of torch.cuda.get_device_name() for full-rate FP64 parts
FULL_FP64_MODELS = (
    'A100', 'A800',
    'H100', 'H200', 'H800',
    'B100', 'B200',
    'V100', 'P100',
)


@dataclass(frozen=True)
class DeviceInfo:
    """What backend selection needs to know about the machine."""
    cuda: bool          # torch sees a CUDA device
    name: str           # Device 0 name, or 'CPU only'
    full_fp64: bool     # FP64 runs at full rate on that device

    @property
    def prefer_gpu(self) -> bool:
        return self.cuda and self.full_fp64


CPU_ONLY = DeviceInfo(cuda=False, name='CPU only', full_fp64=False)


def has_full_fp64(device_name: str) -> bool:
    """Whether a CUDA device name belongs to a full-rate FP64 part."""
    upper = device_name.upper()
    return any(model in upper for model in FULL_FP64_MODELS)


def detect_device() -> DeviceInfo:
    """Probe for a CUDA device; CPU_ONLY when torch is missing or sees none."""
    try:
        import torch
    except ImportError:
        return CPU_ONLY

    if not torch.cuda.is_available():
        return CPU_ONLY

    name = torch.cuda.get_device_name(0)
    return DeviceInfo(cuda=True, name=name, full_fp64=has_full_fp64(name))


def validate_fp64_request(use_fp64: Optional[bool]) -> None:
    """
    Reject single-precision requests.

    Raises
    ------
    ValueError
        If use_fp64 is False
    """
    if use_fp64 is False:
        raise ValueError(
            "pyols only computes in double precision (use_fp64=False is "
            "not supported). Leave use_fp64 unset or pass True."
        )
