"""
Backend registry.

get_backend() maps a name to a solver: the NumPy/SciPy reference backend,
or the PyTorch FP64 backend on a CUDA device with full-rate double
precision.
"""

from typing import Optional

from .base import BackendBase, BackendResult
from .cpu_fp64_backend import CPUBackendFP64
from .gpu_fp64_backend import PyTorchBackendFP64
from .device import DeviceInfo, detect_device, validate_fp64_request
from .conditioning import check_conditioning, format_conditioning_message

try:
    import torch  # noqa: F401
except ImportError:
    PYTORCH_AVAILABLE = False
else:
    PYTORCH_AVAILABLE = True


BACKEND_NAMES = ('auto', 'cpu', 'gpu', 'pytorch')


def get_backend(backend: str = 'auto', use_fp64: Optional[bool] = None) -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str
        - 'auto': PyTorch on a full-rate FP64 CUDA device, otherwise CPU
        - 'cpu': NumPy/SciPy
        - 'gpu': PyTorch on the CUDA device; fails without one
        - 'pytorch': PyTorch on CUDA if present, else on the CPU
    use_fp64 : bool or None
        Only None or True; every backend solves in FP64.

    Returns
    -------
    BackendBase

    Examples
    --------
    >>> get_backend('cpu').name
    'cpu_fp64'
    """
    validate_fp64_request(use_fp64)

    if backend not in BACKEND_NAMES:
        raise ValueError(
            f"Unknown backend: '{backend}'. "
            f"Valid options: {', '.join(repr(b) for b in BACKEND_NAMES)}"
        )

    if backend == 'cpu':
        return CPUBackendFP64()

    if backend == 'pytorch':
        if not PYTORCH_AVAILABLE:
            raise RuntimeError(
                "PyTorch backend unavailable. Install: pip install pyols[gpu]"
            )
        return PyTorchBackendFP64()

    device = detect_device()

    if backend == 'auto':
        if device.prefer_gpu:
            return PyTorchBackendFP64(device='cuda')
        return CPUBackendFP64()

    if not device.cuda:
        raise ValueError(
            "No GPU detected: PyTorch sees no CUDA device. "
            "Use backend='cpu' or install PyTorch with CUDA support."
        )
    return PyTorchBackendFP64(device='cuda')


def list_available_backends() -> list:
    """Names of the backends that can be constructed here."""
    return ['cpu', 'pytorch'] if PYTORCH_AVAILABLE else ['cpu']


def print_backend_info():
    """Print installed backends, the CUDA device and what 'auto' picks."""
    device = detect_device()
    selected = get_backend('auto')

    print("pyols Backend Status")
    print("-" * 50)
    print("  CPU (NumPy/SciPy, FP64):  available")
    print(f"  PyTorch (FP64):           {'available' if PYTORCH_AVAILABLE else 'not installed'}")
    print(f"  CUDA device:              {device.name if device.cuda else 'none'}")
    if device.cuda:
        print(f"  Full-rate FP64:           {'yes' if device.full_fp64 else 'no'}")
    print(f"  backend='auto' selects:   {selected.name}")
    for key, value in selected.get_device_info().items():
        print(f"    {key}: {value}")


__all__ = [
    'get_backend',
    'list_available_backends',
    'print_backend_info',
    'BackendBase',
    'BackendResult',
    'DeviceInfo',
    'detect_device',
    'check_conditioning',
    'format_conditioning_message',
    'PYTORCH_AVAILABLE',
]


if __name__ == "__main__":
    print_backend_info()
