"""Execution backends for grid kernels.

Backend Hierarchy:
------------------
ExecutionBackend (abstract - compiles and caches kernel drivers)
├── SerialBackend (one thread, in-place sweeps, Gauss-Seidel relaxation)
└── ParallelBackend (numba prange work-items, snapshot sweeps, Jacobi relaxation)
"""

from .base import ExecutionBackend, GridExtent, interior, padded
from .serial import SerialBackend
from .parallel import ParallelBackend

BACKENDS = {
    SerialBackend.name: SerialBackend,
    ParallelBackend.name: ParallelBackend,
}


def create_backend(name: str) -> ExecutionBackend:
    """Instantiate a backend by name ("serial" or "parallel")."""
    try:
        backend_cls = BACKENDS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown backend: {name}. Use one of {sorted(BACKENDS)}"
        ) from None
    return backend_cls()


__all__ = [
    "ExecutionBackend",
    "GridExtent",
    "interior",
    "padded",
    "SerialBackend",
    "ParallelBackend",
    "BACKENDS",
    "create_backend",
]
