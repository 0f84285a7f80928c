"""Single-threaded backend: in-place row-major sweeps."""

from numba import njit

from ..boundary import set_boundary
from .base import ExecutionBackend


class SerialBackend(ExecutionBackend):
    """Visits cells one at a time, i outer and j inner.

    Stencil kernels read the buffer they are writing, so later cells of a
    sweep already see the updated left/below neighbours (Gauss-Seidel).
    """

    name = "serial"

    @staticmethod
    def _build_elementwise(kernel):
        @njit(nogil=True)
        def elementwise(n, first, last, buffers, slots, params):
            for i in range(first, last + 1):
                for j in range(first, last + 1):
                    kernel(i, j, n, buffers, slots, params)

        return elementwise

    @staticmethod
    def _build_sweep(kernel):
        @njit(nogil=True)
        def sweep(n, first, last, buffers, slots, params, sweeps, kind, snapshot):
            target = buffers[slots[0]]
            for _ in range(sweeps):
                for i in range(first, last + 1):
                    for j in range(first, last + 1):
                        kernel(i, j, n, buffers, slots, params, target)
                set_boundary(n, kind, target)

        return sweep
