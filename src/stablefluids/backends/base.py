"""Abstract execution backend for per-cell kernels."""

from abc import ABC, abstractmethod
from collections import namedtuple
from functools import lru_cache

GridExtent = namedtuple("GridExtent", ["n", "first", "last"])
GridExtent.__doc__ = """Inclusive cell range [first, last] swept along both axes of an n-grid."""


def interior(n):
    """Extent of the interior cells 1..n."""
    return GridExtent(n, 1, n)


def padded(n):
    """Extent of every cell including the boundary ring."""
    return GridExtent(n, 0, n + 1)


class ExecutionBackend(ABC):
    """Applies numba-compiled cell kernels over a grid extent.

    Kernels come in two flavours:

    - elementwise: ``kernel(i, j, n, buffers, slots, params)``
    - stencil: ``kernel(i, j, n, buffers, slots, params, read)`` where ``read``
      is the array neighbour values are taken from

    ``buffers`` is the (6, size) field array, ``slots`` an int64 array of
    buffer handles (``slots[0]`` is the written buffer) and ``params`` a
    float64 array of kernel coefficients.

    Subclasses provide ``_build_elementwise(kernel)`` and
    ``_build_sweep(kernel)`` returning compiled drivers; drivers are compiled
    once per kernel and cached.
    """

    name = None

    def run_elementwise(self, kernel, extent: GridExtent, buffers, slots, params):
        """Visit every cell of ``extent`` once."""
        driver = self._elementwise_driver(kernel)
        driver(extent.n, extent.first, extent.last, buffers, slots, params)

    def run_stencil_sweep(self, kernel, extent: GridExtent, buffers, slots, params,
                          sweeps: int, kind: int):
        """Run ``sweeps`` stencil sweeps, enforcing the boundary of
        ``buffers[slots[0]]`` for ``kind`` after each one."""
        driver = self._sweep_driver(kernel)
        driver(extent.n, extent.first, extent.last, buffers, slots, params,
               sweeps, int(kind), self._snapshot(buffers))

    def _snapshot(self, buffers):
        """Scratch array handed to sweep drivers (unused by in-place backends)."""
        return buffers[0]

    def _elementwise_driver(self, kernel):
        return _cached_driver(type(self), "_build_elementwise", kernel)

    def _sweep_driver(self, kernel):
        return _cached_driver(type(self), "_build_sweep", kernel)

    @staticmethod
    @abstractmethod
    def _build_elementwise(kernel):
        """Return a compiled ``driver(n, first, last, buffers, slots, params)``."""
        pass

    @staticmethod
    @abstractmethod
    def _build_sweep(kernel):
        """Return a compiled ``driver(n, first, last, buffers, slots, params,
        sweeps, kind, snapshot)``."""
        pass

    def __repr__(self):
        return f"{type(self).__name__}()"


@lru_cache(maxsize=None)
def _cached_driver(backend_cls, builder, kernel):
    return getattr(backend_cls, builder)(kernel)
