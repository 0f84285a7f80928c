"""Data-parallel backend: independent per-cell work-items on numba threads."""

import numpy as np
from numba import njit, prange

from ..boundary import set_boundary
from .base import ExecutionBackend


class ParallelBackend(ExecutionBackend):
    """Dispatches one work-item per grid column with ``prange``.

    Every stencil sweep first copies the written buffer into a snapshot and
    all work-items read neighbours from that snapshot (Jacobi). The driver
    returns only after the whole sweep and its boundary update completed, so
    the next sweep or stage never observes a partially written buffer.
    """

    name = "parallel"

    def __init__(self):
        self._snapshots = {}

    def _snapshot(self, buffers):
        size = buffers.shape[1]
        snapshot = self._snapshots.get(size)
        if snapshot is None:
            snapshot = np.zeros(size, dtype=np.float64)
            self._snapshots[size] = snapshot
        return snapshot

    @staticmethod
    def _build_elementwise(kernel):
        @njit(parallel=True, nogil=True)
        def elementwise(n, first, last, buffers, slots, params):
            for i in prange(first, last + 1):
                for j in range(first, last + 1):
                    kernel(i, j, n, buffers, slots, params)

        return elementwise

    @staticmethod
    def _build_sweep(kernel):
        @njit(parallel=True, nogil=True)
        def sweep(n, first, last, buffers, slots, params, sweeps, kind, snapshot):
            target = buffers[slots[0]]
            for _ in range(sweeps):
                snapshot[:] = target
                for i in prange(first, last + 1):
                    for j in range(first, last + 1):
                        kernel(i, j, n, buffers, slots, params, snapshot)
                set_boundary(n, kind, target)

        return sweep
