"""Pressure projection (Helmholtz-Hodge) of the velocity field."""

import numpy as np
from numba import njit

from .backends import interior
from .boundary import BoundaryEnforcer
from .datastructures import FieldKind


@njit(cache=True, nogil=True)
def divergence_cell(i, j, n, buffers, slots, params):
    """slots: p, div, u, v"""
    n2 = n + 2
    k = i + j * n2
    u = buffers[slots[2]]
    v = buffers[slots[3]]
    buffers[slots[1], k] = -0.5 * (u[k + 1] - u[k - 1] + v[k + n2] - v[k - n2]) / n
    buffers[slots[0], k] = 0.0


@njit(cache=True, nogil=True)
def subtract_gradient_cell(i, j, n, buffers, slots, params):
    """slots: u, v, p"""
    n2 = n + 2
    k = i + j * n2
    p = buffers[slots[2]]
    buffers[slots[0], k] -= 0.5 * n * (p[k + 1] - p[k - 1])
    buffers[slots[1], k] -= 0.5 * n * (p[k + n2] - p[k - n2])


class ProjectionSolver:
    """Makes the velocity field (approximately) divergence free.

    Solves ``laplacian(p) = div(u, v)`` with the relaxation solver and
    subtracts ``grad(p)``. The result is divergence free only up to the
    residual of the relaxation budget.
    """

    def __init__(self, backend, relaxation):
        self.backend = backend
        self.relaxation = relaxation

    def project(self, fields, u: str, v: str, p: str, div: str):
        """Project ``fields[u], fields[v]`` using ``p`` and ``div`` as scratch."""
        n = fields.n
        extent = interior(n)
        boundary = BoundaryEnforcer(n)
        no_params = np.zeros(1, dtype=np.float64)

        self.backend.run_elementwise(
            divergence_cell, extent, fields.buffers, fields.slots(p, div, u, v), no_params
        )
        boundary.apply(fields.buffers, fields.slot(div), FieldKind.DENSITY)
        boundary.apply(fields.buffers, fields.slot(p), FieldKind.DENSITY)

        self.relaxation.solve(fields, p, div, 1.0, 4.0, FieldKind.DENSITY)

        self.backend.run_elementwise(
            subtract_gradient_cell, extent, fields.buffers, fields.slots(u, v, p), no_params
        )
        boundary.apply(fields.buffers, fields.slot(u), FieldKind.VELOCITY_X)
        boundary.apply(fields.buffers, fields.slot(v), FieldKind.VELOCITY_Y)
