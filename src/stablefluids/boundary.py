"""Closed-box boundary conditions on the padded grid ring."""

from numba import njit

from .datastructures import FieldKind


@njit(cache=True, nogil=True)
def set_boundary(n, kind, x):
    """Fill the ring of ``x`` from the adjacent interior cells.

    kind 1 flips the sign across the vertical walls, kind 2 across the
    horizontal walls; everything else is mirrored. Corners are the average of
    their two neighbouring edge cells.
    """
    n2 = n + 2
    for t in range(1, n + 1):
        if kind == 1:
            x[0 + t * n2] = -x[1 + t * n2]
            x[n + 1 + t * n2] = -x[n + t * n2]
        else:
            x[0 + t * n2] = x[1 + t * n2]
            x[n + 1 + t * n2] = x[n + t * n2]
        if kind == 2:
            x[t + 0 * n2] = -x[t + 1 * n2]
            x[t + (n + 1) * n2] = -x[t + n * n2]
        else:
            x[t + 0 * n2] = x[t + 1 * n2]
            x[t + (n + 1) * n2] = x[t + n * n2]

    x[0] = 0.5 * (x[1] + x[n2])
    x[(n + 1) * n2] = 0.5 * (x[1 + (n + 1) * n2] + x[n * n2])
    x[n + 1] = 0.5 * (x[n] + x[n + 1 + n2])
    x[n + 1 + (n + 1) * n2] = 0.5 * (x[n + (n + 1) * n2] + x[n + 1 + n * n2])


class BoundaryEnforcer:
    """Applies the edge condition of a field kind to one buffer."""

    def __init__(self, n: int):
        self.n = n

    def apply(self, buffers, slot, kind: FieldKind):
        """Enforce the boundary of ``buffers[slot]``.

        ``slot`` may be None when ``buffers`` is already a single 1D field.
        """
        x = buffers if slot is None else buffers[slot]
        set_boundary(self.n, int(kind), x)
