"""Grid field storage with handle-based double buffering.

All six buffers live in one ``(6, size)`` float64 array. Each role
(u, u0, v, v0, d, d0) is an integer handle into that array, so swapping
the "current" and "previous" buffer of a field exchanges two handles and
never copies data.
"""

import numpy as np
from numba import njit

from .backends import create_backend, padded

ROLES = ("u", "u0", "v", "v0", "d", "d0")
CURRENT = ("u", "v", "d")
PREVIOUS = ("u0", "v0", "d0")


@njit(cache=True, nogil=True)
def add_source_cell(i, j, n, buffers, slots, params):
    """dst += dt * src"""
    k = i + j * (n + 2)
    buffers[slots[0], k] += params[0] * buffers[slots[1], k]


class FieldSet:
    """Owns the velocity/density buffers and their previous counterparts.

    Parameters
    ----------
    n : int
        Interior grid size (n >= 1). Buffers hold (n+2)**2 cells.
    backend : ExecutionBackend, optional
        Backend used by ``add``. Defaults to the serial backend.
    """

    def __init__(self, n: int, backend=None):
        if not isinstance(n, (int, np.integer)) or isinstance(n, bool) or n < 1:
            raise ValueError(f"Grid size n must be an integer >= 1, got {n!r}")

        self.n = int(n)
        self.n2 = self.n + 2
        self.size = self.n2 * self.n2
        self.backend = backend if backend is not None else create_backend("serial")

        self.buffers = np.zeros((len(ROLES), self.size), dtype=np.float64)
        self._slots = {role: k for k, role in enumerate(ROLES)}

    @classmethod
    def from_arrays(cls, n: int, u=None, v=None, density=None, backend=None):
        """Create a field set with seeded current buffers.

        Arrays may be flat (size,) or 2D (n+2, n+2) indexed [j, i].
        """
        fields = cls(n, backend=backend)
        for role, values in (("u", u), ("v", v), ("d", density)):
            if values is None:
                continue
            values = np.asarray(values, dtype=np.float64)
            if values.size != fields.size:
                raise ValueError(
                    f"Buffer '{role}' has {values.size} elements, expected {fields.size} "
                    f"for n={fields.n}"
                )
            fields[role][:] = values.ravel()
        return fields

    # ------------------------------------------------------------------
    # Handles and views
    # ------------------------------------------------------------------

    def slot(self, role: str) -> int:
        """Buffer handle currently playing ``role``."""
        return self._slots[role]

    def slots(self, *roles) -> np.ndarray:
        """Handles of several roles as a kernel-ready int64 array."""
        return np.array([self._slots[r] for r in roles], dtype=np.int64)

    def __getitem__(self, role: str) -> np.ndarray:
        return self.buffers[self._slots[role]]

    def view(self, role: str) -> np.ndarray:
        """2D (n+2, n+2) view of a buffer, indexed [j, i]."""
        return self[role].reshape(self.n2, self.n2)

    def interior(self, role: str) -> np.ndarray:
        """2D (n, n) view of the interior cells, indexed [j-1, i-1]."""
        return self.view(role)[1:-1, 1:-1]

    def index(self, i: int, j: int) -> int:
        return i + j * self.n2

    # ------------------------------------------------------------------
    # Buffer operations
    # ------------------------------------------------------------------

    def swap(self, a: str, b: str):
        """Exchange the buffers behind two roles (handle swap, O(1))."""
        s = self._slots
        s[a], s[b] = s[b], s[a]

    def clear(self, role: str):
        self[role].fill(0.0)

    def add(self, dst: str, src: str, dt: float):
        """dst[k] += dt * src[k] over every cell, ring included."""
        self.backend.run_elementwise(
            add_source_cell,
            padded(self.n),
            self.buffers,
            self.slots(dst, src),
            np.array([dt], dtype=np.float64),
        )

    def clear_sources(self):
        """Zero the previous buffers before new impulses are written."""
        for role in PREVIOUS:
            self.clear(role)

    def reset(self):
        """Zero velocity and density; previous buffers are left untouched."""
        for role in CURRENT:
            self.clear(role)

    def __repr__(self):
        return f"FieldSet(n={self.n}, backend={self.backend!r})"
