"""Fixed-sweep relaxation of the 5-point implicit system.

Solves ``c*x[i,j] - a*(x[i-1,j] + x[i+1,j] + x[i,j-1] + x[i,j+1]) = x0[i,j]``
over the interior cells. Diffusion uses ``a = dt*k*n^2, c = 1 + 4a`` and the
pressure Poisson equation ``a = 1, c = 4``.

The default is a fixed budget of 20 sweeps with no convergence check: the
result is an approximation at constant cost, not an exact solution. The
serial backend relaxes Gauss-Seidel style and the parallel backend Jacobi
style, so both only agree in the limit of many sweeps. ``reference_solve``
assembles the same system as a sparse matrix for validating either one.
"""

import logging

import numpy as np
from numba import njit
from scipy.sparse import csr_matrix
from scipy.sparse.linalg import bicgstab

from .backends import interior
from .boundary import set_boundary
from .datastructures import FieldKind

log = logging.getLogger(__name__)


@njit(cache=True, nogil=True)
def relax_cell(i, j, n, buffers, slots, params, read):
    n2 = n + 2
    k = i + j * n2
    buffers[slots[0], k] = (
        buffers[slots[1], k]
        + params[0] * (read[k - 1] + read[k + 1] + read[k - n2] + read[k + n2])
    ) / params[1]


class RelaxationSolver:
    """Iterative relaxation with a fixed sweep budget.

    Parameters
    ----------
    backend : ExecutionBackend
        Strategy that runs the sweeps.
    iterations : int
        Sweeps per solve (upper bound when ``tolerance`` is set).
    tolerance : float, optional
        If given, stop once a sweep changes no cell by more than this.
    """

    def __init__(self, backend, iterations: int = 20, tolerance: float = None):
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        if tolerance is not None and tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {tolerance}")
        self.backend = backend
        self.iterations = iterations
        self.tolerance = tolerance

    def solve(self, fields, x: str, x0: str, a: float, c: float, kind: FieldKind) -> int:
        """Relax ``fields[x]`` against the right-hand side ``fields[x0]``.

        Returns the number of sweeps performed.
        """
        extent = interior(fields.n)
        slots = fields.slots(x, x0)
        params = np.array([a, c], dtype=np.float64)

        if self.tolerance is None:
            self.backend.run_stencil_sweep(
                relax_cell, extent, fields.buffers, slots, params, self.iterations, kind
            )
            return self.iterations

        target = fields[x]
        previous = np.empty_like(target)
        for sweep in range(1, self.iterations + 1):
            previous[:] = target
            self.backend.run_stencil_sweep(
                relax_cell, extent, fields.buffers, slots, params, 1, kind
            )
            change = np.max(np.abs(target - previous))
            if change < self.tolerance:
                log.debug(f"Relaxation converged after {sweep} sweeps (change={change:.3e})")
                return sweep
        return self.iterations

    @staticmethod
    def residual(fields, x: str, x0: str, a: float, c: float) -> float:
        """Max-norm of ``x0 - (c*x - a*sum(neighbours))`` over the interior."""
        X = fields.view(x)
        B = fields.view(x0)[1:-1, 1:-1]
        lhs = c * X[1:-1, 1:-1] - a * (X[1:-1, :-2] + X[1:-1, 2:] + X[:-2, 1:-1] + X[2:, 1:-1])
        return float(np.max(np.abs(B - lhs)))


# =============================================================================
# Sparse reference solve
# =============================================================================


@njit(cache=True)
def assemble_relaxation_matrix(n, a, c, kind):
    """Assemble the interior system with ghost cells folded into the diagonal.

    Unknown (i, j) has row index (i-1) + (j-1)*n. A neighbour on the ring is
    replaced by the boundary rule (+/- the cell itself), so only interior
    unknowns remain.
    """
    sx = -1.0 if kind == 1 else 1.0
    sy = -1.0 if kind == 2 else 1.0

    max_nnz = 5 * n * n
    row = np.zeros(max_nnz, dtype=np.int64)
    col = np.zeros(max_nnz, dtype=np.int64)
    data = np.zeros(max_nnz, dtype=np.float64)
    idx = 0

    for j in range(1, n + 1):
        for i in range(1, n + 1):
            P = (i - 1) + (j - 1) * n
            diag = c

            # west / east
            if i > 1:
                row[idx] = P; col[idx] = P - 1; data[idx] = -a; idx += 1
            else:
                diag -= a * sx
            if i < n:
                row[idx] = P; col[idx] = P + 1; data[idx] = -a; idx += 1
            else:
                diag -= a * sx

            # south / north
            if j > 1:
                row[idx] = P; col[idx] = P - n; data[idx] = -a; idx += 1
            else:
                diag -= a * sy
            if j < n:
                row[idx] = P; col[idx] = P + n; data[idx] = -a; idx += 1
            else:
                diag -= a * sy

            row[idx] = P; col[idx] = P; data[idx] = diag; idx += 1

    return row[:idx], col[:idx], data[:idx]


def reference_solve(n: int, x0: np.ndarray, a: float, c: float, kind: FieldKind,
                    tolerance: float = 1e-12, max_iterations: int = 10000):
    """Solve the relaxation system directly with scipy BiCGSTAB.

    Parameters
    ----------
    n : int
        Interior grid size.
    x0 : np.ndarray
        Right-hand side, padded flat (size,) or 2D (n+2, n+2) array.
    a, c : float
        Stencil coefficients.
    kind : FieldKind
        Boundary treatment folded into the matrix.
    tolerance : float, optional
        BiCGSTAB relative tolerance.
    max_iterations : int, optional
        BiCGSTAB iteration limit.

    Returns
    -------
    x : np.ndarray
        Padded flat solution with the ring filled by the boundary rule.
        For the singular pure-Neumann system (``c == 4a``, DENSITY) the
        solution is the zero-mean one.
    """
    n2 = n + 2
    rhs = np.asarray(x0, dtype=np.float64).reshape(n2, n2)[1:-1, 1:-1].ravel().copy()

    row, col, data = assemble_relaxation_matrix(n, float(a), float(c), int(kind))
    A = csr_matrix((data, (row, col)), shape=(n * n, n * n))

    # Mirrored ghosts with c == 4a leave constants in the nullspace
    singular = int(kind) == FieldKind.DENSITY and np.isclose(c, 4.0 * a)
    if singular:
        rhs -= np.mean(rhs)

    x, info = bicgstab(A, rhs, rtol=tolerance, atol=0, maxiter=max_iterations)
    if info < 0:
        raise RuntimeError(f"BiCGSTAB failed (info={info})")
    if info > 0:
        log.warning(f"BiCGSTAB did not converge in {info} iterations")

    if singular:
        x = x - np.mean(x)

    out = np.zeros(n2 * n2)
    out.reshape(n2, n2)[1:-1, 1:-1] = x.reshape(n, n)
    set_boundary(n, int(kind), out)
    return out
