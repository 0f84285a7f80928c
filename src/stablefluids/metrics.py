"""Diagnostics of the simulated fields and shared norm helpers."""

from __future__ import annotations

import numpy as np


# -----------------------------------------------------------------------------
# Norms / errors
# -----------------------------------------------------------------------------


def discrete_l2_norm(values: np.ndarray, h: float) -> float:
    """Approximate L2 norm on a uniform grid with spacing h (2D)."""
    return float(np.sqrt(h * h * np.sum(np.abs(values) ** 2)))


def discrete_linf_error(f_exact: np.ndarray, f_num: np.ndarray) -> float:
    """Compute discrete L-infinity (maximum) error."""
    return float(np.max(np.abs(f_num - f_exact)))


# -----------------------------------------------------------------------------
# Field quantities
# -----------------------------------------------------------------------------


def _as_2d(field: np.ndarray, n: int) -> np.ndarray:
    return np.asarray(field).reshape(n + 2, n + 2)


def divergence(u: np.ndarray, v: np.ndarray, n: int) -> np.ndarray:
    """Interior divergence as used by the projection, shape (n, n) [j, i].

    Same discretisation and scaling as the projection's right-hand side:
    ``-0.5 * (du + dv) / n``.
    """
    U = _as_2d(u, n)
    V = _as_2d(v, n)
    return -0.5 * (U[1:-1, 2:] - U[1:-1, :-2] + V[2:, 1:-1] - V[:-2, 1:-1]) / n


def max_divergence(u: np.ndarray, v: np.ndarray, n: int) -> float:
    return float(np.max(np.abs(divergence(u, v, n))))


def kinetic_energy(u: np.ndarray, v: np.ndarray, n: int) -> float:
    """E = 0.5 * sum(u^2 + v^2) * h^2 over the interior, h = 1/n."""
    U = _as_2d(u, n)[1:-1, 1:-1]
    V = _as_2d(v, n)[1:-1, 1:-1]
    return 0.5 * float(np.sum(U * U + V * V)) / (n * n)


def total_mass(d: np.ndarray, n: int) -> float:
    """Sum of interior density times cell area."""
    return float(np.sum(_as_2d(d, n)[1:-1, 1:-1])) / (n * n)


def vorticity(u: np.ndarray, v: np.ndarray, n: int) -> np.ndarray:
    """w = dv/dx - du/dy with central differences, shape (n, n) [j, i]."""
    U = _as_2d(u, n)
    V = _as_2d(v, n)
    dv_dx = 0.5 * n * (V[1:-1, 2:] - V[1:-1, :-2])
    du_dy = 0.5 * n * (U[2:, 1:-1] - U[:-2, 1:-1])
    return dv_dx - du_dy


def enstrophy(u: np.ndarray, v: np.ndarray, n: int) -> float:
    """Z = 0.5 * sum(w^2) * h^2."""
    omega = vorticity(u, v, n)
    return 0.5 * float(np.sum(omega * omega)) / (n * n)
