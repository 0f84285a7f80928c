"""Stable fluids: 2D incompressible flow on a fixed square grid.

Solver Structure:
-----------------
StableFluidsSolver (velocity step + density step per frame)
├── FieldSet (six buffers, handle swaps)
├── RelaxationSolver (fixed-sweep 5-point relaxation)
│   └── ProjectionSolver (pressure Poisson + gradient subtraction)
├── Advector (semi-Lagrangian backtrace)
├── BoundaryEnforcer (closed-box walls)
└── ExecutionBackend
    ├── SerialBackend (Gauss-Seidel sweeps)
    └── ParallelBackend (Jacobi sweeps on numba threads)
"""

from .datastructures import FieldKind, Parameters, Metrics, TimeSeries
from .backends import ExecutionBackend, SerialBackend, ParallelBackend, create_backend
from .fields import FieldSet
from .boundary import BoundaryEnforcer
from .relaxation import RelaxationSolver, reference_solve
from .projection import ProjectionSolver
from .advection import Advector
from .input import PointerInput, PointerState, circle_stroke
from .solver import StableFluidsSolver


__all__ = [
    # Data structures
    "FieldKind",
    "Parameters",
    "Metrics",
    "TimeSeries",
    # Backends
    "ExecutionBackend",
    "SerialBackend",
    "ParallelBackend",
    "create_backend",
    # Components
    "FieldSet",
    "BoundaryEnforcer",
    "RelaxationSolver",
    "reference_solve",
    "ProjectionSolver",
    "Advector",
    # Input
    "PointerInput",
    "PointerState",
    "circle_stroke",
    # Solver
    "StableFluidsSolver",
]
