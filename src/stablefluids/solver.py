"""Stable fluids solver: per-frame velocity and density steps.

One frame runs the velocity step and then the density step on a FieldSet.
The previous buffers double as scratch space with fixed reuse windows:

- u0, v0: forces until the velocity add, then the pre-diffusion velocity,
  then pressure/divergence in the first projection, then the velocity that
  advects itself, then pressure/divergence in the second projection
- d0: sources until the density add, then the density before diffusion,
  then the density before advection

Nothing is allocated while stepping; the roles are rotated by handle swaps.
"""

import logging
import time

from .advection import Advector
from .backends import ExecutionBackend, create_backend
from .datastructures import FieldKind, Parameters, Metrics, TimeSeries
from .fields import FieldSet
from .input import PointerInput
from .metrics import enstrophy, kinetic_energy, max_divergence, total_mass
from .projection import ProjectionSolver
from .relaxation import RelaxationSolver

log = logging.getLogger(__name__)


class StableFluidsSolver:
    """Advances velocity and density on a fixed n x n grid.

    Parameters
    ----------
    params : Parameters, optional
        Parameters object. If not provided, kwargs are used to create params.
    backend : ExecutionBackend or str, optional
        Execution strategy; defaults to ``params.backend``.
    **kwargs
        Configuration parameters passed to Parameters if params is None.
    """

    Parameters = Parameters

    def __init__(self, params=None, backend=None, **kwargs):
        if params is None:
            params = self.Parameters(**kwargs)
        self.params = params

        if backend is None:
            backend = params.backend
        if not isinstance(backend, ExecutionBackend):
            backend = create_backend(backend)
        self.params.backend = backend.name
        self.backend = backend

        self.n = params.n
        self.fields = FieldSet(params.n, backend=backend)
        self.relaxation = RelaxationSolver(backend, params.iterations, params.tolerance)
        self.projection = ProjectionSolver(backend, self.relaxation)
        self.advector = Advector(backend)
        self.pointer = PointerInput(params.n, force=params.force, source=params.source)

        self.metrics = Metrics()
        self.time_series = None  # Populated by run()

        log.info(
            f"Stable fluids grid n={self.n} ({self.fields.size} cells), "
            f"backend={backend.name}, iterations={params.iterations}"
        )

    # =========================================================================
    # Stages
    # =========================================================================

    def diffuse(self, x: str, x0: str, kind: FieldKind, k: float, dt: float):
        """Implicit diffusion of ``x0`` into ``x`` with coefficient ``k``."""
        a = dt * k * self.n * self.n
        self.relaxation.solve(self.fields, x, x0, a, 1.0 + 4.0 * a, kind)

    def project(self):
        self.projection.project(self.fields, "u", "v", "u0", "v0")

    def velocity_step(self, visc: float, dt: float):
        f = self.fields

        f.add("u", "u0", dt)
        f.add("v", "v0", dt)

        f.swap("u0", "u")
        self.diffuse("u", "u0", FieldKind.VELOCITY_X, visc, dt)
        f.swap("v0", "v")
        self.diffuse("v", "v0", FieldKind.VELOCITY_Y, visc, dt)

        self.project()

        # Self-advection: both components sample the same pre-advection field
        f.swap("u0", "u")
        f.swap("v0", "v")
        self.advector.advect(f, FieldKind.VELOCITY_X, "u", "u0", "u0", "v0", dt)
        self.advector.advect(f, FieldKind.VELOCITY_Y, "v", "v0", "u0", "v0", dt)

        self.project()

    def density_step(self, diff: float, dt: float):
        f = self.fields

        f.add("d", "d0", dt)

        f.swap("d0", "d")
        self.diffuse("d", "d0", FieldKind.DENSITY, diff, dt)

        f.swap("d0", "d")
        self.advector.advect(f, FieldKind.DENSITY, "d", "d0", "u", "v", dt)

    # =========================================================================
    # Frames
    # =========================================================================

    def step(self, dt: float = None):
        """Advance one frame from the impulses currently in u0, v0, d0."""
        if dt is None:
            dt = self.params.dt
        self.velocity_step(self.params.visc, dt)
        self.density_step(self.params.diff, dt)

    def advance(self, dt: float = None, pointer=None):
        """Clear the previous buffers, apply a pointer impulse, step."""
        self.fields.clear_sources()
        if pointer is not None:
            self.pointer.apply(self.fields, pointer)
        self.step(dt)

    def reset(self):
        """Zero velocity and density, keeping grid and coefficients."""
        self.fields.reset()
        log.info("Simulation reset")

    # =========================================================================
    # Run loop
    # =========================================================================

    def run(self, frames: int, pointer_states=None, log_every: int = 50):
        """Advance ``frames`` frames and record per-frame diagnostics.

        Stores results in solver attributes:
        - self.time_series : TimeSeries with mass, energy and divergence
        - self.metrics : Metrics with final quantities and wall time

        Parameters
        ----------
        frames : int
            Number of frames to simulate.
        pointer_states : iterable of PointerState, optional
            One pointer state per frame; frames past its end get no input.
        log_every : int, optional
            Log progress every this many frames.
        """
        states = iter(pointer_states) if pointer_states is not None else iter(())
        series = TimeSeries()
        f = self.fields
        n = self.n

        time_start = time.time()
        for frame in range(frames):
            self.advance(pointer=next(states, None))

            mass = total_mass(f["d"], n)
            energy = kinetic_energy(f["u"], f["v"], n)
            div = max_divergence(f["u"], f["v"], n)
            series.append(mass, energy, div)

            if frame % log_every == 0:
                log.info(f"Frame {frame}: mass={mass:.6e}, energy={energy:.6e}, max|div|={div:.3e}")

        wall_time = time.time() - time_start
        log.info(f"Simulated {frames} frames in {wall_time:.2f} seconds.")

        self.time_series = series
        self.metrics = Metrics(
            frames=frames,
            wall_time_seconds=wall_time,
            final_mass=series.mass[-1] if frames else 0.0,
            final_energy=series.energy[-1] if frames else 0.0,
            final_enstrophy=enstrophy(f["u"], f["v"], n),
            max_divergence=max(series.divergence) if frames else 0.0,
        )
        return self.metrics
