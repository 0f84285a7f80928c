"""Data structures for solver configuration and results.

This module defines the configuration and result data structures
for the stable fluids solver.

Structure:
- FieldKind: Boundary sign convention of a field
- Parameters: Input configuration (logged to MLflow at start)
- Metrics: Output results (logged to MLflow at end)
- TimeSeries: Per-frame history
"""

from dataclasses import dataclass, asdict, field
from enum import IntEnum
from typing import Optional, List

import pandas as pd


class FieldKind(IntEnum):
    """Boundary treatment of a field.

    DENSITY is mirrored across every wall. VELOCITY_X flips sign across the
    vertical walls (i = 0, i = n+1), VELOCITY_Y across the horizontal ones.
    """

    DENSITY = 0
    VELOCITY_X = 1
    VELOCITY_Y = 2


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class Parameters:
    """Solver parameters - input configuration."""

    n: int = 64
    dt: float = 1.0 / 60.0
    diff: float = 0.0
    visc: float = 0.0
    force: float = 75.0
    source: float = 100.0
    iterations: int = 20
    tolerance: Optional[float] = None
    backend: str = "serial"
    method: str = "stable-fluids"

    def __post_init__(self):
        if not isinstance(self.n, int) or isinstance(self.n, bool) or self.n < 1:
            raise ValueError(f"Grid size n must be an integer >= 1, got {self.n!r}")
        if self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")
        if self.tolerance is not None and self.tolerance < 0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance}")

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Flat dict for mlflow.log_params (None is logged as a string)."""
        return {k: ("None" if v is None else v) for k, v in asdict(self).items()}


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Run metrics - output results computed after a run."""

    frames: int = 0
    wall_time_seconds: float = 0.0
    final_mass: float = 0.0
    final_energy: float = 0.0
    final_enstrophy: float = 0.0
    max_divergence: float = 0.0

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        return {k: float(v) for k, v in asdict(self).items()}


# ========================================================
# Time Series (Per-frame History)
# ========================================================


@dataclass
class TimeSeries:
    """Frame history (one value per simulated frame)."""

    mass: List[float] = field(default_factory=list)
    energy: List[float] = field(default_factory=list)
    divergence: List[float] = field(default_factory=list)

    def append(self, mass: float, energy: float, divergence: float):
        self.mass.append(mass)
        self.energy.append(energy)
        self.divergence.append(divergence)

    def __len__(self):
        return len(self.mass)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per frame."""
        return pd.DataFrame(asdict(self))

    def to_mlflow_batch(self):
        """Build mlflow Metric entities for MlflowClient.log_batch."""
        import time

        from mlflow.entities import Metric

        timestamp = int(time.time() * 1000)
        return [
            Metric(key=name, value=float(value), timestamp=timestamp, step=step)
            for name, values in asdict(self).items()
            for step, value in enumerate(values)
        ]
