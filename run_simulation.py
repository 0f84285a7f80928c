"""
Stable Fluids Runner - Hydra + MLflow integration for headless simulations.

Usage:
    # Single run with the serial backend
    python run_simulation.py n=64 frames=600

    # Data-parallel backend
    python run_simulation.py backend=parallel n=128

    # Sweeps (multirun mode)
    python run_simulation.py -m backend=serial,parallel n=32,64,128

    # Without MLflow tracking
    python run_simulation.py mlflow.enabled=false

The input collaborator is a scripted pointer moving on a circle that pushes
the fluid and emits density. Final density and velocity fields are saved as
zarr arrays in the Hydra output directory and logged as MLflow artifacts.

MLflow modes:
    local-files  - file-based ./mlruns (default)
    remote       - set tracking_uri (credentials from .env)
"""

import logging
import os
import sys
from contextlib import nullcontext
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.utils import instantiate
from mlflow.tracking import MlflowClient
from omegaconf import DictConfig, OmegaConf

# Load .env file (for MLflow credentials)
load_dotenv()

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / "src"))

from stablefluids import StableFluidsSolver, circle_stroke  # noqa: E402

log = logging.getLogger(__name__)


# =============================================================================
# Solver Factory
# =============================================================================


def create_solver(cfg: DictConfig) -> StableFluidsSolver:
    """Build the solver; the backend is instantiated from its config group."""
    backend = instantiate(cfg.backend)
    return StableFluidsSolver(
        backend=backend,
        n=cfg.n,
        dt=cfg.dt,
        diff=cfg.diff,
        visc=cfg.visc,
        force=cfg.force,
        source=cfg.source,
        iterations=cfg.iterations,
        tolerance=cfg.tolerance,
    )


def create_pointer(cfg: DictConfig):
    s = cfg.scenario
    return circle_stroke(
        cfg.frames,
        radius=s.radius,
        center=tuple(s.center),
        turns=s.turns,
        push=s.push,
        emit=s.emit,
    )


# =============================================================================
# MLflow Logging
# =============================================================================


def setup_mlflow(cfg: DictConfig) -> str:
    """Setup MLflow tracking and return experiment name."""
    tracking_uri = cfg.mlflow.get("tracking_uri", "./mlruns")
    if str(cfg.mlflow.get("mode", "")).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    experiment_name = cfg.experiment_name
    project_prefix = cfg.mlflow.get("project_prefix", "")
    if project_prefix and not experiment_name.startswith("/"):
        experiment_name = f"{project_prefix}/{experiment_name}"

    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        # If experiment was previously deleted, fall back to a new name
        fallback = f"{experiment_name}-restored"
        log.warning(
            "MLflow set_experiment failed for '%s' (%s); falling back to '%s'",
            experiment_name,
            exc,
            fallback,
        )
        experiment_name = fallback
        mlflow.set_experiment(experiment_name)
    return experiment_name


def log_metrics_and_timeseries(solver: StableFluidsSolver, run_id: str):
    """Log final metrics and per-frame timeseries to MLflow."""
    mlflow.log_metrics(solver.metrics.to_mlflow())

    if solver.time_series is not None:
        batch_metrics = solver.time_series.to_mlflow_batch()
        if batch_metrics:
            MlflowClient().log_batch(run_id=run_id, metrics=batch_metrics)


def save_fields(solver: StableFluidsSolver, output_dir: Path) -> list:
    """Save the final density and velocity as zarr arrays (2D, [j, i])."""
    import zarr

    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for role, name in (("d", "density"), ("u", "u"), ("v", "v")):
        zarr_path = output_dir / f"{name}.zarr"
        zarr.save(str(zarr_path), solver.fields.view(role).copy())
        paths.append(zarr_path)

    log.info(f"Saved fields to {output_dir}: density, u, v (zarr)")
    return paths


# =============================================================================
# Main Entry Point
# =============================================================================


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Hydra entry point - runs the simulation with optional MLflow tracking."""
    log.info(f"Backend: {cfg.backend._target_}, n={cfg.n}, frames={cfg.frames}")

    solver = create_solver(cfg)
    output_dir = Path(hydra.core.hydra_config.HydraConfig.get().runtime.output_dir)

    use_mlflow = cfg.mlflow.get("enabled", True)
    if use_mlflow:
        log.info(f"MLflow experiment: {setup_mlflow(cfg)}")
        parent_run_id = os.environ.get("MLFLOW_PARENT_RUN_ID")
        run_tags = {"backend": solver.backend.name}
        if parent_run_id:
            run_tags["mlflow.parentRunId"] = parent_run_id
            run_tags["sweep"] = "child"
        run_ctx = mlflow.start_run(
            run_name=f"{solver.backend.name}_N{cfg.n}",
            tags=run_tags,
            nested=bool(parent_run_id),
        )
    else:
        run_ctx = nullcontext()

    with run_ctx as run:
        if use_mlflow:
            mlflow.log_params(solver.params.to_mlflow())
            mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        log.info("Starting simulation...")
        solver.run(cfg.frames, create_pointer(cfg), log_every=cfg.log_every)

        paths = save_fields(solver, output_dir / "fields")

        if use_mlflow:
            log_metrics_and_timeseries(solver, run.info.run_id)
            # zarr stores are directories
            for path in paths:
                mlflow.log_artifacts(str(path), artifact_path=f"fields/{path.name}")

    log.info(
        f"Done: {solver.metrics.frames} frames, "
        f"mass={solver.metrics.final_mass:.4e}, "
        f"max|div|={solver.metrics.max_divergence:.3e}, "
        f"time={solver.metrics.wall_time_seconds:.2f}s"
    )


if __name__ == "__main__":
    main()
