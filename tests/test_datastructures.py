"""Tests for parameters, results and field diagnostics."""

import numpy as np
import pandas as pd
import pytest

from stablefluids.datastructures import FieldKind, Metrics, Parameters, TimeSeries
from stablefluids.metrics import (
    discrete_l2_norm,
    discrete_linf_error,
    divergence,
    enstrophy,
    kinetic_energy,
    max_divergence,
    total_mass,
    vorticity,
)


class TestParameters:
    def test_defaults(self):
        params = Parameters()
        assert params.n == 64
        assert params.dt == pytest.approx(1.0 / 60.0)
        assert params.diff == 0.0 and params.visc == 0.0
        assert params.force == 75.0 and params.source == 100.0
        assert params.iterations == 20
        assert params.tolerance is None

    @pytest.mark.parametrize(
        "kwargs",
        [{"n": 0}, {"n": 3.0}, {"n": False}, {"iterations": 0}, {"tolerance": -1e-3}],
    )
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            Parameters(**kwargs)

    def test_to_mlflow(self):
        logged = Parameters(n=8).to_mlflow()
        assert logged["n"] == 8
        assert logged["tolerance"] == "None"
        assert logged["method"] == "stable-fluids"

    def test_to_dataframe(self):
        df = Parameters(n=8).to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert len(df) == 1
        assert df["n"].iloc[0] == 8


class TestResults:
    def test_metrics_to_mlflow_floats(self):
        logged = Metrics(frames=3, final_mass=1.5).to_mlflow()
        assert logged["frames"] == 3.0
        assert all(isinstance(v, float) for v in logged.values())

    def test_time_series(self):
        series = TimeSeries()
        series.append(1.0, 2.0, 0.1)
        series.append(1.5, 2.5, 0.2)

        df = series.to_dataframe()
        assert len(series) == 2
        assert list(df.columns) == ["mass", "energy", "divergence"]
        assert df["energy"].tolist() == [2.0, 2.5]

    def test_time_series_mlflow_batch(self):
        series = TimeSeries()
        series.append(1.0, 2.0, 0.1)
        series.append(1.5, 2.5, 0.2)

        batch = series.to_mlflow_batch()

        assert len(batch) == 6
        mass = [m for m in batch if m.key == "mass"]
        assert [m.step for m in mass] == [0, 1]
        assert [m.value for m in mass] == [1.0, 1.5]

    def test_field_kind_values(self):
        assert [int(k) for k in FieldKind] == [0, 1, 2]


class TestFieldDiagnostics:
    """Grid quantities computed from padded flat fields."""

    def test_norms(self):
        values = np.full((4, 4), 2.0)
        assert discrete_l2_norm(values, 0.25) == pytest.approx(2.0)
        assert discrete_linf_error(values, values + 0.5) == pytest.approx(0.5)

    def test_mass_and_energy(self):
        n = 4
        d = np.zeros((n + 2, n + 2))
        d[1:-1, 1:-1] = 3.0
        d[0, :] = 100.0  # ring excluded
        u = np.ones((n + 2) ** 2)
        v = np.zeros((n + 2) ** 2)

        assert total_mass(d, n) == pytest.approx(3.0)
        assert kinetic_energy(u, v, n) == pytest.approx(0.5)

    def test_uniform_flow_is_divergence_and_curl_free(self):
        n = 6
        u = np.full((n + 2) ** 2, 0.7)
        v = np.full((n + 2) ** 2, -0.2)

        assert divergence(u, v, n).shape == (n, n)
        assert max_divergence(u, v, n) == 0.0
        assert np.all(vorticity(u, v, n) == 0.0)
        assert enstrophy(u, v, n) == 0.0

    def test_linear_shear_vorticity(self):
        """u = -y gives w = 1 everywhere."""
        n = 8
        y = np.arange(n + 2) / n
        U = -np.tile(y[:, None], (1, n + 2))  # [j, i]
        v = np.zeros((n + 2) ** 2)

        assert np.allclose(vorticity(U.ravel(), v, n), 1.0)
        assert enstrophy(U.ravel(), v, n) == pytest.approx(0.5)

    def test_divergence_sign(self):
        """Outflow (du/dx > 0) gives a negative projection right-hand side."""
        n = 4
        x = np.arange(n + 2) / n
        U = np.tile(x[None, :], (n + 2, 1))
        v = np.zeros((n + 2) ** 2)

        assert np.allclose(divergence(U.ravel(), v, n), -1.0 / (n * n))
