"""Tests for FieldSet storage, handle swaps and source injection."""

import numpy as np
import pytest

from stablefluids.fields import FieldSet, ROLES


class TestFieldSetConstruction:
    """Tests for construction and validation."""

    def test_buffers_zero_filled(self):
        fields = FieldSet(4)

        assert fields.n2 == 6
        assert fields.size == 36
        assert fields.buffers.shape == (len(ROLES), 36)
        assert np.all(fields.buffers == 0.0)

    @pytest.mark.parametrize("n", [0, -3, 2.5, True])
    def test_invalid_grid_size_rejected(self, n):
        with pytest.raises(ValueError):
            FieldSet(n)

    def test_from_arrays_seeds_current_buffers(self, rng):
        n = 4
        u = rng.random(36)
        d = rng.random((6, 6))

        fields = FieldSet.from_arrays(n, u=u, density=d)

        assert np.array_equal(fields["u"], u)
        assert np.array_equal(fields.view("d"), d)
        assert np.all(fields["v"] == 0.0)

    def test_from_arrays_rejects_length_mismatch(self):
        with pytest.raises(ValueError, match="expected 36"):
            FieldSet.from_arrays(4, v=np.zeros(35))

    def test_unknown_role(self):
        with pytest.raises(KeyError):
            FieldSet(2)["pressure"]


class TestFieldSetViews:
    """Tests for index arithmetic and 2D views."""

    def test_index_is_x_fastest(self):
        fields = FieldSet(4)
        assert fields.index(0, 0) == 0
        assert fields.index(1, 0) == 1
        assert fields.index(0, 1) == 6
        assert fields.index(2, 3) == 2 + 3 * 6

    def test_view_is_indexed_j_i(self):
        fields = FieldSet(4)
        fields["d"][fields.index(1, 3)] = 7.0

        assert fields.view("d")[3, 1] == 7.0
        assert fields.interior("d")[2, 0] == 7.0

    def test_views_share_memory(self):
        fields = FieldSet(3)
        fields.view("u")[2, 2] = 1.5
        assert fields["u"][fields.index(2, 2)] == 1.5


class TestFieldSetOperations:
    """Tests for swap, clear, add and reset."""

    def test_swap_exchanges_handles_not_data(self):
        fields = FieldSet(4)
        fields["u"][:] = 1.0
        u_buffer = fields["u"]
        u_slot, u0_slot = fields.slot("u"), fields.slot("u0")

        fields.swap("u", "u0")

        assert fields.slot("u") == u0_slot
        assert fields.slot("u0") == u_slot
        assert np.shares_memory(fields["u0"], u_buffer)
        assert np.all(fields["u0"] == 1.0)
        assert np.all(fields["u"] == 0.0)

    def test_double_swap_restores_roles(self):
        fields = FieldSet(2)
        before = {role: fields.slot(role) for role in ROLES}

        fields.swap("d", "d0")
        fields.swap("d0", "d")

        assert {role: fields.slot(role) for role in ROLES} == before

    def test_clear(self, rng):
        fields = FieldSet(4)
        fields["v"][:] = rng.random(fields.size)
        fields.clear("v")
        assert np.all(fields["v"] == 0.0)

    def test_add_scales_source(self, backend):
        fields = FieldSet(4, backend=backend)
        fields["d"][:] = 1.0
        fields["d0"][:] = np.arange(fields.size)

        fields.add("d", "d0", 0.5)

        assert np.array_equal(fields["d"], 1.0 + 0.5 * np.arange(fields.size))

    def test_add_then_subtract_is_exact(self, backend, rng):
        """add(x, s, dt) followed by add(x, s, -dt) restores x exactly."""
        fields = FieldSet(6, backend=backend)
        # Dyadic values keep every intermediate exactly representable
        x = rng.integers(-100, 100, fields.size) / 8.0
        s = rng.integers(-100, 100, fields.size) / 4.0
        fields["u"][:] = x
        fields["u0"][:] = s

        fields.add("u", "u0", 0.5)
        fields.add("u", "u0", -0.5)

        assert np.array_equal(fields["u"], x)

    def test_add_covers_boundary_ring(self):
        fields = FieldSet(3)
        fields["u0"][:] = 1.0
        fields.add("u", "u0", 2.0)
        assert np.all(fields.view("u") == 2.0)

    def test_reset_keeps_previous_buffers(self):
        fields = FieldSet(4)
        fields.buffers[:] = 3.0

        fields.reset()

        for role in ("u", "v", "d"):
            assert np.all(fields[role] == 0.0)
        for role in ("u0", "v0", "d0"):
            assert np.all(fields[role] == 3.0)

    def test_clear_sources(self):
        fields = FieldSet(4)
        fields.buffers[:] = 3.0

        fields.clear_sources()

        for role in ("u0", "v0", "d0"):
            assert np.all(fields[role] == 0.0)
        assert np.all(fields["d"] == 3.0)
