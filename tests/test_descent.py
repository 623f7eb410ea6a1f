"""Tests for the gradient descent optimizer over exact fits."""

import numpy as np
import pytest

from constrained_fit import descent
from constrained_fit.basis import polynomial_basis, derivative_basis
from constrained_fit.descent import GradientDescentOptimizer, decay_learning_rate
from constrained_fit.errors import (
    InputValidationError,
    MissingPointsError,
    SingularSystemError,
)
from constrained_fit.types import Fit


def piecewise_points():
    """Two lines joined at x=50, as in a regime change."""
    f1 = lambda x: -5 * x + 10
    f2 = lambda x: 3 * x - 382
    return [(float(x), float(f1(x) if x < 50 else f2(x))) for x in range(100)]


def noisy_quadratic(seed=0, n=60):
    rng = np.random.default_rng(seed)
    xs = np.linspace(-5, 5, n)
    ys = 0.8 * xs ** 2 - 2.0 * xs + 3.0 + rng.normal(scale=0.5, size=n)
    return list(zip(xs, ys))


def noisy_cubic(seed=0, n=80):
    rng = np.random.default_rng(seed)
    xs = np.linspace(-3, 3, n)
    ys = 0.5 * xs ** 3 - xs ** 2 + 2.0 * xs - 1.0 + rng.normal(scale=0.3, size=n)
    return list(zip(xs, ys))


# ================================================================
# LEARNING RATE SCHEDULE
# ================================================================

class TestDecayLearningRate:

    def test_schedule_from_default(self):
        rates = []
        lr = 0.5
        for _ in range(11):
            lr = decay_learning_rate(lr)
            rates.append(lr)
        assert rates == [0.4, 0.3, 0.2, 0.15, 0.1, 0.05, 0.04, 0.03, 0.02, 0.01, 0.01]

    def test_floor(self):
        assert decay_learning_rate(0.01) == 0.01


# ================================================================
# FITTING
# ================================================================

class TestGradientDescentFit:

    def test_returns_fit_record(self):
        fit = GradientDescentOptimizer(rng=0).fit(piecewise_points(), polynomial_basis(3))
        assert isinstance(fit, Fit)
        assert fit.coefficients.shape == (4,)
        assert fit.error >= 0.0
        assert fit.evaluate(10.0) == pytest.approx(np.polyval(fit.coefficients, 10.0))

    def test_noise_free_line_is_recovered(self):
        points = [(float(x), 2.0 * x + 1.0) for x in range(20)]
        fit = GradientDescentOptimizer(rng=1).fit(points, polynomial_basis(1))
        np.testing.assert_allclose(fit.coefficients, [2.0, 1.0], atol=1e-8)
        assert fit.error < 1e-12

    def test_on_fit_reports_strict_improvements(self):
        calls = []
        GradientDescentOptimizer(rng=0).fit(
            piecewise_points(),
            polynomial_basis(3),
            on_fit=lambda fit, epoch: calls.append((epoch, fit.error)),
        )
        assert calls[0][0] == 0
        epochs = [epoch for epoch, _ in calls]
        errors = [error for _, error in calls]
        assert epochs == sorted(set(epochs))
        assert all(later < earlier for earlier, later in zip(errors, errors[1:]))

    def test_refinement_never_worse_than_best_restart(self):
        calls = []
        fit = GradientDescentOptimizer(rng=5).fit(
            noisy_quadratic(),
            polynomial_basis(2),
            on_fit=lambda f, epoch: calls.append(f.error),
        )
        assert fit.error <= calls[0]
        assert fit.error == pytest.approx(calls[-1])

    def test_same_seed_is_deterministic(self):
        a = GradientDescentOptimizer(rng=42).fit(noisy_quadratic(), polynomial_basis(2))
        b = GradientDescentOptimizer(rng=42).fit(noisy_quadratic(), polynomial_basis(2))
        np.testing.assert_array_equal(a.coefficients, b.coefficients)

    def test_accepts_generator(self):
        rng = np.random.default_rng(3)
        fit = GradientDescentOptimizer(rng=rng).fit(noisy_quadratic(), polynomial_basis(2))
        assert np.all(np.isfinite(fit.coefficients))

    def test_single_restart_uses_scaled_second_fit(self):
        points = [(float(x), 2.0 * x + 1.0) for x in range(10)]
        calls = []
        fit = GradientDescentOptimizer(init_epochs=1, rng=0).fit(
            points, polynomial_basis(1), on_fit=lambda f, epoch: calls.append(epoch)
        )
        # The exact restart is already optimal; nothing improves on it.
        assert calls == [0]
        np.testing.assert_allclose(fit.coefficients, [2.0, 1.0], atol=1e-8)

    def test_fits_compare_by_identity(self):
        a = GradientDescentOptimizer(rng=0).fit(noisy_quadratic(), polynomial_basis(2))
        b = GradientDescentOptimizer(rng=0).fit(noisy_quadratic(), polynomial_basis(2))
        assert a == a
        assert a != b

    def test_zero_epochs_returns_best_restart(self):
        calls = []
        fit = GradientDescentOptimizer(epochs=0, rng=0).fit(
            noisy_quadratic(), polynomial_basis(2), on_fit=lambda f, epoch: calls.append(f)
        )
        assert len(calls) == 1
        np.testing.assert_allclose(fit.coefficients, calls[0].coefficients)


class TestRestarts:

    def test_singular_restart_is_skipped(self, monkeypatch):
        real = descent.solve_exact
        attempts = []

        def flaky(points, components, resolve_coefficients=None):
            attempts.append(1)
            if len(attempts) == 1:
                raise SingularSystemError("dependent sample")
            return real(points, components, resolve_coefficients)

        monkeypatch.setattr(descent, "solve_exact", flaky)
        fit = GradientDescentOptimizer(init_epochs=3, rng=0).fit(
            noisy_quadratic(), polynomial_basis(2)
        )
        assert len(attempts) == 3
        assert np.all(np.isfinite(fit.coefficients))

    def test_all_restarts_singular_raises(self):
        points = [(1.0, float(y)) for y in range(10)]
        with pytest.raises(SingularSystemError):
            GradientDescentOptimizer(rng=0).fit(points, polynomial_basis(1))


# ================================================================
# CONSTRAINTS
# ================================================================

class TestConstrainedDescent:

    def test_point_constraints_hold_despite_noise(self):
        constraints = [(-4.0, 20.0), (0.0, 3.0)]
        fit = GradientDescentOptimizer(rng=2).fit(
            noisy_quadratic(seed=9), polynomial_basis(2), point_constraints=constraints
        )
        assert fit.coefficients.shape == (3,)
        for x, y in constraints:
            assert abs(fit.evaluate(x) - y) < 1e-8

    def test_slope_constraint_holds(self):
        fit = GradientDescentOptimizer(rng=4).fit(
            noisy_quadratic(seed=1),
            polynomial_basis(3),
            slope_components=derivative_basis(3),
            slopes=[(1.0, 0.0)],
        )
        slope = np.polyval(np.polyder(fit.coefficients), 1.0)
        assert abs(slope) < 1e-8

    def test_fully_constrained_system_skips_search(self):
        calls = []
        points = [(float(x), 5.0 * x + 4.0 + (0.1 if x % 2 else -0.1)) for x in range(6)]
        fit = GradientDescentOptimizer(rng=0).fit(
            points,
            polynomial_basis(1),
            point_constraints=[(0.0, 4.0), (3.0, 19.0)],
            on_fit=lambda f, epoch: calls.append(epoch),
        )
        np.testing.assert_allclose(fit.coefficients, [5.0, 4.0], atol=1e-10)
        assert fit.error == pytest.approx(0.01)
        assert calls == []

    def test_on_fit_reports_full_coefficients(self):
        sizes = []
        GradientDescentOptimizer(rng=0).fit(
            noisy_quadratic(),
            polynomial_basis(2),
            point_constraints=[(0.0, 3.0)],
            on_fit=lambda f, epoch: sizes.append(len(f.coefficients)),
        )
        assert sizes and set(sizes) == {3}

    @pytest.mark.parametrize("seed", range(60))
    def test_on_fit_strictly_improves_under_constraints(self, seed):
        errors = []
        GradientDescentOptimizer(rng=seed).fit(
            noisy_cubic(seed=4),
            polynomial_basis(3),
            point_constraints=[(0.0, -1.0)],
            slope_components=derivative_basis(3),
            slopes=[(1.0, 1.5)],
            on_fit=lambda f, epoch: errors.append(f.error),
        )
        assert errors
        assert all(later < earlier for earlier, later in zip(errors, errors[1:]))

    def test_constraint_generators_are_accepted(self):
        fit = GradientDescentOptimizer(rng=2).fit(
            noisy_quadratic(seed=9),
            polynomial_basis(2),
            point_constraints=(pair for pair in [(0.0, 3.0)]),
        )
        assert abs(fit.evaluate(0.0) - 3.0) < 1e-8


# ================================================================
# VALIDATION
# ================================================================

class TestValidation:

    def test_missing_points(self):
        with pytest.raises(MissingPointsError):
            GradientDescentOptimizer(rng=0).fit([(0.0, 1.0), (1.0, 2.0)], polynomial_basis(3))

    def test_empty_points(self):
        with pytest.raises(InputValidationError):
            GradientDescentOptimizer(rng=0).fit([], polynomial_basis(1))

    @pytest.mark.parametrize("kwargs", [
        {"epochs": -1},
        {"init_epochs": 0},
        {"learning_rate": 0.0},
        {"epochs": "5"},
        {"epochs": True},
        {"init_epochs": 2.5},
        {"learning_rate": "0.5"},
        {"learning_rate": float("nan")},
    ])
    def test_bad_settings(self, kwargs):
        with pytest.raises(InputValidationError):
            GradientDescentOptimizer(**kwargs)
