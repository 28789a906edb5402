import numpy as np
import pytest

from Optimization import numerics
from Optimization.functions import OptimizerFailure


def test_comparators():
    assert numerics.eq(1., 1. + numerics.default_tol / 2)
    assert not numerics.eq(1., 1. + 2 * numerics.default_tol)
    assert numerics.lte(1. + numerics.default_tol / 2, 1.)
    assert not numerics.lte(2., 1.)
    assert numerics.gte(1. - numerics.default_tol / 2, 1.)
    assert not numerics.gte(1., 2.)


def test_checkgradient():
    assert numerics.checkgradient(0.5, 0.) == 0.5
    with pytest.raises(OptimizerFailure):
        numerics.checkgradient(np.nan, 0.)
    with pytest.raises(OptimizerFailure):
        numerics.checkgradient(-np.inf, 1.)


def test_dampedstep_minimizes():
    f = lambda x: (x - 1) ** 2
    # from 0 the gradient is -2: candidates 0.4, 0.8, 1.6, of which 0.8 is lowest
    assert numerics.dampedstep(f, 0., -2.) == pytest.approx(0.8)


def test_dampedstep_maximizes():
    f = lambda x: -(x - 1) ** 2
    # with factor -1 the step climbs: candidates 0.4, 0.8, 1.6
    assert numerics.dampedstep(f, 0., 2., factor=-1.) == pytest.approx(0.8)


def test_dampedstep_wraps():
    wrapped = numerics.dampedstep(np.cos, 3., -10., dampers=(0.05,), wrap=lambda x: x - 2 * np.pi)
    assert wrapped == pytest.approx(3.5 - 2 * np.pi)


def test_boundedoptimum():
    df = lambda x: 2 * (x - 0.3)
    x = numerics.boundedoptimum(df, 1., -1., atol=1e-9)
    assert -1 <= x <= 1
    assert abs(df(x)) < 1e-9


def test_boundedoptimum_endpoints():
    df = lambda x: x
    assert numerics.boundedoptimum(df, 0., 1.) == 0.
    assert numerics.boundedoptimum(df, -1., 0.) == 0.


def test_boundedoptimum_no_sign_change():
    with pytest.raises(OptimizerFailure):
        numerics.boundedoptimum(lambda x: x, 1., 2.)


def test_boundedoptimum_collapse():
    # a jump in the derivative is never within tolerance of zero
    with pytest.raises(OptimizerFailure):
        numerics.boundedoptimum(lambda x: 1. if x > 0.1 else -1., 0., 1., atol=1e-9)


def test_bisection():
    root = numerics.bisection(np.cos, 0., 3., atol=1e-12)
    assert root == pytest.approx(np.pi / 2, abs=1e-11)
    assert numerics.bisection(lambda x: x, -1., 1.) == 0.


def test_dampedstep_maxstep():
    f = lambda x: (x - 10) ** 2
    # every candidate is clipped to the same step, so the smallest damper wins the tie
    assert numerics.dampedstep(f, 0., -100., maxstep=0.5) == 0.5
    assert numerics.dampedstep(lambda x: -f(x), 0., 100., factor=-1., maxstep=0.5) == 0.5


def test_bisection_resolution():
    # with no tolerance the bracket shrinks until floats cannot split it
    root = numerics.bisection(np.cos, 0., 3., atol=0.)
    assert abs(root - np.pi / 2) < 1e-15
