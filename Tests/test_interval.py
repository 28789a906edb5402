import numpy as np
import pytest

from Optimization.functions import CallableFunction, OptimizerFailure
from Optimization.interval import (
    GradientOptimizer, SecantOptimizer, findboundedoptimum, localminimum, localoptimum
)
from Optimization import numerics
from Optimization.tracing import PlotTracer


def parabola(center):
    return CallableFunction(lambda t: (t - center) ** 2, lambda t: 2 * (t - center), 1)


def cosine():
    return CallableFunction(np.cos, lambda t: -np.sin(t), 2)


def test_localminimum_parabola():
    x = localminimum(parabola(3.), 0.)
    assert abs(x - 3.) < numerics.default_tol


def test_localminimum_lucky_guess():
    assert localminimum(parabola(3.), 3.) == 3.


def test_localminimum_cosine():
    x = localminimum(cosine(), 2.)
    assert abs(np.sin(x)) < numerics.default_tol
    assert x == pytest.approx(np.pi, abs=1e-6)


def test_localminimum_unbounded():
    line = CallableFunction(lambda t: t, lambda t: 1., 0)
    with pytest.raises(OptimizerFailure):
        localminimum(line, 0., maxiterations=50)


def test_localminimum_undefined_gradient():
    broken = CallableFunction(lambda t: 0., lambda t: np.nan, 1)
    with pytest.raises(OptimizerFailure):
        localminimum(broken, 0.)


def test_localminimum_traced():
    tracer = PlotTracer()
    assert localminimum(parabola(3.), 0., tracer=tracer) == localminimum(parabola(3.), 0.)
    assert any(label.startswith("Gradient descent") for label in tracer.labels())


def test_findboundedoptimum():
    f = cosine()
    x = findboundedoptimum(f, 2., 4., epsilon=1e-9)
    assert 2. <= x <= 4.
    assert abs(f.derivative(x)) < 1e-9
    # same derivative sign at both ends
    with pytest.raises(OptimizerFailure):
        findboundedoptimum(f, 0.5, 1.)


def test_localoptimum_parabola():
    # the derivative is linear, so one secant step lands on the answer
    assert localoptimum(parabola(3.), 0., 1.) == pytest.approx(3.)


def test_localoptimum_cosine():
    x = localoptimum(cosine(), 2.5, 3.5)
    assert abs(np.sin(x)) < numerics.default_tol


def test_localoptimum_horizontal_secant():
    cubic = CallableFunction(lambda t: t ** 3, lambda t: 3 * t ** 2, 1)
    with pytest.raises(OptimizerFailure):
        localoptimum(cubic, -1., 1.)


def test_optimizer_strategies():
    f = parabola(-2.)
    for optimizer in (GradientOptimizer(1., epsilon=1e-9), SecantOptimizer(0., 1., epsilon=1e-9)):
        optima = optimizer.optima(f)
        assert len(optima) == 1
        assert abs(f.derivative(optima[0])) < 1e-9


def test_localminimum_bracket_on_last_step():
    # one step from 0 lands on 6, past the minimum, which brackets it
    steep = CallableFunction(lambda t: 5 * (t - 3) ** 2, lambda t: 10 * (t - 3), 1)
    assert localminimum(steep, 0., maxiterations=1) == pytest.approx(3.)


def test_localoptimum_budget():
    with pytest.raises(OptimizerFailure):
        localoptimum(cosine(), 2.5, 3.5, maxiterations=1)
