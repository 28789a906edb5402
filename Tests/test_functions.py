import pickle
import numpy as np
import pytest

from Optimization.functions import (
    CallableFunction, MultiPartFunction, OptimizerFailure, PreconditionedFunction, TooManyOptima, relax
)


class Harmonics(MultiPartFunction):
    """sin((part + 1) t) for each part"""

    def __init__(self):
        super().__init__(numparts=3, maxoptima=6)

    def value(self, t, part):
        return np.sin((part + 1) * t)

    def derivative(self, t, part):
        return (part + 1) * np.cos((part + 1) * t)


class SteepSine(PreconditionedFunction):

    def __init__(self, amplitude):
        super().__init__(maxoptima=2)
        self.amplitude = amplitude

    def unconditionedvalue(self, t):
        return self.amplitude * np.sin(t)

    def unconditionedderivative(self, t):
        return self.amplitude * np.cos(t)


def test_callable():
    f = CallableFunction(np.sin, np.cos, 2)
    assert f(1.) == f.value(1.) == np.sin(1.)
    assert f.derivative(1.) == np.cos(1.)
    assert f.maxoptima == 2


def test_multipart():
    f = Harmonics()
    assert f.numparts == 3
    second = f.part(1)
    assert second.maxoptima == 6
    assert second.value(0.3) == pytest.approx(np.sin(0.6))
    assert second.derivative(0.3) == pytest.approx(2 * np.cos(0.6))
    with pytest.raises(IndexError):
        f.part(3)


def test_relax():
    assert relax(0.) == 0.
    assert relax(-5.) == -relax(5.)
    assert relax(1e6) < 15


def test_preconditioned_preserves_signs():
    f = SteepSine(1e8)
    for t in np.linspace(-3, 3, 61):
        assert np.sign(f.value(t)) == np.sign(np.sin(t))
        assert np.sign(f.derivative(t)) == np.sign(np.cos(t))
    # relaxed derivative spans roughly unit range over the scale samples
    derivatives = [f.derivative(t) for t in range(f.numscalesamples)]
    assert max(derivatives) - min(derivatives) == pytest.approx(1.)


def test_preconditioned_degenerate_scale():
    f = SteepSine(0.)
    assert f.value(1.) == 0.
    assert f.derivative(1.) == 0.


def test_preconditioned_pickle():
    f = SteepSine(100.)
    f.value(0.5)
    copy = pickle.loads(pickle.dumps(f))
    assert copy._scale is None
    assert copy.value(0.5) == pytest.approx(f.value(0.5))


def test_too_many_optima():
    error = TooManyOptima([1., 2.])
    assert isinstance(error, OptimizerFailure)
    assert error.optima == [1., 2.]
