"""
Single-point optimizers for differentiable functions on the real line: damped gradient descent with a bisection
fallback, and the secant method applied to the derivative.
"""

from abc import abstractmethod, ABC
import logging

from Optimization import numerics
from Optimization.functions import DifferentiableFunction, OptimizerFailure
from Optimization.tracing import Tracer, tracepath

logger = logging.getLogger(__name__)


class Optimizer(ABC):
    """An abstract class providing the interface of a strategy for locating critical points."""

    def __init__(
            self,
            epsilon: float = numerics.default_tol,
            maxiterations: int = numerics.default_maxiter,
            tracer: Tracer = None
    ):
        """
        :param epsilon: convergence tolerance
        :param maxiterations: iteration budget, after which the optimizer gives up
        :param tracer: optional sink for tracing progress
        """
        self.epsilon = epsilon
        self.maxiterations = maxiterations
        self.tracer = tracer

    @abstractmethod
    def optima(self, f: DifferentiableFunction) -> list:
        """Return the critical points of f found by this strategy. Raises OptimizerFailure."""


class GradientOptimizer(Optimizer):
    """Finds the local minimum downhill of a guess."""

    def __init__(self, guess: float, **kwargs):
        super().__init__(**kwargs)
        self.guess = guess

    def optima(self, f: DifferentiableFunction) -> list:
        return [localminimum(f, self.guess, self.epsilon, self.maxiterations, self.tracer)]


class SecantOptimizer(Optimizer):
    """Finds a critical point near a pair of guesses."""

    def __init__(self, guess1: float, guess2: float, **kwargs):
        super().__init__(**kwargs)
        self.guess1 = guess1
        self.guess2 = guess2

    def optima(self, f: DifferentiableFunction) -> list:
        return [localoptimum(f, self.guess1, self.guess2, self.epsilon, self.maxiterations, self.tracer)]


def localminimum(
        f: DifferentiableFunction,
        guess: float,
        epsilon: float = numerics.default_tol,
        maxiterations: int = numerics.default_maxiter,
        tracer: Tracer = None
) -> float:
    """
    Find a local minimum of f by damped gradient descent from a guess. Once the descent brackets a sign change
    of the derivative, switch to bisection.

    :param f: function to minimize
    :param guess: starting point
    :param epsilon: the result x satisfies |f'(x)| < epsilon
    :param maxiterations: number of descent steps before giving up
    :param tracer: optional sink for tracing progress
    :return: the approximate minimizer
    """
    x = guess
    gradient = numerics.checkgradient(f.derivative(x), x)
    # did we just happen to guess it right?
    if abs(gradient) < epsilon:
        return x
    lower, upper = None, None
    steps = [x]
    for _ in range(maxiterations):
        lower, upper = _updatebracket(x, gradient, lower, upper)
        if lower is not None and upper is not None:
            logger.debug("Bracketed minimum in [%s, %s] after %d steps", lower, upper, len(steps))
            tracepath(tracer, f, f"Gradient descent ({len(steps)})", steps)
            return _bisect(f, lower, upper, epsilon, tracer)
        x = numerics.dampedstep(f.value, x, gradient)
        steps.append(x)
        gradient = numerics.checkgradient(f.derivative(x), x)
        if abs(gradient) < epsilon:
            tracepath(tracer, f, f"Gradient descent ({len(steps)})", steps)
            return x
    tracepath(tracer, f, f"Gradient descent ({len(steps)})", steps)
    # did we run out of steps? Maybe the last step overshot, in which case we have bounds
    lower, upper = _updatebracket(x, gradient, lower, upper)
    if lower is not None and upper is not None:
        return _bisect(f, lower, upper, epsilon, tracer)
    raise OptimizerFailure(f"Unable to find minimum in {maxiterations} iterations")


def _updatebracket(x: float, gradient: float, lower: float, upper: float) -> tuple:
    # a positive gradient puts the root of f' at or below x
    if gradient > 0:
        upper = x
    elif gradient < 0:
        lower = x
    return lower, upper


def _bisect(f: DifferentiableFunction, lower: float, upper: float, epsilon: float, tracer: Tracer) -> float:
    if tracer is not None:
        tracer.bound("Bound", lower, upper)
    return numerics.boundedoptimum(f.derivative, lower, upper, epsilon)


def findboundedoptimum(
        f: DifferentiableFunction,
        lower: float,
        upper: float,
        epsilon: float = numerics.default_tol
) -> float:
    """
    Find a critical point of f on [lower, upper] by bisection. The derivative of f must change sign on the interval,
    otherwise an OptimizerFailure is raised.
    """
    return numerics.boundedoptimum(f.derivative, lower, upper, epsilon)


def localoptimum(
        f: DifferentiableFunction,
        guess1: float,
        guess2: float,
        epsilon: float = numerics.default_tol,
        maxiterations: int = numerics.default_maxiter,
        tracer: Tracer = None
) -> float:
    """
    Find a critical point of f by applying the secant method to its derivative. There is no bracketing fallback.

    :param f: function to optimize
    :param guess1: first starting point
    :param guess2: second starting point, distinct from the first
    :param epsilon: the result x satisfies |f'(x)| < epsilon
    :param maxiterations: number of secant steps before giving up
    :param tracer: optional sink for tracing progress
    :return: the approximate critical point
    """
    x1, x2 = guess1, guess2
    y1 = numerics.checkgradient(f.derivative(x1), x1)
    y2 = numerics.checkgradient(f.derivative(x2), x2)
    # are any of these guesses the answer already?
    if abs(y1) < epsilon:
        return x1
    if abs(y2) < epsilon:
        return x2
    steps = [x1, x2]
    try:
        for _ in range(maxiterations):
            if y2 == y1:
                raise OptimizerFailure(f"Secant through {x1} and {x2} never crosses zero")
            # where does the secant line intercept the x axis?
            x3 = x1 - (x2 - x1) / (y2 - y1) * y1
            steps.append(x3)
            y3 = numerics.checkgradient(f.derivative(x3), x3)
            if abs(y3) < epsilon:
                return x3
            x1, y1, x2, y2 = x2, y2, x3, y3
    finally:
        tracepath(tracer, f, f"Secant ({len(steps)})", steps)
    raise OptimizerFailure(f"Unable to find optimum after {maxiterations} iterations")
