"""
Finds every local optimum of a differentiable function on the circle, and every root between them.

The optimizer walks counterclockwise around the circle from one optimum to the next. Each search follows the
gradient, bracketing the next optimum in a CircleRange as soon as the gradient changes sign, and refines the
bracket by bisection. Where the gradient is too small to follow it creeps forward with a geometrically growing
step. The enumeration stops when it rediscovers an optimum it has already found.
"""

from enum import Enum
import logging
import numpy as np

from Optimization import numerics
from Optimization.circlerange import CircleRange, circulardistance, mapminuspitopi, mapzerototwopi, twopi
from Optimization.functions import DifferentiableFunction, OptimizerFailure, TooManyOptima
from Optimization.interval import Optimizer
from Optimization.tracing import Tracer, tracepath

logger = logging.getLogger(__name__)

gradient_epsilon = 1e-10            # cutoff for defining an optimum
gradient_dampers = (0.05, 0.1, 0.2)
steep_enough = 1e-4                 # how steep the gradient must be to follow it
initial_delta = 1e-10               # first step when creeping out of a flat zone
delta_growth = 1.4
optimum_epsilon = 1e-10             # length of the bisected bracket around an optimum
root_epsilon = 1e-10
max_gradient_iterations = 100000
max_step = np.pi / 2                # longest gradient step, before the per-function limit
seed_offset = 1.0                   # not a rational multiple of pi, to delay cycles
max_seed_attempts = 16
golden_angle = np.pi * (3 - np.sqrt(5))


class Direction(Enum):
    Minimize = 1.0
    Maximize = -1.0

    @property
    def factor(self) -> float:
        return self.value

    def swap(self):
        return Direction.Maximize if self is Direction.Minimize else Direction.Minimize

    @classmethod
    def fromgradient(cls, gradient: float):
        """The direction which moves counterclockwise when following this gradient."""
        return cls.Maximize if gradient > 0 else cls.Minimize


class SearchState:
    """Mutable state of a single optimum enumeration. Never shared between calls."""

    def __init__(self, theta: float = 0., direction: Direction = Direction.Minimize):
        self.theta = theta
        self.direction = direction
        self.bound = CircleRange.circle()
        self.boundcomplete = False
        self.travelled = 0.

    def updatetheta(self, delta: float):
        self.moveto(self.theta + delta)

    def moveto(self, theta: float):
        """Move counterclockwise to theta, keeping track of the distance covered."""
        theta = mapminuspitopi(theta)
        self.travelled += mapzerototwopi(theta - self.theta)
        self.theta = theta

    def resetbound(self):
        self.bound = CircleRange.byoffset(self.theta, twopi)
        self.boundcomplete = False
        self.travelled = 0.

    def updatebound(self, gradient: float):
        """Shrink the bound using the gradient at theta. The next optimum is always counterclockwise of theta."""
        slope = self.direction.factor * gradient
        if slope > 0:
            self.bound = CircleRange.bycounterclockwisesegment(self.bound.source, self.theta)
            self.boundcomplete = True
        elif slope < 0 and self.theta != self.bound.source:
            self.bound = CircleRange.bycounterclockwisesegment(self.theta, self.bound.target)


class CircleOptimizer(Optimizer):
    """Enumerates the optima and roots of a periodic function. Every tolerance may be overridden per instance."""

    def __init__(
            self,
            gradient_epsilon: float = gradient_epsilon,
            dampers: tuple = gradient_dampers,
            steep_enough: float = steep_enough,
            initial_delta: float = initial_delta,
            delta_growth: float = delta_growth,
            optimum_epsilon: float = optimum_epsilon,
            root_epsilon: float = root_epsilon,
            max_gradient_iterations: int = max_gradient_iterations,
            max_step: float = max_step,
            seed_offset: float = seed_offset,
            max_seed_attempts: int = max_seed_attempts,
            tracer: Tracer = None
    ):
        if min(gradient_epsilon, optimum_epsilon, root_epsilon, initial_delta, max_step) <= 0:
            raise ValueError("CircleOptimizer tolerances must be positive")
        if not gradient_epsilon < steep_enough:
            raise ValueError(f"gradient_epsilon {gradient_epsilon} must be smaller than steep_enough {steep_enough}")
        if not initial_delta < steep_enough:
            raise ValueError(f"initial_delta {initial_delta} must be smaller than steep_enough {steep_enough}")
        if not delta_growth > 1:
            raise ValueError(f"delta_growth must exceed 1, got {delta_growth}")
        super().__init__(epsilon=optimum_epsilon, maxiterations=max_gradient_iterations, tracer=tracer)
        self.gradient_epsilon = gradient_epsilon
        self.dampers = dampers
        self.steep_enough = steep_enough
        self.initial_delta = initial_delta
        self.delta_growth = delta_growth
        self.root_epsilon = root_epsilon
        self.max_step = max_step
        self.seed_offset = seed_offset
        self.max_seed_attempts = max_seed_attempts

    @property
    def optimum_epsilon(self) -> float:
        return self.epsilon

    @property
    def max_gradient_iterations(self) -> int:
        return self.maxiterations

    def maxstep(self, f: DifferentiableFunction) -> float:
        """
        Longest step the gradient walk may take on f. Its optima are on average at least 2pi / f.maxoptima apart, and
        a step of half that cannot jump a maximum and minimum pair at that spacing. Closer pairs are caught by the
        check that maxima and minima alternate.
        """
        return min(self.max_step, np.pi / max(f.maxoptima, 1))

    def optima(self, f: DifferentiableFunction) -> list:
        """
        Return every local optimum of f on the circle, in the order found.

        :param f: periodic function with period 2pi
        :return: angles in (-pi, pi]
        :raises TooManyOptima: if f has more distinct optima than f.maxoptima
        :raises OptimizerFailure: if the gradient is undefined or the search stalls
        """
        state = SearchState(self._seed(f))
        state.direction = Direction.fromgradient(self._gradient(f, state.theta))
        if self.tracer is not None:
            self.tracer.point("Starting theta", state.theta, f.value(state.theta))
        logger.debug("Seeded search at theta = %s, %s first", state.theta, state.direction.name)

        optima = []
        kinds = []
        while True:
            optimum, kind = self._nextoptimum(f, state)
            if self.tracer is not None:
                self.tracer.point(f"Optimum @ {optimum:.5f}", optimum, f.value(optimum))
            # going counterclockwise, maxima and minima must alternate
            if kinds and kind is kinds[-1]:
                raise OptimizerFailure(
                    f"Consecutive optima at {optima[-1]} and {optimum} are both "
                    f"{'maxima' if kind is Direction.Maximize else 'minima'}; "
                    f"the walk skipped the optimum between them"
                )
            # did we find this optimum already?
            if any(circulardistance(optimum, other) < 2 * self.optimum_epsilon for other in optima):
                break
            if len(optima) == f.maxoptima:
                raise TooManyOptima(optima)
            logger.debug("Found optimum %d at theta = %s", len(optima), optimum)
            optima.append(optimum)
            kinds.append(kind)
            state.theta = optimum
            self._findsteepergradient(f, state)
        return optima

    def roots(self, f: DifferentiableFunction, optima: list) -> list:
        """
        Return the roots of f, at most one between each pair of optima adjacent on the circle.

        :param f: periodic function with period 2pi
        :param optima: all the optima of f, in any order
        :return: angles in (-pi, pi], in counterclockwise order
        """
        optima = sorted(mapminuspitopi(t) for t in optima)
        roots = []
        for i, lower in enumerate(optima):
            upper = optima[(i + 1) % len(optima)]
            if upper <= lower:
                upper += twopi
            flower = f.value(lower)
            fupper = f.value(upper)
            # the root (if one exists) is either at the lower optimum, or bound between the two optima
            if flower == 0:
                roots.append(lower)
            elif fupper != 0 and np.sign(flower) != np.sign(fupper):
                root = numerics.bisection(f.value, lower, upper, atol=self.root_epsilon, fa=flower)
                roots.append(mapminuspitopi(root))
        if self.tracer is not None:
            self.tracer.points(f"Roots ({len(roots)})", roots, [f.value(t) for t in roots])
        return roots

    def _gradient(self, f: DifferentiableFunction, theta: float) -> float:
        return numerics.checkgradient(f.derivative(theta), theta)

    def _seed(self, f: DifferentiableFunction) -> float:
        """Pick a starting angle which is not a critical point."""
        theta = 0.
        offset = self.seed_offset
        for attempt in range(2 * self.max_seed_attempts):
            if abs(self._gradient(f, theta)) >= self.steep_enough:
                return theta
            if attempt + 1 == self.max_seed_attempts:
                logger.warning("No usable gradient after %d seed offsets of %s, trying golden angle offsets",
                               self.max_seed_attempts, self.seed_offset)
                offset = golden_angle
            theta = mapminuspitopi(theta + offset)
        raise OptimizerFailure(f"No usable gradient at {2 * self.max_seed_attempts} starting angles; is f constant?")

    def _nextoptimum(self, f: DifferentiableFunction, state: SearchState) -> tuple:
        """Return the next optimum counterclockwise of theta, and whether it is a maximum or a minimum."""
        state.resetbound()
        while True:
            self._followgradient(f, state)
            # did we hit an optimum?
            gradient = self._gradient(f, state.theta)
            if abs(gradient) < self.gradient_epsilon:
                return state.theta, state.direction
            if state.boundcomplete:
                return self._closebound(f, state)
            if abs(gradient) > self.steep_enough:
                raise OptimizerFailure(f"Unable to find next optimum after {self.max_gradient_iterations} iterations")

            # the gradient is too small to follow, change tactics
            self._exploreflatzone(f, state)
            gradient = self._gradient(f, state.theta)
            if abs(gradient) < self.gradient_epsilon:
                return state.theta, state.direction
            if state.boundcomplete:
                return self._closebound(f, state)
            # we have a usable gradient again
            state.direction = Direction.fromgradient(gradient)

    def _closebound(self, f: DifferentiableFunction, state: SearchState) -> tuple:
        gradient = self._gradient(f, state.bound.source)
        kind = Direction.fromgradient(gradient) if gradient != 0 else state.direction
        return self._boundedoptimum(f, state.bound), kind

    def _checktravel(self, state: SearchState):
        if state.travelled > 2 * twopi:
            raise OptimizerFailure(f"Circled twice from theta = {state.bound.target} without bounding an optimum")

    def _followgradient(self, f: DifferentiableFunction, state: SearchState):
        steps = [] if self.tracer is not None else None
        maxstep = self.maxstep(f)
        for _ in range(self.max_gradient_iterations):
            if steps is not None:
                steps.append(state.theta)
            gradient = self._gradient(f, state.theta)
            # in case the descent oscillates, bound the optimum in an interval
            state.updatebound(gradient)
            if abs(gradient) < self.steep_enough or state.boundcomplete:
                break
            state.moveto(numerics.dampedstep(
                f.value, state.theta, gradient, self.dampers, state.direction.factor,
                wrap=mapminuspitopi, maxstep=maxstep
            ))
            self._checktravel(state)
        if steps is not None:
            tracepath(self.tracer, f, f"Gradient {state.direction.name} ({len(steps)})", steps)

    def _boundedoptimum(self, f: DifferentiableFunction, bound: CircleRange) -> float:
        """Bisect the sign of the gradient over a bound known to hold an optimum."""
        logger.debug("Bisecting %s", bound)
        if self.tracer is not None:
            self.tracer.bound("Bound", bound.source, bound.target)
        glower = self._gradient(f, bound.source)
        gupper = self._gradient(f, bound.target)
        if glower == 0:
            return bound.source
        if gupper == 0:
            return bound.target
        if np.sign(glower) == np.sign(gupper):
            raise OptimizerFailure(f"No optimum in {bound}")
        while True:
            mid = bound.midpoint()
            if bound.length() < self.optimum_epsilon:
                return mid
            gmid = self._gradient(f, mid)
            if gmid == 0:
                return mid
            # loop invariant: the optimum stays in the bound
            if np.sign(gmid) == np.sign(glower):
                bound = CircleRange.bycounterclockwisesegment(mid, bound.target)
                glower = gmid
            else:
                bound = CircleRange.bycounterclockwisesegment(bound.source, mid)

    def _exploreflatzone(self, f: DifferentiableFunction, state: SearchState):
        """
        Creep counterclockwise until the bound completes or the gradient is steep enough to follow again. This can
        skip over optima packed closer together than the step, which are then lost.
        """
        logger.debug("Exploring flat zone at theta = %s", state.theta)
        steps = [] if self.tracer is not None else None
        delta = self.initial_delta
        try:
            while True:
                if steps is not None:
                    steps.append(state.theta)
                gradient = self._gradient(f, state.theta)
                state.updatebound(gradient)
                if state.boundcomplete or abs(gradient) > self.steep_enough:
                    return
                state.updatetheta(delta)
                self._checktravel(state)
                delta *= self.delta_growth
        finally:
            if steps is not None:
                tracepath(self.tracer, f, f"Exploring ({len(steps)})", steps)

    def _findsteepergradient(self, f: DifferentiableFunction, state: SearchState):
        """Creep counterclockwise off the optimum at theta, then point the search at the next optimum."""
        steps = [] if self.tracer is not None else None
        delta = self.initial_delta
        state.travelled = 0.
        while True:
            if steps is not None:
                steps.append(state.theta)
            gradient = self._gradient(f, state.theta)
            if abs(gradient) > self.steep_enough:
                state.direction = Direction.fromgradient(gradient)
                break
            state.updatetheta(delta)
            if state.travelled > twopi:
                raise OptimizerFailure(f"Gradient never steepens after the optimum at {state.theta}")
            delta *= self.delta_growth
        if steps is not None:
            tracepath(self.tracer, f, f"Steeper ({len(steps)}) now, {state.direction.name}", steps)


def getoptima(f: DifferentiableFunction, tracer: Tracer = None) -> list:
    """Return every local optimum of a periodic function f, using the default tolerances."""
    return CircleOptimizer(tracer=tracer).optima(f)


def getroots(f: DifferentiableFunction, optima: list, tracer: Tracer = None) -> list:
    """Return the roots of a periodic function f lying between its optima, using the default tolerances."""
    return CircleOptimizer(tracer=tracer).roots(f, optima)
