"""This module contains the function contract consumed by the optimizers, and the errors they raise."""

from abc import abstractmethod, ABC
from typing import Callable
import numpy as np


class OptimizerFailure(Exception):
    """Exception thrown when an optimizer cannot converge to a trustworthy answer."""
    def __init__(self, message: str):
        super().__init__(message)


class TooManyOptima(OptimizerFailure):
    """Exception thrown when a function has more distinct optima than it declares."""
    def __init__(self, optima: list):
        super().__init__(f"Found more than {len(optima)} optima: {optima}")
        self.optima = optima


class DifferentiableFunction(ABC):
    """An abstract class providing the interface of a differentiable scalar function."""

    @abstractmethod
    def value(self, t: float) -> float:
        """Return f(t)."""

    @abstractmethod
    def derivative(self, t: float) -> float:
        """Return f'(t). May be NaN or infinite at isolated points."""

    @property
    @abstractmethod
    def maxoptima(self) -> int:
        """Upper bound on the number of distinct optima of the function."""

    def __call__(self, t: float) -> float:
        return self.value(t)


class CallableFunction(DifferentiableFunction):
    """A DifferentiableFunction assembled from a pair of callables."""

    def __init__(self, value: Callable[[float], float], derivative: Callable[[float], float], maxoptima: int):
        self._value = value
        self._derivative = derivative
        self._maxoptima = maxoptima

    def value(self, t: float) -> float:
        return self._value(t)

    def derivative(self, t: float) -> float:
        return self._derivative(t)

    @property
    def maxoptima(self) -> int:
        return self._maxoptima


class MultiPartFunction(ABC):
    """A family of functions indexed by part, all sharing one bound on the number of optima."""

    def __init__(self, numparts: int, maxoptima: int):
        self._numparts = numparts
        self._maxoptima = maxoptima

    @property
    def numparts(self) -> int:
        return self._numparts

    @abstractmethod
    def value(self, t: float, part: int) -> float:
        pass

    @abstractmethod
    def derivative(self, t: float, part: int) -> float:
        pass

    def part(self, part: int) -> DifferentiableFunction:
        """Return one part as a standalone DifferentiableFunction."""
        if not 0 <= part < self._numparts:
            raise IndexError(f"Part {part} out of range for function with {self._numparts} parts")
        return CallableFunction(
            lambda t: self.value(t, part),
            lambda t: self.derivative(t, part),
            self._maxoptima
        )


def relax(x: float) -> float:
    """Compress large magnitudes logarithmically while preserving sign and zeros."""
    return np.sign(x) * np.log1p(np.abs(x))


class PreconditionedFunction(DifferentiableFunction):
    """
    A function whose value and derivative are relaxed and rescaled so that the derivative spans roughly unit
    range. Sign changes, and hence roots and optima, are preserved.
    """

    numscalesamples = 128

    def __init__(self, maxoptima: int):
        self._maxoptima = maxoptima
        self._scale = None

    def __getstate__(self):
        state = self.__dict__.copy()
        state['_scale'] = None      # recomputed lazily after unpickling
        return state

    @abstractmethod
    def unconditionedvalue(self, t: float) -> float:
        pass

    @abstractmethod
    def unconditionedderivative(self, t: float) -> float:
        pass

    @property
    def maxoptima(self) -> int:
        return self._maxoptima

    def value(self, t: float) -> float:
        return self._condition(self.unconditionedvalue(t))

    def derivative(self, t: float) -> float:
        return self._condition(self.unconditionedderivative(t))

    def _condition(self, x: float) -> float:
        if self._scale is None:
            self._scale = self._computescale()
        return self._scale * relax(x)

    def _computescale(self) -> float:
        relaxed = [relax(self.unconditionedderivative(t)) for t in range(self.numscalesamples)]
        spread = np.max(relaxed) - np.min(relaxed)
        if not np.isfinite(spread) or spread == 0:
            return 1.
        return 1. / spread
