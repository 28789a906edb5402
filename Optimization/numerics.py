"""
Implements the rootfinding primitives shared by the interval and circular optimizers.
"""

from typing import Callable, Sequence
import numpy as np

from Optimization.functions import OptimizerFailure

default_tol = np.sqrt(np.finfo(float).eps)      # half of max precision
default_maxiter = 1000
gradient_dampers = (0.2, 0.4, 0.8)              # damping rates for gradient descent


def eq(a: float, b: float, atol: float = default_tol) -> bool:
    """Return whether a and b agree up to an absolute tolerance."""
    return a - b < atol and b - a < atol


def lte(a: float, b: float, atol: float = default_tol) -> bool:
    return a - b <= atol


def gte(a: float, b: float, atol: float = default_tol) -> bool:
    return b - a <= atol


def checkgradient(gradient: float, t: float) -> float:
    """Raise an OptimizerFailure if a derivative evaluated at t is unusable, otherwise return it."""
    if np.isnan(gradient):
        raise OptimizerFailure(f"Gradient is undefined at t = {t}")
    if np.isinf(gradient):
        raise OptimizerFailure(f"Gradient is infinite at t = {t}")
    return gradient


def dampedstep(
        f: Callable[[float], float],
        x: float,
        gradient: float,
        dampers: Sequence[float] = gradient_dampers,
        factor: float = 1.0,
        wrap: Callable[[float], float] = None,
        maxstep: float = None
) -> float:
    """
    Take one damped gradient step from x, trying each damper and keeping the best candidate.

    :param f: function being optimized
    :param x: current point
    :param gradient: derivative of f at x
    :param dampers: candidate step sizes, as multiples of the gradient
    :param factor: 1 to minimize f, -1 to maximize it
    :param wrap: optionally maps each candidate back into the domain, e.g. onto the circle
    :param maxstep: optionally clips the length of every candidate step
    :return: the candidate minimizing factor * f, ties going to the smallest damper
    """
    best, bestvalue = None, None
    for damper in dampers:
        step = -factor * damper * gradient
        if maxstep is not None:
            step = min(max(step, -maxstep), maxstep)
        candidate = x + step
        if wrap is not None:
            candidate = wrap(candidate)
        value = factor * f(candidate)
        if bestvalue is None or value < bestvalue:
            best, bestvalue = candidate, value
    return best


def boundedoptimum(
        df: Callable[[float], float],
        a: float,
        b: float,
        atol: float = default_tol
) -> float:
    """
    Use the bisection method on the sign of a derivative to find a critical point on [a, b]. The derivative
    must change sign over the interval; a and b may be given in either order.

    :param df: derivative of the function being optimized
    :param a: one end of the bracket
    :param b: other end of the bracket
    :param atol: the result satisfies |df(x)| < atol
    :return: the approximate critical point
    """
    a, b = min(a, b), max(a, b)
    da = checkgradient(df(a), a)
    db = checkgradient(df(b), b)
    # is there an optimum in this bound?
    if abs(da) < atol:
        return a
    if abs(db) < atol:
        return b
    if np.sign(da) == np.sign(db):
        raise OptimizerFailure(f"No optimum in the bound [{a}, {b}]")
    while True:
        m = (a + b) / 2
        if not a < m < b:
            raise OptimizerFailure(f"Bracket collapsed at {m} before |f'| < {atol}")
        dm = checkgradient(df(m), m)
        if abs(dm) < atol:
            return m
        # loop invariant: the sign change stays inside [a, b]
        if np.sign(dm) == np.sign(da):
            a, da = m, dm
        else:
            b, db = m, dm


def bisection(
        f: Callable[[float], float],
        a: float,
        b: float,
        atol: float = default_tol,
        fa=None
) -> float:
    """
    Use the bisection method to estimate a root of f on the interval [a, b]. f must change sign on the
    interval.

    :param f: function for rootfinding
    :param a: lower bound
    :param b: upper bound
    :param atol: absolute tolerance on the width of the final bracket
    :param fa: optionally f(a)
    :return: the approximate root. If the bracket shrinks to floating point resolution before reaching atol, the
        midpoint of that bracket is returned, which is as close to the root as floats can get.
    """
    fa = fa if fa is not None else f(a)
    while b - a > atol:
        m = (a + b) / 2
        if not a < m < b:
            break       # floating point resolution
        fm = f(m)
        if fm == 0:
            return m
        if np.sign(fm) == np.sign(fa):
            a, fa = m, fm
        else:
            b = m
    return (a + b) / 2
