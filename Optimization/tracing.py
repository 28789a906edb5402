"""
Optional sinks for tracing optimizer progress. The optimizers only ever call the methods of Tracer, whose
implementations here do nothing; PlotTracer records the calls and draws them with matplotlib.
"""

from typing import Sequence
import numpy as np
import matplotlib.pyplot as plt

from Optimization.functions import DifferentiableFunction

default_numsamples = 512
difference_step = 1e-3      # forward difference used to sanity check derivatives


class Tracer:
    """A tracer which ignores everything. Passing one to an optimizer never changes its result."""

    def point(self, label: str, t: float, y: float):
        """Record a single labeled point."""

    def points(self, label: str, ts: Sequence[float], ys: Sequence[float]):
        """Record a labeled sequence of points."""

    def bound(self, label: str, source: float, target: float):
        """Record a bracket known to contain an optimum."""


class PlotTracer(Tracer):
    """Records traced points and bounds and plots them on a (t, y) chart."""

    def __init__(self):
        self._curves = []
        self._points = []
        self._bounds = []

    def point(self, label: str, t: float, y: float):
        self._points.append((label, [t], [y]))

    def points(self, label: str, ts: Sequence[float], ys: Sequence[float]):
        self._points.append((label, list(ts), list(ys)))

    def bound(self, label: str, source: float, target: float):
        self._bounds.append((label, source, target))

    def sample(self, f: DifferentiableFunction, numsamples: int = default_numsamples):
        """Sample f, its derivative, and a forward-difference estimate of its derivative over [-pi, pi]."""
        t = np.linspace(-np.pi, np.pi, numsamples)
        values = np.array([f.value(ti) for ti in t])
        slopes = np.array([f.derivative(ti) for ti in t])
        estimates = np.array([(f.value(ti + difference_step) - f.value(ti)) / difference_step for ti in t])
        self._curves.append(("f", t, values))
        self._curves.append(("f'", t, slopes))
        self._curves.append(("f' estimate", t, estimates))

    def optima(self, f: DifferentiableFunction, optima: Sequence[float]):
        self.points(f"Optima ({len(optima)})", optima, [f.value(t) for t in optima])

    def roots(self, f: DifferentiableFunction, roots: Sequence[float]):
        self.points(f"Roots ({len(roots)})", roots, [f.value(t) for t in roots])

    def labels(self) -> list:
        """Labels of everything recorded so far, in order of kind then recording."""
        return [c[0] for c in self._curves] + [p[0] for p in self._points] + [b[0] for b in self._bounds]

    def plot(self, ax=None):
        """Draw everything recorded so far, on ax if given or else the current axes."""
        ax = ax if ax is not None else plt.gca()
        for label, t, y in self._curves:
            ax.plot(t, y, label=label, lw=1)
        for label, t, y in self._points:
            ax.scatter(t, y, label=label, s=12)
        for label, source, target in self._bounds:
            ax.axvline(source, color='orange', lw=0.5)
            ax.axvline(target, color='orange', lw=0.5, label=label)
        ax.axhline(0, color='black', lw=0.5)
        ax.set_xlim((-np.pi, np.pi))
        return ax

    def show(self):
        self.plot()
        plt.legend(fontsize='small')
        plt.show()

    def save(self, path: str):
        fig, ax = plt.subplots()
        self.plot(ax)
        ax.legend(fontsize='small')
        fig.savefig(path)
        plt.close(fig)


def tracepath(tracer: Tracer, f: DifferentiableFunction, label: str, ts: Sequence[float]):
    """Record the points f visited at ts, if there is a tracer to record them."""
    if tracer is not None:
        tracer.points(label, ts, [f.value(t) for t in ts])
