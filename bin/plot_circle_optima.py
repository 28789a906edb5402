"""
Debugging aid: run the circular optimizer on a pickled DifferentiableFunction and plot everything it traced.
"""

from argparse import ArgumentParser
import logging
import pickle
import matplotlib.pyplot as plt

from Optimization.circle import getoptima, getroots
from Optimization.functions import OptimizerFailure, TooManyOptima
from Optimization.tracing import PlotTracer

logger = logging.getLogger("plot_circle_optima")


def main(argv=None) -> int:
    args = ArgumentParser(description=__doc__)
    args.add_argument('function', help="path to a pickled DifferentiableFunction")
    args.add_argument('--out', help="image file to write instead of showing the plot")
    args.add_argument('--numsamples', type=int, default=512)
    args.add_argument('--verbose', action='store_true')
    args = args.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, force=True)
    with open(args.function, 'rb') as file:
        f = pickle.load(file)

    tracer = PlotTracer()
    tracer.sample(f, args.numsamples)
    status = 0
    try:
        optima = getoptima(f, tracer=tracer)
        tracer.optima(f, optima)
        roots = getroots(f, optima, tracer=tracer)
        logger.info("Found %d optima %s and %d roots %s", len(optima), optima, len(roots), roots)
    except TooManyOptima as tmo:
        logger.error("%s (at most %d expected)", tmo, f.maxoptima)
        tracer.optima(f, tmo.optima)
        status = 1
    except OptimizerFailure as of:
        logger.error("Optimizer failed: %s", of)
        status = 1

    if args.out:
        tracer.save(args.out)
        logger.info("Saved plot to %s", args.out)
    else:
        tracer.show()
    return status


if __name__ == '__main__':
    raise SystemExit(main())
