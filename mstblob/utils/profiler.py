"""Lightweight wall-clock profiling for pipeline stages.

Provides:
    - timer(): Context manager for wall-clock timing with optional sink

Used to measure sampling, edge sorting, tree building and rasterization.
The pipeline passes a sink that stores the elapsed seconds in the result's
timings dict and logs them at DEBUG.
"""

import time
from contextlib import contextmanager
from typing import Callable, Optional


@contextmanager
def timer(name: str, sink: Optional[Callable[[str, float], None]] = None):
    """Context manager for wall-clock timing.

    Parameters
    ----------
    name : str
        Timer name (for logging/display)
    sink : Optional[Callable[[str, float], None]]
        Optional callback(name, elapsed_seconds). If None, prints to stdout.

    Examples
    --------
    >>> timings = {}
    >>> with timer("rasterize", sink=timings.__setitem__):
    ...     field = rasterize_field(tree, points, config)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is not None:
            sink(name, elapsed)
        else:
            print(f"{name}: {elapsed:.3f} s")
