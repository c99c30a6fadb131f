"""On-screen preview sink (matplotlib).

Shows a finished pixel buffer 1:1 in a window without axes. Display is a
boundary concern: failures are raised as RuntimeError so the caller can
report them without invalidating the buffer or other sinks.
"""

import logging

import matplotlib
import numpy as np

logger = logging.getLogger(__name__)

_NON_INTERACTIVE = {'agg', 'pdf', 'ps', 'svg', 'pgf', 'cairo', 'template'}


def show_image(buffer: np.ndarray, title: str = "MST blob", block: bool = True) -> None:
    """Display an (H, W, 3) uint8 buffer at one screen pixel per image pixel.

    Parameters
    ----------
    buffer : np.ndarray
        Image to show
    title : str
        Window title
    block : bool
        Block until the window is closed, default True

    Raises
    ------
    RuntimeError
        If matplotlib only has a non-interactive backend (no display) or the
        window cannot be created
    """
    backend = matplotlib.get_backend().lower()
    if backend in _NON_INTERACTIVE:
        raise RuntimeError(f"Cannot open display: matplotlib backend '{backend}' is non-interactive")

    import matplotlib.pyplot as plt

    try:
        h, w = buffer.shape[:2]
        dpi = 100.0
        fig = plt.figure(figsize=(w / dpi, h / dpi), dpi=dpi)
        ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
        ax.set_axis_off()
        ax.imshow(buffer, interpolation='nearest', vmin=0, vmax=255)
        manager = fig.canvas.manager
        if manager is not None:
            manager.set_window_title(title)
        logger.info("Displaying image")
        plt.show(block=block)
    except Exception as e:
        raise RuntimeError(f"Cannot open display: {e}") from e
