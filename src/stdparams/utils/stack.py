"""Warning stack levels that point past this package into the caller's code."""

from __future__ import annotations

import inspect
import os

_PACKAGE_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "")


def find_stack_level() -> int:
    """Number of frames, this one included, that belong to the package.

    Passed as ``stacklevel`` so a warning is attributed to the first frame outside
    ``stdparams`` however deep the call chain that issued it.
    """

    frame = inspect.currentframe()
    try:
        n = 0
        while frame is not None and os.path.abspath(frame.f_code.co_filename).startswith(_PACKAGE_DIR):
            frame = frame.f_back
            n += 1
    finally:
        del frame
    return n
