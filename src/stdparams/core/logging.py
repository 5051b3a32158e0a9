"""Logging setup shared by the CLI entrypoints."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # statsmodels/patsy are chatty at debug level
    for name in ("statsmodels", "patsy"):
        logging.getLogger(name).setLevel(max(level, logging.INFO))
