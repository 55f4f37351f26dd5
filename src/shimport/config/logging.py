"""Shared logging helpers."""

from __future__ import annotations

import logging
import sys


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format on standard output, where progress lines
    belong. Pass ``force=True`` to reconfigure during tests or when debug mode is
    switched on after start-up.
    """

    logging.basicConfig(
        stream=sys.stdout,
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
