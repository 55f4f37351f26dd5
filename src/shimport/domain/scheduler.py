"""Bounded fan-out of independent units of work."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

log = logging.getLogger(__name__)


def _first_failure(done: Iterable[Future[object]]) -> BaseException | None:
    for future in done:
        error = future.exception()
        if error is not None:
            return error
    return None


def run_bounded[T](
    items: Iterable[T],
    func: Callable[[T], object],
    *,
    threads: int,
    name: str = "worker",
) -> None:
    """Call ``func`` for every item with at most ``threads`` calls in flight.

    With one thread everything runs inline in the caller's thread. Otherwise a
    new item is only submitted once a slot frees up. The first error stops
    further submissions; in-flight calls are allowed to finish before the error
    is re-raised, so nothing is left running when this returns.
    """

    if threads <= 1:
        for item in items:
            func(item)
        return

    failure: BaseException | None = None
    in_flight: set[Future[object]] = set()
    with ThreadPoolExecutor(max_workers=threads, thread_name_prefix=name) as executor:
        for item in items:
            if len(in_flight) >= threads:
                done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                failure = _first_failure(done)
                if failure is not None:
                    log.debug("Stopping %s submissions after failure: %s", name, failure)
                    break
            in_flight.add(executor.submit(func, item))
        done, _ = wait(in_flight)
        if failure is None:
            failure = _first_failure(done)

    if failure is not None:
        raise failure
