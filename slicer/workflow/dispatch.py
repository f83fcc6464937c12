"""
Schedule-consistent slice dispatch.

Both the artifact generator and the implementation driver walk the schedule
through dispatch_in_order(). With one worker it is a plain loop. With more,
a slice is submitted to the thread pool only once every slice it depends on
has been handled, and ready slices are submitted in schedule order, so a
handler sees exactly the dependency statuses it would see sequentially.
"""

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Optional

from slicer.plan.graph import DependencyGraph

logger = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation flag shared by the dispatcher and the CLI."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def dispatch_in_order(
    order: list[str],
    graph: DependencyGraph,
    handle: Callable[[str], None],
    max_workers: int = 1,
    cancel: Optional[CancelToken] = None,
) -> list[str]:
    """Call handle(name) for every slice in order.

    Cancellation is checked between slices; in-flight handlers finish.
    An exception from a handler propagates once running handlers are done.

    Returns:
        Names that were never dispatched (non-empty only after cancellation),
        in schedule order.
    """
    if max_workers <= 1:
        for i, name in enumerate(order):
            if cancel is not None and cancel.cancelled:
                logger.info(f"Cancelled before '{name}'; {len(order) - i} slice(s) not dispatched")
                return list(order[i:])
            handle(name)
        return []

    waiting_on = {name: set(graph.dependencies_of(name)) for name in order}
    pending = list(order)
    handled: set[str] = set()
    running: dict[Future, str] = {}

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="slice") as pool:
        while True:
            if cancel is None or not cancel.cancelled:
                ready = [name for name in pending if waiting_on[name] <= handled]
                for name in ready:
                    pending.remove(name)
                    running[pool.submit(handle, name)] = name
                    logger.debug(f"Dispatched '{name}'")

            if not running:
                break

            done, _ = wait(running, return_when=FIRST_COMPLETED)
            for future in done:
                handled.add(running.pop(future))
                future.result()

    if pending:
        logger.info(f"Cancelled; {len(pending)} slice(s) not dispatched: {', '.join(pending)}")
    return pending
