"""
Fans samples out to the active outputters.
"""
import logging
from queue import Empty, Queue
from typing import Callable

from chissoku.data import Sample
from chissoku.output.registry import ActiveOutputters
from chissoku.support.loop import BackgroundLoop

logger = logging.getLogger(__name__)

# the kinds of event that reach the dispatch loop
SAMPLE = "sample"
DEACTIVATE = "deactivate"
CLOSED = "closed"


class DispatchEngine(BackgroundLoop):
    """
    A background loop that is the only thing to change the active set and the only thing to call output().

    Samples and deactivation notices share one queue, so each is handled exactly once in the order posted.
    Each sample is handed to every active outputter before the next event is taken.
    When a deactivation leaves no active outputters, the shutdown callable is invoked and the loop ends.

    :param active: the active outputters
    :param shutdown: invoked when no outputters remain
    :param poll_timeout: how long each pass waits for an event before checking for stop
    """

    def __init__(self, active: ActiveOutputters, shutdown: Callable[[], None], poll_timeout=0.5):
        super().__init__(name="dispatch")
        self.active = active
        self.on_empty = shutdown
        self.poll_timeout = poll_timeout
        self.events = Queue()

    def post(self, sample: Sample):
        """ queues a sample for every active outputter. """
        self.events.put((SAMPLE, sample))

    def deactivate(self, name):
        """ queues removal of the named outputter from the active set. """
        self.events.put((DEACTIVATE, name))

    def close(self):
        """ signals that no more samples will be posted. The loop ends once the events before it are handled. """
        self.events.put((CLOSED, None))

    def cancel(self):
        """ ends the loop without waiting for it. Safe to call from any thread. """
        self.stop_event.set()

    def loop(self):
        try:
            kind, payload = self.events.get(timeout=self.poll_timeout)
        except Empty:
            return
        self.handle(kind, payload)

    def handle(self, kind, payload):
        if kind == SAMPLE:
            self._fan_out(payload)
        elif kind == DEACTIVATE:
            self._deactivate(payload)
        elif kind == CLOSED:
            logger.debug("sample channel has been closed")
            self.cancel()
        else:
            raise ValueError("unknown dispatch event %r" % kind)

    def _fan_out(self, sample: Sample):
        failed = []
        for name, outputter in self.active.snapshot().items():
            try:
                outputter.output(sample)
            except Exception:
                logger.exception("outputter %s failed", name, extra={"outputter": name})
                failed.append(name)
        # removed before the next event is taken
        for name in failed:
            self._deactivate(name)

    def _deactivate(self, name):
        removed = self.active.discard(name)
        if removed is None:
            logger.debug("outputter %s is not active", name, extra={"outputter": name})
            return
        logger.info("outputter %s deactivated", name, extra={"outputter": name})
        try:
            removed.close()
        except Exception:
            logger.exception("closing outputter %s failed", name, extra={"outputter": name})
        if not len(self.active):
            logger.info("no outputters are alive")
            self.cancel()
            self.on_empty()
