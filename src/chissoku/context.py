"""
State shared by everything taking part in a run: the options, the cancellation signal and the way for an
outputter to take itself out of service.
"""
import logging
import threading

from chissoku.support.events import EventSource

logger = logging.getLogger(__name__)


class RunContext:
    """
    :param options: the validated run options
    :param deactivate: called with an outputter name when that outputter can no longer operate
    """

    def __init__(self, options=None, deactivate=None):
        self.options = options
        self._deactivate = deactivate
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self.cancel_listeners = EventSource()

    def deactivate(self, name):
        """ reports that the named outputter has failed and should no longer receive samples. """
        logger.info("deactivating outputter %s", name, extra={"outputter": name})
        if self._deactivate is not None:
            self._deactivate(name)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self):
        """ cancels the context and notifies the cancel listeners. Only the first call has any effect. """
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
        self.cancel_listeners.fire()
