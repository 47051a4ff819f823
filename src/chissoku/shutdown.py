"""
Coordinated shutdown: the release sequence, run once whichever trigger fires first, and the interrupt
handler that arms a deadline in case the device never answers.
"""
import logging
import os
import signal
import threading
from typing import Callable

from chissoku.context import RunContext
from chissoku.output.registry import ActiveOutputters

logger = logging.getLogger(__name__)

# exit status when the device did not confirm it stopped in time
NO_RESPONSE_EXIT = 128
INTERRUPT_DEADLINE = 1.0


class ShutdownCoordinator:
    """
    Runs the release sequence exactly once:

    1. cancel the run context
    2. close every active outputter
    3. ask the device to stop streaming

    Every step is attempted even when an earlier one fails. Calls after the first return straight away,
    without waiting for the first to finish, so shutdown() is safe to call from a signal handler.

    :param stop_device: sends the stop command to the device, if it is connected
    """

    def __init__(self, context: RunContext, active: ActiveOutputters, stop_device: Callable[[], None]=None):
        self.context = context
        self.active = active
        self.stop_device = stop_device
        self._latch = threading.Lock()

    @property
    def triggered(self) -> bool:
        return self._latch.locked()

    def shutdown(self) -> bool:
        """
        :return: True if this call ran the release sequence, False if an earlier call did
        """
        if not self._latch.acquire(blocking=False):
            return False
        logger.debug("shutting down")
        try:
            self.context.cancel()
        except Exception:
            logger.exception("cancelling the run failed")

        for name, outputter in self.active.snapshot().items():
            try:
                outputter.close()
            except Exception:
                logger.exception("closing outputter %s failed", name, extra={"outputter": name})

        if self.stop_device is not None:
            try:
                self.stop_device()
            except Exception as e:
                # the device may already be gone
                logger.debug("stopping the device failed: %s", e)
        return True

    __call__ = shutdown


class InterruptHandler:
    """
    Shuts down on the first interrupt, then gives the process `deadline` seconds to finish before exiting
    with NO_RESPONSE_EXIT. A second interrupt exits with that status at once.
    """

    def __init__(self, shutdown: Callable[[], object], deadline=INTERRUPT_DEADLINE, exit=os._exit,
                 timer_factory=threading.Timer):
        self.shutdown = shutdown
        self.deadline = deadline
        self.exit = exit
        self.timer_factory = timer_factory
        self.interrupts = 0
        self.timer = None
        self._previous = None
        self._signum = None

    def install(self, signum=signal.SIGINT):
        self._signum = signum
        self._previous = signal.signal(signum, self)

    def restore(self):
        """ cancels any pending deadline and puts back the previous signal handler. """
        timer = self.timer
        if timer is not None:
            timer.cancel()
        if self._signum is not None:
            signal.signal(self._signum, self._previous)
            self._signum = None

    def __call__(self, signum, frame):
        self.interrupts += 1
        if self.interrupts > 1:
            logger.error("interrupted again, exiting")
            self.exit(NO_RESPONSE_EXIT)
            return
        logger.info("interrupted, shutting down")
        self.shutdown()
        timer = self.timer_factory(self.deadline, self._expired)
        timer.daemon = True
        self.timer = timer
        timer.start()

    def _expired(self):
        logger.error("No response from device")
        self.exit(NO_RESPONSE_EXIT)
