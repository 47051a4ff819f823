"""
Runs a function over and over on a background thread until asked to stop.
"""
import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class BackgroundLoop:
    """ Continually runs a given function on a background thread.
        Exceptions are logged and passed to exception_handler, after which the loop carries on.
        The background thread is registered as a daemon so a stuck loop never holds up process exit.
    """

    def __init__(self, fn: Callable=None, args=(), name=None, log=logger):
        """
        :param fn the function to run on each pass of the loop
        :param args arguments to pass to fn
        :param name the name given to the background thread
        """
        self.fn = fn
        self.args = args
        self.name = name
        self.stop_event = threading.Event()
        self.background_thread = None
        self.logger = log
        self._start_lock = threading.Lock()

    def start(self):
        """
        Starts the background thread. Calling start on a running loop does nothing.
        """
        with self._start_lock:
            if self.background_thread is None:
                t = threading.Thread(target=self._run, name=self.name, daemon=True)
                self.background_thread = t
                t.start()

    def exception_handler(self, e):
        self.logger.exception(e)

    def _run(self):
        """ The processing loop for the background thread.
             Invokes the callable for as long as the stop signal is not received.
        """
        self._do(self.startup)
        while self.running():
            self._do(self.loop)
        self._do(self.shutdown)
        self.logger.debug("background thread %s exiting", self.name)

    def _do(self, callme):
        """ runs a function and captures any exceptions """
        try:
            callme()
        except Exception as e:
            self.exception_handler(e)

    def startup(self):
        """ template method called when the thread starts"""
        pass

    def loop(self):
        self.fn(*self.args)

    def shutdown(self):
        """ template method called when the thread exits """
        pass

    def running(self):
        return not self.stop_event.is_set()

    def stop(self, timeout=None):
        """
        Signals the loop to stop and waits for the thread to finish, unless called from the loop itself.
        :param timeout: the longest time to wait for the thread, in seconds. None waits indefinitely.
        """
        self.stop_event.set()
        thread = self.background_thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout)

    def join(self, timeout=None):
        thread = self.background_thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout)
