import logging
import threading
from abc import abstractmethod

from chissoku.context import RunContext
from chissoku.data import Sample
from chissoku.support.loop import BackgroundLoop

logger = logging.getLogger(__name__)


class Outputter:
    """
    A destination for samples.

    Subclasses must keep output() from blocking for long: it is called on the dispatch thread, and every other
    outputter waits for it. An outputter that cannot deliver should drop the sample, and call deactivate()
    once it knows it will never succeed again.
    """

    def __init__(self):
        self.context = None

    @property
    def name(self) -> str:
        """ the unique name of this outputter, used to select it in the options. """
        return type(self).__name__.lower()

    def initialize(self, context: RunContext):
        """
        Prepares the outputter before it receives samples.
        :raises OSError: the outputter cannot operate and should not be activated
        """
        self.context = context

    @abstractmethod
    def output(self, sample: Sample):
        raise NotImplementedError

    def close(self):
        """ releases resources. Safe to call more than once, and never raises. """
        pass

    def deactivate(self):
        """ takes this outputter out of the active set. """
        if self.context is not None:
            self.context.deactivate(self.name)

    def __repr__(self):
        return "<%s outputter>" % self.name


class IntervalOutputter(Outputter):
    """
    Sends the most recent sample every `interval` seconds from a background thread, or sends each sample
    straight away when the interval is 0.
    A sample is sent at most once; ticks with no new sample send nothing.
    """

    interval = 60

    def __init__(self):
        super().__init__()
        self._current = None
        self._ticker = None
        self._close_lock = threading.Lock()
        self._closed = False

    def initialize(self, context: RunContext):
        super().initialize(context)
        self.open()
        if self.interval > 0:
            self._ticker = BackgroundLoop(self._tick, name="%s-interval" % self.name)
            self._ticker.start()

    def output(self, sample: Sample):
        if self._closed:
            return
        if self._ticker is None:
            self.emit(sample)
        else:
            self._current = sample

    def _tick(self):
        if self._ticker.stop_event.wait(self.interval):
            return
        sample, self._current = self._current, None
        if sample is not None:
            self.emit(sample)

    def close(self):
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        if self._ticker is not None:
            self._ticker.stop(timeout=1)
        try:
            self.release()
        except Exception as e:
            logger.warning("closing %s failed: %s", self.name, e, extra={"outputter": self.name})

    def open(self):
        """ template method to acquire resources during initialize. """
        pass

    def release(self):
        """ template method to release the resources acquired in open. """
        pass

    @abstractmethod
    def emit(self, sample: Sample):
        """ sends one sample. """
        raise NotImplementedError
