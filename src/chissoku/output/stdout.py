import logging
import sys

from chissoku.data import Sample
from chissoku.output.base import IntervalOutputter

logger = logging.getLogger(__name__)


class Stdout(IntervalOutputter):
    """
    Writes each sample as a line of JSON to standard output.
    """

    interval = 60

    def __init__(self, stream=None):
        super().__init__()
        self.stream = stream
        self._failed = False

    def emit(self, sample: Sample):
        if self._failed:
            return
        stream = self.stream if self.stream is not None else sys.stdout
        try:
            stream.write(sample.to_json() + "\n")
            stream.flush()
        except (OSError, ValueError) as e:
            self._failed = True
            logger.error("writing to stdout failed: %s", e, extra={"outputter": self.name})
            self.deactivate()
