"""
Driver for the I-O DATA UD-CO2S CO2/humidity/temperature sensor.

The device speaks CRLF terminated ASCII lines. Commands are acknowledged with a line starting ``OK``
or rejected with one starting ``NG``. Once streaming is started the device sends one telemetry line
a second, such as ``CO2=1234,HUM=45.6,TMP=23.4``.
"""
import logging
import re
import time
from enum import Enum
from typing import Callable

from chissoku.conduit.base import Conduit
from chissoku.data import Sample
from chissoku.errors import DeviceIOError, ProtocolError, ReadTimeoutError
from chissoku.protocol.io import read_line, write_line

logger = logging.getLogger(__name__)

COMMAND_STP = "STP"     # stop streaming
COMMAND_ID = "ID?"      # identify
COMMAND_STA = "STA"     # start streaming
RESPONSE_OK = "OK"
RESPONSE_NG = "NG"

# the acknowledgement of STP, which ends a session
STOP_ECHO = RESPONSE_OK + " " + COMMAND_STP

HANDSHAKE = (COMMAND_STP, COMMAND_ID, COMMAND_STA)

# the device needs this long after a command before it answers
SETTLE_DELAY = 0.1
RESPONSE_TIMEOUT = 10

TELEMETRY = re.compile(r"CO2=(\d+),HUM=([0-9.]+),TMP=([0-9.-]+)")


class DeviceState(Enum):
    UNKNOWN = "unknown"
    READY = "ready"
    FAILED = "failed"


def _parse(convert, text, default):
    try:
        return convert(text)
    except ValueError:
        return default


def parse_sample(text: str, tags=None):
    """
    Builds a sample from the first telemetry match in a line.
    Fields that match the pattern but still fail to convert (such as ``1.2.3``) are left as zero.
    :return: the sample, or None when the line holds no telemetry
    """
    m = TELEMETRY.search(text)
    if m is None:
        return None
    return Sample(co2=_parse(int, m.group(1), 0),
                  humidity=_parse(float, m.group(2), 0.0),
                  temperature=_parse(float, m.group(3), 0.0),
                  tags=tags)


def is_stop_echo(text: str) -> bool:
    """
    >>> is_stop_echo("OK STP")
    True
    >>> is_stop_echo("OK")
    False
    """
    return len(text) >= len(STOP_ECHO) and text[:len(STOP_ECHO)] == STOP_ECHO


def response_kind(text: str):
    """
    Classifies a line received while waiting for a command response.
    :return: RESPONSE_OK, RESPONSE_NG or None for anything else, including lines too short to tell.
    """
    if len(text) < 2:
        return None
    prefix = text[:2]
    return prefix if prefix in (RESPONSE_OK, RESPONSE_NG) else None


class UDCO2S:
    """
    Brings the device into a known streaming state and then reads telemetry from it.

    :param conduit: the open channel to the device
    :param tags: tags attached to every sample read
    :param settle_delay: seconds to wait after each handshake command
    :param response_timeout: the longest time to wait for a command to be acknowledged
    """

    def __init__(self, conduit: Conduit, tags=None, settle_delay=SETTLE_DELAY, response_timeout=RESPONSE_TIMEOUT,
                 sleep=time.sleep, clock=time.monotonic):
        self.conduit = conduit
        self.tags = tags if tags is not None else []
        self.settle_delay = settle_delay
        self.response_timeout = response_timeout
        self.state = DeviceState.UNKNOWN
        self.identity = None
        self._sleep = sleep
        self._clock = clock

    def send(self, command):
        logger.debug("sending command %s", command, extra={"command": command})
        write_line(self.conduit.output, command)

    def handshake(self):
        """
        Sends STP, ID? and STA in turn, waiting for each to be acknowledged.
        There are no retries; the state is left as FAILED on the first error.
        :raises ProtocolError: the device rejected a command
        :raises DeviceIOError: a read timed out or a write failed
        """
        done = []
        try:
            for command in HANDSHAKE:
                done.append(command)
                self.send(command)
                self._sleep(self.settle_delay)
                response = self._await_response(command)
                if command == COMMAND_ID:
                    self.identity = response[len(RESPONSE_OK):].strip()
        except (DeviceIOError, ProtocolError) as e:
            self.state = DeviceState.FAILED
            logger.error("prepare UD-CO2S failed after %s: %s", done, e)
            raise
        self.state = DeviceState.READY
        logger.info("prepared UD-CO2S %s with %s", self.identity, done)

    def _await_response(self, command) -> str:
        deadline = self._clock() + self.response_timeout
        while True:
            text = read_line(self.conduit.input)
            kind = response_kind(text)
            if kind == RESPONSE_OK:
                return text
            if kind == RESPONSE_NG:
                raise ProtocolError("command `%s` failed: %s" % (command, text), command)
            logger.debug("ignoring %r while waiting for %s", text, command)
            if self._clock() > deadline:
                raise ReadTimeoutError("no response to command `%s`" % command)

    def read_loop(self, emit: Callable[[Sample], None], on_failure: Callable[[], None]=None):
        """
        Reads telemetry until the device echoes the stop command, a read fails or the conduit is closed.
        :param emit: called with each sample, in the order read
        :param on_failure: called when a read fails, before the error is raised
        :raises DeviceIOError: a read failed or timed out
        """
        conduit = self.conduit
        while conduit.open:
            try:
                text = read_line(conduit.input)
            except DeviceIOError as e:
                if not conduit.open:
                    logger.debug("conduit closed while reading")
                    return
                logger.error("read from device failed: %s", e)
                if on_failure is not None:
                    on_failure()
                raise
            sample = parse_sample(text, self.tags)
            if sample is not None:
                emit(sample)
            elif is_stop_echo(text):
                logger.info("device stopped streaming")
                return
            else:
                logger.warning("read unmatched line %r", text, extra={"line": text})

    def stop(self):
        """ asks the device to stop streaming. The device answers with the stop echo. """
        if self.conduit.open:
            self.send(COMMAND_STP)
