"""
Line oriented reading and writing over a conduit stream.
"""
import logging

from chissoku.errors import DeviceIOError, ReadTimeoutError

logger = logging.getLogger(__name__)

LINE_DELIMITER = b"\r\n"


def tobytes(arg):
    """
    Converts a string to bytes
    >>> tobytes("abc")
    b'abc'
    >>> tobytes(b"abc")
    b'abc'
    """
    if isinstance(arg, str):
        arg = bytes(arg, encoding='ascii')
    return arg


def write_line(stream, text):
    """
    Writes text followed by the line delimiter.
    :raises DeviceIOError: when the underlying stream fails
    """
    data = tobytes(text) + LINE_DELIMITER
    try:
        stream.write(data)
    except (OSError, ValueError) as e:
        raise DeviceIOError("unable to write %r: %s" % (data, e)) from e


def read_line(stream) -> str:
    """
    Reads one line and returns it without the line delimiter.
    Serial streams return what they have when the read timeout expires, so a line with no newline is
    treated as a timeout.
    :raises ReadTimeoutError: no complete line arrived within the stream's timeout
    :raises DeviceIOError: the underlying stream failed
    """
    try:
        raw = stream.readline()
    except (OSError, ValueError) as e:
        raise DeviceIOError("unable to read: %s" % e) from e
    if not raw.endswith(b"\n"):
        raise ReadTimeoutError("timed out waiting for a line, received %r" % raw)
    return raw.decode('ascii', errors='replace').rstrip("\r\n")
