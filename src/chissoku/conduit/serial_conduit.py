"""
Implements a conduit over a serial port, and finds the port the UD-CO2S sensor is attached to.
"""

import logging

import serial
from serial.tools import list_ports

from chissoku.conduit.base import Conduit
from chissoku.errors import DiscoveryError

logger = logging.getLogger(__name__)

# USB identifiers of the I-O DATA UD-CO2S
UDCO2S_VID = 0x04D8
UDCO2S_PID = 0xE95A

BAUD_RATE = 115200
READ_TIMEOUT = 10
WRITE_TIMEOUT = 1


class SerialConduit(Conduit):
    """
    A conduit that provides comms via a serial port.
    """

    def __init__(self, ser: serial.Serial):
        self.ser = ser
        # patch flushing since this causes a lockup if the serial is disconnected during
        # the flush.
        ser.flush = self._no_flush

    def _no_flush(self, *args, **kwargs):
        pass

    @property
    def target(self):
        return self.ser

    @property
    def input(self):
        return self.ser

    @property
    def output(self):
        return self.ser

    @property
    def open(self) -> bool:
        return self.ser.is_open

    def close(self):
        self.ser.close()


def serial_port_info():
    """
    :return: a tuple of ListPortInfo for every serial port on the system
    """
    return tuple(list_ports.comports())


def is_udco2s(port) -> bool:
    """
    Determines if the given port info describes a UD-CO2S.
    Ports that are not USB devices have no vid/pid and never match.
    """
    return port.vid == UDCO2S_VID and port.pid == UDCO2S_PID


def find_udco2s(ports=None) -> str:
    """
    Looks for the first serial port with the UD-CO2S USB vendor and product identifiers.
    :param ports: the port infos to search. Defaults to all serial ports on the system.
    :return: the device name of the port, such as /dev/ttyACM0 or COM3
    :raises DiscoveryError: when no port matches
    """
    if ports is None:
        ports = serial_port_info()
    for port in ports:
        if is_udco2s(port):
            logger.debug("found UD-CO2S on %s (%s)", port.device, port.hwid)
            return port.device
    raise DiscoveryError("UD-CO2S not found in available ports %s" % [p.device for p in ports])


def detect_port(port):
    """
    attempts to detect the given serial port. If the port is not auto, it is returned as is.
    otherwise, the port the UD-CO2S is attached to is returned.
    """
    if not port or port == "auto":
        return find_udco2s()
    return port


def open_serial_conduit(port, baudrate=BAUD_RATE, timeout=READ_TIMEOUT, write_timeout=WRITE_TIMEOUT) -> SerialConduit:
    """
    Opens the serial port with the UD-CO2S line settings: 8 data bits, no parity, 1 stop bit.
    Remaining arguments are passed directly to `serial.Serial`.
    """
    ser = serial.Serial(port, baudrate=baudrate, bytesize=serial.EIGHTBITS, parity=serial.PARITY_NONE,
                        stopbits=serial.STOPBITS_ONE, timeout=timeout, write_timeout=write_timeout)
    return SerialConduit(ser)
