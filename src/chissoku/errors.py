"""
Exceptions raised by chissoku. Everything derives from ChissokuError so the command line can report
expected failures without a traceback.
"""


class ChissokuError(Exception):
    """ Base class for chissoku errors. """


class DiscoveryError(ChissokuError):
    """ No serial port carries the expected device. """


class DeviceIOError(ChissokuError, IOError):
    """ Reading from or writing to the device failed. """


class ReadTimeoutError(DeviceIOError):
    """ The device did not send a complete line within the read timeout. """


class ProtocolError(ChissokuError):
    """ The device rejected a command or answered with something unexpected. """

    def __init__(self, message, command=None):
        super().__init__(message)
        self.command = command


class ConfigurationError(ChissokuError):
    """ The options are invalid or leave no outputter to send samples to. """
