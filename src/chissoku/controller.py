"""
The chissoku run: activate the outputters, find and prepare the device, then read samples and dispatch them
until the device stops, a read fails or every outputter has gone.
"""
import logging

from chissoku.conduit.serial_conduit import detect_port, open_serial_conduit
from chissoku.config.config import Options, configure_outputters
from chissoku.context import RunContext
from chissoku.dispatch import DispatchEngine
from chissoku.output.registry import ActiveOutputters, activate_outputters, available_outputters
from chissoku.protocol.udco2s import UDCO2S
from chissoku.shutdown import InterruptHandler, ShutdownCoordinator

logger = logging.getLogger(__name__)


class Chissoku:
    """
    Ties the device, the dispatch engine and the outputters together for one run.

    :param options: the run options
    :param outputters: the available outputters by name. Defaults to one of each built in outputter.
    :param open_conduit: opens the conduit to the device given its port
    :param detect: resolves the configured port to a device port
    :param interrupt_handler: handles SIGINT. Defaults to an InterruptHandler calling shutdown.
    """

    dispatch_join_timeout = 5

    def __init__(self, options: Options, outputters=None, open_conduit=open_serial_conduit, detect=detect_port,
                 interrupt_handler=None):
        self.options = options
        self.available = outputters if outputters is not None else available_outputters()
        self.open_conduit = open_conduit
        self.detect = detect

        self.active = ActiveOutputters()
        self.context = RunContext(options, deactivate=self._deactivate)
        self.coordinator = ShutdownCoordinator(self.context, self.active, self._stop_device)
        self.dispatcher = DispatchEngine(self.active, self.coordinator.shutdown)
        self.context.cancel_listeners += self.dispatcher.cancel
        self.interrupts = interrupt_handler if interrupt_handler is not None \
            else InterruptHandler(self.coordinator.shutdown)

        self.conduit = None
        self.device = None

    def _deactivate(self, name):
        self.dispatcher.deactivate(name)

    def _stop_device(self):
        device = self.device
        if device is not None:
            device.stop()

    def activate(self):
        """
        Configures and initializes the outputters named in the options.
        :raises ConfigurationError: none could be activated
        """
        configure_outputters(self.available, self.options)
        self.active.publish(activate_outputters(self.available, self.options.output, self.context))

    def connect(self):
        """ finds the device, opens the serial port and performs the handshake. """
        port = self.detect(self.options.port)
        logger.info("found UD-CO2S", extra={"port": port})
        self.conduit = self.open_conduit(port)
        self.device = UDCO2S(self.conduit, tags=self.options.tags)
        self.device.handshake()

    def run(self):
        """
        Runs until the device echoes the stop command or the serial port is closed.
        Outputters are always closed and the serial port released before returning.
        :raises ChissokuError: on configuration, discovery, handshake or read failures
        """
        try:
            self.activate()
            self.connect()
            self.interrupts.install()
            self.dispatcher.start()
            self.device.read_loop(self.dispatcher.post, on_failure=self.coordinator.shutdown)
        finally:
            self.finish()

    def finish(self):
        self.dispatcher.close()
        self.dispatcher.join(self.dispatch_join_timeout)
        self.coordinator.shutdown()
        self.interrupts.restore()
        if self.conduit is not None:
            logger.debug("closing serial port")
            self.conduit.close()
            self.conduit = None
