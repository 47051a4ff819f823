import logging

from prometheus_client import CollectorRegistry, Gauge, start_http_server

from chissoku.context import RunContext
from chissoku.data import Sample
from chissoku.output.base import Outputter

logger = logging.getLogger(__name__)


class Prometheus(Outputter):
    """
    Exposes the latest sample as gauges on a /metrics endpoint for Prometheus to scrape.
    The gauges live in a registry owned by this instance, created in initialize and dropped on close.

    Every gauge has one label, `tag`: the sample's tags joined with ",". A run without tags reports `tag=""`.
    start_http_server returns the server and its thread from prometheus-client 0.20.
    """

    port = 9090

    def __init__(self):
        super().__init__()
        self.registry = None
        self.server = None
        self.gauges = {}

    def initialize(self, context: RunContext):
        super().initialize(context)
        registry = CollectorRegistry()
        self.gauges = {
            "co2": Gauge("co2", "CO2 concentration", ["tag"], registry=registry),
            "humidity": Gauge("humidity", "Humidity", ["tag"], registry=registry),
            "temperature": Gauge("temperature", "Temperature", ["tag"], registry=registry),
        }
        self.server, _ = start_http_server(int(self.port), registry=registry)
        self.registry = registry
        logger.info("serving metrics on port %s", self.port, extra={"outputter": self.name})

    def output(self, sample: Sample):
        if self.registry is None:
            return
        tag = ",".join(sample.tags)
        self.gauges["co2"].labels(tag=tag).set(sample.co2)
        self.gauges["humidity"].labels(tag=tag).set(sample.humidity)
        self.gauges["temperature"].labels(tag=tag).set(sample.temperature)

    def close(self):
        server = self.server
        self.server = None
        self.registry = None
        if server is None:
            return
        try:
            server.shutdown()
            server.server_close()
        except OSError as e:
            logger.warning("stopping metrics server failed: %s", e, extra={"outputter": self.name})
