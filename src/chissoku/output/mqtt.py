import logging
from urllib.parse import urlsplit

import paho.mqtt.client as mqtt

from chissoku.data import Sample
from chissoku.errors import ConfigurationError
from chissoku.output.base import IntervalOutputter

logger = logging.getLogger(__name__)

# scheme: (transport, tls, default port)
schemes = {
    "tcp": ("tcp", False, 1883),
    "mqtt": ("tcp", False, 1883),
    "ssl": ("tcp", True, 8883),
    "tls": ("tcp", True, 8883),
    "mqtts": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}


def parse_address(address):
    """
    Splits a broker address into its connection settings.
    >>> parse_address("tcp://broker:1884")
    ('broker', 1884, 'tcp', False, '')
    >>> parse_address("ssl://broker")
    ('broker', 8883, 'tcp', True, '')
    """
    url = urlsplit(address)
    if url.scheme not in schemes or not url.hostname:
        raise ConfigurationError("unsupported MQTT broker address '%s'" % address)
    transport, tls, default_port = schemes[url.scheme]
    return url.hostname, url.port or default_port, transport, tls, url.path


class Mqtt(IntervalOutputter):
    """
    Publishes each sample as JSON to a topic on an MQTT broker.

    The paho network loop runs on its own thread and reconnects by itself; publish() never blocks.
    After max_failures publishes in a row fail, the broker is considered lost and the outputter deactivates.
    """

    address = ""
    topic = ""
    client_id = "chissoku"
    username = ""
    password = ""
    qos = 0
    interval = 60
    max_failures = 3
    keepalive = 60

    def __init__(self):
        super().__init__()
        self.client = None
        self._failures = 0

    def open(self):
        if not self.address:
            raise ConfigurationError("mqtt address is not set")
        if not self.topic:
            raise ConfigurationError("mqtt topic is not set")
        host, port, transport, tls, path = parse_address(self.address)

        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=self.client_id, transport=transport)
        if self.username:
            client.username_pw_set(self.username, self.password or None)
        if tls:
            client.tls_set()
        if transport == "websockets" and path:
            client.ws_set_options(path=path)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.connect(host, port, keepalive=self.keepalive)
        client.loop_start()
        self.client = client
        logger.info("connecting to MQTT broker %s:%d", host, port, extra={"outputter": self.name})

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error("MQTT connection refused: %s", reason_code, extra={"outputter": self.name})
        else:
            logger.debug("MQTT connected", extra={"outputter": self.name})

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        logger.warning("MQTT disconnected: %s", reason_code, extra={"outputter": self.name})

    def emit(self, sample: Sample):
        info = self.client.publish(self.topic, sample.to_json(), qos=int(self.qos))
        if info.rc == mqtt.MQTT_ERR_SUCCESS:
            self._failures = 0
            return
        self._failures += 1
        logger.warning("MQTT publish failed (%d/%d): %s", self._failures, int(self.max_failures),
                       mqtt.error_string(info.rc), extra={"outputter": self.name})
        if self._failures == int(self.max_failures):
            self.deactivate()

    def release(self):
        client = self.client
        self.client = None
        if client is not None:
            client.disconnect()
            client.loop_stop()
