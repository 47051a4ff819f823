import json
import unittest
from unittest.mock import Mock, patch

import paho.mqtt.client as mqtt
from hamcrest import assert_that, calling, is_, raises

from chissoku.context import RunContext
from chissoku.data import Sample
from chissoku.errors import ConfigurationError
from chissoku.output.mqtt import Mqtt, parse_address


def make_mqtt(**settings):
    sut = Mqtt()
    sut.address = "tcp://broker:1883"
    sut.topic = "home/co2"
    sut.interval = 0
    for k, v in settings.items():
        setattr(sut, k, v)
    return sut


class ParseAddressTest(unittest.TestCase):

    def test_schemes(self):
        assert_that(parse_address("tcp://broker:1884"), is_(("broker", 1884, "tcp", False, "")))
        assert_that(parse_address("mqtts://broker"), is_(("broker", 8883, "tcp", True, "")))
        assert_that(parse_address("wss://broker/mqtt"), is_(("broker", 443, "websockets", True, "/mqtt")))

    def test_unsupported(self):
        assert_that(calling(parse_address).with_args("http://broker"), raises(ConfigurationError))
        assert_that(calling(parse_address).with_args("broker:1883"), raises(ConfigurationError))


@patch('chissoku.output.mqtt.mqtt.Client')
class MqttTest(unittest.TestCase):

    def test_initialize_connects(self, client_class):
        sut = make_mqtt(username="user", password="secret", client_id="sensor-1")
        sut.initialize(RunContext())
        client = client_class.return_value
        client_class.assert_called_once_with(mqtt.CallbackAPIVersion.VERSION2, client_id="sensor-1",
                                             transport="tcp")
        client.username_pw_set.assert_called_once_with("user", "secret")
        client.tls_set.assert_not_called()
        client.connect.assert_called_once_with("broker", 1883, keepalive=60)
        client.loop_start.assert_called_once()
        sut.close()

    def test_tls(self, client_class):
        sut = make_mqtt(address="ssl://broker")
        sut.initialize(RunContext())
        client_class.return_value.tls_set.assert_called_once()
        client_class.return_value.connect.assert_called_once_with("broker", 8883, keepalive=60)
        sut.close()

    def test_missing_settings_fail(self, client_class):
        assert_that(calling(make_mqtt(address="").initialize).with_args(RunContext()),
                    raises(ConfigurationError, "address"))
        assert_that(calling(make_mqtt(topic="").initialize).with_args(RunContext()),
                    raises(ConfigurationError, "topic"))
        client_class.assert_not_called()

    def test_unreachable_broker_fails(self, client_class):
        client_class.return_value.connect.side_effect = ConnectionRefusedError("refused")
        sut = make_mqtt()
        assert_that(calling(sut.initialize).with_args(RunContext()), raises(OSError))
        sut.close()

    def test_publishes_json(self, client_class):
        client = client_class.return_value
        client.publish.return_value = Mock(rc=mqtt.MQTT_ERR_SUCCESS)
        sut = make_mqtt(qos=1)
        sut.initialize(RunContext())
        sample = Sample(co2=900, humidity=50.0, temperature=25.0, tags=["a"])
        sut.output(sample)
        topic, payload = client.publish.call_args[0]
        assert_that(topic, is_("home/co2"))
        assert_that(json.loads(payload)["co2"], is_(900))
        assert_that(client.publish.call_args[1], is_({"qos": 1}))
        sut.close()

    def test_deactivates_after_consecutive_failures(self, client_class):
        client = client_class.return_value
        failed = Mock(rc=mqtt.MQTT_ERR_NO_CONN)
        ok = Mock(rc=mqtt.MQTT_ERR_SUCCESS)
        client.publish.side_effect = [failed, failed, ok, failed, failed, failed, failed]
        deactivate = Mock()
        sut = make_mqtt(max_failures=3)
        sut.initialize(RunContext(deactivate=deactivate))
        for _ in range(5):
            sut.output(Sample())
        deactivate.assert_not_called()
        sut.output(Sample())
        deactivate.assert_called_once_with("mqtt")
        sut.output(Sample())
        deactivate.assert_called_once_with("mqtt")
        sut.close()

    def test_close_disconnects_once(self, client_class):
        client = client_class.return_value
        sut = make_mqtt()
        sut.initialize(RunContext())
        sut.close()
        sut.close()
        client.disconnect.assert_called_once()
        client.loop_stop.assert_called_once()

    def test_connect_callbacks_log(self, client_class):
        sut = make_mqtt()
        sut._on_connect(None, None, None, Mock(is_failure=True), None)
        sut._on_connect(None, None, None, Mock(is_failure=False), None)
        sut._on_disconnect(None, None, None, Mock(), None)
