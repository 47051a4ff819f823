"""
The data read from the sensor.
"""
import json
from datetime import datetime

from chissoku.support.mixins import CommonEqualityMixin, StringerMixin


def iso8601(timestamp: datetime) -> str:
    """
    Formats a timestamp with millisecond precision and the UTC offset.
    >>> from datetime import timezone, timedelta
    >>> iso8601(datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone(timedelta(hours=9))))
    '2024-01-02T03:04:05.678+09:00'
    """
    return timestamp.isoformat(timespec='milliseconds')


class Sample(CommonEqualityMixin, StringerMixin):
    """
    One reading from the sensor.

    :param co2: CO2 concentration in ppm
    :param humidity: relative humidity in percent
    :param temperature: temperature in degrees Celsius
    :param timestamp: when the reading was parsed. Defaults to now, in local time.
    :param tags: the tags configured for this run. The same list is shared by every sample.
    """

    def __init__(self, co2: int=0, humidity: float=0.0, temperature: float=0.0, timestamp: datetime=None,
                 tags=None):
        self.co2 = co2
        self.humidity = humidity
        self.temperature = temperature
        self.timestamp = timestamp or datetime.now().astimezone()
        self.tags = tags if tags is not None else []

    def to_dict(self) -> dict:
        result = {
            "co2": self.co2,
            "humidity": self.humidity,
            "temperature": self.temperature,
            "timestamp": iso8601(self.timestamp),
        }
        if self.tags:
            result["tags"] = list(self.tags)
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
