"""
The table of outputters built into chissoku, and the active set chosen from it.
"""
import logging
from types import MappingProxyType
from typing import Mapping

from chissoku.context import RunContext
from chissoku.errors import ChissokuError, ConfigurationError
from chissoku.output.base import Outputter
from chissoku.output.mqtt import Mqtt
from chissoku.output.prometheus import Prometheus
from chissoku.output.stdout import Stdout

logger = logging.getLogger(__name__)

# every outputter, in the order they are listed to the user
OUTPUTTERS = (Stdout, Mqtt, Prometheus)


def available_outputters(factories=OUTPUTTERS) -> Mapping[str, Outputter]:
    """
    Creates one instance of each outputter.
    :return: a read-only mapping of lower-case name to outputter
    """
    available = {}
    for factory in factories:
        outputter = factory()
        name = outputter.name.lower()
        if name in available:
            raise ValueError("duplicate outputter name %s" % name)
        available[name] = outputter
    return MappingProxyType(available)


def activate_outputters(available: Mapping[str, Outputter], names, context: RunContext) -> Mapping[str, Outputter]:
    """
    Initializes the outputters named, in the order given. Names of unknown outputters are skipped,
    as are outputters that fail to initialize.
    :return: a read-only mapping of the outputters that initialized
    :raises ConfigurationError: when no outputter could be activated
    """
    active = {}
    for name in names:
        name = name.strip().lower()
        outputter = available.get(name)
        if outputter is None:
            logger.debug("ignoring unknown outputter %s", name, extra={"outputter": name})
            continue
        if name in active:
            continue
        try:
            outputter.initialize(context)
        except (OSError, ChissokuError) as e:
            logger.error("initializing outputter %s failed: %s", name, e, extra={"outputter": name})
            outputter.close()
            continue
        active[name] = outputter
    if not active:
        raise ConfigurationError("no active outputters are available")
    logger.info("active outputters: %s", ", ".join(active))
    return MappingProxyType(active)


class ActiveOutputters:
    """
    Holds the current active set as a read-only mapping. Changes publish a new mapping rather than
    modifying the current one, so a snapshot taken by a reader never changes under it.
    Only the dispatch engine calls discard().
    """

    def __init__(self, active: Mapping[str, Outputter]=None):
        self._current = MappingProxyType(dict(active or {}))

    def snapshot(self) -> Mapping[str, Outputter]:
        return self._current

    def publish(self, active: Mapping[str, Outputter]):
        """ replaces the active set. Used once at startup; afterwards the set only shrinks through discard(). """
        self._current = MappingProxyType(dict(active))

    def discard(self, name):
        """
        Publishes a new active set without the named outputter.
        :return: the outputter removed, or None if it was not active
        """
        current = self._current
        removed = current.get(name)
        if removed is not None:
            self._current = MappingProxyType({k: v for k, v in current.items() if k != name})
        return removed

    def __len__(self):
        return len(self._current)

    def __contains__(self, name):
        return name in self._current
