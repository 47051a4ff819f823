import logging
from pathlib import Path
from typing import List, Optional

import typer

from chissoku import __version__, program_name
from chissoku.config.config import load_options
from chissoku.controller import Chissoku
from chissoku.errors import ChissokuError, ConfigurationError
from chissoku.logging_config import configure_logging
from chissoku.output.registry import OUTPUTTERS

logger = logging.getLogger(__name__)

app = typer.Typer(
    name=program_name,
    help="Reads CO2, humidity and temperature from a UD-CO2S sensor and sends them to the outputters.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


def split_names(values: Optional[List[str]]) -> List[str]:
    """ flattens repeated and comma separated option values. """
    names = []
    for value in values or []:
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return names


def build_overrides(output=None, tags=None, port=None, debug=False, quiet=False, stdout_interval=None,
                    mqtt_address=None, mqtt_topic=None, prometheus_port=None) -> dict:
    """ converts the command line options that were given into a configuration layer. """
    overrides = {}
    if output:
        overrides["output"] = split_names(output)
    if tags:
        overrides["tags"] = list(tags)
    if port:
        overrides["port"] = port
    if debug:
        overrides["debug"] = True
    if quiet:
        overrides["quiet"] = True
    if stdout_interval is not None:
        overrides.setdefault("stdout", {})["interval"] = stdout_interval
    if mqtt_address:
        overrides.setdefault("mqtt", {})["address"] = mqtt_address
    if mqtt_topic:
        overrides.setdefault("mqtt", {})["topic"] = mqtt_topic
    if prometheus_port is not None:
        overrides.setdefault("prometheus", {})["port"] = prometheus_port
    return overrides


def _version_callback(value: bool):
    if value:
        typer.echo("%s v%s" % (program_name, __version__))
        raise typer.Exit()


@app.command()
def run(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, readable=True,
        help="Configuration file, applied over ~/.chissoku.cfg.",
    ),
    output: Optional[List[str]] = typer.Option(
        None, "--output", "-o",
        help="Outputters to activate, repeated or comma separated. One of: %s." % ", ".join(
            o.__name__.lower() for o in OUTPUTTERS),
    ),
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag attached to every sample."),
    port: Optional[str] = typer.Option(None, "--port", "-p", help="Serial port, or auto to search by USB id."),
    debug: bool = typer.Option(False, "--debug", help="Log debug messages."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Discard log messages."),
    stdout_interval: Optional[int] = typer.Option(
        None, "--stdout-interval", help="Seconds between stdout outputs, 0 for every sample."),
    mqtt_address: Optional[str] = typer.Option(
        None, "--mqtt-address", help="MQTT broker address such as tcp://localhost:1883."),
    mqtt_topic: Optional[str] = typer.Option(None, "--mqtt-topic", help="MQTT topic to publish to."),
    prometheus_port: Optional[int] = typer.Option(
        None, "--prometheus-port", help="Port for the Prometheus metrics endpoint."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
) -> None:
    """Read the sensor until interrupted."""
    overrides = build_overrides(output, tags, port, debug, quiet, stdout_interval, mqtt_address, mqtt_topic,
                                prometheus_port)
    try:
        options = load_options(config_file=str(config) if config else None, overrides=overrides)
    except ConfigurationError as e:
        configure_logging(debug=debug, quiet=quiet)
        logger.error("%s", e)
        raise typer.Exit(code=1)

    configure_logging(debug=options.debug, quiet=options.quiet)
    logger.debug("start %s v%s", program_name, __version__)
    try:
        Chissoku(options).run()
    except (ChissokuError, OSError) as e:
        logger.error("%s failed: %s", program_name, e)
        raise typer.Exit(code=1)


def main():
    app()
