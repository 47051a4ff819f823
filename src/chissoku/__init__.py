"""
chissoku reads CO2 concentration, humidity and temperature from an I-O DATA UD-CO2S sensor and sends each
reading to standard output, an MQTT broker or a Prometheus endpoint.

- conduit: the serial port the sensor is attached to, found by its USB vendor/product identifiers.
- protocol: the sensor's line protocol. A handshake of STP, ID? and STA puts the sensor into a known
  streaming state, after which one telemetry line arrives each second.
- output: the outputters. The active set is chosen in the configuration and shrinks as outputters fail.
- dispatch: a background loop that hands each sample to the active outputters.
- shutdown: closes the outputters and stops the sensor exactly once, whether triggered by an interrupt,
  a read failure or the last outputter failing.

## Threading

The main thread performs the handshake and then reads telemetry. Samples are posted to the dispatch
loop, which runs on its own daemon thread and is the only code that changes the active set. Outputters
with an interval run a small thread of their own. SIGINT is handled on the main thread; after the
first interrupt the process has a second to see the sensor's stop echo before it exits regardless.
"""

__version__ = "0.1.0"

program_name = "chissoku"
