"""
Outputters receive each sample read from the device and send it somewhere: standard output, an MQTT broker
or a Prometheus scrape endpoint.

Every outputter is created at startup. Those named in the options are initialized and form the active set,
which only ever shrinks as outputters fail and deactivate themselves.
"""
