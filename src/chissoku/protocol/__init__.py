"""
The line based protocol spoken by the UD-CO2S: command/acknowledgement handshake followed by a stream of
telemetry lines.
"""
