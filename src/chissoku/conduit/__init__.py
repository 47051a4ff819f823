"""
The conduit package provides an abstraction of a bi-directional stream to the device.
The concrete implementation is a serial port, found by looking for the device's USB identifiers.
"""
