"""
Configuration built on top of ConfigObj. Configuration files are layered - packaged defaults, the user's
file, a file named on the command line and finally command line options - and validated against a schema
that converts values to their types.
"""
