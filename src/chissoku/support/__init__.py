"""
Small building blocks shared by the rest of the package: event sources, value object mixins and
a background loop thread.
"""
