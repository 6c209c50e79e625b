"""Railcurve: constant-speed train placement on closed Catmull-Rom tracks."""

__version__ = "1.0.0"
