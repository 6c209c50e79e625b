"""
Services package for railcurve.

Exports:
- FrameDriver: Per-frame placement with revision-keyed table cache
- FrameResult: Outcome of one frame
"""
from .driver import (
    FrameDriver,
    FrameResult,
    get_driver,
    close_driver
)

__all__ = [
    'FrameDriver',
    'FrameResult',
    'get_driver',
    'close_driver'
]
