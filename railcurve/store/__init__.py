"""
Track store package for railcurve.

Exports:
- TrackStore: In-memory track registry
- TrackSnapshot: Immutable track view
- get_store / close_store: Singleton accessors
"""
from .engine import TrackStore, TrackSnapshot, get_store, close_store

__all__ = ['TrackStore', 'TrackSnapshot', 'get_store', 'close_store']
