"""
Routers for railcurve.

- tracks: Track CRUD and control-point editing
- frames: Per-frame placements, geometry and arc-length table
"""
