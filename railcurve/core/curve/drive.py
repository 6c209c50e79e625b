"""
RAILCURVE - DRIVE PARAMETER MAPPING
===================================

Converts external clocks and sliders into the drive parameter.

Convention: the drive parameter is expressed in parameter units, [0, n)
for a track with n control points. One full lap is n units, whatever the
speed mode. A slider spanning 0..n with step 0.05 can be passed through
unchanged.
"""
from __future__ import annotations

import math

from .arclength import ArcLengthTable
from .errors import ParameterOutOfRange


class DriveMapper:
    """
    Maps external inputs to a drive parameter in [0, n).

    Strategies:
    - normalized: slider position in [0, 1) → x · n
    - elapsed: animation clock in seconds → laps traveled · n
    - from_length: distance along the track → matching ARC_LENGTH drive
    """

    @staticmethod
    def wrap(drive: float, n: int) -> float:
        """
        Reduce any drive value into [0, n).

        Raises:
            ParameterOutOfRange: If drive is not finite or n < 1
        """
        if not math.isfinite(drive):
            raise ParameterOutOfRange(f"Drive parameter must be finite, got {drive}")
        if n < 1:
            raise ParameterOutOfRange(f"Track needs at least one span, got n={n}")
        u = drive % n
        return 0.0 if u >= n else u

    @staticmethod
    def normalized(position: float, n: int) -> float:
        """
        Slider in [0, 1) → parameter units.

        Example:
            DriveMapper.normalized(0.5, 4)  # → 2.0
        """
        return DriveMapper.wrap(position * n, n)

    @staticmethod
    def elapsed(seconds: float, laps_per_second: float, n: int) -> float:
        """
        Animation clock → parameter units.

        Args:
            seconds: Time since the animation started
            laps_per_second: Full circuits per second
            n: Number of control points

        Example:
            DriveMapper.elapsed(2.5, 0.2, 5)  # half a lap → 2.5
        """
        return DriveMapper.wrap(seconds * laps_per_second * n, n)

    @staticmethod
    def from_length(length: float, table: ArcLengthTable, n: int) -> float:
        """
        Drive value that puts the ARC_LENGTH leader `length` units along the track.

        Raises:
            ParameterOutOfRange: If the table has zero length
        """
        total = table.total_length
        if total <= 0.0:
            raise ParameterOutOfRange("Track has zero length")
        return DriveMapper.wrap(length / total * n, n)
