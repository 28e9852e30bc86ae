from abc import ABC, abstractmethod
from typing import Union

Number = Union[int, float]


class ValueFormatter(ABC):
    """Turns a raw weight into a human-readable string in the unit of its profile."""

    unit: str = "none"

    @abstractmethod
    def format(self, value: Number) -> str:
        pass


class RawValueFormatter(ValueFormatter):
    """
    Format weights that carry no unit, such as sample counts.

    Example:
        >>> RawValueFormatter().format(1234)
        '1,234'
    """

    def format(self, value: Number) -> str:
        if float(value).is_integer():
            return f"{int(value):,}"
        return f"{value:,.2f}"


class TimeFormatter(ValueFormatter):
    """
    Format weights measured in a unit of time.

    The value is scaled to the largest of microseconds, milliseconds, seconds or
    minutes which keeps it above one.

    Args:
        unit (str): One of "nanoseconds", "microseconds", "milliseconds" or "seconds".

    Example:
        >>> TimeFormatter("microseconds").format(1500)
        '1.50ms'
        >>> TimeFormatter("milliseconds").format(2500)
        '2.50s'
    """

    _MULTIPLIERS = {
        "nanoseconds": 1e-9,
        "microseconds": 1e-6,
        "milliseconds": 1e-3,
        "seconds": 1.0,
    }

    def __init__(self, unit: str = "microseconds"):
        if unit not in self._MULTIPLIERS:
            raise ValueError(f"Unsupported time unit: {unit}")
        self.unit = unit
        self._multiplier = self._MULTIPLIERS[unit]

    def format(self, value: Number) -> str:
        seconds = value * self._multiplier
        if abs(seconds) >= 60:
            return f"{seconds / 60:.2f}min"
        if abs(seconds) >= 1:
            return f"{seconds:.2f}s"
        if abs(seconds) >= 1e-3:
            return f"{seconds * 1e3:.2f}ms"
        if abs(seconds) >= 1e-6 or value == 0:
            return f"{seconds * 1e6:.2f}µs"
        return f"{seconds * 1e9:.0f}ns"
